from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from pyroomba._discovery import DiscoveryClient, decode_ident_response
from pyroomba.exceptions import (
    MalformedResponseError,
    RoombaNetworkError,
    UnsupportedVersionError,
    WrongProductTypeError,
)


def _reply(**fields: Any) -> bytes:
    body = {"ver": "3", "hostname": "Roomba-3147C81234567890", "robotname": "Kitchen", "proto": "mqtt"}
    body.update(fields)
    return json.dumps(body).encode("utf-8")


def test_decode_valid_reply_yields_identity() -> None:
    identity = decode_ident_response(_reply())
    assert identity.id == "3147C81234567890"
    assert identity.product_name == "Roomba"
    assert identity.protocol_version == 3
    assert identity.robot_name == "Kitchen"


def test_decode_accepts_integer_version_and_irobot_hostname() -> None:
    identity = decode_ident_response(_reply(ver=2, hostname="iRobot-ABCDEF0123"))
    assert identity.id == "ABCDEF0123"
    assert identity.product_name == "iRobot"
    assert identity.protocol_version == 2


def test_decode_keeps_dashes_inside_blid() -> None:
    identity = decode_ident_response(_reply(hostname="Roomba-ABC-DEF"))
    assert identity.id == "ABC-DEF"


@pytest.mark.parametrize(
    "payload",
    [
        b"not json",
        b"\xff\xfe",
        b"[1, 2, 3]",
        json.dumps({"ver": "3"}).encode(),
        _reply(hostname="Roomba"),
        _reply(hostname="-3147C8"),
        _reply(hostname="Roomba-   "),
        _reply(hostname="  -3147C8"),
        _reply(ver="three"),
        _reply(ver=None),
        _reply(ver=True),
    ],
)
def test_decode_malformed_reply_raises(payload: bytes) -> None:
    with pytest.raises(MalformedResponseError):
        decode_ident_response(payload)


def test_decode_old_version_raises_unsupported() -> None:
    with pytest.raises(UnsupportedVersionError) as excinfo:
        decode_ident_response(_reply(ver="1"))
    assert excinfo.value.version == 1


def test_decode_other_product_raises_wrong_product() -> None:
    with pytest.raises(WrongProductTypeError) as excinfo:
        decode_ident_response(_reply(hostname="Braava-3147C81234567890"))
    assert excinfo.value.product == "Braava"


class _Responder(asyncio.DatagramProtocol):
    def __init__(self, reply: bytes | None) -> None:
        self.reply = reply
        self.requests: list[bytes] = []
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self.requests.append(data)
        if self.reply is not None and self.transport is not None:
            self.transport.sendto(self.reply, addr)


async def _start_responder(reply: bytes | None) -> tuple[asyncio.DatagramTransport, _Responder]:
    loop = asyncio.get_running_loop()
    transport, responder = await loop.create_datagram_endpoint(
        lambda: _Responder(reply),
        local_addr=("127.0.0.1", 0),
    )
    return transport, responder


@pytest.mark.asyncio
async def test_discover_sends_magic_and_decodes_reply() -> None:
    transport, responder = await _start_responder(_reply())
    try:
        port = transport.get_extra_info("sockname")[1]
        identity = await DiscoveryClient(port=port, timeout=2.0).discover("127.0.0.1")
    finally:
        transport.close()

    assert responder.requests == [b"irobotmcs"]
    assert identity.id == "3147C81234567890"


@pytest.mark.asyncio
async def test_discover_without_reply_raises_network_error() -> None:
    transport, _responder = await _start_responder(None)
    try:
        port = transport.get_extra_info("sockname")[1]
        with pytest.raises(RoombaNetworkError):
            await DiscoveryClient(port=port, timeout=0.1).discover("127.0.0.1")
    finally:
        transport.close()


@pytest.mark.asyncio
async def test_discover_classifies_wrong_product_reply() -> None:
    transport, _responder = await _start_responder(_reply(hostname="Braava-1"))
    try:
        port = transport.get_extra_info("sockname")[1]
        with pytest.raises(WrongProductTypeError):
            await DiscoveryClient(port=port, timeout=2.0).discover("127.0.0.1")
    finally:
        transport.close()


def test_decode_strips_padding_around_hostname_parts() -> None:
    identity = decode_ident_response(_reply(hostname="Roomba- 3147C8 ", robotname="  "))
    assert identity.id == "3147C8"
    assert identity.robot_name is None
