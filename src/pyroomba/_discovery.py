"""UDP identification handshake.

The robot answers the datagram ``irobotmcs`` sent to port 5678 with a
single JSON document, e.g.::

    {"ver": "3", "hostname": "Roomba-3147C81234567890",
     "robotname": "Kitchen", "ip": "192.168.1.20", "proto": "mqtt", ...}

The hostname encodes both the product family and the BLID.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from pyroomba._constants import (
    DISCOVERY_PORT,
    DISCOVERY_REQUEST,
    MIN_SUPPORTED_VERSION,
    SUPPORTED_PRODUCTS,
)
from pyroomba.exceptions import (
    MalformedResponseError,
    RoombaNetworkError,
    UnsupportedVersionError,
    WrongProductTypeError,
)
from pyroomba.models.identity import DeviceIdentity

_logger = logging.getLogger(__name__)


def decode_ident_response(data: bytes) -> DeviceIdentity:
    """Decode and validate one identification reply."""
    try:
        decoded: Any = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedResponseError(f"Identification reply is not JSON: {data[:64]!r}") from exc
    if not isinstance(decoded, dict):
        raise MalformedResponseError("Identification reply is not a JSON object")

    hostname = decoded.get("hostname")
    if not isinstance(hostname, str) or "-" not in hostname:
        raise MalformedResponseError(f"Identification reply has no usable hostname: {hostname!r}")
    product, _, blid = hostname.partition("-")
    product = product.strip()
    blid = blid.strip()
    if not product or not blid:
        raise MalformedResponseError(f"Identification reply has no usable hostname: {hostname!r}")

    raw_ver = decoded.get("ver")
    # ``ver`` is a string on every firmware seen so far, but accept ints too.
    if isinstance(raw_ver, bool) or not isinstance(raw_ver, (int, str)):
        raise MalformedResponseError(f"Identification reply has no usable version: {raw_ver!r}")
    try:
        version = int(raw_ver)
    except ValueError as exc:
        raise MalformedResponseError(f"Identification reply has no usable version: {raw_ver!r}") from exc

    if version < MIN_SUPPORTED_VERSION:
        raise UnsupportedVersionError(f"Unsupported version {version}", version=version)
    if product not in SUPPORTED_PRODUCTS:
        raise WrongProductTypeError(f"Not a Roomba: {product}", product=product)

    robot_name = decoded.get("robotname")
    try:
        return DeviceIdentity(
            id=blid,
            product_name=product,
            protocol_version=version,
            robot_name=robot_name if isinstance(robot_name, str) and robot_name.strip() else None,
        )
    except ValidationError as exc:
        raise MalformedResponseError(f"Identification reply has invalid fields: {exc.error_count()} error(s)") from exc


class _IdentProtocol(asyncio.DatagramProtocol):
    """Resolves a future with the first datagram received."""

    def __init__(self, response: asyncio.Future[bytes]) -> None:
        self._response = response

    def datagram_received(self, data: bytes, addr: tuple[str | Any, int]) -> None:
        _logger.debug("Identification reply from %s: %s", addr, data[:256])
        if not self._response.done():
            self._response.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if not self._response.done():
            self._response.set_exception(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None and not self._response.done():
            self._response.set_exception(exc)


class DiscoveryClient:
    """Learns a robot's identity over UDP.

    Performs exactly one request/response exchange per call and never
    retries; the caller owns the retry policy.
    """

    def __init__(self, *, port: int = DISCOVERY_PORT, timeout: float = 2.0) -> None:
        self._port = port
        self._timeout = timeout

    async def discover(self, host: str) -> DeviceIdentity:
        """Identify the robot at *host* (a unicast or broadcast address)."""
        loop = asyncio.get_running_loop()
        response: asyncio.Future[bytes] = loop.create_future()

        _logger.debug("Sending identification request to %s:%s", host, self._port)
        try:
            transport, _protocol = await loop.create_datagram_endpoint(
                lambda: _IdentProtocol(response),
                local_addr=("0.0.0.0", 0),
                allow_broadcast=True,
            )
        except OSError as exc:
            raise RoombaNetworkError(
                f"Cannot reach {host}:{self._port}: {exc}",
                host=host,
                port=self._port,
            ) from exc

        try:
            transport.sendto(DISCOVERY_REQUEST, (host, self._port))
            data = await asyncio.wait_for(response, self._timeout)
        except TimeoutError as exc:
            raise RoombaNetworkError(
                f"No identification reply from {host} within {self._timeout}s",
                host=host,
                port=self._port,
            ) from exc
        except OSError as exc:
            raise RoombaNetworkError(
                f"Identification request to {host} failed: {exc}",
                host=host,
                port=self._port,
            ) from exc
        finally:
            transport.close()

        return decode_ident_response(data)
