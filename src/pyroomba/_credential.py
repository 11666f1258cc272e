"""One-shot password retrieval over the robot's TLS port.

While the user holds the HOME button the robot answers a fixed request
frame with a frame carrying its MQTT password.  The robot presents a
self-signed certificate, so verification is disabled for this exchange.

Response framing::

    +------+-------------+-------------------+
    | type | length (BE) | payload           |
    | 1 B  | 2 B         | ``length`` bytes  |
    +------+-------------+-------------------+
"""

from __future__ import annotations

import asyncio
import logging
import ssl
import struct
from typing import NamedTuple

from pyroomba._constants import (
    CREDENTIAL_PORT,
    PASSWORD_FRAME_TYPE,
    PASSWORD_MAGIC,
    PASSWORD_REQUEST_FRAME,
)
from pyroomba.exceptions import RoombaNetworkError, RoombaSetupError
from pyroomba.models.identity import Credential

_logger = logging.getLogger(__name__)

_HEADER = struct.Struct(">BH")


class Frame(NamedTuple):
    type: int
    payload: bytes


def build_tls_context() -> ssl.SSLContext:
    """TLS client context that accepts the robot's self-signed certificate.

    Raises :class:`RoombaSetupError` when the local TLS stack cannot
    provide a usable context.
    """
    try:
        ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        # Older robot firmware only offers ciphers below the default security level.
        ctx.set_ciphers("DEFAULT@SECLEVEL=1")
    except (ssl.SSLError, ValueError) as exc:
        raise RoombaSetupError(f"Cannot initialize TLS: {exc}") from exc
    return ctx


async def read_frame(reader: asyncio.StreamReader) -> Frame | None:
    """Read one frame, or ``None`` when the stream ends early."""
    try:
        header = await reader.readexactly(_HEADER.size)
        frame_type, length = _HEADER.unpack(header)
        payload = await reader.readexactly(length) if length else b""
    except asyncio.IncompleteReadError:
        _logger.debug("Credential stream closed mid-frame")
        return None
    return Frame(type=frame_type, payload=payload)


def parse_credential_frame(frame: Frame | None) -> Credential | None:
    """Extract the password from a response frame, if it carries one."""
    if frame is None or frame.type != PASSWORD_FRAME_TYPE:
        return None

    payload = frame.payload
    if payload.startswith(PASSWORD_MAGIC):
        payload = payload[len(PASSWORD_MAGIC) :]
    payload = payload.rstrip(b"\x00")
    if not payload:
        return None

    try:
        secret = payload.decode("utf-8")
    except UnicodeDecodeError:
        _logger.debug("Password frame is not valid UTF-8")
        return None
    return Credential(secret=secret)


class CredentialClient:
    """Asks the robot for its MQTT password.

    :meth:`retrieve` returns ``None`` when the robot does not hand out a
    password (refused, wrong frame, timeout).  That is the normal outcome
    until the user performs the physical confirmation step.
    """

    def __init__(self, *, port: int = CREDENTIAL_PORT, timeout: float = 5.0) -> None:
        self._port = port
        self._timeout = timeout

    async def retrieve(self, host: str) -> Credential | None:
        ctx = build_tls_context()

        _logger.debug("Requesting password from %s:%s", host, self._port)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, self._port, ssl=ctx),
                self._timeout,
            )
        except (OSError, TimeoutError) as exc:
            raise RoombaNetworkError(
                f"Cannot open TLS connection to {host}:{self._port}: {exc}",
                host=host,
                port=self._port,
            ) from exc

        try:
            writer.write(PASSWORD_REQUEST_FRAME)
            await writer.drain()
            frame = await asyncio.wait_for(read_frame(reader), self._timeout)
        except TimeoutError:
            _logger.debug("No password frame from %s within %ss", host, self._timeout)
            return None
        except OSError as exc:
            raise RoombaNetworkError(
                f"Password request to {host} failed: {exc}",
                host=host,
                port=self._port,
            ) from exc
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                _logger.debug("Error while closing credential connection", exc_info=True)

        credential = parse_credential_frame(frame)
        if credential is None:
            _logger.info("Robot at %s did not issue a password", host)
        else:
            _logger.debug("Received password frame from %s", host)
        return credential
