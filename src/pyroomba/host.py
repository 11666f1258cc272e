"""Host framework interface.

The library does not own UI, persistence or scheduling.  It talks to
whatever embeds it through the :class:`Host` protocol.  :class:`SimpleHost`
is a small in-process implementation used by the probe script and by
tests; it keeps everything in memory and schedules on the running loop.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from typing import Any, Protocol

from pyroomba.models.identity import Credential

_logger = logging.getLogger(__name__)


class ThingStatus(enum.StrEnum):
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


class ThingStatusDetail(enum.StrEnum):
    """Reason code attached to an offline status."""

    NONE = "none"
    COMMUNICATION_ERROR = "communication_error"
    CONFIGURATION_ERROR = "configuration_error"
    CONFIGURATION_PENDING = "configuration_pending"


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Host(Protocol):
    """Structural interface of the embedding framework."""

    def update_status(
        self,
        status: ThingStatus,
        detail: ThingStatusDetail = ThingStatusDetail.NONE,
        description: str | None = None,
    ) -> None:
        ...

    def update_state(self, channel: str, value: Any) -> None:
        ...

    def update_property(self, name: str, value: str) -> None:
        ...

    def persist_credential(self, credential: Credential) -> None:
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        ...


class SimpleHost:
    """In-memory :class:`Host` that schedules on the running event loop."""

    def __init__(self) -> None:
        self.status: ThingStatus = ThingStatus.UNKNOWN
        self.status_detail: ThingStatusDetail = ThingStatusDetail.NONE
        self.status_description: str | None = None
        self.states: dict[str, Any] = {}
        self.properties: dict[str, str] = {}
        self.credential: Credential | None = None

    def update_status(
        self,
        status: ThingStatus,
        detail: ThingStatusDetail = ThingStatusDetail.NONE,
        description: str | None = None,
    ) -> None:
        _logger.info("Status %s (%s) %s", status, detail, description or "")
        self.status = status
        self.status_detail = detail
        self.status_description = description

    def update_state(self, channel: str, value: Any) -> None:
        self.states[channel] = value

    def update_property(self, name: str, value: str) -> None:
        self.properties[name] = value

    def persist_credential(self, credential: Credential) -> None:
        self.credential = credential

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        return asyncio.get_running_loop().call_later(delay, callback)
