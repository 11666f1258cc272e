"""High-level async client for one robot."""

from __future__ import annotations

import logging
from typing import Any

from pyroomba._constants import (
    CHANNEL_ALWAYS_FINISH,
    CHANNEL_CLEAN_PASSES,
    CHANNEL_COMMAND,
    CHANNEL_EDGE_CLEAN,
    CHANNEL_POWER_BOOST,
    CHANNEL_SCHED_SWITCH,
    CHANNEL_SCHED_SWITCH_PREFIX,
    CHANNEL_SCHEDULE,
)
from pyroomba._credential import CredentialClient
from pyroomba._discovery import DiscoveryClient
from pyroomba._mqtt import BrokerFactory
from pyroomba._redact import redact_payload
from pyroomba.commands import (
    CommandEncoder,
    always_finish_fragment,
    clean_passes_fragment,
    edge_clean_fragment,
    power_boost_fragment,
)
from pyroomba.config import RoombaConfig
from pyroomba.host import Host, ThingStatus
from pyroomba.models.channels import MissionCommand
from pyroomba.models.identity import DeviceIdentity
from pyroomba.models.requests import RoombaRequest
from pyroomba.state.synchronizer import StateSynchronizer
from pyroomba.supervisor import ConnectionState, ConnectionSupervisor

_logger = logging.getLogger(__name__)


def resolve_command(command: str, *, paused: bool) -> str:
    """Map the user-facing ``clean`` to what the robot expects right now."""
    if command == MissionCommand.CLEAN:
        return MissionCommand.RESUME if paused else MissionCommand.START
    return command


class RoombaClient:
    """Session object for one robot.

    Inbound state flows broker -> :class:`StateSynchronizer` -> host;
    channel commands flow host -> :class:`CommandEncoder` -> broker.

    Usage::

        async with RoombaClient(config, host) as client:
            client.handle_command("command", "clean")
    """

    def __init__(
        self,
        config: RoombaConfig,
        host: Host,
        *,
        discovery: DiscoveryClient | None = None,
        credentials: CredentialClient | None = None,
        broker_factory: BrokerFactory | None = None,
        encoder: CommandEncoder | None = None,
    ) -> None:
        self._config = config
        self._host = host
        self._encoder = encoder or CommandEncoder()
        self._synchronizer = StateSynchronizer(on_property=host.update_property)
        self._supervisor = ConnectionSupervisor(
            config,
            host,
            on_message=self._on_message,
            discovery=discovery,
            credentials=credentials,
            broker_factory=broker_factory,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RoombaClient:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.dispose()

    async def initialize(self) -> None:
        _logger.debug("Initializing client for %r", self._config)
        self._host.update_status(ThingStatus.UNKNOWN)
        self._supervisor.connect()

    async def dispose(self) -> None:
        await self._supervisor.dispose()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._supervisor.state

    @property
    def identity(self) -> DeviceIdentity | None:
        return self._supervisor.identity

    @property
    def synchronizer(self) -> StateSynchronizer:
        return self._synchronizer

    @property
    def supervisor(self) -> ConnectionSupervisor:
        return self._supervisor

    # ------------------------------------------------------------------
    # Host-facing channel API
    # ------------------------------------------------------------------

    def refresh(self, channel: str) -> None:
        """Re-send the last known value of *channel*, if any."""
        value = self._synchronizer.get(channel)
        if value is not None:
            self._host.update_state(channel, value)

    def handle_command(self, channel: str, command: Any) -> None:
        """Translate a channel command into a robot request and send it.

        Raises :class:`ValueError` for unknown channels or values of the
        wrong type, and :class:`pyroomba.exceptions.BrokerDisconnectedError`
        when the robot is not connected.
        """
        if channel == CHANNEL_COMMAND:
            name = _require_str(channel, command)
            self._send(self._encoder.encode_command(resolve_command(name, paused=self._synchronizer.is_paused)))
        elif channel.startswith(CHANNEL_SCHED_SWITCH_PREFIX):
            self._toggle_schedule_day(channel, _require_bool(channel, command))
        elif channel == CHANNEL_SCHEDULE:
            mask = _require_int(channel, command)
            self._send(self._encoder.encode_schedule_mask(self._synchronizer.cached_schedule, mask))
        elif channel == CHANNEL_EDGE_CLEAN:
            self._send(self._encoder.encode_delta(edge_clean_fragment(_require_bool(channel, command))))
        elif channel == CHANNEL_ALWAYS_FINISH:
            self._send(self._encoder.encode_delta(always_finish_fragment(_require_bool(channel, command))))
        elif channel == CHANNEL_POWER_BOOST:
            self._send(self._encoder.encode_delta(power_boost_fragment(_require_str(channel, command))))
        elif channel == CHANNEL_CLEAN_PASSES:
            self._send(self._encoder.encode_delta(clean_passes_fragment(_require_str(channel, command))))
        else:
            raise ValueError(f"Unknown channel: {channel}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _toggle_schedule_day(self, channel: str, enabled: bool) -> None:
        try:
            day = CHANNEL_SCHED_SWITCH.index(channel)
        except ValueError as exc:
            raise ValueError(f"Unknown channel: {channel}") from exc

        # Schedules can only be replaced as a whole, so start from the cached one.
        schedule = self._synchronizer.cached_schedule
        if schedule is None:
            _logger.warning("Ignoring %s: no schedule received from the robot yet", channel)
            return
        self._send(self._encoder.encode_schedule_toggle(schedule, day, enabled))

    def _send(self, request: RoombaRequest) -> None:
        self._supervisor.publish(request)

    def _on_message(self, topic: str, payload: bytes) -> None:
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Got topic %s data %s", topic, redact_payload(payload))
        for update in self._synchronizer.merge(payload):
            self._host.update_state(update.channel, update.value)


def _require_bool(channel: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{channel} expects an on/off value, got {value!r}")
    return value


def _require_int(channel: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{channel} expects an integer, got {value!r}")
    return value


def _require_str(channel: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{channel} expects a non-empty string, got {value!r}")
    return value.strip()
