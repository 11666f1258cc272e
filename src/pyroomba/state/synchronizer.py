"""Merges partial state reports into channel values.

The robot never sends its full state at once; each message carries an
arbitrary subset of ``state.reported``.  Every recognized field is
handled on its own and only fields present in the message produce
channel updates.  Paired settings and the weekly schedule need memory
of earlier messages, which lives here as well.

Messages arrive on the event loop while commands may read the cached
schedule and pause flag from host threads, so all state is guarded by
a single lock.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from pyroomba._constants import (
    CHANNEL_ALWAYS_FINISH,
    CHANNEL_BATTERY,
    CHANNEL_BIN,
    CHANNEL_CLEAN_PASSES,
    CHANNEL_COMMAND,
    CHANNEL_CYCLE,
    CHANNEL_EDGE_CLEAN,
    CHANNEL_ERROR,
    CHANNEL_PHASE,
    CHANNEL_POWER_BOOST,
    CHANNEL_RSSI,
    CHANNEL_SCHED_SWITCH,
    CHANNEL_SCHEDULE,
    CHANNEL_SNR,
    VERSION_PROPERTIES,
)
from pyroomba._redact import redact_payload
from pyroomba.exceptions import RoombaDecodeError
from pyroomba.models.channels import BinStatus, MissionCommand
from pyroomba.models.schedule import Schedule
from pyroomba.models.state import BinState, CleanMissionStatus, CleanSchedule, ReportedState, StateMessage
from pyroomba.state.pairs import boost_setting, passes_setting
from pyroomba.state.store import ChannelStore, ChannelUpdate

_logger = logging.getLogger(__name__)

_PAUSE_PHASES: frozenset[str] = frozenset({"stop", "stuck", "pause"})
_DOCK_PHASES: frozenset[str] = frozenset({"hmUsrDock", "dock"})


def mission_command(cycle: str, phase: str | None) -> str:
    """Derive the user-facing ``command`` value from cycle and phase."""
    if cycle == "none":
        return MissionCommand.STOP
    if phase in _PAUSE_PHASES:
        return MissionCommand.PAUSE
    if phase in _DOCK_PHASES:
        return MissionCommand.DOCK
    return cycle


def bin_status(bin_state: BinState) -> str:
    # Full and removed are mutually exclusive, so one channel covers both.
    if not bin_state.present:
        return BinStatus.REMOVED
    if bin_state.full:
        return BinStatus.FULL
    return BinStatus.OK


def decode_state_message(payload: bytes | str) -> StateMessage:
    try:
        return StateMessage.model_validate_json(payload)
    except ValidationError as exc:
        raise RoombaDecodeError(f"Malformed state message: {exc.error_count()} error(s)") from exc


class StateSynchronizer:
    """Single owner of channel values, cached schedule and paired settings."""

    def __init__(self, *, on_property: Callable[[str, str], None] | None = None) -> None:
        self._on_property = on_property
        self._lock = threading.Lock()
        self._store = ChannelStore()
        self._schedule: CleanSchedule | None = None
        self._boost = boost_setting()
        self._passes = passes_setting()
        self._paused = False

    @property
    def is_paused(self) -> bool:
        with self._lock:
            return self._paused

    @property
    def cached_schedule(self) -> Schedule | None:
        """Last full schedule received, if it carried per-day cycle data."""
        with self._lock:
            cached = self._schedule
        return cached.to_schedule() if cached is not None else None

    def get(self, channel: str) -> Any | None:
        with self._lock:
            return self._store.get(channel)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return self._store.snapshot()

    def merge(self, payload: bytes | str) -> list[ChannelUpdate]:
        """Apply one inbound message; returns the channel updates it produced.

        Decode failures are logged and the message is dropped.
        """
        try:
            message = decode_state_message(payload)
        except RoombaDecodeError as exc:
            _logger.error("Failed to parse state message: %s", exc)
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug("Raw contents: %s", redact_payload(payload))
            return []

        reported = message.reported
        if reported is None:
            return []

        with self._lock:
            updates = self._merge_reported(reported)
            for update in updates:
                self._store.apply(update)

        self._forward_properties(reported)
        if updates:
            _logger.debug("State updates: %s", dict(updates))
        return updates

    def _merge_reported(self, reported: ReportedState) -> list[ChannelUpdate]:
        updates: list[ChannelUpdate] = []

        if reported.clean_mission_status is not None:
            updates.extend(self._merge_mission(reported.clean_mission_status))

        if reported.bat_pct is not None:
            updates.append(ChannelUpdate(CHANNEL_BATTERY, reported.bat_pct))

        if reported.bin is not None:
            updates.append(ChannelUpdate(CHANNEL_BIN, bin_status(reported.bin)))

        if reported.signal is not None:
            if reported.signal.rssi is not None:
                updates.append(ChannelUpdate(CHANNEL_RSSI, reported.signal.rssi))
            if reported.signal.snr is not None:
                updates.append(ChannelUpdate(CHANNEL_SNR, reported.signal.snr))

        if reported.clean_schedule is not None:
            updates.extend(self._merge_schedule(reported.clean_schedule))

        if reported.open_only is not None:
            updates.append(ChannelUpdate(CHANNEL_EDGE_CLEAN, not reported.open_only))

        if reported.bin_pause is not None:
            updates.append(ChannelUpdate(CHANNEL_ALWAYS_FINISH, not reported.bin_pause))

        # Paired flags may arrive in separate messages; the override side
        # is applied first so a message carrying both is consistent.
        if reported.carpet_boost is not None:
            self._append_pair(updates, CHANNEL_POWER_BOOST, self._boost.update_auto(reported.carpet_boost))
        if reported.vac_high is not None:
            self._append_pair(updates, CHANNEL_POWER_BOOST, self._boost.update_detail(reported.vac_high))

        if reported.no_auto_passes is not None:
            self._append_pair(updates, CHANNEL_CLEAN_PASSES, self._passes.update_auto(not reported.no_auto_passes))
        if reported.two_pass is not None:
            self._append_pair(updates, CHANNEL_CLEAN_PASSES, self._passes.update_detail(reported.two_pass))

        return updates

    def _merge_mission(self, status: CleanMissionStatus) -> list[ChannelUpdate]:
        updates: list[ChannelUpdate] = []
        if status.cycle is not None:
            command = mission_command(status.cycle, status.phase)
            self._paused = command == MissionCommand.PAUSE
            updates.append(ChannelUpdate(CHANNEL_CYCLE, status.cycle))
            if status.phase is not None:
                updates.append(ChannelUpdate(CHANNEL_PHASE, status.phase))
            updates.append(ChannelUpdate(CHANNEL_COMMAND, command))
        elif status.phase is not None:
            updates.append(ChannelUpdate(CHANNEL_PHASE, status.phase))
        updates.append(ChannelUpdate(CHANNEL_ERROR, str(status.error)))
        return updates

    def _merge_schedule(self, clean_schedule: CleanSchedule) -> list[ChannelUpdate]:
        # Cached even without cycle data; later day toggles start from here.
        self._schedule = clean_schedule
        schedule = clean_schedule.to_schedule()
        if schedule is None:
            return []

        updates = [
            ChannelUpdate(channel, schedule.is_enabled(day)) for day, channel in enumerate(CHANNEL_SCHED_SWITCH)
        ]
        updates.append(ChannelUpdate(CHANNEL_SCHEDULE, schedule.to_bitmask()))
        return updates

    @staticmethod
    def _append_pair(updates: list[ChannelUpdate], channel: str, value: str | None) -> None:
        if value is not None:
            updates.append(ChannelUpdate(channel, value))

    def _forward_properties(self, reported: ReportedState) -> None:
        if self._on_property is None:
            return
        for field_name, property_name in VERSION_PROPERTIES:
            value = getattr(reported, field_name)
            if value is not None:
                self._on_property(property_name, value)
