"""Reported-state message models.

The robot publishes AWS-IoT-shadow-shaped documents::

    {"state": {"reported": {"batPct": 87, "bin": {"present": true}}}}

Every field of ``reported`` is optional and a single message never
carries all of them, so every field here defaults to ``None`` meaning
"not in this message".
"""

from __future__ import annotations

from pyroomba.models._base import RoombaBaseModel
from pyroomba.models.schedule import Schedule


class CleanMissionStatus(RoombaBaseModel):
    cycle: str | None = None
    """Mission type: ``none``, ``clean``, ``spot``, ``dock`` ..."""

    phase: str | None = None
    """Mission phase: ``charge``, ``run``, ``stop``, ``hmUsrDock`` ..."""

    error: int = 0


class BinState(RoombaBaseModel):
    present: bool = True
    full: bool = False


class SignalState(RoombaBaseModel):
    rssi: int | None = None
    snr: int | None = None


class CleanSchedule(RoombaBaseModel):
    """Wire shape of ``cleanSchedule``: parallel per-day arrays."""

    cycle: list[str] | None = None
    h: list[int] | None = None
    m: list[int] | None = None

    def to_schedule(self) -> Schedule | None:
        """Convert to a :class:`Schedule`, or ``None`` without usable cycle data."""
        if self.cycle is None:
            return None
        try:
            return Schedule.from_cycle(self.cycle, self.h, self.m)
        except ValueError:
            return None


class ReportedState(RoombaBaseModel):
    clean_mission_status: CleanMissionStatus | None = None
    bat_pct: int | None = None
    bin: BinState | None = None
    signal: SignalState | None = None
    clean_schedule: CleanSchedule | None = None
    open_only: bool | None = None
    bin_pause: bool | None = None
    carpet_boost: bool | None = None
    vac_high: bool | None = None
    no_auto_passes: bool | None = None
    two_pass: bool | None = None

    software_ver: str | None = None
    nav_sw_ver: str | None = None
    wifi_sw_ver: str | None = None
    mobility_ver: str | None = None
    bootloader_ver: str | None = None
    umi_ver: str | None = None


class ShadowState(RoombaBaseModel):
    reported: ReportedState | None = None


class StateMessage(RoombaBaseModel):
    """Top-level document; only messages with ``state.reported`` matter."""

    state: ShadowState | None = None

    @property
    def reported(self) -> ReportedState | None:
        return self.state.reported if self.state is not None else None
