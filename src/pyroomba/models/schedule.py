"""Weekly cleaning schedule model.

The robot only accepts whole-week schedule updates, so every change is
computed on a full 7-entry :class:`Schedule` and sent in one piece.
Entry 0 is Sunday.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyroomba._constants import DAYS_PER_WEEK

CYCLE_ENABLED = "start"
CYCLE_DISABLED = "none"

_MASK_LIMIT = 1 << DAYS_PER_WEEK


class ScheduleEntry(BaseModel):
    """One day of the weekly schedule."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = False
    hour: int | None = Field(default=None, ge=0, le=23)
    """Start hour (0-23), if the robot reported one."""

    minute: int | None = Field(default=None, ge=0, le=59)
    """Start minute (0-59), if the robot reported one."""


class Schedule(BaseModel):
    """Immutable 7-day schedule."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entries: tuple[ScheduleEntry, ...]

    @field_validator("entries")
    @classmethod
    def _seven_days(cls, value: tuple[ScheduleEntry, ...]) -> tuple[ScheduleEntry, ...]:
        if len(value) != DAYS_PER_WEEK:
            raise ValueError(f"schedule must have exactly {DAYS_PER_WEEK} entries, got {len(value)}")
        return value

    @classmethod
    def from_bitmask(cls, mask: int) -> Schedule:
        """Build a schedule with no start times from a 7-bit day mask."""
        _check_mask(mask)
        return cls(entries=tuple(ScheduleEntry(enabled=bool(mask & (1 << day))) for day in range(DAYS_PER_WEEK)))

    @classmethod
    def from_cycle(
        cls,
        cycle: Sequence[str],
        hours: Sequence[int] | None = None,
        minutes: Sequence[int] | None = None,
    ) -> Schedule:
        """Build a schedule from the robot's ``cycle``/``h``/``m`` arrays.

        Start times are only taken when both arrays cover every day.
        """
        if len(cycle) != DAYS_PER_WEEK:
            raise ValueError(f"cycle must have exactly {DAYS_PER_WEEK} entries, got {len(cycle)}")
        have_times = (
            hours is not None
            and minutes is not None
            and len(hours) == DAYS_PER_WEEK
            and len(minutes) == DAYS_PER_WEEK
        )
        entries = []
        for day in range(DAYS_PER_WEEK):
            entries.append(
                ScheduleEntry(
                    enabled=cycle[day] == CYCLE_ENABLED,
                    hour=hours[day] if have_times else None,  # type: ignore[index]
                    minute=minutes[day] if have_times else None,  # type: ignore[index]
                )
            )
        return cls(entries=tuple(entries))

    def is_enabled(self, day: int) -> bool:
        return self.entries[_check_day(day)].enabled

    def enabled_days(self) -> frozenset[int]:
        return frozenset(day for day, entry in enumerate(self.entries) if entry.enabled)

    def to_bitmask(self) -> int:
        mask = 0
        for day, entry in enumerate(self.entries):
            if entry.enabled:
                mask |= 1 << day
        return mask

    def with_day(self, day: int, enabled: bool) -> Schedule:
        """Return a copy with exactly one day's enabled flag changed."""
        index = _check_day(day)
        entries = list(self.entries)
        entries[index] = entries[index].model_copy(update={"enabled": enabled})
        return Schedule(entries=tuple(entries))

    def with_bitmask(self, mask: int) -> Schedule:
        """Return a copy whose enabled flags follow *mask*, keeping start times."""
        _check_mask(mask)
        return Schedule(
            entries=tuple(
                entry.model_copy(update={"enabled": bool(mask & (1 << day))}) for day, entry in enumerate(self.entries)
            )
        )

    def to_payload(self) -> dict[str, Any]:
        """Encode as the robot's ``cleanSchedule`` object."""
        payload: dict[str, Any] = {
            "cycle": [CYCLE_ENABLED if entry.enabled else CYCLE_DISABLED for entry in self.entries],
        }
        if all(entry.hour is not None and entry.minute is not None for entry in self.entries):
            payload["h"] = [entry.hour for entry in self.entries]
            payload["m"] = [entry.minute for entry in self.entries]
        return payload


def _check_day(day: int) -> int:
    if not 0 <= day < DAYS_PER_WEEK:
        raise ValueError(f"day index must be between 0 and {DAYS_PER_WEEK - 1}, got {day}")
    return day


def _check_mask(mask: int) -> None:
    if not 0 <= mask < _MASK_LIMIT:
        raise ValueError(f"schedule mask must be between 0 and {_MASK_LIMIT - 1}, got {mask}")
