"""Translation of channel commands into robot requests.

Mission commands go to the ``cmd`` topic; setting changes go to the
``delta`` topic as a partial ``state`` document naming only the fields
being changed.  Schedules are the exception to "only what changed": the
robot accepts whole-week schedules only, so a single-day toggle is
always sent as the complete 7-entry ``cleanSchedule``.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

from pyroomba.models.channels import BoostMode, PassesMode
from pyroomba.models.requests import CommandRequest, DeltaRequest
from pyroomba.models.schedule import Schedule


def edge_clean_fragment(enabled: bool) -> dict[str, Any]:
    return {"openOnly": not enabled}


def always_finish_fragment(enabled: bool) -> dict[str, Any]:
    return {"binPause": not enabled}


def power_boost_fragment(mode: str) -> dict[str, Any]:
    boost = BoostMode(mode)
    return {
        "carpetBoost": boost == BoostMode.AUTO,
        "vacHigh": boost == BoostMode.PERFORMANCE,
    }


def clean_passes_fragment(mode: str) -> dict[str, Any]:
    passes = PassesMode(mode)
    return {
        "noAutoPasses": passes != PassesMode.AUTO,
        "twoPass": passes == PassesMode.TWO,
    }


def schedule_fragment(schedule: Schedule) -> dict[str, Any]:
    return {"cleanSchedule": schedule.to_payload()}


class CommandEncoder:
    """Builds :class:`CommandRequest` and :class:`DeltaRequest` objects.

    Parameters
    ----------
    clock : callable
        Returns the current epoch time in seconds; stamped into command
        requests.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def encode_command(self, name: str) -> CommandRequest:
        return CommandRequest(command=str(name), time=int(self._clock()))

    def encode_delta(self, fragment: Mapping[str, Any]) -> DeltaRequest:
        return DeltaRequest(state=dict(fragment))

    def encode_schedule_toggle(self, schedule: Schedule, day: int, enabled: bool) -> DeltaRequest:
        """Full schedule equal to *schedule* except for one day's flag."""
        return self.encode_delta(schedule_fragment(schedule.with_day(day, enabled)))

    def encode_schedule_mask(self, schedule: Schedule | None, mask: int) -> DeltaRequest:
        """Full schedule enabling exactly the days set in *mask*.

        Start times of *schedule* are kept when one is given.
        """
        updated = schedule.with_bitmask(mask) if schedule is not None else Schedule.from_bitmask(mask)
        return self.encode_delta(schedule_fragment(updated))
