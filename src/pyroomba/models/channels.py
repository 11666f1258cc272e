"""Enumerated channel values."""

from __future__ import annotations

import enum


class MissionCommand(enum.StrEnum):
    """Values of the ``command`` channel.

    ``CLEAN`` is what the user asks for; it is sent to the robot as
    ``RESUME`` or ``START`` depending on whether a mission is paused.
    ``START`` and ``RESUME`` are only ever sent, never reported.
    """

    CLEAN = "clean"
    SPOT = "spot"
    DOCK = "dock"
    PAUSE = "pause"
    STOP = "stop"
    START = "start"
    RESUME = "resume"


class BinStatus(enum.StrEnum):
    OK = "ok"
    FULL = "full"
    REMOVED = "removed"


class BoostMode(enum.StrEnum):
    AUTO = "auto"
    PERFORMANCE = "performance"
    ECO = "eco"


class PassesMode(enum.StrEnum):
    AUTO = "AUTO"
    ONE = "1"
    TWO = "2"
