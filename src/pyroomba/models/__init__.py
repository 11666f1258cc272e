"""Data models for robot payloads and requests."""

from pyroomba.models._base import RoombaBaseModel
from pyroomba.models.channels import BinStatus, BoostMode, MissionCommand, PassesMode
from pyroomba.models.identity import Credential, DeviceIdentity
from pyroomba.models.requests import CommandRequest, DeltaRequest, RoombaRequest
from pyroomba.models.schedule import Schedule, ScheduleEntry
from pyroomba.models.state import (
    BinState,
    CleanMissionStatus,
    CleanSchedule,
    ReportedState,
    ShadowState,
    SignalState,
    StateMessage,
)

__all__ = [
    "BinState",
    "BinStatus",
    "BoostMode",
    "CleanMissionStatus",
    "CleanSchedule",
    "CommandRequest",
    "Credential",
    "DeltaRequest",
    "DeviceIdentity",
    "MissionCommand",
    "PassesMode",
    "ReportedState",
    "RoombaBaseModel",
    "RoombaRequest",
    "Schedule",
    "ScheduleEntry",
    "ShadowState",
    "SignalState",
    "StateMessage",
]
