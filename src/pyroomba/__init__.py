"""pyroomba - Async local-network client for iRobot Roomba vacuums."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyroomba")
except PackageNotFoundError:
    __version__ = "0+local"
from pyroomba.client import RoombaClient
from pyroomba.commands import CommandEncoder
from pyroomba.config import RoombaConfig
from pyroomba.exceptions import (
    AuthenticationPendingError,
    BrokerDisconnectedError,
    MalformedResponseError,
    RoombaConfigError,
    RoombaDecodeError,
    RoombaDiscoveryError,
    RoombaError,
    RoombaNetworkError,
    RoombaSetupError,
    UnsupportedVersionError,
    WrongProductTypeError,
)
from pyroomba.host import Host, SimpleHost, ThingStatus, ThingStatusDetail
from pyroomba.models import (
    BinStatus,
    BoostMode,
    CommandRequest,
    Credential,
    DeltaRequest,
    DeviceIdentity,
    MissionCommand,
    PassesMode,
    Schedule,
    ScheduleEntry,
)
from pyroomba.state import StateSynchronizer
from pyroomba.supervisor import ConnectionState, ConnectionSupervisor

__all__ = [
    "__version__",
    "AuthenticationPendingError",
    "BinStatus",
    "BoostMode",
    "BrokerDisconnectedError",
    "CommandEncoder",
    "CommandRequest",
    "ConnectionState",
    "ConnectionSupervisor",
    "Credential",
    "DeltaRequest",
    "DeviceIdentity",
    "Host",
    "MalformedResponseError",
    "MissionCommand",
    "PassesMode",
    "RoombaClient",
    "RoombaConfig",
    "RoombaConfigError",
    "RoombaDecodeError",
    "RoombaDiscoveryError",
    "RoombaError",
    "RoombaNetworkError",
    "RoombaSetupError",
    "Schedule",
    "ScheduleEntry",
    "SimpleHost",
    "StateSynchronizer",
    "ThingStatus",
    "ThingStatusDetail",
    "UnsupportedVersionError",
    "WrongProductTypeError",
]
