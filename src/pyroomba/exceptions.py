"""Custom exception hierarchy for pyroomba."""

from __future__ import annotations


class RoombaError(Exception):
    """Base exception for all pyroomba errors."""


class RoombaConfigError(RoombaError):
    """Invalid or missing configuration."""


class RoombaDiscoveryError(RoombaError):
    """The robot answered the identification request, but unusably."""


class MalformedResponseError(RoombaDiscoveryError):
    """Identification response could not be decoded."""


class UnsupportedVersionError(RoombaDiscoveryError):
    """Robot speaks a protocol version older than we support."""

    def __init__(self, message: str, *, version: int) -> None:
        self.version = version
        super().__init__(message)


class WrongProductTypeError(RoombaDiscoveryError):
    """The device at the configured address is not a supported vacuum."""

    def __init__(self, message: str, *, product: str) -> None:
        self.product = product
        super().__init__(message)


class RoombaSetupError(RoombaError):
    """The local TLS stack could not be initialized.

    This is an environment fault rather than a device fault, so the
    connection supervisor never retries it automatically.
    """


class RoombaNetworkError(RoombaError):
    """Socket-level failure (timeout, refused connection, reset)."""

    def __init__(self, message: str, *, host: str = "", port: int | None = None) -> None:
        self.host = host
        self.port = port
        super().__init__(message)


class AuthenticationPendingError(RoombaError):
    """No password is configured and the robot refused to issue one.

    The robot only hands out its password while the user holds the HOME
    button (or uses the app equivalent), so this clears itself once the
    confirmation step is performed.
    """


class BrokerDisconnectedError(RoombaError):
    """The MQTT session to the robot is not (or no longer) established."""

    def __init__(self, message: str, *, reason: str = "") -> None:
        self.reason = reason
        super().__init__(message)


class RoombaDecodeError(RoombaError):
    """An inbound state message could not be decoded."""
