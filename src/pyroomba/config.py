"""Client configuration for pyroomba."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyroomba._constants import (
    BROKER_PORT,
    CREDENTIAL_PORT,
    DISCOVERY_PORT,
    RECONNECT_DELAY_SECONDS,
)
from pyroomba._redact import REDACTED
from pyroomba.exceptions import RoombaConfigError


@dataclasses.dataclass(frozen=True)
class RoombaConfig:
    """Client configuration.

    Parameters
    ----------
    address : str
        IP address or hostname of the robot.
    password : str or None
        Robot password.  When empty the client asks the robot for it
        (the user has to hold the HOME button while that happens) and
        hands the result to the host for persistence.
    reconnect_delay : float
        Seconds to wait before retrying after a recoverable failure.
    discovery_port : int
        UDP port of the identification service.
    discovery_timeout : float
        Seconds to wait for the identification reply.
    credential_port : int
        TLS port used for the one-shot password request.
    credential_timeout : float
        Seconds to wait for the password frame.
    broker_port : int
        MQTT-over-TLS port of the robot's local broker.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    """

    address: str
    password: str | None = None
    reconnect_delay: float = RECONNECT_DELAY_SECONDS
    discovery_port: int = DISCOVERY_PORT
    discovery_timeout: float = 2.0
    credential_port: int = CREDENTIAL_PORT
    credential_timeout: float = 5.0
    broker_port: int = BROKER_PORT
    mqtt_keepalive: int = 60

    def __post_init__(self) -> None:
        if not self.address or not self.address.strip():
            raise RoombaConfigError("address must be non-empty")
        if self.reconnect_delay < 0:
            raise RoombaConfigError(f"reconnect_delay must be >= 0, got {self.reconnect_delay}")

    @property
    def has_password(self) -> bool:
        """Whether a usable password is configured."""
        return bool(self.password and self.password.strip())

    def __repr__(self) -> str:
        password = REDACTED if self.has_password else None
        return f"RoombaConfig(address={self.address!r}, password={password!r})"

    @classmethod
    def from_env(cls, **overrides: Any) -> RoombaConfig:
        """Create configuration from ``ROOMBA_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "ROOMBA_ADDRESS": "address",
            "ROOMBA_PASSWORD": "password",
        }
        _ENV_FLOAT_MAP = {
            "ROOMBA_RECONNECT_DELAY": "reconnect_delay",
            "ROOMBA_DISCOVERY_TIMEOUT": "discovery_timeout",
            "ROOMBA_CREDENTIAL_TIMEOUT": "credential_timeout",
        }
        _ENV_INT_MAP = {
            "ROOMBA_DISCOVERY_PORT": "discovery_port",
            "ROOMBA_CREDENTIAL_PORT": "credential_port",
            "ROOMBA_BROKER_PORT": "broker_port",
            "ROOMBA_MQTT_KEEPALIVE": "mqtt_keepalive",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        try:
            for env_key, field_name in _ENV_FLOAT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = float(val)
            for env_key, field_name in _ENV_INT_MAP.items():
                val = env.get(env_key)
                if val is not None and field_name not in overrides:
                    config_kwargs[field_name] = int(val)
        except ValueError as exc:
            raise RoombaConfigError(f"Invalid numeric environment value: {exc}") from exc

        config_kwargs.update(overrides)
        if "address" not in config_kwargs:
            raise RoombaConfigError("ROOMBA_ADDRESS is not set")

        return cls(**config_kwargs)
