"""Device identity and credential models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DeviceIdentity(BaseModel):
    """Identity learned from the robot's UDP identification reply.

    Parameters
    ----------
    id : str
        BLID.  Used as both the MQTT client id and username.
    product_name : str
        Product family from the advertised hostname (``"Roomba"``).
    protocol_version : int
        Identification protocol version (``ver``).
    robot_name : str or None
        User-assigned robot name, if reported.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    id: str
    product_name: str
    protocol_version: int
    robot_name: str | None = None

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("id must be non-empty")
        return value


class Credential(BaseModel):
    """Password used to log in to the robot's MQTT broker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    secret: str = Field(repr=False)

    @field_validator("secret")
    @classmethod
    def _secret_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("secret must be non-empty")
        return value
