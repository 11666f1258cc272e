"""Outbound request models.

Each request kind is published on its own fixed topic; the payload is
the compact JSON encoding of the model.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pyroomba._constants import COMMAND_INITIATOR, TOPIC_COMMAND, TOPIC_DELTA


class RoombaRequest(BaseModel):
    """Base for requests published to the robot."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    TOPIC: ClassVar[str]

    @property
    def topic(self) -> str:
        return self.TOPIC

    def to_payload(self) -> bytes:
        """Encode as UTF-8 JSON bytes."""
        return json.dumps(self.model_dump(mode="json"), separators=(",", ":")).encode("utf-8")


class CommandRequest(RoombaRequest):
    """Mission command (``start``, ``pause``, ``dock`` ...)."""

    TOPIC: ClassVar[str] = TOPIC_COMMAND

    command: str
    time: int = Field(ge=0)
    """Epoch seconds at which the command was issued."""

    initiator: str = COMMAND_INITIATOR

    @field_validator("command")
    @classmethod
    def _command_non_empty(cls, value: str) -> str:
        command = value.strip()
        if not command:
            raise ValueError("command must be non-empty")
        return command


class DeltaRequest(RoombaRequest):
    """Partial update of the robot's desired state."""

    TOPIC: ClassVar[str] = TOPIC_DELTA

    state: dict[str, Any]

    @field_validator("state")
    @classmethod
    def _state_non_empty(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not value:
            raise ValueError("delta state must not be empty")
        return value
