"""Base model for robot state reports.

Every reported-state model inherits from :class:`RoombaBaseModel` which
provides:

* ``alias_generator=to_camel`` so the robot's camelCase keys
  (``batPct``, ``cleanMissionStatus`` ...) map to snake_case fields.
* ``extra="ignore"``: the robot sends many more fields than we consume,
  and newer firmware keeps adding them.
* Frozen instances, so a decoded report can be shared across threads.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RoombaBaseModel(BaseModel):
    """Base for models decoded from robot payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
