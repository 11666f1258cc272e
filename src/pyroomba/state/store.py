"""In-memory channel value store.

Holds the last value emitted for every channel so the host can ask for
a refresh at any time.  The store itself is not locked; its owner
(:class:`pyroomba.state.synchronizer.StateSynchronizer`) serializes
access.
"""

from __future__ import annotations

import copy
from typing import Any, NamedTuple


class ChannelUpdate(NamedTuple):
    channel: str
    value: Any


class ChannelStore:
    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, update: ChannelUpdate) -> None:
        self._values[update.channel] = update.value

    def get(self, channel: str) -> Any | None:
        return self._values.get(channel)

    def __contains__(self, channel: object) -> bool:
        return channel in self._values

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._values)
