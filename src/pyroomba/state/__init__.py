"""State/store layer.

This package is the single place where partial robot state reports are
merged into channel values.
"""

from pyroomba.state.pairs import PairedSetting
from pyroomba.state.store import ChannelStore, ChannelUpdate
from pyroomba.state.synchronizer import StateSynchronizer

__all__ = [
    "ChannelStore",
    "ChannelUpdate",
    "PairedSetting",
    "StateSynchronizer",
]
