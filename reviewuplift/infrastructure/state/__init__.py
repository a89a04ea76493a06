from .codec import encode, decode, try_decode, config_to_dict
from .channel import StateChannel
from .store import StateStore, PageAddress, ConfigSlot, InMemorySlot, DatabaseSlot, STATE_PARAM

__all__ = [
    "encode",
    "decode",
    "try_decode",
    "config_to_dict",
    "StateChannel",
    "StateStore",
    "PageAddress",
    "ConfigSlot",
    "InMemorySlot",
    "DatabaseSlot",
    "STATE_PARAM",
]
