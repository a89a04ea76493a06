"""
State Store - Where the Current Link Configuration Lives
========================================================

A configuration is kept in two places:
- a shared slot (injected: in-memory for tests, SQLite for the web app)
- a token in the page address, so a copied URL reproduces the page

Resolution order on load: address token -> shared slot -> default.
Each source is best-effort; an unreadable one falls through to the next.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit

from ...domain.link_config import DEFAULT_CONFIG, LinkConfiguration
from .channel import StateChannel
from .codec import encode, try_decode

logger = logging.getLogger(__name__)

STATE_PARAM = "state"


class ConfigSlot(ABC):
    """Shared slot holding the last saved configuration per business."""

    @abstractmethod
    def get(self, key: str) -> Optional[LinkConfiguration]:
        ...

    @abstractmethod
    def put(self, key: str, config: LinkConfiguration) -> None:
        ...


class InMemorySlot(ConfigSlot):
    """Process-local slot."""

    def __init__(self):
        self._configs: Dict[str, LinkConfiguration] = {}

    def get(self, key: str) -> Optional[LinkConfiguration]:
        return self._configs.get(key)

    def put(self, key: str, config: LinkConfiguration) -> None:
        self._configs[key] = config


class DatabaseSlot(ConfigSlot):
    """Slot persisted through the repository as an encoded token per business."""

    def __init__(self, db):
        self._db = db

    def get(self, key: str) -> Optional[LinkConfiguration]:
        token = self._db.get_link_token(int(key))
        return try_decode(token) if token else None

    def put(self, key: str, config: LinkConfiguration) -> None:
        token = encode(config)
        if token:
            self._db.save_link_token(int(key), token)


@dataclass(frozen=True)
class PageAddress:
    """Path plus query parameters; the state token rides in ``?state=``."""

    path: str
    params: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_url(cls, url: str) -> "PageAddress":
        parts = urlsplit(url)
        return cls(parts.path or "/", tuple(parse_qsl(parts.query, keep_blank_values=True)))

    @property
    def token(self) -> str:
        for name, value in self.params:
            if name == STATE_PARAM:
                return value
        return ""

    def with_token(self, token: str) -> "PageAddress":
        """Same address with the token replaced (dropped when empty)."""
        params = tuple((k, v) for k, v in self.params if k != STATE_PARAM)
        if token:
            params += ((STATE_PARAM, token),)
        return PageAddress(self.path, params)

    @property
    def url(self) -> str:
        if not self.params:
            return self.path
        return f"{self.path}?{urlencode(self.params)}"


class StateStore:
    """
    Load/save contract for one business's configuration as seen from one page.

    Usage:
        store = StateStore(slot, key="42", address=PageAddress.from_url(url), channel=channel)
        config = store.load()
        store.save(config.with_gating(False))
        redirect_to(store.address.url)
    """

    def __init__(self, slot: ConfigSlot, key: str, address: Optional[PageAddress] = None,
                 channel: Optional[StateChannel] = None):
        self.slot = slot
        self.key = key
        self.address = address or PageAddress("/")
        self.channel = channel

    def load(self) -> LinkConfiguration:
        token = self.address.token
        if token:
            config = try_decode(token)
            if config is not None:
                return config
            logger.debug(f"Address token for {self.key} unreadable, trying shared slot")

        try:
            shared = self.slot.get(self.key)
        except Exception as e:
            logger.warning(f"Shared slot read failed for {self.key}: {e}")
            shared = None
        if shared is not None:
            return shared

        return DEFAULT_CONFIG

    def save(self, config: LinkConfiguration) -> None:
        try:
            self.slot.put(self.key, config)
        except Exception as e:
            logger.warning(f"Shared slot write failed for {self.key}: {e}")

        token = encode(config)
        if token:
            self.address = self.address.with_token(token)

        if self.channel is not None:
            self.channel.publish(self.key, config)
