"""
State Channel - Publish/Subscribe for Link Configuration Edits
==============================================================

Editors publish every saved configuration; open preview pages subscribe
to the business they show. Delivery is synchronous and in-process.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List

from ...domain.link_config import LinkConfiguration

logger = logging.getLogger(__name__)

Subscriber = Callable[[LinkConfiguration], None]


class StateChannel:
    """
    In-process pub/sub keyed by business.

    Usage:
        channel = StateChannel()
        unsubscribe = channel.subscribe("42", on_update)
        channel.publish("42", config)
        unsubscribe()
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, key: str, callback: Subscriber) -> Callable[[], None]:
        self._subscribers[key].append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    self._subscribers.pop(key, None)

        return unsubscribe

    def publish(self, key: str, config: LinkConfiguration) -> int:
        """Deliver to every subscriber of ``key``. Returns how many were reached."""
        delivered = 0
        for callback in list(self._subscribers.get(key, ())):
            try:
                callback(config)
                delivered += 1
            except Exception as e:
                logger.exception(f"State subscriber for {key} failed: {e}")
        return delivered

    def subscriber_count(self, key: str) -> int:
        return len(self._subscribers.get(key, ()))
