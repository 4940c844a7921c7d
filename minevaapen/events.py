"""In-process change notifications.

Only one event exists: :attr:`DatabaseEvent.RESTORED`, emitted after the
database file has been replaced wholesale. Listeners should drop anything
they have cached and reload from the store.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

log = logging.getLogger(__name__)

Listener = Callable[[], None]


class DatabaseEvent(str, Enum):
    RESTORED = "database_restored"


@dataclass(eq=False)
class Subscription:
    """Handle returned by :meth:`ChangeBus.subscribe`."""

    bus: ChangeBus = field(repr=False)
    event: DatabaseEvent
    callback: Listener

    def unsubscribe(self) -> bool:
        return self.bus.unsubscribe(self)


class ChangeBus:
    """Registry of listeners, notified synchronously in registration order."""

    def __init__(self) -> None:
        self._subscriptions: dict[DatabaseEvent, list[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event: DatabaseEvent, callback: Listener) -> Subscription:
        subscription = Subscription(self, event, callback)
        with self._lock:
            self._subscriptions.setdefault(event, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove ``subscription``; return ``False`` if it was not registered."""
        with self._lock:
            listeners = self._subscriptions.get(subscription.event, [])
            if subscription not in listeners:
                return False
            listeners.remove(subscription)
            return True

    def subscriber_count(self, event: DatabaseEvent) -> int:
        with self._lock:
            return len(self._subscriptions.get(event, []))

    def emit(self, event: DatabaseEvent) -> int:
        """Call every listener of ``event`` once and return how many ran.

        A failing listener is logged and does not stop the others.
        """
        with self._lock:
            listeners = list(self._subscriptions.get(event, []))
        delivered = 0
        for subscription in listeners:
            try:
                subscription.callback()
            except Exception:
                log.exception("Listener for %s failed", event.value)
                continue
            delivered += 1
        return delivered
