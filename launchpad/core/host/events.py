"""
EventBus — in-process pub/sub for host notifications, with bounded replay.

The host publishes lifecycle notifications here; the resolution bridge
subscribes to ``modules:changed`` for exactly one delivery.

Thread safety model
───────────────────
- ``_lock`` protects ``_seq``, ``_buffer`` and ``_subscribers``.
- ``publish()`` snapshots the subscriber list under the lock and calls
  the callbacks outside it, so a callback may unsubscribe itself (or
  subscribe others) without deadlocking.
- Callbacks run on the publishing thread. Hosts that resolve on a
  worker thread publish through their deferred queue instead.

Message standard (v1)
─────────────────────
Every event is a dict with these fields::

    {
        "v": 1,                     # schema version
        "ts": 1739648400.123,       # publish timestamp
        "seq": 47,                  # monotonic sequence
        "type": "modules:changed",  # <domain>:<action>
        "key": "",                  # resource identifier
        "data": {"added": [...], "removed": [...]},
    }
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

_SCHEMA_VERSION = 1

MODULES_CHANGED = "modules:changed"
ASSETS_REFRESHED = "assets:refreshed"

EventCallback = Callable[[dict], None]


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``subscribe``; pass it back to unsubscribe."""

    id: int
    event_type: str


class EventBus:
    """In-process pub/sub with a bounded replay buffer.

    Parameters
    ----------
    buffer_size : int
        Maximum number of events kept for ``recent()``. Older events
        are silently discarded.
    """

    def __init__(self, *, buffer_size: int = 200) -> None:
        self._lock = threading.Lock()
        self._seq: int = 0
        self._ids = itertools.count(1)
        self._buffer: deque[dict] = deque(maxlen=buffer_size)
        self._subscribers: dict[Subscription, EventCallback] = {}

    def subscriber_count(self, event_type: str | None = None) -> int:
        with self._lock:
            if event_type is None:
                return len(self._subscribers)
            return sum(1 for s in self._subscribers if s.event_type == event_type)

    # ── Subscribing ─────────────────────────────────────────────

    def subscribe(self, event_type: str, callback: EventCallback) -> Subscription:
        with self._lock:
            sub = Subscription(id=next(self._ids), event_type=event_type)
            self._subscribers[sub] = callback
        logger.debug("subscribed #%d to %s", sub.id, event_type)
        return sub

    def unsubscribe(self, sub: Subscription) -> bool:
        """Remove a subscription. Returns False if it was already gone."""
        with self._lock:
            removed = self._subscribers.pop(sub, None) is not None
        if removed:
            logger.debug("unsubscribed #%d from %s", sub.id, sub.event_type)
        return removed

    def is_subscribed(self, sub: Subscription) -> bool:
        with self._lock:
            return sub in self._subscribers

    # ── Publishing ──────────────────────────────────────────────

    def publish(
        self,
        event_type: str,
        *,
        key: str = "",
        data: dict[str, Any] | None = None,
    ) -> dict:
        """Deliver an event to every current subscriber of its type.

        Returns
        -------
        dict
            The full event dict with ``seq`` assigned.
        """
        with self._lock:
            self._seq += 1
            event: dict[str, Any] = {
                "v": _SCHEMA_VERSION,
                "ts": time.time(),
                "seq": self._seq,
                "type": event_type,
                "key": key,
                "data": data or {},
            }
            self._buffer.append(event)
            targets = [
                (sub, cb) for sub, cb in self._subscribers.items()
                if sub.event_type == event_type
            ]

        logger.debug("event %s key=%s subscribers=%d", event_type, key or "-", len(targets))

        for sub, callback in targets:
            # A callback earlier in this loop may have removed this one.
            if not self.is_subscribed(sub):
                continue
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber #%d for %s raised", sub.id, event_type)

        return event

    def recent(self, n: int = 20, event_type: str | None = None) -> list[dict]:
        """The last ``n`` buffered events, oldest first."""
        with self._lock:
            events = [e for e in self._buffer if event_type is None or e["type"] == event_type]
        return events[-n:]
