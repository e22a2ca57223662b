"""
Deferred-call queue — the host's cooperative scheduler.

A FIFO of zero-argument callables drained on ticks. Nothing in the
bootstrap pipeline blocks or recurses: every stage hands off to the
next with ``call_soon``, so stages run in program order and never
overlap. ``call_later`` adds deadline timers (used for the resolution
timeout); a timer fires on the first tick at or after its deadline.

Tick semantics:
    - a tick runs every callable that was ready when the tick started;
      anything scheduled during the tick runs on the next one.
    - a raising callable is logged and the tick carries on.
    - there is no cancellation.

``call_soon``/``call_later`` are thread-safe so a worker thread (the
process host's resolver) can post its completion back to the loop.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class DeferredQueue:
    """FIFO deferred-call queue with deadline timers.

    Args:
        clock: Monotonic time source. Tests pass a fake to drive timers.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._wakeup = threading.Event()
        self._ready: deque[Callback] = deque()
        self._timers: list[tuple[float, int, Callback]] = []
        self._order = itertools.count()

    # ── Scheduling ──────────────────────────────────────────────

    def call_soon(self, callback: Callback) -> None:
        """Run ``callback`` on the next tick."""
        with self._lock:
            self._ready.append(callback)
        self._wakeup.set()

    def call_later(self, delay: float, callback: Callback) -> float:
        """Run ``callback`` on the first tick after ``delay`` seconds.

        Returns:
            The absolute deadline on this queue's clock.
        """
        deadline = self._clock() + max(0.0, delay)
        with self._lock:
            heapq.heappush(self._timers, (deadline, next(self._order), callback))
        self._wakeup.set()
        return deadline

    # ── Introspection ───────────────────────────────────────────

    def pending(self) -> int:
        """Callables that would run on the next tick."""
        now = self._clock()
        with self._lock:
            return len(self._ready) + sum(1 for t in self._timers if t[0] <= now)

    def timer_count(self) -> int:
        with self._lock:
            return len(self._timers)

    def next_deadline(self) -> float | None:
        with self._lock:
            return self._timers[0][0] if self._timers else None

    # ── Draining ────────────────────────────────────────────────

    def run_once(self) -> int:
        """Run one tick. Returns the number of callables executed."""
        now = self._clock()
        with self._lock:
            while self._timers and self._timers[0][0] <= now:
                _, _, callback = heapq.heappop(self._timers)
                self._ready.append(callback)
            batch = list(self._ready)
            self._ready.clear()
            self._wakeup.clear()

        for callback in batch:
            try:
                callback()
            except Exception:
                logger.exception("Deferred call %r raised", callback)
        return len(batch)

    def run_until_idle(self, max_ticks: int = 10_000) -> int:
        """Tick until nothing is ready. Future timers are left pending.

        Returns:
            Total callables executed.
        """
        total = 0
        for _ in range(max_ticks):
            ran = self.run_once()
            total += ran
            if ran == 0 and self.pending() == 0:
                return total
        logger.warning("run_until_idle stopped after %d ticks", max_ticks)
        return total

    def run_until(
        self,
        predicate: Callable[[], bool],
        timeout: float | None = None,
        poll_interval: float = 0.05,
    ) -> bool:
        """Tick, sleeping between idle ticks, until ``predicate()`` holds.

        Returns:
            True if the predicate became true, False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not predicate():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            if self.run_once() == 0 and not predicate():
                wait = poll_interval
                next_timer = self.next_deadline()
                if next_timer is not None:
                    wait = min(wait, max(0.0, next_timer - self._clock()))
                self._wakeup.wait(wait)
        return True
