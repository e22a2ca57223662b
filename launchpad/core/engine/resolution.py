"""
Resolution bridge — ask the host to resolve, wait for it to say so.

Single-fire: the ``modules:changed`` subscription is dropped before the
callback runs, so later host churn cannot re-enter the pipeline. The
wait is bounded by ``timeout`` (seconds, via a scheduler timer);
``None`` waits indefinitely.
"""

from __future__ import annotations

import logging
from typing import Callable

from launchpad.core.host.base import Host
from launchpad.core.host.events import MODULES_CHANGED, Subscription
from launchpad.core.models.outcome import ResolutionOutcome

logger = logging.getLogger(__name__)


class ResolutionBridge:
    """Trigger host dependency resolution and continue once it lands."""

    def __init__(self, host: Host, timeout: float | None = None):
        self._host = host
        self._timeout = timeout
        self._subscription: Subscription | None = None
        self._settled = False
        self.outcome: ResolutionOutcome | None = None

    @property
    def waiting(self) -> bool:
        return self._subscription is not None and not self._settled

    def resolve_and_await(
        self,
        on_resolved: Callable[[], None],
        on_timeout: Callable[[ResolutionOutcome], None] | None = None,
    ) -> None:
        """Start resolution; call ``on_resolved`` on a tick after the first notification.

        ``on_timeout`` receives TIMED_OUT when the deadline passes first,
        or FAILED when the host refuses to start resolving.
        """
        if self._subscription is not None:
            raise RuntimeError("resolve_and_await may only be called once per bridge")

        def _on_changed(event: dict) -> None:
            if not self._settle(ResolutionOutcome.RESOLVED):
                return
            data = event.get("data") or {}
            logger.info(
                "Host modules changed (+%d / -%d); continuing",
                len(data.get("added", ())), len(data.get("removed", ())),
            )
            self._host.call_soon(on_resolved)

        def _on_deadline() -> None:
            if not self._settle(ResolutionOutcome.TIMED_OUT):
                return
            logger.error("Dependency resolution did not finish within %.0fs", self._timeout)
            if on_timeout is not None:
                on_timeout(ResolutionOutcome.TIMED_OUT)

        self._subscription = self._host.events.subscribe(MODULES_CHANGED, _on_changed)
        logger.info("Resolving dependencies on host %s...", self._host.name)

        try:
            self._host.resolve_dependencies()
        except Exception:
            logger.exception("Host failed to start dependency resolution")
            if self._settle(ResolutionOutcome.FAILED) and on_timeout is not None:
                self._host.call_soon(lambda: on_timeout(ResolutionOutcome.FAILED))
            return

        if self._timeout is not None and not self._settled:
            self._host.scheduler.call_later(self._timeout, _on_deadline)

    def _settle(self, outcome: ResolutionOutcome) -> bool:
        """Record the first outcome and unsubscribe. False if already settled."""
        if self._settled:
            return False
        self._settled = True
        self.outcome = outcome
        if self._subscription is not None:
            self._host.events.unsubscribe(self._subscription)
        return True
