"""
Host protocol — what the bootstrap pipeline needs from its host.

The pipeline never reaches into ambient process state. Everything it
observes or triggers goes through a Host: the loaded-module registry,
the asynchronous resolver and its ``modules:changed`` notification,
the deferred-call queue, and the asset refresh hook.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable

from launchpad.core.host.events import EventBus
from launchpad.core.host.scheduler import DeferredQueue


class Host(ABC):
    """Abstract host application.

    Subclasses provide the registry and resolver; the event bus and
    scheduler are shared plumbing.
    """

    def __init__(
        self,
        scheduler: DeferredQueue | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.scheduler = scheduler or DeferredQueue()
        self.events = events or EventBus()

    @property
    @abstractmethod
    def name(self) -> str:
        """Host identifier for logs ('process', 'memory', …)."""

    @abstractmethod
    def is_module_loaded(self, name: str) -> bool:
        """Whether a module with this exact name (case-insensitive) is loaded."""

    @abstractmethod
    def loaded_modules(self) -> Iterable[tuple[str, Any]]:
        """(name, module object) for every currently loaded module."""

    @abstractmethod
    def resolve_dependencies(self) -> None:
        """Start resolving the manifest. Fire-and-forget.

        Completion is announced by publishing ``modules:changed`` on
        ``self.events`` from the scheduler's thread.
        """

    @abstractmethod
    def refresh_assets(self) -> None:
        """Make the host re-read on-disk assets (new mirrors, manifest)."""

    def call_soon(self, callback) -> None:
        self.scheduler.call_soon(callback)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
