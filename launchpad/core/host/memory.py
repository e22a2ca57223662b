"""
In-memory host — a scriptable host for tests and ``--mock`` runs.

Loaded modules are an explicit name → object map. Resolution is
simulated: ``resolve_dependencies()`` records the call and, unless
told to stay silent, publishes ``modules:changed`` on the next tick
after loading whatever ``on_resolve`` was scripted with.
"""

from __future__ import annotations

import logging
import types
from typing import Any, Iterable

from launchpad.core.host.base import Host
from launchpad.core.host.events import ASSETS_REFRESHED, MODULES_CHANGED, EventBus
from launchpad.core.host.scheduler import DeferredQueue

logger = logging.getLogger(__name__)


class InMemoryHost(Host):
    """Host whose module registry and resolver are plain Python state.

    Args:
        loaded: Module names (or name → module object) loaded at start.
        on_resolve: Modules that become loaded when resolution completes.
        emit_on_resolve: If False, resolution never announces completion
            (simulates a host that stalls).
        resolve_error: If set, ``resolve_dependencies`` raises it.
    """

    def __init__(
        self,
        loaded: Iterable[str] | dict[str, Any] = (),
        on_resolve: Iterable[str] | dict[str, Any] = (),
        emit_on_resolve: bool = True,
        resolve_error: Exception | None = None,
        scheduler: DeferredQueue | None = None,
        events: EventBus | None = None,
    ) -> None:
        super().__init__(scheduler=scheduler, events=events)
        self._modules: dict[str, Any] = _as_module_map(loaded)
        self._on_resolve: dict[str, Any] = _as_module_map(on_resolve)
        self.emit_on_resolve = emit_on_resolve
        self.resolve_error = resolve_error
        self.resolve_calls = 0
        self.refresh_calls = 0

    @property
    def name(self) -> str:
        return "memory"

    def load(self, name: str, module: Any = None) -> None:
        self._modules[name] = module if module is not None else types.ModuleType(name)

    def is_module_loaded(self, name: str) -> bool:
        wanted = name.lower()
        return any(loaded.lower() == wanted for loaded in self._modules)

    def loaded_modules(self) -> Iterable[tuple[str, Any]]:
        return list(self._modules.items())

    def resolve_dependencies(self) -> None:
        self.resolve_calls += 1
        if self.resolve_error is not None:
            raise self.resolve_error
        logger.debug("memory host: resolve requested (#%d)", self.resolve_calls)
        if self.emit_on_resolve:
            self.scheduler.call_soon(self._finish_resolve)

    def refresh_assets(self) -> None:
        self.refresh_calls += 1
        self.events.publish(ASSETS_REFRESHED)

    def _finish_resolve(self) -> None:
        added = [n for n in self._on_resolve if n not in self._modules]
        self._modules.update(self._on_resolve)
        self.events.publish(MODULES_CHANGED, data={"added": added, "removed": []})


def _as_module_map(modules: Iterable[str] | dict[str, Any]) -> dict[str, Any]:
    if isinstance(modules, dict):
        return dict(modules)
    return {name: types.ModuleType(name) for name in modules}
