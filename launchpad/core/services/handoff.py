"""
Handoff — locate the downstream installer and start it.

The installer is a separately shipped, optionally absent package, so
the launcher has no import-time dependency on it. It is found at run
time, in this order:

1. Explicit registration. The installer calls
   ``register_entry_point(key, func)`` when it is imported.
2. Package metadata. An installed distribution advertises
   ``[project.entry-points."launchpad.handoff"] <key> = "pkg.mod:func"``.
3. Introspection. Loaded modules whose name starts with one of the
   configured prefixes are searched for the configured type
   (``pkg.mod:Class`` or ``pkg.mod.Class``), and the configured
   method on it must be a public static/class method needing no
   arguments.

One incompatible module never aborts the scan: lookup errors are
logged and the next module is tried. If nothing is found the dispatcher
reports it and stops; there is no automatic retry.
"""

from __future__ import annotations

import importlib.metadata
import inspect
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from launchpad.core.host.base import Host
from launchpad.core.models.config import HandoffSpec
from launchpad.core.models.outcome import HandoffOutcome

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "launchpad.handoff"

EntryPoint = Callable[[], Any]

# ── Explicit registration ───────────────────────────────────────

_registry_lock = threading.Lock()
_entry_points: dict[str, EntryPoint] = {}


def register_entry_point(key: str, func: EntryPoint) -> None:
    """Register the installer's start function under ``key``."""
    if not callable(func):
        raise TypeError(f"entry point for {key!r} is not callable: {func!r}")
    with _registry_lock:
        if key in _entry_points:
            logger.warning("Overwriting handoff entry point: %s", key)
        _entry_points[key] = func
    logger.debug("Registered handoff entry point: %s", key)


def unregister_entry_point(key: str) -> None:
    with _registry_lock:
        _entry_points.pop(key, None)


def registered_entry_point(key: str) -> EntryPoint | None:
    with _registry_lock:
        return _entry_points.get(key)


# ── Dispatcher ──────────────────────────────────────────────────


@dataclass
class HandoffTarget:
    """A located entry point, plus where it came from."""

    func: EntryPoint
    source: str          # "registry", "metadata", or the module it was found in
    label: str


class HandoffDispatcher:
    """Find and invoke the downstream installer's entry point."""

    def __init__(self, host: Host, spec: HandoffSpec):
        self._host = host
        self._spec = spec
        self.last_outcome: HandoffOutcome | None = None

    # ── Public API ──────────────────────────────────────────────

    def dispatch(self, on_done: Callable[[HandoffOutcome], None] | None = None) -> None:
        """Locate on the next deferred tick, then invoke on the tick after.

        Neither the lookup nor the call into the installer happens while
        the host may still be mid-load.
        """
        def _report(outcome: HandoffOutcome) -> None:
            self.last_outcome = outcome
            if on_done is not None:
                on_done(outcome)

        def _locate() -> None:
            located = self._locate_safely()
            if isinstance(located, HandoffOutcome):
                _report(located)
            else:
                self._host.call_soon(lambda: _report(self.invoke(located)))

        self._host.call_soon(_locate)

    def locate_and_invoke(self) -> HandoffOutcome:
        """Synchronous lookup and call, for callers already on a safe tick."""
        located = self._locate_safely()
        if not isinstance(located, HandoffOutcome):
            located = self.invoke(located)
        self.last_outcome = located
        return located

    def _locate_safely(self) -> HandoffTarget | HandoffOutcome:
        try:
            return self.locate()
        except Exception:
            logger.exception("Unexpected error while locating %s", self._spec.type)
            return HandoffOutcome.TYPE_NOT_FOUND

    def locate(self) -> HandoffTarget | HandoffOutcome:
        """Find the entry point, or the reason it could not be found."""
        func = registered_entry_point(self._spec.key)
        if func is not None:
            return HandoffTarget(func=func, source="registry", label=self._spec.key)

        target = self._from_metadata()
        if target is not None:
            return target

        return self._from_loaded_modules()

    def invoke(self, target: HandoffTarget) -> HandoffOutcome:
        logger.info("Starting installer %s (via %s)", target.label, target.source)
        try:
            target.func()
        except Exception:
            logger.exception("Error invoking %s", target.label)
            return HandoffOutcome.INVOCATION_ERROR
        logger.info("Installer started; it manages its own progress from here")
        return HandoffOutcome.INVOKED

    # ── Lookup strategies ───────────────────────────────────────

    def _from_metadata(self) -> HandoffTarget | None:
        try:
            candidates = importlib.metadata.entry_points(group=ENTRY_POINT_GROUP, name=self._spec.key)
        except Exception as e:
            logger.warning("Could not read %s entry points: %s", ENTRY_POINT_GROUP, e)
            return None
        for ep in candidates:
            try:
                func = ep.load()
            except Exception as e:
                logger.warning("Entry point %s (%s) failed to load: %s", ep.name, ep.value, e)
                continue
            if callable(func):
                return HandoffTarget(func=func, source="metadata", label=ep.value)
        return None

    def _from_loaded_modules(self) -> HandoffTarget | HandoffOutcome:
        module_path, _, type_name = _split_type(self._spec.type)
        prefixes = tuple(p.lower() for p in self._spec.module_prefixes)

        found_type: Any = None
        found_in = ""
        for name, module in list(self._host.loaded_modules()):
            if module is None or (prefixes and not name.lower().startswith(prefixes)):
                continue
            try:
                if module_path and name != module_path:
                    continue
                candidate = _resolve_attr(module, type_name)
            except Exception as e:
                logger.warning("Skipping module %s during handoff scan: %s", name, e)
                continue
            if inspect.isclass(candidate):
                found_type, found_in = candidate, name
                logger.info("Found %s in %s", type_name, name)
                break

        if found_type is None:
            logger.error(
                "Could not find %s; check that installation completed successfully",
                self._spec.type,
            )
            return HandoffOutcome.TYPE_NOT_FOUND

        func = _static_entry(found_type, self._spec.method)
        if func is None:
            logger.error("%s.%s not found or not a public no-argument static method",
                         type_name, self._spec.method)
            return HandoffOutcome.METHOD_NOT_FOUND

        return HandoffTarget(func=func, source=found_in, label=f"{type_name}.{self._spec.method}")


# ── Helpers ─────────────────────────────────────────────────────


def _split_type(qualified: str) -> tuple[str, str, str]:
    """'pkg.mod:Outer.Inner' → ('pkg.mod', ':', 'Outer.Inner').

    Without a colon the last dotted component is the type name.
    """
    if ":" in qualified:
        return qualified.partition(":")
    module_path, _, type_name = qualified.rpartition(".")
    return module_path, ".", type_name


def _resolve_attr(obj: Any, dotted: str) -> Any:
    for part in dotted.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            return None
    return obj


def _static_entry(cls: type, method_name: str) -> EntryPoint | None:
    if method_name.startswith("_"):
        return None
    raw = inspect.getattr_static(cls, method_name, None)
    if not isinstance(raw, (staticmethod, classmethod)):
        return None
    func = getattr(cls, method_name)
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None
    required = [
        p for p in signature.parameters.values()
        if p.default is p.empty and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
    ]
    return None if required else func
