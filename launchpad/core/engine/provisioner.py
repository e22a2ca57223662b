"""
Provisioning orchestrator — fetch and register the module set, in order.

The orchestration is an explicit finite-state machine::

    idle ──start──▶ provisioning(0) ──module-done──▶ provisioning(1) … ──▶ complete

``transition()`` is pure: (state, event) → (next state, effects). The
orchestrator applies effects against the host. Entering
``provisioning(i)`` fetches module ``i`` and, when its mirror is
materialized, patches the manifest; the ``module-done`` event that
advances the cursor is posted with ``call_soon`` so consecutive modules
run on consecutive ticks, never by recursion.

No module failure stops the run. Outcomes are collected in a
ProvisioningReport so "everything failed" is distinguishable from
"everything installed".
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Callable

from launchpad.core.host.base import Host
from launchpad.core.models.module import ModuleDescriptor
from launchpad.core.models.outcome import FetchOutcome, PatchOutcome
from launchpad.core.persistence.audit import AuditEntry, AuditWriter
from launchpad.core.services.fetcher import RepositoryFetcher
from launchpad.core.services.manifest import ensure_dependency

logger = logging.getLogger(__name__)


class ProvisioningError(Exception):
    """Raised on an illegal state-machine transition."""


# ── State machine ───────────────────────────────────────────────


class Phase(StrEnum):
    IDLE = "idle"
    PROVISIONING = "provisioning"
    COMPLETE = "complete"


class Event(StrEnum):
    START = "start"
    MODULE_DONE = "module-done"


@dataclass(frozen=True)
class ProvisioningState:
    """Phase plus the installation cursor (index of the current module)."""

    phase: Phase = Phase.IDLE
    cursor: int = 0


@dataclass(frozen=True)
class Effect:
    kind: str                 # "provision" or "complete"
    index: int | None = None


def transition(
    state: ProvisioningState,
    event: Event,
    total: int,
) -> tuple[ProvisioningState, list[Effect]]:
    """Next state and effects for ``event`` over a set of ``total`` modules."""
    if state.phase is Phase.IDLE and event is Event.START:
        if total == 0:
            return ProvisioningState(Phase.COMPLETE, 0), [Effect("complete")]
        return ProvisioningState(Phase.PROVISIONING, 0), [Effect("provision", 0)]

    if state.phase is Phase.PROVISIONING and event is Event.MODULE_DONE:
        nxt = state.cursor + 1
        if nxt >= total:
            return ProvisioningState(Phase.COMPLETE, total), [Effect("complete")]
        return ProvisioningState(Phase.PROVISIONING, nxt), [Effect("provision", nxt)]

    raise ProvisioningError(f"No transition from {state.phase} on {event}")


# ── Report ──────────────────────────────────────────────────────


@dataclass
class ModuleResult:
    name: str
    fetch: FetchOutcome = FetchOutcome.FAILED
    patch: PatchOutcome = PatchOutcome.NOT_ATTEMPTED
    error: str | None = None

    @property
    def installed(self) -> bool:
        return self.fetch.materialized and self.patch.registered

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fetch": str(self.fetch),
            "patch": str(self.patch),
            "installed": self.installed,
            "error": self.error,
        }


@dataclass
class ProvisioningReport:
    """Per-module outcomes of one provisioning run."""

    operation_id: str = ""
    started_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    ended_at: str = ""
    results: list[ModuleResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def installed(self) -> int:
        return sum(1 for r in self.results if r.installed)

    @property
    def failed(self) -> int:
        return self.total - self.installed

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.installed > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "total": self.total,
            "installed": self.installed,
            "failed": self.failed,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "modules": [r.to_dict() for r in self.results],
        }


# ── Orchestrator ────────────────────────────────────────────────


class ProvisioningOrchestrator:
    """Drive the module set through fetch + patch on the host's queue.

    Args:
        host: Supplies the deferred queue and the asset-refresh hook.
        modules: Ordered module set; order is install order.
        fetcher: Materializes mirrors.
        mirror_root: Directory holding one mirror per module.
        manifest_path: The host's dependency manifest.
        audit_writer: Optional ledger the final report is appended to.
    """

    def __init__(
        self,
        host: Host,
        modules: list[ModuleDescriptor],
        fetcher: RepositoryFetcher,
        mirror_root: Path,
        manifest_path: Path,
        audit_writer: AuditWriter | None = None,
        operation_id: str | None = None,
    ):
        self._host = host
        self._modules = list(modules)
        self._fetcher = fetcher
        self._mirror_root = mirror_root
        self._manifest_path = manifest_path
        self._audit_writer = audit_writer
        self._state = ProvisioningState()
        self._on_complete: Callable[[ProvisioningReport], None] | None = None
        self.report = ProvisioningReport(operation_id=operation_id or generate_operation_id())

    @property
    def state(self) -> ProvisioningState:
        return self._state

    def start(self, on_complete: Callable[[ProvisioningReport], None] | None = None) -> None:
        """Begin provisioning on the next tick."""
        if self._state.phase is not Phase.IDLE:
            raise ProvisioningError("Provisioning already started")
        self._on_complete = on_complete
        logger.info("Provisioning %d modules (%s)", len(self._modules), self.report.operation_id)
        self._host.call_soon(lambda: self._dispatch(Event.START))

    def _dispatch(self, event: Event) -> None:
        self._state, effects = transition(self._state, event, len(self._modules))
        for effect in effects:
            if effect.kind == "provision":
                assert effect.index is not None
                self._provision(effect.index)
                self._host.call_soon(lambda: self._dispatch(Event.MODULE_DONE))
            elif effect.kind == "complete":
                self._complete()

    def _provision(self, index: int) -> None:
        module = self._modules[index]
        result = ModuleResult(name=module.name)
        self.report.results.append(result)
        logger.info("Installing %s (%d/%d)...", module.name, index + 1, len(self._modules))

        try:
            result.fetch = self._fetcher.fetch(module.name, module.source, self._mirror_root)
            if result.fetch.materialized:
                result.patch = ensure_dependency(
                    self._manifest_path,
                    module.name,
                    module.mirror_path(self._mirror_root),
                    on_change=self._host.refresh_assets,
                )
            else:
                logger.warning("Skipping manifest registration for %s: fetch failed", module.name)
        except Exception as e:
            logger.exception("Unexpected error provisioning %s", module.name)
            result.error = str(e)

        logger.info("  done: %s (fetch=%s, patch=%s)", module.name, result.fetch, result.patch)

    def _complete(self) -> None:
        self.report.ended_at = datetime.now(UTC).isoformat()
        logger.info(
            "Provisioning %s: %d/%d modules installed",
            self.report.status, self.report.installed, self.report.total,
        )
        if self._audit_writer is not None:
            write_audit_entry(self.report, self._audit_writer)
        if self._on_complete is not None:
            self._on_complete(self.report)


def write_audit_entry(report: ProvisioningReport, audit_writer: AuditWriter) -> None:
    """Append a provisioning report to the audit ledger."""
    entry = AuditEntry(
        operation_id=report.operation_id,
        operation_type="provision",
        status=report.status,
        modules_total=report.total,
        modules_installed=report.installed,
        modules_failed=report.failed,
        modules=[r.name for r in report.results],
        errors=[
            f"{r.name}: fetch={r.fetch}, patch={r.patch}" + (f", error={r.error}" if r.error else "")
            for r in report.results if not r.installed
        ],
    )
    audit_writer.write(entry)


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
