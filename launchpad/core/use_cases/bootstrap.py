"""
Bootstrap use case — decide, provision, resolve, hand off.

    on_host_loaded() / manual_install()
        └─▶ (next tick) required modules loaded?
              ├─ yes ─▶ handoff
              └─ no  ─▶ confirm ─▶ provision ─▶ resolve ─▶ handoff

Every arrow is a deferred hop on the host's queue; ``Bootstrapper``
only wires the stages together and records what happened in a
``BootstrapRun``. A stage that raises ends the run as ``failed`` with
the error recorded, so a later ``manual_install()`` can start over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable

from launchpad.core.context import BootstrapContext
from launchpad.core.engine.provisioner import (
    ProvisioningOrchestrator,
    ProvisioningReport,
    generate_operation_id,
)
from launchpad.core.engine.resolution import ResolutionBridge
from launchpad.core.models.outcome import HandoffOutcome, ResolutionOutcome
from launchpad.core.persistence.audit import AuditEntry
from launchpad.core.services.detection import required_modules_present
from launchpad.core.services.fetcher import RepositoryFetcher
from launchpad.core.services.handoff import HandoffDispatcher

logger = logging.getLogger(__name__)


class RunPhase(StrEnum):
    PENDING = "pending"
    DETECTING = "detecting"
    PROVISIONING = "provisioning"
    RESOLVING = "resolving"
    HANDING_OFF = "handing-off"
    # terminal
    DONE = "done"
    DECLINED = "declined"
    STALLED = "stalled"
    FAILED = "failed"


_TERMINAL = frozenset({RunPhase.DONE, RunPhase.DECLINED, RunPhase.STALLED, RunPhase.FAILED})


@dataclass
class BootstrapRun:
    """What one bootstrap run did, filled in as stages complete."""

    trigger: str = "auto"                  # auto | manual
    operation_id: str = field(default_factory=generate_operation_id)
    phase: RunPhase = RunPhase.PENDING
    modules_present: bool | None = None
    report: ProvisioningReport | None = None
    resolution: ResolutionOutcome | None = None
    handoff: HandoffOutcome | None = None
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.phase in _TERMINAL

    @property
    def succeeded(self) -> bool:
        return self.phase is RunPhase.DONE and self.handoff is HandoffOutcome.INVOKED

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "trigger": self.trigger,
            "phase": str(self.phase),
            "modules_present": self.modules_present,
            "report": self.report.to_dict() if self.report else None,
            "resolution": str(self.resolution) if self.resolution else None,
            "handoff": str(self.handoff) if self.handoff else None,
            "error": self.error,
        }


class Bootstrapper:
    """Entry points for the automatic and the manual bootstrap path."""

    def __init__(self, context: BootstrapContext):
        self.context = context
        self.run: BootstrapRun | None = None

    @property
    def in_flight(self) -> bool:
        return self.run is not None and not self.run.finished

    def on_host_loaded(self) -> BootstrapRun:
        """Automatic path, called once the host has finished loading."""
        return self._begin("auto")

    def manual_install(self) -> BootstrapRun:
        """User-invoked path. Returns the in-flight run instead of starting a second."""
        return self._begin("manual")

    def wait(self, run: BootstrapRun, timeout: float | None = None) -> bool:
        """Drive the host's queue until ``run`` finishes (or ``timeout`` passes)."""
        return self.context.host.scheduler.run_until(lambda: run.finished, timeout=timeout)

    # ── Stages ──────────────────────────────────────────────────

    def _begin(self, trigger: str) -> BootstrapRun:
        if self.in_flight:
            assert self.run is not None
            logger.info("Bootstrap %s already in progress (%s)", self.run.operation_id, self.run.phase)
            return self.run

        run = BootstrapRun(trigger=trigger)
        self.run = run
        logger.info("Bootstrap %s started (%s)", run.operation_id, trigger)
        self._defer(run, lambda: self._detect(run))
        return run

    def _detect(self, run: BootstrapRun) -> None:
        run.phase = RunPhase.DETECTING
        config = self.context.config
        run.modules_present = required_modules_present(self.context.host, config.required_modules)

        if run.modules_present:
            logger.info("Required modules already loaded; starting installer")
            self._handoff(run)
            return

        message = (
            f"Install {len(config.modules)} framework modules into "
            f"{self.context.mirror_root}?"
        )
        try:
            accepted = bool(self.context.confirm(message))
        except Exception:
            logger.exception("Confirmation prompt failed")
            accepted = False
        if not accepted:
            logger.warning("Installation declined; run 'launchpad install' to try again")
            run.phase = RunPhase.DECLINED
            return

        self._provision(run)

    def _provision(self, run: BootstrapRun) -> None:
        run.phase = RunPhase.PROVISIONING
        ctx = self.context
        fetcher = RepositoryFetcher(
            ctx.registry,
            branch=ctx.config.branch,
            operation_id=run.operation_id,
        )
        orchestrator = ProvisioningOrchestrator(
            host=ctx.host,
            modules=ctx.config.modules,
            fetcher=fetcher,
            mirror_root=ctx.mirror_root,
            manifest_path=ctx.manifest_path,
            audit_writer=ctx.audit,
            operation_id=run.operation_id,
        )
        orchestrator.start(on_complete=self._guarded(run, lambda report: self._resolve(run, report)))

    def _resolve(self, run: BootstrapRun, report: ProvisioningReport) -> None:
        run.report = report
        run.phase = RunPhase.RESOLVING
        if report.status == "failed":
            logger.error("No modules were installed; resolving anyway so the host sees the manifest")

        bridge = ResolutionBridge(self.context.host, timeout=self.context.config.resolution_timeout)

        def _resolved() -> None:
            run.resolution = bridge.outcome
            self._handoff(run)

        def _stalled(outcome: ResolutionOutcome) -> None:
            run.resolution = outcome
            run.phase = RunPhase.STALLED
            self._audit(run, status=str(outcome))

        bridge.resolve_and_await(self._guarded(run, _resolved), self._guarded(run, _stalled))

    def _handoff(self, run: BootstrapRun) -> None:
        run.phase = RunPhase.HANDING_OFF
        dispatcher = HandoffDispatcher(self.context.host, self.context.config.handoff)
        dispatcher.dispatch(on_done=self._guarded(run, lambda outcome: self._finish(run, outcome)))

    def _finish(self, run: BootstrapRun, outcome: HandoffOutcome) -> None:
        run.handoff = outcome
        run.phase = RunPhase.DONE
        if outcome is not HandoffOutcome.INVOKED:
            logger.error("Installer hand-off failed (%s); fix the cause and run 'launchpad install'", outcome)
        self._audit(run, status=str(outcome))

    # ── Helpers ─────────────────────────────────────────────────

    def _defer(self, run: BootstrapRun, stage: Callable[[], None]) -> None:
        self.context.host.call_soon(self._guarded(run, stage))

    def _guarded(self, run: BootstrapRun, stage: Callable) -> Callable:
        """Wrap a stage so an exception ends the run instead of hanging it."""
        def _wrapper(*args):
            try:
                stage(*args)
            except Exception as e:
                logger.exception("Bootstrap stage failed during %s", run.phase)
                run.error = str(e)
                run.phase = RunPhase.FAILED
                self._audit(run, status="failed")
        return _wrapper

    def _audit(self, run: BootstrapRun, status: str) -> None:
        if self.context.audit is None:
            return
        entry = AuditEntry(
            operation_id=run.operation_id,
            operation_type="handoff" if run.phase is RunPhase.DONE else "bootstrap",
            status=status,
            errors=[run.error] if run.error else [],
            context={
                "trigger": run.trigger,
                "phase": str(run.phase),
                "modules_present": run.modules_present,
                "resolution": str(run.resolution) if run.resolution else None,
            },
        )
        self.context.audit.write(entry)
