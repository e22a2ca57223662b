"""
Repository fetcher — materialize one module's mirror from git.

Decision table for ``mirror_root/<module>``:

    absent            → clone
    valid checkout    → pull; on success done ("updated")
    pull failed       ┐
    invalid checkout  ┘→ remove tree → clone

Removal escalates instead of giving up: an access-denied removal is
retried once, and if the tree still won't go (or removal failed for
another OS reason) its contents are cleared entry by entry and the
clone goes into the emptied directory.

A valid checkout is never touched before its pull has been tried.
Nothing here raises: every failure is logged and reported as
``FetchOutcome.FAILED`` so the pipeline can move on to the next module.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from launchpad.adapters.registry import AdapterRegistry
from launchpad.core.models.action import Action, Receipt
from launchpad.core.models.module import MirrorState
from launchpad.core.models.outcome import FetchOutcome

logger = logging.getLogger(__name__)


class RepositoryFetcher:
    """Clone/update module mirrors through the adapter registry.

    Args:
        registry: Dispatches 'git' and 'filesystem' actions.
        branch: Branch pulled when updating an existing checkout.
        remote: Remote pulled from.
        operation_id: Prefix for action ids (one per bootstrap run).
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        branch: str = "main",
        remote: str = "origin",
        operation_id: str = "fetch",
    ):
        self._registry = registry
        self._branch = branch
        self._remote = remote
        self._operation_id = operation_id

    def fetch(self, module_name: str, source: str, mirror_root: Path) -> FetchOutcome:
        """Clone or update ``module_name`` under ``mirror_root``."""
        try:
            return self._fetch(module_name, source, Path(mirror_root))
        except Exception as e:
            logger.warning("Could not fetch %s, skipping. Reason: %s", module_name, e)
            return FetchOutcome.FAILED

    def _fetch(self, module: str, source: str, mirror_root: Path) -> FetchOutcome:
        path = mirror_root / module

        prepared = self._run(module, "filesystem", "mkdir", path=str(mirror_root))
        if prepared.failed:
            logger.error("Cannot prepare mirror root %s: %s", mirror_root, prepared.error)
            return FetchOutcome.FAILED

        state = self._classify(module, path)
        if state is MirrorState.VALID:
            logger.info("Mirror for %s exists, pulling %s/%s", module, self._remote, self._branch)
            pulled = self._run(
                module, "git", "pull",
                path=str(path), remote=self._remote, branch=self._branch,
            )
            if pulled.ok:
                logger.info("Updated %s with git pull", module)
                return FetchOutcome.UPDATED
            logger.warning("git pull failed for %s: %s", module, pulled.error)
        elif state is MirrorState.INVALID:
            logger.info("%s exists but is not a git checkout, will re-clone", path)

        if state is not MirrorState.ABSENT:
            self._discard(module, path)

        cloned = self._run(module, "git", "clone", url=source, path=str(path), cwd=str(mirror_root))
        if cloned.ok:
            logger.info("Cloned %s from %s", module, source)
            return FetchOutcome.CLONED

        logger.error("Failed to clone %s from %s: %s", module, source, cloned.error)
        return FetchOutcome.FAILED

    # ── Helpers ─────────────────────────────────────────────────

    def _classify(self, module: str, path: Path) -> MirrorState:
        probe = self._run(module, "filesystem", "exists", path=str(path))
        if probe.failed:
            logger.warning("Could not inspect %s: %s", path, probe.error)
            return MirrorState.ABSENT
        if not probe.metadata.get("exists"):
            return MirrorState.ABSENT
        if probe.metadata.get("is_checkout"):
            return MirrorState.VALID
        return MirrorState.INVALID

    def _discard(self, module: str, path: Path) -> None:
        """Make room for a fresh clone at ``path``."""
        removed = self._run(module, "filesystem", "remove", path=str(path))
        if removed.ok:
            logger.info("Removed existing mirror %s", path)
            return

        if removed.metadata.get("access_denied"):
            logger.warning("Access denied removing %s: %s; retrying", path, removed.error)
            removed = self._run(module, "filesystem", "remove", path=str(path))
            if removed.ok:
                logger.info("Removed %s after retry", path)
                return

        logger.warning("Could not remove %s (%s); clearing its contents", path, removed.error)
        cleared = self._run(module, "filesystem", "clear", path=str(path))
        if cleared.failed:
            logger.warning("Clearing %s left entries behind: %s", path, cleared.error)

    def _run(self, module: str, adapter: str, operation: str, cwd: str | None = None, **params: Any) -> Receipt:
        action = Action(
            id=f"{self._operation_id}:{module}:{operation}",
            adapter=adapter,
            for_module=module,
            params={"operation": operation, **params},
        )
        return self._registry.execute_action(action, cwd=cwd)
