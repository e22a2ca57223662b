"""
Adapter registry — central dispatch for all adapter operations.

Handles registration, mock mode, availability and action execution. The
fetcher never calls an adapter directly, always through the registry.
"""

from __future__ import annotations

import logging
import time

from launchpad.adapters.base import Adapter, ExecutionContext
from launchpad.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters.

    In mock mode no adapter runs: every action is answered with a
    canned success.
    """

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def register(self, adapter: Adapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def availability(self) -> dict[str, bool]:
        """Whether each registered adapter's tool can be used right now."""
        available = {}
        for name, adapter in self._adapters.items():
            try:
                available[name] = adapter.is_available()
            except Exception:
                logger.debug("Availability check for %s raised", name, exc_info=True)
                available[name] = False
        return available

    def execute_action(self, action: Action, project_root: str = ".", cwd: str | None = None) -> Receipt:
        """Run ``action`` through its adapter (or the mock) and return a Receipt.

        Never raises. A missing adapter, a failed validation or an
        adapter that blows up all come back as failed receipts.
        """
        started = time.monotonic()

        if self._mock_mode:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.adapter}:{action.id} executed",
                metadata={"mock": True},
            )

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return _failed(action, f"No adapter registered for '{action.adapter}'")

        context = ExecutionContext(action=action, project_root=project_root, cwd=cwd, params=action.params)

        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            return _failed(action, f"Validation error: {e}")
        if not is_valid:
            return _failed(action, f"Validation failed: {error_msg}")

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = _failed(action, f"Unexpected error: {e}")

        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        return receipt


def _failed(action: Action, error: str) -> Receipt:
    return Receipt.failure(adapter=action.adapter, action_id=action.id, error=error)


def default_registry(git_timeout: int = 300, mock_mode: bool = False) -> AdapterRegistry:
    """A registry wired with the real git and filesystem adapters."""
    from launchpad.adapters.shell.filesystem import FilesystemAdapter
    from launchpad.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(GitAdapter(timeout=git_timeout))
    registry.register(FilesystemAdapter())
    return registry
