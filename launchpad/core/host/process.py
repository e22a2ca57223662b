"""
Process host — the running Python interpreter as the host application.

Module registry: ``sys.modules`` plus installed distributions.
Resolution: a worker thread installs every ``file:`` dependency of the
manifest that looks like a Python project (``pip install -e``), diffs
the installed distributions before and after, and posts
``modules:changed`` back through the deferred queue so subscribers run
on the loop's thread, never on the worker.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import json
import logging
import subprocess
import sys
import threading
from pathlib import Path
from typing import Any, Iterable

from launchpad.core.host.base import Host
from launchpad.core.host.events import ASSETS_REFRESHED, MODULES_CHANGED, EventBus
from launchpad.core.host.scheduler import DeferredQueue

logger = logging.getLogger(__name__)

_PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg")
_DEFAULT_INSTALL_CMD = (sys.executable, "-m", "pip", "install", "--quiet", "-e")


class ProcessHost(Host):
    """Host backed by the current interpreter.

    Args:
        manifest_path: The dependency manifest resolution reads.
        install_cmd: Command prefix; the dependency path is appended.
        install_timeout: Seconds allowed per dependency install.
    """

    def __init__(
        self,
        manifest_path: Path,
        install_cmd: tuple[str, ...] = _DEFAULT_INSTALL_CMD,
        install_timeout: int = 600,
        scheduler: DeferredQueue | None = None,
        events: EventBus | None = None,
    ) -> None:
        super().__init__(scheduler=scheduler, events=events)
        self.manifest_path = manifest_path
        self._install_cmd = install_cmd
        self._install_timeout = install_timeout
        self._worker: threading.Thread | None = None

    @property
    def name(self) -> str:
        return "process"

    # ── Registry ────────────────────────────────────────────────

    def is_module_loaded(self, name: str) -> bool:
        wanted = name.lower()
        if any(mod.lower() == wanted for mod in list(sys.modules)):
            return True
        return wanted in _installed_distributions()

    def loaded_modules(self) -> Iterable[tuple[str, Any]]:
        return list(sys.modules.items())

    def refresh_assets(self) -> None:
        importlib.invalidate_caches()
        self.events.publish(ASSETS_REFRESHED, key=str(self.manifest_path))

    # ── Resolution ──────────────────────────────────────────────

    def resolve_dependencies(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            logger.info("Resolution already running, not starting another")
            return
        self._worker = threading.Thread(
            target=self._resolve_worker,
            name="launchpad-resolve",
            daemon=True,
        )
        self._worker.start()

    def _resolve_worker(self) -> None:
        before = _installed_distributions()
        errors: list[str] = []
        try:
            for path in self._local_dependencies():
                error = self._install(path)
                if error:
                    errors.append(error)
        except Exception as e:
            logger.exception("Resolution failed")
            errors.append(str(e))

        importlib.invalidate_caches()
        after = _installed_distributions()
        data = {
            "added": sorted(after - before),
            "removed": sorted(before - after),
            "errors": errors,
        }
        self.scheduler.call_soon(lambda: self.events.publish(MODULES_CHANGED, data=data))

    def _local_dependencies(self) -> list[Path]:
        """Installable directories referenced by ``file:`` entries."""
        document = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        dependencies = document.get("dependencies", {}) if isinstance(document, dict) else {}
        paths = []
        for name, ref in dependencies.items():
            if not isinstance(ref, str) or not ref.startswith("file:"):
                continue
            path = (self.manifest_path.parent / ref[len("file:"):]).resolve()
            if any((path / marker).is_file() for marker in _PROJECT_MARKERS):
                paths.append(path)
            else:
                logger.debug("Dependency %s at %s is not a Python project, skipping", name, path)
        return paths

    def _install(self, path: Path) -> str | None:
        cmd = [*self._install_cmd, str(path)]
        logger.info("Installing %s", path)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._install_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Install of %s failed: %s", path, e)
            return f"{path}: {e}"
        if result.returncode != 0:
            logger.warning("Install of %s exited %d: %s", path, result.returncode, result.stderr.strip())
            return f"{path}: exit {result.returncode}"
        return None


def _installed_distributions() -> set[str]:
    names = set()
    for dist in importlib.metadata.distributions():
        name = dist.metadata["Name"] if dist.metadata else None
        if name:
            names.add(name.lower())
    return names
