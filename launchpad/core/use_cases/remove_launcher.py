"""
Remove-launcher use case — drop the launcher's own manifest entry.

Called by the downstream installer (or an operator) once it has taken
over, so the host stops loading the bootstrapper.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from launchpad.core.config.loader import ConfigError, find_config_file, load_config, project_root
from launchpad.core.persistence.audit import AuditEntry, AuditWriter
from launchpad.core.services.manifest import remove_dependency

logger = logging.getLogger(__name__)


@dataclass
class RemoveResult:
    launcher_name: str = ""
    manifest_path: Path | None = None
    removed: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "launcher_name": self.launcher_name,
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
            "removed": self.removed,
            "error": self.error,
        }


def remove_launcher(config_path: Path | None = None) -> RemoveResult:
    """Remove ``launcher_name`` from the manifest's dependencies block."""
    result = RemoveResult()
    try:
        if config_path is None:
            config_path = find_config_file()
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    root = project_root(config_path)
    result.launcher_name = config.launcher_name
    result.manifest_path = config.manifest_path(root)

    if not result.manifest_path.is_file():
        result.error = f"Manifest not found: {result.manifest_path}"
        return result

    result.removed = remove_dependency(result.manifest_path, config.launcher_name)
    if result.removed:
        logger.info("Removed launcher %s", config.launcher_name)
        AuditWriter(project_root=root).write(AuditEntry(
            operation_type="remove",
            status="ok",
            modules=[config.launcher_name],
        ))
    else:
        logger.info("Launcher %s not registered in %s", config.launcher_name, result.manifest_path)
    return result
