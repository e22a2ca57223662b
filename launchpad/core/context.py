"""
Bootstrap context — everything one bootstrap run works against.

Config, project root, host, adapter registry, audit ledger and the
confirmation hook are bundled here and passed down explicitly. Nothing
in the pipeline reads process-wide mutable state, so a test can build
an isolated context around an InMemoryHost and a mock registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from launchpad.adapters.registry import AdapterRegistry, default_registry
from launchpad.core.host.base import Host
from launchpad.core.models.config import LaunchpadConfig
from launchpad.core.persistence.audit import AuditWriter

logger = logging.getLogger(__name__)

ConfirmHook = Callable[[str], bool]


def auto_confirm(message: str) -> bool:
    logger.debug("Auto-confirming: %s", message)
    return True


@dataclass
class BootstrapContext:
    config: LaunchpadConfig
    project_root: Path
    host: Host
    registry: AdapterRegistry
    confirm: ConfirmHook = auto_confirm
    audit: AuditWriter | None = field(default=None)

    @property
    def mirror_root(self) -> Path:
        return self.config.mirror_dir(self.project_root)

    @property
    def manifest_path(self) -> Path:
        return self.config.manifest_path(self.project_root)

    @classmethod
    def create(
        cls,
        config: LaunchpadConfig,
        project_root: Path,
        host: Host | None = None,
        registry: AdapterRegistry | None = None,
        confirm: ConfirmHook | None = None,
        mock: bool = False,
    ) -> BootstrapContext:
        """Build a context with real (or, with ``mock``, simulated) collaborators.

        Mock mode answers every git/filesystem action with a canned
        success and uses an in-memory host whose resolution completes
        on the next tick. The manifest is still edited for real.
        """
        if host is None:
            if mock:
                from launchpad.core.host.memory import InMemoryHost

                host = InMemoryHost()
            else:
                from launchpad.core.host.process import ProcessHost

                host = ProcessHost(config.manifest_path(project_root))

        if registry is None:
            registry = default_registry(git_timeout=config.git_timeout, mock_mode=mock)

        return cls(
            config=config,
            project_root=project_root,
            host=host,
            registry=registry,
            confirm=confirm or auto_confirm,
            audit=AuditWriter(project_root=project_root),
        )
