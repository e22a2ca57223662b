"""
Status use case — where a project stands without changing anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from launchpad.adapters.registry import AdapterRegistry, default_registry
from launchpad.core.config.loader import ConfigError, find_config_file, load_config, project_root
from launchpad.core.host.base import Host
from launchpad.core.models.config import LaunchpadConfig
from launchpad.core.models.module import MirrorState, classify_mirror
from launchpad.core.persistence.audit import AuditEntry, AuditWriter
from launchpad.core.services.detection import required_modules_present
from launchpad.core.services.manifest import has_dependency


@dataclass
class ModuleStatus:
    name: str
    source: str
    mirror: MirrorState
    registered: bool


@dataclass
class StatusResult:
    """Aggregated bootstrap status."""

    config: LaunchpadConfig | None = None
    config_path: Path | None = None
    project_root: Path | None = None
    manifest_exists: bool = False
    modules_present: bool = False
    modules: list[ModuleStatus] = field(default_factory=list)
    tools: dict[str, bool] = field(default_factory=dict)
    last_run: AuditEntry | None = None
    error: str | None = None

    @property
    def installed_count(self) -> int:
        return sum(1 for m in self.modules if m.registered and m.mirror is MirrorState.VALID)

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["project_root"] = str(self.project_root)
        result["config_path"] = str(self.config_path) if self.config_path else None
        result["manifest_exists"] = self.manifest_exists
        result["modules_present"] = self.modules_present
        result["modules"] = [
            {
                "name": m.name,
                "source": m.source,
                "mirror": str(m.mirror),
                "registered": m.registered,
            }
            for m in self.modules
        ]
        result["tools"] = self.tools
        result["last_run"] = self.last_run.model_dump(mode="json") if self.last_run else None
        return result


def get_status(
    config_path: Path | None = None,
    host: Host | None = None,
    registry: AdapterRegistry | None = None,
) -> StatusResult:
    """Report detection result, per-module mirror/manifest state, tool availability and the last run.

    Args:
        config_path: Optional explicit path to launchpad.yml.
        host: Host to run detection against (default: this process).
        registry: Adapters whose tools are checked (default: git + filesystem).
    """
    result = StatusResult()

    try:
        if config_path is None:
            config_path = find_config_file()
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    root = project_root(config_path)
    result.config = config
    result.config_path = config_path
    result.project_root = root

    manifest = config.manifest_path(root)
    mirror_root = config.mirror_dir(root)
    result.manifest_exists = manifest.is_file()

    if host is None:
        from launchpad.core.host.process import ProcessHost

        host = ProcessHost(manifest)
    result.modules_present = required_modules_present(host, config.required_modules)

    for module in config.modules:
        result.modules.append(ModuleStatus(
            name=module.name,
            source=module.source,
            mirror=classify_mirror(module.mirror_path(mirror_root)),
            registered=result.manifest_exists and has_dependency(manifest, module.name),
        ))

    if registry is None:
        registry = default_registry(git_timeout=config.git_timeout)
    result.tools = registry.availability()

    result.last_run = AuditWriter(project_root=root).last_of("provision")
    return result
