"""
Config check use case — validate launchpad.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from launchpad.core.config.loader import ConfigError, find_config_file, load_config, project_root
from launchpad.core.models.config import LaunchpadConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: LaunchpadConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "module_count": len(self.config.modules) if self.config else 0,
            "resolution_timeout": self.config.resolution_timeout if self.config else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate launchpad configuration and report issues.

    Args:
        config_path: Optional explicit path to launchpad.yml.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            result.warnings.append("No launchpad.yml found; built-in defaults apply.")
    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if not config.modules:
        result.warnings.append("No modules defined. Nothing will be provisioned.")

    if not config.required_modules:
        result.warnings.append(
            "No required_modules defined. Detection will always report them absent."
        )

    for module in config.modules:
        if not _looks_like_git_source(module.source):
            result.warnings.append(f"Module '{module.name}' source does not look like a git URL: {module.source}")

    if config.resolution_timeout is None:
        result.warnings.append("resolution_timeout disabled; a stalled host will never time out.")

    if not config.handoff.module_prefixes:
        result.warnings.append("handoff.module_prefixes is empty; every loaded module will be scanned.")

    manifest = config.manifest_path(project_root(config_path))
    if not manifest.is_file():
        result.warnings.append(f"Manifest not found: {manifest}")

    result.valid = len(result.errors) == 0
    return result


def _looks_like_git_source(source: str) -> bool:
    if source.startswith("git@") or source.endswith(".git"):
        return True
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https", "ssh", "git", "file") and bool(parsed.netloc or parsed.path)
