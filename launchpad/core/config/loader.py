"""
Configuration loader — reads launchpad.yml into a LaunchpadConfig.

The file is optional: without one the built-in module set and layout
are used, and the directory the search started from is the project
root.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from launchpad.core.models.config import LaunchpadConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "launchpad.yml"


class ConfigError(Exception):
    """Raised when launchpad configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for launchpad.yml starting from ``start_dir``, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to launchpad.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(path: Path | None = None) -> LaunchpadConfig:
    """Load and validate launchpad configuration.

    Args:
        path: Explicit path to launchpad.yml. If None, searches upward and
            falls back to defaults when nothing is found.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found; using built-in defaults", CONFIG_FILE)
            return LaunchpadConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading launchpad config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Allow everything nested under a top-level "launchpad" key.
    if isinstance(data.get("launchpad"), dict):
        data = data["launchpad"]

    try:
        config = LaunchpadConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid launchpad configuration: {e}") from e

    logger.info("Loaded launchpad config with %d modules", len(config.modules))
    return config


def project_root(config_path: Path | None) -> Path:
    """Project root for a config path (the cwd when there is no file)."""
    if config_path is None:
        return Path.cwd().resolve()
    return config_path.parent.resolve()
