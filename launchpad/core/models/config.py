"""
Launchpad configuration model — loaded from launchpad.yml.

Every field has a default (see core/config/defaults.py), so an empty
or absent file yields the stock module set. Paths are relative to the
project root unless absolute.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from launchpad.core.config import defaults
from launchpad.core.models.module import ModuleDescriptor


class HandoffSpec(BaseModel):
    """Where to find the downstream installer's entry point.

    ``key`` is looked up in the explicit registry and in the
    ``launchpad.handoff`` entry-point group. ``type`` + ``method`` drive
    the introspection fallback over loaded modules whose name starts
    with one of ``module_prefixes``.
    """

    key: str = defaults.HANDOFF_KEY
    type: str = defaults.HANDOFF_TYPE
    method: str = defaults.HANDOFF_METHOD
    module_prefixes: list[str] = Field(default_factory=lambda: list(defaults.HANDOFF_PREFIXES))


class LaunchpadConfig(BaseModel):
    """Root configuration for a bootstrap run."""

    mirror_root: str = defaults.MIRROR_ROOT
    manifest: str = defaults.MANIFEST_PATH
    branch: str = defaults.BRANCH
    git_timeout: int = defaults.GIT_TIMEOUT
    resolution_timeout: float | None = defaults.RESOLUTION_TIMEOUT

    launcher_name: str = defaults.LAUNCHER_NAME
    required_modules: list[str] = Field(default_factory=lambda: list(defaults.REQUIRED_MODULES))
    modules: list[ModuleDescriptor] = Field(
        default_factory=lambda: [ModuleDescriptor(name=n, source=s) for n, s in defaults.MODULES]
    )
    handoff: HandoffSpec = Field(default_factory=HandoffSpec)

    @field_validator("modules")
    @classmethod
    def _unique_names(cls, value: list[ModuleDescriptor]) -> list[ModuleDescriptor]:
        seen: set[str] = set()
        for module in value:
            if module.name in seen:
                raise ValueError(f"duplicate module name: {module.name}")
            seen.add(module.name)
        return value

    @field_validator("resolution_timeout")
    @classmethod
    def _non_negative(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError("resolution_timeout must be >= 0")
        return value or None

    def mirror_dir(self, project_root: Path) -> Path:
        return _resolve(project_root, self.mirror_root)

    def manifest_path(self, project_root: Path) -> Path:
        return _resolve(project_root, self.manifest)

    def get_module(self, name: str) -> ModuleDescriptor | None:
        for module in self.modules:
            if module.name == name:
                return module
        return None


def _resolve(root: Path, value: str) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path
