"""
Module model — a required module and the state of its local mirror.

Descriptors are declared (defaults or launchpad.yml). Mirror state is
discovered by the fetcher and only ever consulted by the fetcher and
the status report.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel


class MirrorState(StrEnum):
    """On-disk state of a module's local checkout."""

    ABSENT = "absent"
    VALID = "present-valid-vcs"
    INVALID = "present-invalid"


class ModuleDescriptor(BaseModel):
    """A module to provision: its unique name and git source URL."""

    name: str
    source: str

    def mirror_path(self, mirror_root: Path) -> Path:
        """Where this module's checkout lives under the mirror root."""
        return mirror_root / self.name


def classify_mirror(path: Path) -> MirrorState:
    """Classify a mirror directory by the presence of git metadata."""
    if not path.exists():
        return MirrorState.ABSENT
    if (path / ".git").is_dir():
        return MirrorState.VALID
    return MirrorState.INVALID
