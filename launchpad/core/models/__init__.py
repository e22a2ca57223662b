"""
Domain models — pydantic types and outcome enums.

    from launchpad.core.models import ModuleDescriptor, Action, Receipt, FetchOutcome
"""

from launchpad.core.models.action import Action, Receipt
from launchpad.core.models.config import HandoffSpec, LaunchpadConfig
from launchpad.core.models.module import MirrorState, ModuleDescriptor, classify_mirror
from launchpad.core.models.outcome import (
    FetchOutcome,
    HandoffOutcome,
    PatchOutcome,
    ResolutionOutcome,
)

__all__ = [
    # action.py
    "Action",
    # outcome.py
    "FetchOutcome",
    "HandoffOutcome",
    # config.py
    "HandoffSpec",
    "LaunchpadConfig",
    # module.py
    "MirrorState",
    "ModuleDescriptor",
    "PatchOutcome",
    "Receipt",
    "ResolutionOutcome",
    "classify_mirror",
]
