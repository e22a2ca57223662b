"""
Detection — are the required modules already loaded?

A pure query against the host's module registry. Absence is a normal
answer, not a failure.
"""

from __future__ import annotations

import logging
from typing import Iterable

from launchpad.core.host.base import Host

logger = logging.getLogger(__name__)


def required_modules_present(host: Host, names: Iterable[str]) -> bool:
    """True iff at least one of ``names`` is loaded in the host."""
    for name in names:
        if host.is_module_loaded(name):
            logger.debug("Required module loaded: %s", name)
            return True
    return False
