"""Host layer — the application the launcher bootstraps into."""

from launchpad.core.host.base import Host
from launchpad.core.host.events import ASSETS_REFRESHED, MODULES_CHANGED, EventBus, Subscription
from launchpad.core.host.memory import InMemoryHost
from launchpad.core.host.process import ProcessHost
from launchpad.core.host.scheduler import DeferredQueue

__all__ = [
    "ASSETS_REFRESHED",
    "DeferredQueue",
    "EventBus",
    "Host",
    "InMemoryHost",
    "MODULES_CHANGED",
    "ProcessHost",
    "Subscription",
]
