"""launchpad — bootstraps a plugin framework into a host project."""

__version__ = "0.1.0"
