"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from launchpad.adapters.mock import MockAdapter
from launchpad.adapters.registry import AdapterRegistry
from launchpad.adapters.shell.filesystem import FilesystemAdapter
from launchpad.core.services import handoff

MANIFEST_TEXT = (
    "{\n"
    '  "dependencies": {\n'
    '    "com.unity.collab-proxy": "2.0.5",\n'
    '    "com.unity.ugui": "1.0.0"\n'
    "  },\n"
    '  "scopedRegistries": []\n'
    "}\n"
)


@pytest.fixture
def manifest_text() -> str:
    return MANIFEST_TEXT


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    """A host manifest at <tmp>/Packages/manifest.json."""
    path = tmp_path / "Packages" / "manifest.json"
    path.parent.mkdir()
    path.write_text(MANIFEST_TEXT)
    return path


@pytest.fixture
def git_mock() -> MockAdapter:
    """Stand-in for git; every clone/pull succeeds unless told otherwise."""
    return MockAdapter(adapter_name="git")


@pytest.fixture
def registry(git_mock: MockAdapter) -> AdapterRegistry:
    """Real filesystem adapter, mocked git."""
    reg = AdapterRegistry()
    reg.register(git_mock)
    reg.register(FilesystemAdapter())
    return reg


@pytest.fixture(autouse=True)
def _clean_handoff_registry():
    """Entry points registered by one test never leak into the next."""
    yield
    with handoff._registry_lock:
        handoff._entry_points.clear()
