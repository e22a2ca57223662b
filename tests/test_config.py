"""
Tests for configuration — launchpad.yml loading, defaults and config check.
"""

import textwrap
from pathlib import Path

import pytest

from launchpad.core.config import defaults
from launchpad.core.config.loader import (
    ConfigError,
    find_config_file,
    load_config,
    project_root,
)
from launchpad.core.models.config import LaunchpadConfig
from launchpad.core.use_cases.config_check import check_config


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "launchpad.yml"
    path.write_text(textwrap.dedent(content))
    return path


class TestDefaults:
    def test_stock_module_set(self):
        config = LaunchpadConfig()
        assert [m.name for m in config.modules] == [name for name, _ in defaults.MODULES]
        assert config.required_modules == list(defaults.REQUIRED_MODULES)
        assert config.resolution_timeout == 600.0

    def test_paths_resolve_against_root(self, tmp_path):
        config = LaunchpadConfig()
        assert config.manifest_path(tmp_path) == tmp_path / "Packages" / "manifest.json"
        assert config.mirror_dir(tmp_path) == tmp_path / "NovaFrameworkData" / "framework_repo"

    def test_absolute_paths_kept(self, tmp_path):
        config = LaunchpadConfig(mirror_root=str(tmp_path / "elsewhere"))
        assert config.mirror_dir(Path("/ignored")) == tmp_path / "elsewhere"

    def test_get_module(self):
        config = LaunchpadConfig()
        assert config.get_module(defaults.MODULES[0][0]) is config.modules[0]
        assert config.get_module("nope") is None


class TestValidation:
    def test_duplicate_module_names_rejected(self):
        with pytest.raises(ValueError, match="duplicate module name"):
            LaunchpadConfig(modules=[{"name": "a", "source": "u"}, {"name": "a", "source": "v"}])

    def test_zero_timeout_disables(self):
        assert LaunchpadConfig(resolution_timeout=0).resolution_timeout is None

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            LaunchpadConfig(resolution_timeout=-1)


class TestLoader:
    def test_load_file(self, tmp_path):
        path = _write(tmp_path, """\
            mirror_root: mirrors
            branch: develop
            modules:
              - name: com.acme.common
                source: https://example.com/common.git
            handoff:
              type: acme.installer:Installer
              method: run
        """)
        config = load_config(path)
        assert config.mirror_root == "mirrors"
        assert config.branch == "develop"
        assert [m.name for m in config.modules] == ["com.acme.common"]
        assert config.handoff.type == "acme.installer:Installer"
        assert config.handoff.key == defaults.HANDOFF_KEY

    def test_nested_under_launchpad_key(self, tmp_path):
        path = _write(tmp_path, """\
            launchpad:
              branch: release
        """)
        assert load_config(path).branch == "release"

    def test_empty_file_means_defaults(self, tmp_path):
        path = _write(tmp_path, "")
        assert load_config(path) == LaunchpadConfig()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "launchpad.yml")

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path, "modules: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = _write(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_schema_error(self, tmp_path):
        path = _write(tmp_path, "git_timeout: soon\n")
        with pytest.raises(ConfigError, match="Invalid launchpad configuration"):
            load_config(path)

    def test_no_file_anywhere_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("launchpad.core.config.loader.find_config_file", lambda start_dir=None: None)
        assert load_config() == LaunchpadConfig()


class TestFindConfigFile:
    def test_walks_up(self, tmp_path):
        path = _write(tmp_path, "branch: main\n")
        nested = tmp_path / "Assets" / "Scripts"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == path.resolve()

    def test_project_root(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "")
        assert project_root(path) == tmp_path.resolve()
        monkeypatch.chdir(tmp_path)
        assert project_root(None) == tmp_path.resolve()


class TestConfigCheck:
    def test_valid_with_manifest(self, tmp_path, manifest):
        path = _write(tmp_path, "branch: main\n")
        result = check_config(path)
        assert result.valid
        assert result.errors == []
        assert not any("Manifest not found" in w for w in result.warnings)

    def test_warnings(self, tmp_path):
        path = _write(tmp_path, """\
            resolution_timeout: 0
            required_modules: []
            modules:
              - name: a
                source: not a url
            handoff:
              module_prefixes: []
        """)
        result = check_config(path)
        assert result.valid
        joined = "\n".join(result.warnings)
        assert "does not look like a git URL" in joined
        assert "required_modules" in joined
        assert "resolution_timeout disabled" in joined
        assert "module_prefixes is empty" in joined
        assert "Manifest not found" in joined

    def test_invalid(self, tmp_path):
        path = _write(tmp_path, """\
            modules:
              - name: a
                source: https://example.com/a.git
              - name: a
                source: https://example.com/b.git
        """)
        result = check_config(path)
        assert not result.valid
        assert "duplicate module name" in result.errors[0]
        assert result.to_dict()["module_count"] == 0
