"""
Tests for detection, mirror classification and the status use case.
"""

import textwrap
from pathlib import Path

from launchpad.adapters.mock import MockAdapter
from launchpad.adapters.registry import AdapterRegistry
from launchpad.core.host.memory import InMemoryHost
from launchpad.core.models.module import MirrorState, ModuleDescriptor, classify_mirror
from launchpad.core.models.outcome import FetchOutcome, PatchOutcome
from launchpad.core.persistence.audit import AuditEntry, AuditWriter
from launchpad.core.services.detection import required_modules_present
from launchpad.core.use_cases.status import get_status


class TestRequiredModulesPresent:
    def test_any_one_is_enough(self):
        host = InMemoryHost(loaded=["nova_common"])
        assert required_modules_present(host, ["nova_installer", "nova_common"])

    def test_absent_is_false_not_error(self):
        assert not required_modules_present(InMemoryHost(), ["nova_installer", "nova_common"])

    def test_case_insensitive(self):
        assert required_modules_present(InMemoryHost(loaded=["NOVA_INSTALLER"]), ["nova_installer"])

    def test_no_names(self):
        assert not required_modules_present(InMemoryHost(loaded=["x"]), [])

    def test_pure(self):
        host = InMemoryHost(loaded=["nova_common"])
        required_modules_present(host, ["nova_common"])
        assert host.resolve_calls == 0
        assert host.refresh_calls == 0
        assert host.scheduler.pending() == 0


class TestMirrorClassification:
    def test_states(self, tmp_path: Path):
        assert classify_mirror(tmp_path / "none") is MirrorState.ABSENT
        (tmp_path / "plain").mkdir()
        assert classify_mirror(tmp_path / "plain") is MirrorState.INVALID
        (tmp_path / "repo" / ".git").mkdir(parents=True)
        assert classify_mirror(tmp_path / "repo") is MirrorState.VALID

    def test_mirror_path(self, tmp_path: Path):
        module = ModuleDescriptor(name="com.acme.common", source="u")
        assert module.mirror_path(tmp_path) == tmp_path / "com.acme.common"


class TestOutcomes:
    def test_fetch_materialized(self):
        assert FetchOutcome.CLONED.materialized
        assert FetchOutcome.UPDATED.materialized
        assert not FetchOutcome.FAILED.materialized

    def test_patch_registered(self):
        assert PatchOutcome.INSERTED.registered
        assert PatchOutcome.ALREADY_PRESENT.registered
        assert not PatchOutcome.PARSE_ANCHOR_MISSING.registered
        assert str(PatchOutcome.NOT_ATTEMPTED) == "not-attempted"


class TestStatus:
    def _project(self, tmp_path: Path) -> Path:
        config = tmp_path / "launchpad.yml"
        config.write_text(textwrap.dedent("""\
            mirror_root: mirrors
            modules:
              - name: com.acme.common
                source: https://example.com/common.git
              - name: com.acme.installer
                source: https://example.com/installer.git
        """))
        return config

    def test_reports_mirrors_and_registration(self, tmp_path: Path, manifest):
        config = self._project(tmp_path)
        (tmp_path / "mirrors" / "com.acme.common" / ".git").mkdir(parents=True)
        text = manifest.read_text().replace(
            '"dependencies": {\n',
            '"dependencies": {\n    "com.acme.common": "file:./../mirrors/com.acme.common",\n',
        )
        manifest.write_text(text)
        AuditWriter(project_root=tmp_path).write(AuditEntry(operation_id="op-1", operation_type="provision", status="partial"))

        result = get_status(config, host=InMemoryHost(loaded=["nova_common"]))

        assert result.error is None
        assert result.modules_present
        assert result.manifest_exists
        common, installer = result.modules
        assert (common.mirror, common.registered) == (MirrorState.VALID, True)
        assert (installer.mirror, installer.registered) == (MirrorState.ABSENT, False)
        assert result.installed_count == 1
        assert result.last_run.operation_id == "op-1"
        assert result.to_dict()["modules"][0]["mirror"] == "present-valid-vcs"

    def test_without_manifest(self, tmp_path: Path):
        result = get_status(self._project(tmp_path), host=InMemoryHost())
        assert not result.manifest_exists
        assert not result.modules_present
        assert all(not m.registered for m in result.modules)
        assert result.last_run is None

    def test_reports_tool_availability(self, tmp_path: Path):
        registry = AdapterRegistry()
        registry.register(MockAdapter("git", available=False))
        registry.register(MockAdapter("filesystem"))

        result = get_status(self._project(tmp_path), host=InMemoryHost(), registry=registry)

        assert result.tools == {"git": False, "filesystem": True}
        assert result.to_dict()["tools"] == {"git": False, "filesystem": True}

    def test_config_error(self, tmp_path: Path):
        result = get_status(tmp_path / "missing.yml", host=InMemoryHost())
        assert result.error
        assert result.to_dict() == {"error": result.error}
