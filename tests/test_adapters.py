"""
Tests for adapter protocol, registry, mock, git and filesystem adapters.
"""

import os
import shutil
import stat
import subprocess
import sys
from pathlib import Path

import pytest

from launchpad.adapters.base import ExecutionContext
from launchpad.adapters.mock import MockAdapter
from launchpad.adapters.registry import AdapterRegistry, default_registry
from launchpad.adapters.shell.filesystem import FilesystemAdapter
from launchpad.adapters.vcs.git import GitAdapter
from launchpad.core.models.action import Action, Receipt


def _ctx(adapter: str, cwd: str | None = None, module: str | None = None, **params) -> ExecutionContext:
    action = Action(id=f"t:{params.get('operation', '')}", adapter=adapter, params=params, for_module=module)
    return ExecutionContext(action=action, cwd=cwd, params=params)


# ── Protocol Tests ───────────────────────────────────────────────────


class TestExecutionContext:
    def test_working_dir_prefers_cwd(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="git"), project_root="/project", cwd="/mirrors")
        assert ctx.working_dir == "/mirrors"

    def test_working_dir_defaults_to_project_root(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="git"), project_root="/project")
        assert ctx.working_dir == "/project"


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="git")
        receipt = mock.execute(_ctx("git", operation="clone"))
        assert receipt.ok
        assert mock.call_count == 1

    def test_failure_for_one_module(self):
        mock = MockAdapter(adapter_name="git")
        mock.set_failure("clone", module="a", error="unreachable")
        assert mock.execute(_ctx("git", module="a", operation="clone")).failed
        assert mock.execute(_ctx("git", module="b", operation="clone")).ok

    def test_failure_for_any_module_carries_metadata(self):
        mock = MockAdapter(adapter_name="filesystem")
        mock.set_failure("remove", error="locked", access_denied=True)
        receipt = mock.execute(_ctx("filesystem", module="x", operation="remove"))
        assert receipt.failed
        assert receipt.metadata["access_denied"] is True
        assert receipt.action_id == "t:remove"

    def test_custom_response(self):
        mock = MockAdapter(adapter_name="filesystem")
        mock.set_response(
            "exists",
            Receipt.success(adapter="filesystem", action_id="x", metadata={"exists": True}),
        )
        receipt = mock.execute(_ctx("filesystem", operation="exists"))
        assert receipt.metadata == {"exists": True}

    def test_calls_records_operation_and_module(self):
        mock = MockAdapter(adapter_name="git")
        mock.execute(_ctx("git", module="a", operation="clone"))
        mock.execute(_ctx("git", module="b", operation="pull"))
        assert mock.calls() == [("clone", "a"), ("pull", "b")]

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("clone")
        mock.execute(_ctx("mock", operation="clone"))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(_ctx("mock", operation="clone")).ok


# ── Registry Tests ───────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_unknown_adapter_fails(self):
        registry = AdapterRegistry()
        receipt = registry.execute_action(Action(id="t", adapter="svn", params={"operation": "clone"}))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_validation_failure(self):
        registry = AdapterRegistry()
        registry.register(GitAdapter())
        receipt = registry.execute_action(Action(id="t", adapter="git", params={"operation": "push"}))
        assert receipt.failed
        assert "Validation failed" in receipt.error

    def test_mock_mode_answers_without_adapters(self):
        registry = AdapterRegistry(mock_mode=True)
        receipt = registry.execute_action(Action(id="t", adapter="git", params={"operation": "clone"}))
        assert receipt.ok
        assert receipt.metadata["mock"] is True

    def test_raising_adapter_becomes_failure(self):
        class Boom(MockAdapter):
            def execute(self, context):
                raise RuntimeError("boom")

        registry = AdapterRegistry()
        registry.register(Boom(adapter_name="git"))
        receipt = registry.execute_action(Action(id="t", adapter="git"))
        assert receipt.failed
        assert "boom" in receipt.error

    def test_default_registry(self):
        registry = default_registry(git_timeout=5)
        assert registry.availability()["filesystem"] is True
        assert set(registry.availability()) == {"filesystem", "git"}

    def test_availability_check_that_raises_counts_as_unavailable(self):
        class Broken(MockAdapter):
            def is_available(self):
                raise OSError("no PATH")

        registry = AdapterRegistry()
        registry.register(Broken(adapter_name="git"))
        assert registry.availability() == {"git": False}


# ── Git Adapter Tests ────────────────────────────────────────────────


class TestGitAdapter:
    def test_validate_requires_url_for_clone(self):
        ok, error = GitAdapter().validate(_ctx("git", operation="clone", path="x"))
        assert not ok
        assert "url" in error

    def test_validate_requires_path(self):
        ok, error = GitAdapter().validate(_ctx("git", operation="pull"))
        assert not ok
        assert "path" in error

    def test_missing_executable_is_failure(self, tmp_path: Path):
        git = GitAdapter(executable="definitely-not-git-xyz")
        assert not git.is_available()
        receipt = git.execute(_ctx("git", cwd=str(tmp_path), operation="clone", url="u", path="p"))
        assert receipt.failed
        assert "Could not start git" in receipt.error

    def test_nonzero_exit_is_failure(self, tmp_path: Path):
        git = GitAdapter(executable=sys.executable)
        # "python pull origin main" exits non-zero: no such file 'pull'.
        receipt = git.execute(_ctx("git", operation="pull", path=str(tmp_path)))
        assert receipt.failed
        assert receipt.metadata["return_code"] != 0

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_clone_and_pull_local_repository(self, tmp_path: Path):
        origin = tmp_path / "origin"
        origin.mkdir()
        env = {**os.environ, "GIT_AUTHOR_NAME": "t", "GIT_AUTHOR_EMAIL": "t@t",
               "GIT_COMMITTER_NAME": "t", "GIT_COMMITTER_EMAIL": "t@t"}
        subprocess.run(["git", "init", "-q", "-b", "main"], cwd=origin, check=True, env=env)
        (origin / "package.json").write_text("{}")
        subprocess.run(["git", "add", "."], cwd=origin, check=True, env=env)
        subprocess.run(["git", "commit", "-q", "-m", "init"], cwd=origin, check=True, env=env)

        mirrors = tmp_path / "mirrors"
        mirrors.mkdir()
        git = GitAdapter(timeout=60)
        cloned = git.execute(_ctx("git", cwd=str(mirrors), operation="clone", url=str(origin), path="mod"))
        assert cloned.ok, cloned.error
        assert (mirrors / "mod" / ".git").is_dir()

        pulled = git.execute(_ctx("git", operation="pull", path=str(mirrors / "mod")))
        assert pulled.ok, pulled.error


# ── Filesystem Adapter Tests ─────────────────────────────────────────


class TestFilesystemAdapter:
    def test_exists_reports_checkout(self, tmp_path: Path):
        (tmp_path / "mod" / ".git").mkdir(parents=True)
        receipt = FilesystemAdapter().execute(_ctx("filesystem", operation="exists", path=str(tmp_path / "mod")))
        assert receipt.metadata["exists"] is True
        assert receipt.metadata["is_checkout"] is True

    def test_exists_absent(self, tmp_path: Path):
        receipt = FilesystemAdapter().execute(_ctx("filesystem", operation="exists", path=str(tmp_path / "nope")))
        assert receipt.ok
        assert receipt.metadata["exists"] is False

    def test_mkdir_relative_to_working_dir(self, tmp_path: Path):
        receipt = FilesystemAdapter().execute(_ctx("filesystem", cwd=str(tmp_path), operation="mkdir", path="a/b"))
        assert receipt.ok
        assert receipt.metadata["created"] is True
        assert (tmp_path / "a" / "b").is_dir()

    def test_remove_tree(self, tmp_path: Path):
        (tmp_path / "mod" / "sub").mkdir(parents=True)
        (tmp_path / "mod" / "sub" / "f.txt").write_text("x")
        receipt = FilesystemAdapter().execute(_ctx("filesystem", operation="remove", path=str(tmp_path / "mod")))
        assert receipt.ok
        assert not (tmp_path / "mod").exists()

    def test_remove_missing_is_failure(self, tmp_path: Path):
        receipt = FilesystemAdapter().execute(_ctx("filesystem", operation="remove", path=str(tmp_path / "nope")))
        assert receipt.failed
        assert receipt.metadata["access_denied"] is False

    def test_clear_keeps_directory(self, tmp_path: Path):
        mod = tmp_path / "mod"
        (mod / "nested").mkdir(parents=True)
        readonly = mod / "readonly.txt"
        readonly.write_text("x")
        os.chmod(readonly, stat.S_IREAD)
        (mod / "nested" / "inner.txt").write_text("y")

        receipt = FilesystemAdapter().execute(_ctx("filesystem", operation="clear", path=str(mod)))
        assert receipt.ok, receipt.error
        assert mod.is_dir()
        assert list(mod.iterdir()) == []

    def test_unknown_operation_invalid(self):
        ok, error = FilesystemAdapter().validate(_ctx("filesystem", operation="chmod", path="x"))
        assert not ok
        assert "Unknown operation" in error
