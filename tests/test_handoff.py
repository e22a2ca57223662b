"""
Tests for the handoff dispatcher — registry, entry-point metadata, introspection.
"""

import types

import pytest

from launchpad.core.host.memory import InMemoryHost
from launchpad.core.models.config import HandoffSpec
from launchpad.core.models.outcome import HandoffOutcome
from launchpad.core.services import handoff
from launchpad.core.services.handoff import (
    HandoffDispatcher,
    register_entry_point,
    registered_entry_point,
    unregister_entry_point,
)

INSTALLER_MODULE = "nova_installer.auto_install"


def _installer_module(cls: type) -> types.ModuleType:
    module = types.ModuleType(INSTALLER_MODULE)
    module.AutoInstallManager = cls
    return module


def _recording_installer(calls: list) -> type:
    class AutoInstallManager:
        @staticmethod
        def start_auto_install():
            calls.append("started")

    return AutoInstallManager


class FakeEntryPoint:
    def __init__(self, name, value, target=None, error=None):
        self.name = name
        self.value = value
        self._target = target
        self._error = error

    def load(self):
        if self._error:
            raise self._error
        return self._target


@pytest.fixture(autouse=True)
def no_installed_entry_points(monkeypatch):
    """Keep the test environment's own distributions out of lookup."""
    monkeypatch.setattr(handoff.importlib.metadata, "entry_points", lambda **kw: [])


def _run(host: InMemoryHost, spec: HandoffSpec | None = None) -> HandoffOutcome:
    return HandoffDispatcher(host, spec or HandoffSpec()).locate_and_invoke()


class TestRegistry:
    def test_register_and_unregister(self):
        func = lambda: None  # noqa: E731
        register_entry_point("k", func)
        assert registered_entry_point("k") is func
        unregister_entry_point("k")
        assert registered_entry_point("k") is None

    def test_non_callable_rejected(self):
        with pytest.raises(TypeError):
            register_entry_point("k", "not callable")

    def test_registered_entry_point_wins(self):
        calls = []
        register_entry_point("nova.installer", lambda: calls.append("registry"))
        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(_recording_installer(calls))})

        assert _run(host) is HandoffOutcome.INVOKED
        assert calls == ["registry"]


class TestMetadata:
    def test_entry_point_from_installed_distribution(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            handoff.importlib.metadata, "entry_points",
            lambda **kw: [FakeEntryPoint("nova.installer", "nova_installer:start", lambda: calls.append("ep"))],
        )
        assert _run(InMemoryHost()) is HandoffOutcome.INVOKED
        assert calls == ["ep"]

    def test_broken_entry_point_falls_through(self, monkeypatch):
        monkeypatch.setattr(
            handoff.importlib.metadata, "entry_points",
            lambda **kw: [FakeEntryPoint("nova.installer", "missing:start", error=ImportError("nope"))],
        )
        assert _run(InMemoryHost()) is HandoffOutcome.TYPE_NOT_FOUND


class TestIntrospection:
    def test_finds_type_in_loaded_module(self):
        calls = []
        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(_recording_installer(calls))})
        assert _run(host) is HandoffOutcome.INVOKED
        assert calls == ["started"]

    def test_classmethod_accepted(self):
        calls = []

        class AutoInstallManager:
            @classmethod
            def start_auto_install(cls):
                calls.append(cls.__name__)

        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(AutoInstallManager)})
        assert _run(host) is HandoffOutcome.INVOKED
        assert calls == ["AutoInstallManager"]

    def test_type_absent(self):
        host = InMemoryHost(loaded=["nova_common", "installer_utils"])
        assert _run(host) is HandoffOutcome.TYPE_NOT_FOUND

    def test_modules_outside_prefixes_are_not_scanned(self):
        calls = []
        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(_recording_installer(calls))})
        spec = HandoffSpec(module_prefixes=["acme"])
        assert _run(host, spec) is HandoffOutcome.TYPE_NOT_FOUND
        assert calls == []

    def test_bare_type_name_scans_matching_modules(self):
        class Exploding(types.ModuleType):
            def __getattr__(self, name):
                raise RuntimeError("incompatible module")

        calls = []
        host = InMemoryHost(loaded={
            "nova_broken": Exploding("nova_broken"),
            INSTALLER_MODULE: _installer_module(_recording_installer(calls)),
        })
        spec = HandoffSpec(type="AutoInstallManager")
        assert _run(host, spec) is HandoffOutcome.INVOKED
        assert calls == ["started"]

    def test_dotted_type_path(self):
        calls = []
        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(_recording_installer(calls))})
        spec = HandoffSpec(type=f"{INSTALLER_MODULE}.AutoInstallManager")
        assert _run(host, spec) is HandoffOutcome.INVOKED

    def test_method_absent(self):
        class AutoInstallManager:
            pass

        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(AutoInstallManager)})
        assert _run(host) is HandoffOutcome.METHOD_NOT_FOUND

    def test_instance_method_rejected(self):
        class AutoInstallManager:
            def start_auto_install(self):
                raise AssertionError("must not be called")

        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(AutoInstallManager)})
        assert _run(host) is HandoffOutcome.METHOD_NOT_FOUND

    def test_method_with_required_argument_rejected(self):
        class AutoInstallManager:
            @staticmethod
            def start_auto_install(project):
                raise AssertionError("must not be called")

        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(AutoInstallManager)})
        assert _run(host) is HandoffOutcome.METHOD_NOT_FOUND

    def test_private_method_rejected(self):
        class AutoInstallManager:
            @staticmethod
            def _start():
                raise AssertionError("must not be called")

        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(AutoInstallManager)})
        assert _run(host, HandoffSpec(method="_start")) is HandoffOutcome.METHOD_NOT_FOUND

    def test_raising_entry_point(self):
        class AutoInstallManager:
            @staticmethod
            def start_auto_install():
                raise RuntimeError("installer crashed")

        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(AutoInstallManager)})
        assert _run(host) is HandoffOutcome.INVOCATION_ERROR


class TestDispatch:
    def test_invocation_is_deferred(self):
        calls, outcomes = [], []
        host = InMemoryHost(loaded={INSTALLER_MODULE: _installer_module(_recording_installer(calls))})
        dispatcher = HandoffDispatcher(host, HandoffSpec())

        dispatcher.dispatch(on_done=outcomes.append)
        assert calls == []

        # First tick finds the entry point, the next one calls it.
        host.scheduler.run_once()
        assert calls == []
        assert outcomes == []
        host.scheduler.run_once()

        assert calls == ["started"]
        assert outcomes == [HandoffOutcome.INVOKED]
        assert dispatcher.last_outcome is HandoffOutcome.INVOKED

    def test_not_found_reports_without_retry(self):
        outcomes = []
        host = InMemoryHost()
        HandoffDispatcher(host, HandoffSpec()).dispatch(on_done=outcomes.append)
        host.scheduler.run_until_idle()
        assert outcomes == [HandoffOutcome.TYPE_NOT_FOUND]
        assert host.scheduler.pending() == 0
