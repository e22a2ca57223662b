"""
Mock adapter — scriptable test double for git and filesystem actions.

Registered under a real adapter name ('git', 'filesystem') it stands
in for that tool. Responses are matched by operation, optionally
narrowed to one module, so a test can say "pull fails for module A"
without knowing generated action ids.
"""

from __future__ import annotations

from launchpad.adapters.base import Adapter, ExecutionContext
from launchpad.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter.

    By default every action succeeds. Failures and custom receipts are
    configured per ``(operation, module)``; ``module=None`` matches any.
    Configured responses are reused on every matching call.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[tuple[str, str | None], Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls(self) -> list[tuple[str, str | None]]:
        """(operation, module) for every call, in order."""
        return [
            (ctx.action.params.get("operation", ""), ctx.action.for_module)
            for ctx in self._call_log
        ]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, operation: str, receipt: Receipt, module: str | None = None) -> None:
        self._responses[(operation, module)] = receipt

    def set_failure(
        self,
        operation: str,
        module: str | None = None,
        error: str = "Mock failure",
        **metadata,
    ) -> None:
        """Configure an operation (optionally for one module) to fail."""
        self._responses[(operation, module)] = Receipt.failure(
            adapter=self._name,
            action_id=f"{operation}:{module or '*'}",
            error=error,
            metadata=dict(metadata),
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        operation = context.action.params.get("operation", "")
        for key in ((operation, context.action.for_module), (operation, None)):
            if key in self._responses:
                return self._responses[key].model_copy(
                    update={"action_id": context.action.id}
                )

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._responses.clear()
