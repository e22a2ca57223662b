"""
Action and Receipt models — the adapter I/O contract.

The fetcher never shells out or touches the mirror directly. It builds
Actions ("clone this URL into that path"), hands them to the adapter
registry, and reads the Receipts that come back. Adapters never raise.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A single side effect requested from an adapter."""

    id: str                         # e.g. "op-…:com.acme.common:clone"
    adapter: str                    # "git", "filesystem", …
    params: dict[str, Any] = Field(default_factory=dict)
    for_module: str | None = None   # module descriptor name, if any


class Receipt(BaseModel):
    """Outcome of one adapter execution.

    ``metadata`` carries adapter-specific detail the caller may branch
    on, e.g. ``access_denied`` for a removal blocked by permissions.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
