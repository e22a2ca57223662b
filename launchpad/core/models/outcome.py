"""
Outcome enums — the local success/failure vocabulary of each stage.

No stage raises across its boundary. Each one reports one of these
values instead, and the caller decides whether to keep going.
"""

from __future__ import annotations

from enum import StrEnum


class FetchOutcome(StrEnum):
    """Result of materializing one module mirror."""

    CLONED = "cloned"
    UPDATED = "updated"
    FAILED = "failed"

    @property
    def materialized(self) -> bool:
        return self is not FetchOutcome.FAILED


class PatchOutcome(StrEnum):
    """Result of registering one module in the dependency manifest."""

    INSERTED = "inserted"
    ALREADY_PRESENT = "already-present"
    MANIFEST_MISSING = "manifest-missing"
    PARSE_ANCHOR_MISSING = "parse-anchor-missing"
    FAILED = "failed"
    NOT_ATTEMPTED = "not-attempted"

    @property
    def registered(self) -> bool:
        return self in (PatchOutcome.INSERTED, PatchOutcome.ALREADY_PRESENT)


class ResolutionOutcome(StrEnum):
    """How the wait on the host's resolver ended."""

    RESOLVED = "resolved"
    TIMED_OUT = "timed-out"
    FAILED = "failed"


class HandoffOutcome(StrEnum):
    """Result of locating and invoking the downstream installer."""

    INVOKED = "invoked"
    TYPE_NOT_FOUND = "type-not-found"
    METHOD_NOT_FOUND = "method-not-found"
    INVOCATION_ERROR = "invocation-error"
