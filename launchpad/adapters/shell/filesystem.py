"""
Filesystem adapter — mirror directory operations with receipts.

Removal is split in two so the caller can escalate: 'remove' deletes
the whole tree and reports whether it was blocked by permissions;
'clear' empties the directory entry by entry, making each file
writable first, and leaves the directory itself in place.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import sys
from pathlib import Path

from launchpad.adapters.base import Adapter, ExecutionContext
from launchpad.core.models.action import Receipt

logger = logging.getLogger(__name__)


class FilesystemAdapter(Adapter):
    """Directory operations on module mirrors.

    Action params:
        operation (str): One of 'exists', 'mkdir', 'remove', 'clear'.
        path (str): Target path (relative to working_dir or absolute).
    """

    _OPERATIONS = ("exists", "mkdir", "remove", "clear")

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if operation not in self._OPERATIONS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(self._OPERATIONS)}"
        if not context.action.params.get("path"):
            return False, "Missing required param: 'path'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params["operation"]
        target = Path(context.action.params["path"])
        if not target.is_absolute():
            target = Path(context.working_dir) / target

        try:
            if operation == "exists":
                return self._exists(context, target)
            elif operation == "mkdir":
                return self._mkdir(context, target)
            elif operation == "remove":
                return self._remove(context, target)
            else:
                return self._clear(context, target)
        except Exception as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"operation": operation, "path": str(target)},
            )

    def _exists(self, ctx: ExecutionContext, target: Path) -> Receipt:
        exists = target.exists()
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=str(exists),
            metadata={
                "exists": exists,
                "is_dir": target.is_dir(),
                "is_checkout": (target / ".git").is_dir(),
                "path": str(target),
            },
        )

    def _mkdir(self, ctx: ExecutionContext, target: Path) -> Receipt:
        created = not target.exists()
        target.mkdir(parents=True, exist_ok=True)
        if created:
            logger.info("Created directory: %s", target)
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Directory ready: {target}",
            metadata={"path": str(target), "created": created},
        )

    def _remove(self, ctx: ExecutionContext, target: Path) -> Receipt:
        try:
            shutil.rmtree(target)
        except PermissionError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Access denied removing {target}: {e}",
                metadata={"path": str(target), "access_denied": True},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Could not remove {target}: {e}",
                metadata={"path": str(target), "access_denied": False},
            )
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Removed {target}",
            metadata={"path": str(target)},
        )

    def _clear(self, ctx: ExecutionContext, target: Path) -> Receipt:
        leftovers: list[str] = []
        for entry in sorted(target.iterdir()):
            if entry.is_dir() and not entry.is_symlink():
                try:
                    _rmtree_writable(entry)
                except OSError as e:
                    logger.warning("Could not delete directory %s: %s", entry, e)
                    leftovers.append(entry.name)
            elif not _unlink_writable(entry):
                leftovers.append(entry.name)

        if leftovers:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"{len(leftovers)} entries could not be deleted from {target}",
                metadata={"path": str(target), "leftovers": leftovers},
            )
        return Receipt.success(
            adapter=self.name,
            action_id=ctx.action.id,
            output=f"Cleared {target}",
            metadata={"path": str(target)},
        )


def _unlink_writable(path: Path) -> bool:
    """Strip read-only bits and delete one file, retrying once."""
    try:
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)
        path.unlink()
        return True
    except OSError as e:
        logger.warning("Could not delete file %s: %s", path, e)
    try:
        path.unlink()
        return True
    except OSError:
        logger.error("Failed to delete file after retry: %s", path)
        return False


def _make_writable_and_retry(func, path, _exc) -> None:
    os.chmod(path, stat.S_IREAD | stat.S_IWRITE)
    func(path)


def _rmtree_writable(path: Path) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_make_writable_and_retry)
    else:
        shutil.rmtree(path, onerror=_make_writable_and_retry)
