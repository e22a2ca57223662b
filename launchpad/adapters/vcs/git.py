"""
Git adapter — clone and update module mirrors.

Uses the git CLI as an external process: stdout/stderr captured, exit
code 0 is success, anything else (including a process that cannot be
started, or one that times out) is a failed receipt.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from launchpad.adapters.base import Adapter, ExecutionContext
from launchpad.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git operations for module mirrors.

    Action params:
        operation (str): 'clone' or 'pull'.
        url (str): Source URL (for 'clone').
        path (str): Checkout path; clone target, or the repo to pull in.
        remote (str): Remote to pull from (default: 'origin').
        branch (str): Branch to pull (default: 'main').
        timeout (int): Seconds before the process is killed.
    """

    def __init__(self, timeout: int = 300, executable: str = "git"):
        self._timeout = timeout
        self._executable = executable

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which(self._executable) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        operation = params.get("operation", "")
        if operation not in ("clone", "pull"):
            return False, f"Unknown operation '{operation}'. Valid: clone, pull"
        if not params.get("path"):
            return False, "Missing required param: 'path'"
        if operation == "clone" and not params.get("url"):
            return False, "Missing required param: 'url' for clone operation"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        if params["operation"] == "clone":
            args = ["clone", params["url"], params["path"]]
            cwd = context.working_dir
        else:
            args = ["pull", params.get("remote", "origin"), params.get("branch", "main")]
            cwd = params["path"]
        return self._run(context, args, cwd, params.get("timeout", self._timeout))

    # ── Helpers ─────────────────────────────────────────────────

    def _run(self, ctx: ExecutionContext, args: list[str], cwd: str, timeout: int) -> Receipt:
        command = [self._executable, *args]
        logger.debug("Executing: %s (cwd=%s)", " ".join(command), cwd)
        start = time.monotonic()
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"git {args[0]} timed out after {timeout}s",
                metadata={"command": command},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Could not start git: {e}",
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output=result.stdout.strip(),
                duration_ms=elapsed_ms,
                metadata={"command": command, "return_code": 0, "stderr": result.stderr.strip()},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=result.stderr.strip() or f"git {args[0]} exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={"command": command, "return_code": result.returncode},
        )
