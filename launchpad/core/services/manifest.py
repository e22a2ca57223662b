"""
Manifest patcher — register module mirrors in the host's dependency file.

The manifest is edited as text, never parsed and re-serialized: key
order, indentation, line endings and unrelated entries survive
byte-for-byte. The only structural anchor is the ``"dependencies"`` key
and the ``{`` that follows it.

Insertion goes right after the line that opens the block::

    "dependencies": {
        "<name>": "file:./../<mirror_root>/<name>",     ← new
        "com.unity.ugui": "1.0.0",

A name already declared anywhere inside the block makes the call a
no-op, so patching is idempotent.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable

from launchpad.core.models.outcome import PatchOutcome

logger = logging.getLogger(__name__)

DEPENDENCIES_KEY = '"dependencies"'


def dependency_reference(manifest_path: Path, mirror_path: Path) -> str:
    """The ``file:`` URI for a mirror, relative to the manifest's directory."""
    try:
        rel = Path(os.path.relpath(mirror_path, manifest_path.parent)).as_posix()
    except ValueError:
        # Different drive: no relative form exists.
        return f"file:{Path(mirror_path).resolve().as_posix()}"
    return f"file:./{rel}"


def ensure_dependency(
    manifest_path: Path,
    module_name: str,
    mirror_path: Path,
    on_change: Callable[[], None] | None = None,
) -> PatchOutcome:
    """Make sure the manifest declares ``module_name`` → its mirror.

    Args:
        manifest_path: The host's dependency manifest.
        module_name: Dependency key to insert.
        mirror_path: Local checkout the entry points at.
        on_change: Called after a successful insertion (asset refresh).

    Returns:
        What happened. Never raises.
    """
    if not manifest_path.is_file():
        logger.error("Manifest not found at: %s", manifest_path)
        return PatchOutcome.MANIFEST_MISSING

    try:
        text = manifest_path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read manifest %s: %s", manifest_path, e)
        return PatchOutcome.FAILED

    anchor = _find_block(text)
    if anchor is None:
        logger.warning("No dependencies block in %s; %s not registered", manifest_path, module_name)
        return PatchOutcome.PARSE_ANCHOR_MISSING
    _, brace_at = anchor

    if f'"{module_name}"' in text[brace_at:_block_end(text, brace_at)]:
        logger.info("Dependency %s already present in %s", module_name, manifest_path)
        return PatchOutcome.ALREADY_PRESENT

    reference = dependency_reference(manifest_path, mirror_path)
    updated = _insert_entry(text, brace_at, module_name, reference)

    try:
        manifest_path.write_bytes(updated.encode("utf-8"))
    except OSError as e:
        logger.error("Failed to write manifest %s: %s", manifest_path, e)
        return PatchOutcome.FAILED

    logger.info("Registered %s → %s in %s", module_name, reference, manifest_path)
    if on_change is not None:
        try:
            on_change()
        except Exception:
            logger.exception("Asset refresh after patching %s failed", module_name)
    return PatchOutcome.INSERTED


def has_dependency(manifest_path: Path, module_name: str) -> bool:
    """Whether the dependencies block declares ``module_name``."""
    try:
        text = manifest_path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    anchor = _find_block(text)
    if anchor is None:
        return False
    _, brace_at = anchor
    return f'"{module_name}"' in text[brace_at:_block_end(text, brace_at)]


def remove_dependency(manifest_path: Path, module_name: str) -> bool:
    """Delete the line declaring ``module_name`` from the dependencies block.

    A trailing comma left dangling before the closing brace is dropped
    with it. Returns True if the file changed.
    """
    try:
        text = manifest_path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read manifest %s: %s", manifest_path, e)
        return False

    anchor = _find_block(text)
    if anchor is None:
        return False
    _, brace_at = anchor
    close_at = text.find("}", brace_at)
    if close_at == -1:
        return False

    entry_at = text.find(f'"{module_name}"', brace_at, close_at)
    if entry_at == -1:
        return False

    line_start = text.rfind("\n", 0, entry_at) + 1
    line_end = text.find("\n", entry_at)
    line_end = len(text) if line_end == -1 else line_end + 1
    if line_start <= brace_at or line_end > close_at:
        logger.warning("Entry %s shares a line with the block braces; not removing", module_name)
        return False

    updated = text[:line_start] + text[line_end:]

    # Drop a comma that now precedes the closing brace.
    close_at = updated.find("}", line_start)
    i = close_at - 1
    while i > brace_at and updated[i] in " \t\r\n":
        i -= 1
    if updated[i] == ",":
        updated = updated[:i] + updated[i + 1:]

    try:
        manifest_path.write_bytes(updated.encode("utf-8"))
    except OSError as e:
        logger.error("Failed to write manifest %s: %s", manifest_path, e)
        return False
    logger.info("Removed %s from %s", module_name, manifest_path)
    return True


# ── Helpers ─────────────────────────────────────────────────────


def _find_block(text: str) -> tuple[int, int] | None:
    key_at = text.find(DEPENDENCIES_KEY)
    if key_at == -1:
        return None
    brace_at = text.find("{", key_at)
    if brace_at == -1:
        return None
    return key_at, brace_at


def _block_end(text: str, brace_at: int) -> int:
    """Index of the brace closing the block, or the end of an unterminated file."""
    close_at = text.find("}", brace_at)
    return close_at if close_at != -1 else len(text)


def _insert_entry(text: str, brace_at: int, name: str, reference: str) -> str:
    newline_at = text.find("\n", brace_at + 1)
    line_rest = text[brace_at + 1:newline_at if newline_at != -1 else len(text)]

    if newline_at != -1 and not line_rest.strip():
        # Brace ends its line: insert at the end of that line.
        crlf = text[newline_at - 1] == "\r"
        insert_at = newline_at - 1 if crlf else newline_at
        eol = "\r\n" if crlf else "\n"
    else:
        # Entries (or the closing brace) share the brace's line.
        insert_at = brace_at + 1
        eol = "\n"

    following = text[insert_at:].lstrip()
    separator = "" if following.startswith("}") else ","
    entry = f'{eol}    "{name}": "{reference}"{separator}'
    return text[:insert_at] + entry + text[insert_at:]
