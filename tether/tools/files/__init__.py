# tether/tools/files/__init__.py
"""
tether.tools.files
==================

Filesystem actions for the agent, all confined to the allowed base.

Input::

    {"action": "read" | "write" | "append" | "replace" | "tail" | "mkdir" | "info",
     "path": "...", "working_directory": "..."?, ...action specific keys}

Every path goes through :pyfunc:`tether.paths.expand_path` and is opened
with :pyfunc:`tether.paths.open_validated`; writes additionally refuse
protected targets.  New parent directories are created one level at a time,
each validated before ``mkdir``.
"""

from __future__ import annotations

import codecs
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional

from tether.errors import FilesystemError, TetherError
from tether.logger import get_logger
from tether.paths import (
    expand_path,
    open_validated,
    validate_path,
    validate_path_for_write,
)
from tether.tools.permissions import load_settings
from tether.tools.toolkit import (
    ToolResponse,
    error_response,
    optional_field,
    redact_output,
    require_field,
    validate_invocation,
)

TOOL_NAME = "files"
logger = get_logger(f"tools.{TOOL_NAME}")

# files above this size are not line-counted by `info`
_LINE_COUNT_LIMIT = 10 * 1024 * 1024
_SNIFF_BYTES = 8192

_FILE_TYPES: Dict[str, str] = {
    "py": "Python",
    "rs": "Rust",
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "js": "JavaScript",
    "jsx": "JavaScript",
    "go": "Go",
    "java": "Java",
    "c": "C",
    "h": "C",
    "cpp": "C++",
    "cc": "C++",
    "hpp": "C++",
    "json": "JSON",
    "yaml": "YAML",
    "yml": "YAML",
    "toml": "TOML",
    "xml": "XML",
    "html": "HTML",
    "css": "CSS",
    "md": "Markdown",
    "txt": "Text",
    "sh": "Shell",
    "sql": "SQL",
}


def describe_tool() -> dict:
    return {
        "name": TOOL_NAME,
        "description": (
            "Read, write, append, replace, tail, mkdir or inspect files inside "
            "the allowed base directory."
        ),
        "allowed_commands": ["read", "write", "append", "replace", "tail", "mkdir", "info"],
        "examples": [
            '{"action": "read", "path": "~/project/README.md"}',
            '{"action": "replace", "path": "setup.cfg", "search": "0.1", "replace": "0.2"}',
            '{"action": "tail", "path": "app.log", "lines": 20}',
        ],
    }


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #
def _target(input: dict) -> Path:
    workdir = input.get("working_directory")
    cwd = validate_path(workdir) if workdir else None
    return expand_path(input["path"], cwd)


def _make_dirs(directory: Path) -> None:
    """``mkdir -p`` where every created level is validated first."""
    missing = []
    current = directory
    while not os.path.lexists(current):
        missing.append(current)
        current = current.parent
    for level in reversed(missing):
        os.mkdir(validate_path_for_write(level))


def _is_regular(fh) -> bool:
    return stat.S_ISREG(os.fstat(fh.fileno()).st_mode)


def _read_bytes(path: Path, limit: Optional[int] = None) -> tuple[bytes, bool]:
    with open_validated(path, "rb") as fh:
        if not _is_regular(fh):
            raise FilesystemError(f"Path is not a file: {path}", path)
        if limit is None:
            return fh.read(), False
        data = fh.read(limit + 1)
    return data[:limit], len(data) > limit


def _decode(data: bytes, truncated: bool = False) -> str:
    # a cut in the middle of a multi-byte character is not an error
    return codecs.getincrementaldecoder("utf-8")().decode(data, final=not truncated)


def _human_size(size: int) -> str:
    if size < 1024:
        return f"{size} bytes"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


# --------------------------------------------------------------------------- #
# Actions
# --------------------------------------------------------------------------- #
def _read(input: dict) -> ToolResponse:
    path = _target(input)
    limit = load_settings().files.max_read_bytes
    requested = input.get("max_bytes")
    if isinstance(requested, int) and 0 < requested < limit:
        limit = requested

    data, truncated = _read_bytes(path, limit)
    response = ToolResponse(
        success=True,
        stdout=_decode(data, truncated),
        metadata={"path": str(validate_path(path)), "truncated": truncated},
    )
    return redact_output(response)


def _write(input: dict) -> ToolResponse:
    path = _target(input)
    content = input.get("content") or ""
    _make_dirs(path.parent)
    with open_validated(path, "w") as fh:
        fh.write(content)
    logger.info(f"[{TOOL_NAME}] Wrote {len(content)} chars to {path}")
    return ToolResponse(success=True, stdout=f"Successfully wrote to {validate_path(path)}")


def _append(input: dict) -> ToolResponse:
    path = _target(input)
    content = input.get("content") or ""
    with open_validated(path, "a") as fh:
        fh.write(content)
    logger.info(f"[{TOOL_NAME}] Appended {len(content)} chars to {path}")
    return ToolResponse(success=True, stdout=f"Successfully appended to {validate_path(path)}")


def _replace(input: dict) -> ToolResponse:
    search = input.get("search")
    if not isinstance(search, str) or not search:
        return ToolResponse(success=False, reason="invalid", error="Missing 'search' in tool input.")
    replacement = input.get("replace") or ""

    path = _target(input)
    data, _ = _read_bytes(path)
    content = data.decode("utf-8")

    count = content.count(search) if input.get("all") else min(content.count(search), 1)
    if count == 0:
        return ToolResponse(
            success=False, reason="not_found", error=f"Search text not found: '{search}'"
        )

    updated = content.replace(search, replacement, count)
    with open_validated(path, "w") as fh:
        fh.write(updated)

    noun = "occurrence" if count == 1 else "occurrences"
    return ToolResponse(
        success=True,
        stdout=f"Successfully replaced {count} {noun} in {validate_path(path)}",
        metadata={"count": count},
    )


def _tail(input: dict) -> ToolResponse:
    lines = input.get("lines", 10)
    if not isinstance(lines, int) or isinstance(lines, bool) or lines < 0:
        return ToolResponse(
            success=False, reason="invalid", error="'lines' must be a non-negative integer."
        )
    path = _target(input)
    limit = load_settings().files.max_read_bytes
    with open_validated(path, "rb") as fh:
        if not _is_regular(fh):
            raise FilesystemError(f"Path is not a file: {path}", path)
        start = max(os.fstat(fh.fileno()).st_size - limit, 0)
        cut = False
        if start:
            fh.seek(start - 1)
            cut = fh.read(1) != b"\n"
        data = fh.read(limit)

    all_lines = data.decode("utf-8", errors="replace" if start else "strict").splitlines()
    if cut:
        # the window starts mid-line
        all_lines = all_lines[1:]
    tail = all_lines[max(len(all_lines) - lines, 0) :] if lines else []
    return redact_output(ToolResponse(success=True, stdout="\n".join(tail)))


def _mkdir(input: dict) -> ToolResponse:
    path = _target(input)
    if os.path.lexists(path):
        canonical = validate_path(path)
        if not canonical.is_dir():
            raise FilesystemError(f"Path exists and is not a directory: {canonical}", canonical)
    else:
        _make_dirs(path)
    return ToolResponse(success=True, stdout=f"Successfully created directory: {validate_path(path)}")


def _info(input: dict) -> ToolResponse:
    path = _target(input)
    with open_validated(path, "rb") as fh:
        if not _is_regular(fh):
            raise FilesystemError(f"Path is not a file: {path}", path)
        st = os.fstat(fh.fileno())
        sample = fh.read(_SNIFF_BYTES)
        try:
            _decode(sample, truncated=st.st_size > _SNIFF_BYTES)
            is_text = b"\x00" not in sample
        except UnicodeDecodeError:
            is_text = False

        line_count = None
        if is_text and st.st_size < _LINE_COUNT_LIMIT:
            fh.seek(0)
            try:
                line_count = len(fh.read().decode("utf-8").splitlines())
            except UnicodeDecodeError:
                is_text = False

    canonical = validate_path(path)
    extension = canonical.suffix[1:] or None
    info = {
        "path": str(canonical),
        "size_bytes": st.st_size,
        "size_human": _human_size(st.st_size),
        "line_count": line_count,
        "is_text": is_text,
        "is_binary": not is_text,
        "extension": extension,
        "file_type": _FILE_TYPES.get((extension or "").lower(), "Unknown"),
        "last_modified": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(),
    }
    return ToolResponse(success=True, metadata=info)


_ACTIONS: Dict[str, Callable[[dict], ToolResponse]] = {
    "read": _read,
    "write": _write,
    "append": _append,
    "replace": _replace,
    "tail": _tail,
    "mkdir": _mkdir,
    "info": _info,
}


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #
def run_tool(input: dict, invoked_tool_name: str = TOOL_NAME) -> dict:
    mismatch = validate_invocation(invoked_tool_name, TOOL_NAME)
    if mismatch:
        return mismatch.model_dump()

    name = input.get("action")
    action = _ACTIONS.get(name) if isinstance(name, str) else None
    if action is None:
        return ToolResponse(
            success=False,
            reason="invalid",
            error=f"Unknown action {input.get('action')!r}; expected one of {', '.join(_ACTIONS)}",
        ).model_dump()

    invalid = (
        require_field(input, "path")
        or optional_field(input, "working_directory")
        or optional_field(input, "content")
        or optional_field(input, "replace")
    )
    if invalid:
        return invalid.model_dump()

    try:
        return action(input).model_dump()
    except TetherError as e:
        return error_response(e).model_dump()
    except UnicodeDecodeError:
        return ToolResponse(
            success=False, reason="binary", error="File contains invalid UTF-8 (binary file?)"
        ).model_dump()
    except (TypeError, ValueError) as e:
        return ToolResponse(success=False, reason="invalid", error=str(e)).model_dump()
    except OSError as e:
        logger.warning(f"[{TOOL_NAME}] {input.get('action')} failed: {e}")
        return ToolResponse(success=False, reason="io", error=str(e)).model_dump()
