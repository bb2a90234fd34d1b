# tether/paths/__init__.py
"""
tether.paths
============

Path containment for every file the agent touches.

Key behaviours
--------------
•  Any raw path containing ``..`` is refused before resolution.
•  ``~`` / ``~/…`` expand from ``$HOME``; relative paths join the process cwd.
•  Existing paths are canonicalized (symlinks resolved) and must lie inside
   the canonical allowed base.
•  A path that does not exist yet is accepted when its *parent* exists and
   canonicalizes inside the base; the result is ``canonical_parent / name``.

Validation and use are separate steps, so a symlink swapped in between can
still redirect the access.  :pyfunc:`open_validated` narrows that window by
opening the canonical path with ``O_NOFOLLOW`` and re-checking the opened
descriptor against the path.
"""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import IO, Iterable, Optional, Union

from tether import env
from tether.errors import AccessDenied, FilesystemError, TraversalDetected
from tether.logger import get_logger
from tether.preferences import prefs

from .models import PathsSettings

__all__ = [
    "PathValidator",
    "expand_path",
    "get_allowed_base",
    "open_validated",
    "validate_path",
    "validate_path_for_write",
]

logger = get_logger("paths")

PathInput = Union[str, bytes, os.PathLike]

_OPEN_FLAGS = {
    "r": os.O_RDONLY,
    # truncated only after the opened file is verified
    "w": os.O_WRONLY | os.O_CREAT,
    "a": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
}


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #
def load_settings() -> PathsSettings:
    section = prefs.get_section("paths", cast="obj")
    return section if isinstance(section, PathsSettings) else PathsSettings()


def _as_text(path: PathInput) -> str:
    raw = os.fspath(path)
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise FilesystemError("Invalid UTF-8 in path") from None
    try:
        raw.encode("utf-8")
    except UnicodeEncodeError:
        raise FilesystemError("Invalid UTF-8 in path") from None
    if "\x00" in raw:
        raise FilesystemError("Path contains a NUL byte")
    return raw


def _expand_home(raw: str) -> Path:
    if raw == "~":
        return env.get_home()
    if raw.startswith("~/"):
        return env.get_home() / raw[2:]
    return Path(raw)


def expand_path(path: PathInput, cwd: Optional[PathInput] = None) -> Path:
    """
    Absolute, not yet canonical, form of *path*.

    ``..`` is refused, ``~`` expands from ``$HOME`` and a relative path is
    joined onto *cwd* (the process cwd by default).  Nothing is resolved.
    """
    raw = _as_text(path)
    if ".." in raw:
        logger.warning("Path traversal rejected: %r", raw)
        raise TraversalDetected(raw)

    expanded = _expand_home(raw)
    if expanded.is_absolute():
        return expanded
    if cwd is not None:
        return Path(os.fsdecode(cwd)) / expanded
    try:
        return Path(os.getcwd()) / expanded
    except OSError as e:
        raise FilesystemError(f"Could not determine current directory: {e.strerror}") from e


def _canonicalize(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:  # RuntimeError: symlink loop on <3.13
        detail = getattr(e, "strerror", None) or str(e)
        raise FilesystemError(f"Could not canonicalize path {path}: {detail}", path) from e


# --------------------------------------------------------------------------- #
# Validator
# --------------------------------------------------------------------------- #
class PathValidator:
    """Proves that a path lies within ``allowed_base``; carries no other state."""

    def __init__(self, allowed_base: PathInput):
        base = Path(os.fsdecode(allowed_base))
        try:
            self.allowed_base = base.resolve(strict=True)
        except (OSError, RuntimeError):
            # a missing base contains nothing that exists
            self.allowed_base = Path(os.path.abspath(base))

    def __repr__(self) -> str:
        return f"PathValidator(allowed_base={str(self.allowed_base)!r})"

    def _ensure_contained(self, canonical: Path, what: str = "path") -> None:
        if not canonical.is_relative_to(self.allowed_base):
            logger.warning(
                "Access denied: %s %s outside %s", what, canonical, self.allowed_base
            )
            raise AccessDenied(
                f"Access denied: {what} outside allowed base\n"
                f"Path: {canonical}\nAllowed base: {self.allowed_base}",
                canonical,
                self.allowed_base,
            )

    def validate(self, path: PathInput) -> Path:
        """
        Return the canonical absolute form of *path*.

        Raises
        ------
        TraversalDetected
            The raw path contains ``..`` anywhere.
        AccessDenied
            The canonical path (or canonical parent) is outside the base.
        FilesystemError
            ``HOME`` unset, parent missing, or canonicalization failed.
        """
        absolute = expand_path(path)

        # lexists: a dangling symlink is not "a file to be created"
        if os.path.lexists(absolute):
            canonical = _canonicalize(absolute)
            self._ensure_contained(canonical)
            return canonical

        parent, name = absolute.parent, absolute.name
        if not name:
            raise FilesystemError(f"Invalid path: no file name in {absolute}", absolute)
        if not parent.exists():
            raise FilesystemError(f"Parent directory does not exist: {parent}", parent)

        canonical_parent = _canonicalize(parent)
        self._ensure_contained(canonical_parent, "parent directory")
        return canonical_parent / name


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #
def get_allowed_base() -> Path:
    """``paths.allowed_base`` from preferences, else ``$HOME``."""
    configured = load_settings().allowed_base
    if configured:
        return Path(configured).expanduser()
    return env.get_home()


def validate_path(path: PathInput, allowed_base: Optional[PathInput] = None) -> Path:
    base = allowed_base if allowed_base is not None else get_allowed_base()
    return PathValidator(base).validate(path)


def _ensure_not_protected(canonical: Path, protected: Iterable[str]) -> None:
    posix = canonical.as_posix()
    for pattern in protected:
        if fnmatch.fnmatchcase(posix, pattern):
            logger.warning("Write to protected path rejected: %s (%s)", canonical, pattern)
            raise AccessDenied(
                f"Refusing to write sensitive file: {canonical}", canonical
            )


def validate_path_for_write(
    path: PathInput,
    allowed_base: Optional[PathInput] = None,
    protected: Optional[Iterable[str]] = None,
) -> Path:
    """:pyfunc:`validate_path` plus refusal of protected write targets."""
    canonical = validate_path(path, allowed_base)
    _ensure_not_protected(
        canonical, protected if protected is not None else load_settings().protected
    )
    return canonical


def _verify_opened(fd: int, canonical: Path, validator: PathValidator) -> None:
    try:
        same_target = validator.validate(canonical) == canonical and os.path.samestat(
            os.fstat(fd), os.stat(canonical)
        )
    except OSError as e:
        raise FilesystemError(f"Could not verify {canonical}: {e.strerror}", canonical) from e
    if not same_target:
        logger.warning("Path changed between validation and open: %s", canonical)
        raise AccessDenied(
            f"Access denied: path changed while being opened: {canonical}",
            canonical,
            validator.allowed_base,
        )


def open_validated(
    path: PathInput,
    mode: str = "r",
    *,
    allowed_base: Optional[PathInput] = None,
    protected: Optional[Iterable[str]] = None,
    encoding: str = "utf-8",
) -> IO:
    """
    Validate *path* and open it without following a final-component symlink.

    ``mode`` is one of ``r``, ``w``, ``a`` optionally followed by ``b``.
    Write modes also refuse protected targets.
    """
    base_mode = mode.replace("b", "")
    if base_mode not in _OPEN_FLAGS or mode.count("b") > 1:
        raise ValueError(f"Unsupported mode: {mode!r}")

    validator = PathValidator(allowed_base if allowed_base is not None else get_allowed_base())
    canonical = validator.validate(path)
    if base_mode != "r":
        _ensure_not_protected(
            canonical, protected if protected is not None else load_settings().protected
        )

    flags = _OPEN_FLAGS[base_mode] | getattr(os, "O_NOFOLLOW", 0) | getattr(os, "O_CLOEXEC", 0)
    try:
        fd = os.open(canonical, flags, 0o644)
    except OSError as e:
        raise FilesystemError(f"Could not open {canonical}: {e.strerror}", canonical) from e

    try:
        _verify_opened(fd, canonical, validator)
        if base_mode == "w":
            os.ftruncate(fd, 0)
        if "b" in mode:
            return os.fdopen(fd, mode)
        return os.fdopen(fd, mode, encoding=encoding)
    except Exception:
        os.close(fd)
        raise
