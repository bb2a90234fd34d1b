# tether/errors.py
"""
Exception hierarchy shared by the command gate, the path validator and the
tool layer.

Every failure is local to the call that raised it; nothing here retries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class TetherError(Exception):
    """Base class for every error raised by tether."""


# ---------------------------------------------------------------------------
# Command parsing / execution
# ---------------------------------------------------------------------------


class ParseRejected(TetherError):
    """The command line cannot be executed safely."""

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(message)
        self.command = command


class InjectionDetected(ParseRejected):
    """A shell metacharacter was found before tokenization."""

    def __init__(self, metacharacter: str, command: Optional[str] = None):
        super().__init__(
            f"Command contains shell metacharacter {metacharacter!r}; "
            "pipes, redirection, chaining and substitution are not supported",
            command,
        )
        self.metacharacter = metacharacter


class ExecutionError(TetherError):
    """The validated command could not be spawned."""


# ---------------------------------------------------------------------------
# Path validation
# ---------------------------------------------------------------------------


class SecurityError(TetherError):
    """Base class for path validation failures."""

    def __init__(self, message: str, path: Optional[str | Path] = None):
        super().__init__(message)
        self.path = path


class TraversalDetected(SecurityError):
    def __init__(self, path: str | Path):
        super().__init__(f"Path traversal detected ('..' is not allowed): {path}", path)


class AccessDenied(SecurityError):
    def __init__(
        self,
        message: str,
        path: Optional[str | Path] = None,
        allowed_base: Optional[Path] = None,
    ):
        super().__init__(message, path)
        self.allowed_base = allowed_base


class FilesystemError(SecurityError):
    """Canonicalization failed, a parent is missing, or HOME is unset."""
