# tether/commands/models.py
"""
Closed set of executable commands.

• One frozen Pydantic model per allowed binary; each knows how to turn its own
  fields into an argument vector (``to_argv``), so no shell string is ever
  rebuilt.
• Instances can only be produced by :pyfunc:`tether.commands.parse`; calling a
  constructor directly raises ``TypeError``.
• ``CommandResult`` is the immutable outcome of one execution.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

# Handed to constructors by the parser only.
_PARSER_TOKEN = object()


class _ParsedModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, _token: object = None, **data: Any):  # noqa: D401
        if _token is not _PARSER_TOKEN:
            raise TypeError(
                f"{type(self).__name__} can only be built by tether.commands.parse()"
            )
        super().__init__(**data)


# ---------------------------------------------------------------------------
# git
# ---------------------------------------------------------------------------


class GitSubcommand(_ParsedModel):
    """Read-only git subcommands."""

    @abstractmethod
    def to_args(self) -> List[str]: ...


class GitStatus(GitSubcommand):
    def to_args(self) -> List[str]:
        return ["status"]


class GitDiff(GitSubcommand):
    files: Tuple[str, ...] = ()

    def to_args(self) -> List[str]:
        return ["diff", *self.files]


class GitLog(GitSubcommand):
    max_count: Optional[int] = None
    files: Tuple[str, ...] = ()

    def to_args(self) -> List[str]:
        args = ["log"]
        if self.max_count is not None:
            args += ["-n", str(self.max_count)]
        return args + list(self.files)


class GitBranch(GitSubcommand):
    list: bool = True

    def to_args(self) -> List[str]:
        return ["branch"]


class GitShow(GitSubcommand):
    commit: Optional[str] = None

    def to_args(self) -> List[str]:
        return ["show"] + ([self.commit] if self.commit else [])


# ---------------------------------------------------------------------------
# Safe commands
# ---------------------------------------------------------------------------


class SafeCommand(_ParsedModel):
    """A command that passed the metacharacter and allow-list checks."""

    @abstractmethod
    def to_argv(self) -> List[str]:
        """Binary name followed by literal arguments."""


class Ls(SafeCommand):
    path: str = ""
    flags: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["ls", *self.flags] + ([self.path] if self.path else [])


class Pwd(SafeCommand):
    def to_argv(self) -> List[str]:
        return ["pwd"]


class Cat(SafeCommand):
    file: str

    def to_argv(self) -> List[str]:
        return ["cat", self.file]


class Echo(SafeCommand):
    text: str = ""

    def to_argv(self) -> List[str]:
        return ["echo", self.text]


class Grep(SafeCommand):
    pattern: str
    file: Optional[str] = None
    flags: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        argv = ["grep", *self.flags, self.pattern]
        return argv + ([self.file] if self.file is not None else [])


class Head(SafeCommand):
    file: str
    lines: Optional[int] = None

    def to_argv(self) -> List[str]:
        argv = ["head"]
        if self.lines is not None:
            argv += ["-n", str(self.lines)]
        return argv + [self.file]


class Tail(SafeCommand):
    file: str
    lines: Optional[int] = None

    def to_argv(self) -> List[str]:
        argv = ["tail"]
        if self.lines is not None:
            argv += ["-n", str(self.lines)]
        return argv + [self.file]


class Wc(SafeCommand):
    file: str
    flags: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["wc", *self.flags, self.file]


class Git(SafeCommand):
    subcommand: GitSubcommand

    def to_argv(self) -> List[str]:
        return ["git", *self.subcommand.to_args()]


class Uname(SafeCommand):
    flags: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["uname", *self.flags]


class Whoami(SafeCommand):
    def to_argv(self) -> List[str]:
        return ["whoami"]


class Hostname(SafeCommand):
    def to_argv(self) -> List[str]:
        return ["hostname"]


class Date(SafeCommand):
    def to_argv(self) -> List[str]:
        return ["date"]


class Ps(SafeCommand):
    flags: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["ps", *self.flags]


class Node(SafeCommand):
    args: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["node", *self.args]


class Npm(SafeCommand):
    subcommand: str
    args: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["npm", self.subcommand, *self.args]


class Cargo(SafeCommand):
    subcommand: str
    args: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["cargo", self.subcommand, *self.args]


class Python(SafeCommand):
    # both `python` and `python3` run the python3 binary
    args: Tuple[str, ...] = ()

    def to_argv(self) -> List[str]:
        return ["python3", *self.args]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class CommandResult(BaseModel):
    """Captured outcome of a single execution (never retried)."""

    model_config = ConfigDict(frozen=True)

    stdout: str
    stderr: str
    exit_code: int
