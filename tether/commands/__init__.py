# tether/commands/__init__.py
"""
tether.commands
───────────────
• ``parse`` turns untrusted free text into a :class:`SafeCommand` or raises.
• ``execute`` spawns the command's argv directly, never through a shell.
• ``run_command`` is the only convenience entry point and always parses first.

Tokenization is plain whitespace splitting: quotes are not interpreted, so
``echo "a b"`` echoes the literal text ``"a b"`` (quotes included, runs of
whitespace collapsed) and a quoted multi-word grep pattern is split apart.
"""

from __future__ import annotations

import subprocess
from os import PathLike
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tether.errors import ExecutionError, InjectionDetected, ParseRejected
from tether.logger import get_logger

from .models import (
    _PARSER_TOKEN,
    Cargo,
    Cat,
    CommandResult,
    Date,
    Echo,
    Git,
    GitBranch,
    GitDiff,
    GitLog,
    GitShow,
    GitStatus,
    GitSubcommand,
    Grep,
    Head,
    Hostname,
    Ls,
    Node,
    Npm,
    Ps,
    Pwd,
    Python,
    SafeCommand,
    Tail,
    Uname,
    Wc,
    Whoami,
)
from .policy import SHELL_METACHARACTERS, find_violation

__all__ = [
    "ALLOWED_COMMANDS",
    "CommandResult",
    "SafeCommand",
    "execute",
    "parse",
    "run_command",
]

logger = get_logger("commands")


# ---------------------------------------------------------------------------
# Sub-parsers (one per allowed binary)
# ---------------------------------------------------------------------------


def _split_flags(args: Sequence[str]) -> Tuple[List[str], List[str]]:
    flags = [a for a in args if a.startswith("-")]
    positional = [a for a in args if not a.startswith("-")]
    return flags, positional


def _parse_count(tool: str, value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise ParseRejected(f"{tool} -n expects a non-negative integer, got '{value}'")
    return int(value)


def _parse_ls(args: Sequence[str]) -> SafeCommand:
    flags, positional = _split_flags(args)
    # last positional wins
    path = positional[-1] if positional else ""
    return Ls(_PARSER_TOKEN, path=path, flags=flags)


def _parse_pwd(args: Sequence[str]) -> SafeCommand:
    return Pwd(_PARSER_TOKEN)


def _parse_cat(args: Sequence[str]) -> SafeCommand:
    if not args:
        raise ParseRejected("cat requires a file argument")
    return Cat(_PARSER_TOKEN, file=args[0])


def _parse_echo(args: Sequence[str]) -> SafeCommand:
    return Echo(_PARSER_TOKEN, text=" ".join(args))


def _parse_grep(args: Sequence[str]) -> SafeCommand:
    flags, positional = _split_flags(args)
    if not positional:
        raise ParseRejected("grep requires a pattern")
    file = positional[-1] if len(positional) > 1 else None
    return Grep(_PARSER_TOKEN, pattern=positional[0], file=file, flags=flags)


def _parse_lines_and_file(tool: str, args: Sequence[str]) -> Tuple[Optional[int], str]:
    lines: Optional[int] = None
    file = ""
    i = 0
    while i < len(args):
        if args[i] == "-n" and i + 1 < len(args):
            lines = _parse_count(tool, args[i + 1])
            i += 2
        else:
            file = args[i]
            i += 1
    if not file:
        raise ParseRejected(f"{tool} requires a file argument")
    return lines, file


def _parse_head(args: Sequence[str]) -> SafeCommand:
    lines, file = _parse_lines_and_file("head", args)
    return Head(_PARSER_TOKEN, file=file, lines=lines)


def _parse_tail(args: Sequence[str]) -> SafeCommand:
    lines, file = _parse_lines_and_file("tail", args)
    return Tail(_PARSER_TOKEN, file=file, lines=lines)


def _parse_wc(args: Sequence[str]) -> SafeCommand:
    flags, positional = _split_flags(args)
    if not positional:
        raise ParseRejected("wc requires a file argument")
    return Wc(_PARSER_TOKEN, file=positional[-1], flags=flags)


def _parse_git_log(args: Sequence[str]) -> GitSubcommand:
    max_count: Optional[int] = None
    files: List[str] = []
    i = 0
    while i < len(args):
        if args[i] == "-n" and i + 1 < len(args):
            max_count = _parse_count("git log", args[i + 1])
            i += 2
        else:
            files.append(args[i])
            i += 1
    return GitLog(_PARSER_TOKEN, max_count=max_count, files=files)


def _parse_git(args: Sequence[str]) -> SafeCommand:
    if not args:
        raise ParseRejected("git requires a subcommand")

    sub, rest = args[0], args[1:]
    if sub == "status":
        subcommand: GitSubcommand = GitStatus(_PARSER_TOKEN)
    elif sub == "diff":
        subcommand = GitDiff(_PARSER_TOKEN, files=rest)
    elif sub == "log":
        subcommand = _parse_git_log(rest)
    elif sub == "branch":
        subcommand = GitBranch(_PARSER_TOKEN, list=True)
    elif sub == "show":
        subcommand = GitShow(_PARSER_TOKEN, commit=rest[0] if rest else None)
    else:
        raise ParseRejected(f"git subcommand '{sub}' is not allowed")
    return Git(_PARSER_TOKEN, subcommand=subcommand)


def _parse_uname(args: Sequence[str]) -> SafeCommand:
    return Uname(_PARSER_TOKEN, flags=args)


def _parse_whoami(args: Sequence[str]) -> SafeCommand:
    return Whoami(_PARSER_TOKEN)


def _parse_hostname(args: Sequence[str]) -> SafeCommand:
    return Hostname(_PARSER_TOKEN)


def _parse_date(args: Sequence[str]) -> SafeCommand:
    return Date(_PARSER_TOKEN)


def _parse_ps(args: Sequence[str]) -> SafeCommand:
    return Ps(_PARSER_TOKEN, flags=args)


def _parse_node(args: Sequence[str]) -> SafeCommand:
    return Node(_PARSER_TOKEN, args=args)


def _parse_npm(args: Sequence[str]) -> SafeCommand:
    if not args:
        raise ParseRejected("npm requires a subcommand")
    return Npm(_PARSER_TOKEN, subcommand=args[0], args=args[1:])


def _parse_cargo(args: Sequence[str]) -> SafeCommand:
    if not args:
        raise ParseRejected("cargo requires a subcommand")
    return Cargo(_PARSER_TOKEN, subcommand=args[0], args=args[1:])


def _parse_python(args: Sequence[str]) -> SafeCommand:
    return Python(_PARSER_TOKEN, args=args)


# ---------------------------------------------------------------------------
# Dispatch table: first token → sub-parser
# ---------------------------------------------------------------------------

_PARSERS: Dict[str, Callable[[Sequence[str]], SafeCommand]] = {
    "ls": _parse_ls,
    "pwd": _parse_pwd,
    "cat": _parse_cat,
    "echo": _parse_echo,
    "grep": _parse_grep,
    "head": _parse_head,
    "tail": _parse_tail,
    "wc": _parse_wc,
    "git": _parse_git,
    "uname": _parse_uname,
    "whoami": _parse_whoami,
    "hostname": _parse_hostname,
    "date": _parse_date,
    "ps": _parse_ps,
    "node": _parse_node,
    "npm": _parse_npm,
    "cargo": _parse_cargo,
    "python": _parse_python,
    "python3": _parse_python,
}

# DENYLIST key when it differs from the command name
_POLICY_ALIASES: Dict[str, str] = {"python3": "python"}

ALLOWED_COMMANDS: Tuple[str, ...] = tuple(_PARSERS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse(command: str) -> SafeCommand:
    """
    Classify an untrusted command line.

    Raises
    ------
    InjectionDetected
        The line contains a shell metacharacter (checked before tokenizing).
    ParseRejected
        Empty line, binary not in the allow-list, missing argument, or a
        denied flag / subcommand.
    """
    command = command.strip()

    found = next((c for c in command if c in SHELL_METACHARACTERS), None)
    if found is not None:
        logger.warning("Rejected metacharacter %r", found)
        raise InjectionDetected(found, command)

    parts = command.split()
    if not parts:
        raise ParseRejected("Empty command", command)

    name, args = parts[0], parts[1:]
    sub_parser = _PARSERS.get(name)
    if sub_parser is None:
        logger.warning("Rejected command not in allow-list")
        raise ParseRejected(
            f"Command '{name}' is not in the allow-list. For security, only "
            f"specific commands are allowed: {', '.join(ALLOWED_COMMANDS)}",
            command,
        )

    violation = find_violation(_POLICY_ALIASES.get(name, name), args)
    if violation:
        logger.warning("Rejected denied capability of %s", name)
        raise ParseRejected(violation, command)

    try:
        return sub_parser(args)
    except ParseRejected as e:
        if e.command is None:
            e.command = command
        raise


def execute(cmd: SafeCommand, cwd: Optional[str | PathLike] = None) -> CommandResult:
    """
    Spawn *cmd* without a shell and wait for it to exit.

    There is no timeout; callers needing one must run this off-thread and be
    ready to terminate the child themselves.
    """
    if not isinstance(cmd, SafeCommand):
        raise TypeError(f"execute() expects a SafeCommand, got {type(cmd).__name__}")

    argv = cmd.to_argv()
    # arguments may carry secrets; only the binary is logged
    logger.info("Executing %s with %d argument(s) (cwd=%s)", argv[0], len(argv) - 1, cwd or ".")
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            stdin=subprocess.DEVNULL,
            shell=False,
        )
    except (OSError, ValueError) as e:
        logger.warning("Failed to execute %s: %s", argv[0], e)
        raise ExecutionError(f"Failed to execute command: {e}") from e

    # negative return codes mean "killed by signal"
    exit_code = proc.returncode if proc.returncode >= 0 else -1
    return CommandResult(
        stdout=proc.stdout.decode("utf-8", errors="replace"),
        stderr=proc.stderr.decode("utf-8", errors="replace"),
        exit_code=exit_code,
    )


def run_command(command: str, cwd: Optional[str | PathLike] = None) -> CommandResult:
    """Parse *command* then execute it; the single gate in front of any spawn."""
    return execute(parse(command), cwd)
