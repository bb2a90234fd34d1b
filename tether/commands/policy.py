# tether/commands/policy.py
"""
Security policy for the command gate, kept in one place so it can be audited.

• ``SHELL_METACHARACTERS`` are rejected before any tokenization.
• ``DENYLIST`` maps a tool name to the flags / subcommands that are refused
  even though the binary itself is allowed (inline code execution, build
  scripts, arbitrary file writes).
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

# Command chaining, substitution, redirection, subshells and line breaks.
SHELL_METACHARACTERS: Tuple[str, ...] = (
    ";", "|", "&", "$", "`", "<", ">", "(", ")", "\n", "\r",
)


class ToolPolicy(BaseModel):
    """Denied capabilities for one allowed binary."""

    model_config = ConfigDict(frozen=True)

    reason: str
    denied_flags: Tuple[str, ...] = ()
    denied_subcommands: Tuple[str, ...] = ()
    # the first non-flag token is a subcommand
    has_subcommand: bool = False
    # `-pe` is `-p -e`: check every letter of single-dash clusters
    cluster_short_flags: bool = False


DENYLIST: Dict[str, ToolPolicy] = {
    "node": ToolPolicy(
        reason="can execute arbitrary code. Use node with script files only",
        denied_flags=("-e", "--eval", "-p", "--print", "-c", "--check"),
        cluster_short_flags=True,
    ),
    "npm": ToolPolicy(
        reason=(
            "can execute arbitrary code. Use npm with read-only commands "
            "like 'list', 'view', 'outdated'"
        ),
        denied_flags=("-c", "--call"),
        denied_subcommands=(
            "exec", "x",
            "run-script", "run", "rum", "urn",
            "start", "stop", "restart", "test",
        ),
        has_subcommand=True,
    ),
    "cargo": ToolPolicy(
        reason=(
            "can execute build.rs scripts with arbitrary code. Use cargo with "
            "read-only commands like 'check', 'search', 'tree'"
        ),
        denied_subcommands=("build", "b", "run", "r", "test", "t", "bench", "install"),
        has_subcommand=True,
    ),
    "python": ToolPolicy(
        reason="can execute arbitrary code. Use python with script files only",
        denied_flags=("-c", "-m"),
        cluster_short_flags=True,
    ),
    "git": ToolPolicy(
        reason="can write files or run external programs",
        denied_flags=("--output", "--ext-diff"),
        has_subcommand=True,
    ),
}


def _matches_flag(token: str, flag: str) -> bool:
    return token == flag or token.startswith(f"{flag}=")


def _in_short_cluster(token: str, flag: str) -> bool:
    """True if *token* is a single-dash cluster such as ``-Bc`` containing *flag*."""
    if len(flag) != 2 or not token.startswith("-") or token.startswith("--"):
        return False
    return len(token) > 2 and flag[1] in token[1:]


def find_violation(tool: str, args: Sequence[str]) -> Optional[str]:
    """
    Return a human-readable reason if *args* use a denied capability of *tool*,
    or ``None`` when the invocation is acceptable.
    """
    policy = DENYLIST.get(tool)
    if policy is None:
        return None

    if policy.has_subcommand:
        # `npm --silent run x` still runs `run`
        sub = next((a for a in args if not a.startswith("-")), None)
        if sub in policy.denied_subcommands:
            return f"{tool} subcommand '{sub}' is not allowed: {policy.reason}"

    # tokens after the script path belong to the script
    interpreter_opts = True
    for arg in args:
        if not arg.startswith("-"):
            interpreter_opts = False
        for flag in policy.denied_flags:
            if _matches_flag(arg, flag) or (
                policy.cluster_short_flags
                and interpreter_opts
                and _in_short_cluster(arg, flag)
            ):
                return f"{tool} flag '{arg}' is not allowed: {policy.reason}"
    return None
