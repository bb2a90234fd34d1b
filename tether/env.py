# tether/env.py
"""
tether.env
==========

Single source-of-truth for:

• User-level config root (``$TETHER_HOME``, default ``~/.tether``)
• Log directory and preferences file locations
• The caller's home directory (``$HOME``), required for tilde expansion and
  for the default allowed base of path validation
"""

from __future__ import annotations

import os
from pathlib import Path

from tether.errors import FilesystemError


# ──────────────────────────────────────────────────────────────
# user-level (~/.tether) helpers
# ──────────────────────────────────────────────────────────────
def get_user_root() -> Path:
    """Return $TETHER_HOME or ~/.tether (caller decides whether to create)."""
    custom = os.getenv("TETHER_HOME")
    return Path(custom).expanduser() if custom else Path("~/.tether").expanduser()


def _ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def get_logs_root() -> Path:
    """`<user root>/logs`, lazily created on first call."""
    return _ensure_dir(get_user_root() / "logs")


def get_preferences_path() -> Path:
    return get_user_root() / "preferences.yml"


# ──────────────────────────────────────────────────────────────
# home directory
# ──────────────────────────────────────────────────────────────
def get_home() -> Path:
    """
    Return ``$HOME`` as a path.

    Unlike :pyfunc:`os.path.expanduser` there is no fallback to the password
    database: an unset ``HOME`` is a hard error.
    """
    home = os.environ.get("HOME")
    if not home:
        raise FilesystemError("Could not determine home directory: HOME is not set")
    return Path(home)
