# tether/paths/models.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Targets that can run code or grant access when written to.
DEFAULT_PROTECTED: List[str] = [
    "*/.ssh/*",
    "*/.gnupg/*",
    "*/.aws/credentials",
    "*/.aws/config",
    "*/.netrc",
    "*/.bashrc",
    "*/.bash_profile",
    "*/.bash_login",
    "*/.profile",
    "*/.zshrc",
    "*/.zprofile",
    "*/.config/fish/config.fish",
    "*/.git/hooks/*",
    "*/.git/config",
]


class PathsSettings(BaseModel):
    """`paths:` section of preferences.yml."""

    model_config = ConfigDict(extra="ignore")

    # overrides $HOME as the default containment root
    allowed_base: Optional[str] = None
    # fnmatch patterns, matched against the canonical POSIX path
    protected: List[str] = Field(default_factory=lambda: list(DEFAULT_PROTECTED))
