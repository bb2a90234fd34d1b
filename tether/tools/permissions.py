# tether/tools/permissions.py
from typing import Tuple

from tether.preferences import prefs

from .models import ToolsSettings


def load_settings() -> ToolsSettings:
    section = prefs.get_section("tools", cast="obj")
    return section if isinstance(section, ToolsSettings) else ToolsSettings()


def is_tool_allowed(name: str) -> Tuple[bool, str]:
    """
    Decide if a tool package may be dispatched.
    Returns (allowed: bool, reason: str).
    """
    settings = prefs.get_section("tools", cast="obj")
    if not isinstance(settings, ToolsSettings):
        return False, "Invalid tools section in preferences"

    if settings.mode == "whitelist":
        if name in settings.whitelist:
            return True, "Whitelisted"
        return False, f"'{name}' is not whitelisted"

    if name in settings.blacklist:
        return False, f"'{name}' is blacklisted"
    return True, "Allowed"
