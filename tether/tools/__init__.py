"""
tether.tools
────────────
• Discovers tool packages under `tether.tools.*`.
• Registers each as a `ToolEntry` (metadata + permissions).
• Exposes sync/async dispatch helpers for the agent dispatcher.
"""

from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Dict, List, Optional

from tether.logger import get_logger

from .models import ToolDescription, ToolEntry
from .permissions import is_tool_allowed

logger = get_logger("tools")


# ────────────────────────────────────────────────────────────────────────────────
# Registry class
# ────────────────────────────────────────────────────────────────────────────────


class ToolRegistry:
    """Singleton‑style registry that holds all discovered tools."""

    def __init__(self) -> None:
        self.entries: Dict[str, ToolEntry] = {}

    # ------------------------------------------------------------------ #
    # Discovery
    # ------------------------------------------------------------------ #

    def discover_all(self) -> None:
        """
        Walk `tether.tools.*` sub‑packages and register any module exposing
        `describe_tool()`.  Respects prefs whitelist/blacklist.
        """
        tool_root = Path(__file__).parent
        self.entries.clear()

        for _, name, ispkg in pkgutil.iter_modules([str(tool_root)]):
            if not ispkg:
                continue

            module_path = f"tether.tools.{name}"
            try:
                mod = importlib.import_module(module_path)
                describe = getattr(mod, "describe_tool", None)
                if not describe:
                    continue

                desc_data = describe()
                desc = ToolDescription(
                    name=name,
                    module=module_path,
                    description=desc_data.get("description"),
                    allowed_commands=desc_data.get("allowed_commands", []),
                    examples=desc_data.get("examples", []),
                )
                allowed, reason = is_tool_allowed(name)
                self.entries[name] = ToolEntry(tool=desc, allowed=allowed, reason=reason)

            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to load tool '%s': %s", name, exc)
                self.entries[name] = ToolEntry(
                    tool=ToolDescription(name=name, module=module_path),
                    allowed=False,
                    reason=str(exc),
                )

    # ------------------------------------------------------------------ #
    # Lookup helpers
    # ------------------------------------------------------------------ #

    def get(self, name: str) -> Optional[ToolEntry]:
        if not self.entries:
            self.discover_all()
        return self.entries.get(name)

    def list(self) -> List[ToolEntry]:
        if not self.entries:
            self.discover_all()
        return list(self.entries.values())

    # ------------------------------------------------------------------ #
    # Dispatch helpers
    # ------------------------------------------------------------------ #

    def _allowed_entry(self, name: str) -> ToolEntry:
        entry = self.get(name)
        if not entry or not entry.allowed:
            logger.warning("Refused dispatch of tool '%s'", name)
            raise RuntimeError(
                f"Tool '{name}' is not allowed: {entry.reason if entry else 'Not found'}"
            )
        return entry

    def dispatch(self, name: str, input_str: str) -> dict:
        """Run tool synchronously and return its `ToolResponse` dict."""
        return self._allowed_entry(name).run(input_str)

    async def dispatch_async(self, name: str, input_str: str) -> dict:
        """
        Run the same invocation on a worker thread.

        There is no timeout: a spawned command runs until it exits.
        """
        return await self._allowed_entry(name).run_async(input_str)


# ---------------------------------------------------------------------------
# Singleton instance
# ---------------------------------------------------------------------------

tool_registry = ToolRegistry()
