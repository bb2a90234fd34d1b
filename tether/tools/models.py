# tether/tools/models.py
"""Registry entries and the ``tools:`` preferences section."""

import asyncio
import importlib
import json
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from tether.logger import get_logger

logger = get_logger("tools")


class FilesSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    max_read_bytes: int = Field(default=1_000_000, gt=0)


class ToolsSettings(BaseModel):
    """`tools:` section of preferences.yml."""

    model_config = ConfigDict(extra="ignore")

    mode: Literal["blacklist", "whitelist"] = "blacklist"
    whitelist: List[str] = []
    blacklist: List[str] = []
    files: FilesSettings = FilesSettings()


class ToolDescription(BaseModel):
    name: str
    module: str
    description: Optional[str] = None
    allowed_commands: List[str] = []
    examples: List[str] = []


class ToolEntry(BaseModel):
    tool: ToolDescription
    allowed: bool
    reason: str

    # --------------------------------------------------------------
    # Public API
    # --------------------------------------------------------------
    def run(self, input_str: str) -> dict:
        """Synchronous invoke of the tool's ``run_tool``."""
        data = self._parse_input(input_str)
        logger.info("[tool] Running '%s'", self.tool.name)
        mod = importlib.import_module(self.tool.module)
        if not hasattr(mod, "run_tool"):
            raise RuntimeError(f"Tool '{self.tool.name}' missing run_tool()")
        return mod.run_tool(data, invoked_tool_name=self.tool.name)

    async def run_async(self, input_str: str) -> dict:
        return await asyncio.to_thread(self.run, input_str)

    # --------------------------------------------------------------
    # Internals
    # --------------------------------------------------------------
    @staticmethod
    def _parse_input(raw: str) -> dict:
        """JSON object input, or a bare string taken as ``{"command": raw}``."""
        val = raw.strip()
        if val.startswith("'") and val.endswith("'"):
            val = val[1:-1]
        try:
            parsed = json.loads(val)
        except ValueError:
            return {"command": raw.strip()}
        if not isinstance(parsed, dict):
            return {"command": raw.strip()}
        return parsed
