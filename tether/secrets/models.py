# tether/secrets/models.py
"""
Secret-scanning data models (Pydantic v2).

• ``SecretFinding`` / ``ScanResult`` are produced fresh per scan call.
• ``SecretsSettings`` is the ``secrets:`` section of preferences.yml; every
  threshold the scanner uses lives here rather than in code.
"""

from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SecretFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    secret_type: str
    line: int  # 1-based
    preview: str  # first 10 chars + "..."


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_secrets: bool
    findings: List[SecretFinding] = Field(default_factory=list)
    redacted_content: str


class CustomPattern(BaseModel):
    """A user-supplied high-confidence pattern (``name`` becomes the type tag)."""

    name: str
    pattern: str

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid regex {v!r}: {e}") from e
        return v


class SecretsSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # hex_secret / base64_secret entropy gate
    generic_min_length: int = 20
    generic_min_entropy: float = 3.5
    # value captured after `password=`, `api_key:` …
    keyword_min_length: int = 16
    keyword_min_entropy: float = 3.5
    # unknown shapes
    catch_all_min_length: int = 20
    catch_all_min_entropy: float = 4.0

    allowlist: List[str] = Field(default_factory=list)
    custom_patterns: List[CustomPattern] = Field(default_factory=list)
    redact_tool_output: bool = True
