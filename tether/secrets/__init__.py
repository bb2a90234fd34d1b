# tether/secrets/__init__.py
"""
tether.secrets
==============

Credential detection and redaction for text leaving the machine (command
output, file contents).

Three ordered passes run over the content line by line:

1. provider patterns, custom patterns, then the generic hex / base64 shapes
   (the last two gated by entropy);
2. ``keyword = value`` assignments, where only the value is the candidate;
3. a catch-all for any long, very high-entropy run.

A candidate equal to, or contained in, an already recorded secret is skipped,
so a broad late pattern cannot re-report part of a specific early match.
Every accepted secret is replaced throughout the *whole* content by
``[REDACTED_<TYPE>]``.

Detection is heuristic: a clean scan lowers the risk of leaking a credential,
it does not rule it out.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import Iterator, List, Optional, Pattern, Sequence, Set, Tuple

from tether.logger import get_logger
from tether.preferences import prefs

from .models import CustomPattern, ScanResult, SecretFinding, SecretsSettings
from .patterns import (
    CATCH_ALL_TEMPLATE,
    CATCH_ALL_TYPE,
    GENERIC_PATTERNS,
    KEYWORD_TEMPLATE,
    KEYWORD_TYPE,
    PROVIDER_PATTERNS,
)

__all__ = [
    "ScanResult",
    "SecretFinding",
    "SecretScanner",
    "SecretsSettings",
    "is_high_entropy",
    "load_settings",
    "redact_all",
    "scan",
    "shannon_entropy",
]

logger = get_logger("secrets")

_PREVIEW_CHARS = 10


# --------------------------------------------------------------------------- #
# Entropy
# --------------------------------------------------------------------------- #
def shannon_entropy(s: str) -> float:
    """Bits per character of *s*; ``0.0`` for the empty string."""
    if not s:
        return 0.0
    n = len(s)
    return -sum((c / n) * math.log2(c / n) for c in Counter(s).values())


def is_high_entropy(s: str, min_length: int, threshold: float) -> bool:
    return len(s) >= min_length and shannon_entropy(s) >= threshold


# --------------------------------------------------------------------------- #
# Scanner
# --------------------------------------------------------------------------- #
def _lines(content: str) -> Iterator[Tuple[int, str]]:
    """1-based line numbers; ``\\n`` separated with an optional trailing ``\\r``."""
    for number, line in enumerate(content.split("\n"), start=1):
        yield number, line[:-1] if line.endswith("\r") else line


def _preview(secret: str) -> str:
    if len(secret) > _PREVIEW_CHARS:
        return f"{secret[:_PREVIEW_CHARS]}..."
    return secret


class SecretScanner:
    """
    Stateless scanner bound to one pattern/threshold configuration.

    Safe to share between threads: ``scan`` keeps all per-call state local.
    """

    def __init__(self, settings: Optional[SecretsSettings] = None):
        self.settings = settings or SecretsSettings()
        s = self.settings

        self._specific: List[Tuple[Pattern[str], str]] = [
            (re.compile(rx), tag) for rx, tag in PROVIDER_PATTERNS
        ]
        self._specific += [self._compile_custom(p) for p in s.custom_patterns]
        self._generic: List[Tuple[Pattern[str], str]] = [
            (re.compile(rx), tag) for rx, tag in GENERIC_PATTERNS
        ]
        self._keyword = re.compile(KEYWORD_TEMPLATE.format(min_len=s.keyword_min_length))
        self._catch_all = re.compile(CATCH_ALL_TEMPLATE.format(min_len=s.catch_all_min_length))

    @staticmethod
    def _compile_custom(custom: CustomPattern) -> Tuple[Pattern[str], str]:
        return re.compile(custom.pattern), custom.name.lower()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def scan(self, content: str) -> ScanResult:
        s = self.settings
        findings: List[SecretFinding] = []
        found: Set[str] = set()
        redacted = content
        allowlist = set(s.allowlist)

        def accept(secret: str, secret_type: str, line: int) -> None:
            nonlocal redacted
            found.add(secret)
            findings.append(
                SecretFinding(secret_type=secret_type, line=line, preview=_preview(secret))
            )
            redacted = redacted.replace(secret, f"[REDACTED_{secret_type.upper()}]")
            logger.info("Redacted %s on line %d", secret_type, line)

        def seen(candidate: str) -> bool:
            return (
                not candidate
                or candidate in allowlist
                or any(candidate in existing for existing in found)
            )

        # Pass 1: specific, then entropy-gated generic shapes
        pass_one = [(p, t, False) for p, t in self._specific]
        pass_one += [(p, t, True) for p, t in self._generic]
        for pattern, secret_type, gated in pass_one:
            for line_no, line in _lines(content):
                for match in pattern.finditer(line):
                    text = match.group(0)
                    if seen(text):
                        continue
                    if gated and not is_high_entropy(
                        text, s.generic_min_length, s.generic_min_entropy
                    ):
                        continue
                    accept(text, secret_type, line_no)

        # Pass 2: keyword = value
        for line_no, line in _lines(content):
            for match in self._keyword.finditer(line):
                value = match.group(2)
                if seen(value):
                    continue
                if not is_high_entropy(value, s.keyword_min_length, s.keyword_min_entropy):
                    continue
                accept(value, KEYWORD_TYPE, line_no)

        # Pass 3: anything long and random-looking
        for line_no, line in _lines(content):
            for match in self._catch_all.finditer(line):
                text = match.group(0)
                if seen(text):
                    continue
                if is_high_entropy(text, s.catch_all_min_length, s.catch_all_min_entropy):
                    accept(text, CATCH_ALL_TYPE, line_no)

        return ScanResult(
            has_secrets=bool(findings),
            findings=findings,
            redacted_content=redacted,
        )


# --------------------------------------------------------------------------- #
# Module-level helpers
# --------------------------------------------------------------------------- #
def load_settings() -> SecretsSettings:
    """``secrets:`` preferences section, or defaults when absent/invalid."""
    section = prefs.get_section("secrets", cast="obj")
    return section if isinstance(section, SecretsSettings) else SecretsSettings()


def scan(content: str, settings: Optional[SecretsSettings] = None) -> ScanResult:
    """Scan *content* with *settings* (defaults to the user's preferences)."""
    return SecretScanner(settings or load_settings()).scan(content)


def redact_all(texts: Sequence[Optional[str]], settings: Optional[SecretsSettings] = None):
    """
    Scan several texts with one scanner.

    Returns the redacted texts (``None`` passes through) and the combined
    findings.
    """
    scanner = SecretScanner(settings or load_settings())
    out: List[Optional[str]] = []
    findings: List[SecretFinding] = []
    for text in texts:
        if text is None:
            out.append(None)
            continue
        result = scanner.scan(text)
        out.append(result.redacted_content)
        findings.extend(result.findings)
    return out, findings
