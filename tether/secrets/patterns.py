# tether/secrets/patterns.py
"""Pattern tables for the secret scanner, in priority order."""

from __future__ import annotations

from typing import List, Tuple

# (regex, type tag). Order matters: a later pattern never re-reports text that
# an earlier one already covered.
PROVIDER_PATTERNS: List[Tuple[str, str]] = [
    # Anthropic before OpenAI: `sk-ant-…` also fits the generic `sk-…` shape
    (r"sk-ant-[a-zA-Z0-9-]{95}", "anthropic_key"),
    (r"sk-proj-[a-zA-Z0-9_-]{20,}", "openai_project_key"),
    (r"sk-[a-zA-Z0-9_-]{20,}", "openai_key"),
    (r"AKIA[0-9A-Z]{16}", "aws_access_key"),
    (r"(?i)aws(.{0,20})?['\"][0-9a-zA-Z/+]{40}['\"]", "aws_secret_key"),
    (r"ghp_[a-zA-Z0-9]{36}", "github_personal_token"),
    (r"gho_[a-zA-Z0-9]{36}", "github_oauth_token"),
    (r"ghs_[a-zA-Z0-9]{36}", "github_app_token"),
    (r"ghr_[a-zA-Z0-9]{36}", "github_refresh_token"),
    (r"xox[pboa]-[0-9]{10,13}-[0-9]{10,13}-[a-zA-Z0-9]{24,}", "slack_token"),
    (r"Bearer\s+[a-zA-Z0-9_\-\.=]{20,}", "bearer_token"),
    (r"-----BEGIN (RSA|EC|DSA|OPENSSH|PGP) PRIVATE KEY-----", "private_key"),
    (r"eyJ[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}", "jwt_token"),
]

# Low-confidence shapes; only reported above the entropy gate.
GENERIC_PATTERNS: List[Tuple[str, str]] = [
    (r"\b[0-9a-f]{32,}\b", "hex_secret"),
    (r"\b[A-Za-z0-9+/]{20,}={0,2}\b", "base64_secret"),
]

KEYWORDS = (
    r"api[_-]?key|apikey|secret[_-]?key|auth[_-]?token|password|passwd|pwd"
    r"|access[_-]?token|bearer[_-]?token|client[_-]?secret"
)

# identifier, `=` or `:`, optionally quoted value; group 2 is the candidate
KEYWORD_TEMPLATE = (
    r"(?i)(" + KEYWORDS + r")\s*[=:]\s*['\"]?([a-zA-Z0-9_\-\.\/+]{{{min_len},}})['\"]?"
)
KEYWORD_TYPE = "keyword_secret"

CATCH_ALL_TEMPLATE = r"[a-zA-Z0-9_\-\.\/+]{{{min_len},}}"
CATCH_ALL_TYPE = "high_entropy_string"
