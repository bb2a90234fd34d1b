# tether/tools/toolkit.py
from typing import Any, Dict, Optional

from pydantic import BaseModel

from tether import secrets
from tether.errors import (
    AccessDenied,
    ExecutionError,
    FilesystemError,
    InjectionDetected,
    ParseRejected,
    TetherError,
    TraversalDetected,
)

# most specific first
_REASONS = (
    (InjectionDetected, "injection"),
    (ParseRejected, "rejected"),
    (TraversalDetected, "traversal"),
    (AccessDenied, "denied"),
    (FilesystemError, "filesystem"),
    (ExecutionError, "execution"),
)


class ToolResponse(BaseModel):
    """
    A standardized response format for all tether tools.

    Attributes:
        success (bool): Whether the tool execution was successful.
        stdout (Optional[str]): Standard output from the tool, if any.
        stderr (Optional[str]): Standard error output, if any.
        returncode (Optional[int]): Exit code of the spawned process, if applicable.
        error (Optional[str]): Error message, if execution failed.
        reason (Optional[str]): Machine-readable reason for failure
            (e.g., 'mismatch', 'invalid', 'injection', 'traversal', 'denied').
        metadata (dict): Extra structured output, e.g. secret findings.
    """

    success: bool
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    returncode: Optional[int] = None
    error: Optional[str] = None
    reason: Optional[str] = None
    metadata: Dict[str, Any] = {}


def validate_invocation(
    invoked_tool_name: str, expected_tool_name: str
) -> Optional[ToolResponse]:
    """
    Ensure that the tool being executed matches the registered name for the tool.

    Args:
        invoked_tool_name (str): The name provided in the tool call.
        expected_tool_name (str): The name the tool expects.

    Returns:
        Optional[ToolResponse]: A failure response if names do not match; otherwise None.
    """
    if invoked_tool_name != expected_tool_name:
        return ToolResponse(
            success=False,
            reason="mismatch",
            error=f"Mismatched tool invocation: expected '{expected_tool_name}', got '{invoked_tool_name}'",
        )
    return None


def require_field(input: dict, key: str = "command") -> Optional[ToolResponse]:
    """
    Validate that *key* is present and a non-empty string in the tool input.

    Args:
        input (dict): The dictionary passed into run_tool().
        key (str): The required key.

    Returns:
        Optional[ToolResponse]: A failure response if the key is missing or empty; otherwise None.
    """
    value = input.get(key)
    if not isinstance(value, str) or not value.strip():
        return ToolResponse(
            success=False, reason="invalid", error=f"Missing '{key}' in tool input."
        )
    return None


def optional_field(input: dict, key: str) -> Optional[ToolResponse]:
    """
    Validate that *key*, when present and not null, is a string.

    Returns:
        Optional[ToolResponse]: A failure response for any other type; otherwise None.
    """
    value = input.get(key)
    if value is not None and not isinstance(value, str):
        return ToolResponse(
            success=False,
            reason="invalid",
            error=f"'{key}' must be a string, got {type(value).__name__}.",
        )
    return None


def error_response(exc: TetherError) -> ToolResponse:
    """Turn a tether exception into a failed response with a machine-readable reason."""
    reason = next((tag for cls, tag in _REASONS if isinstance(exc, cls)), "error")
    return ToolResponse(success=False, reason=reason, error=str(exc))


def redact_output(response: ToolResponse) -> ToolResponse:
    """
    Pass ``stdout``/``stderr`` through the secret scanner.

    Findings (type, line, preview) land in ``metadata["secrets"]``.  A no-op
    when ``secrets.redact_tool_output`` is false.
    """
    settings = secrets.load_settings()
    if not settings.redact_tool_output:
        return response

    (stdout, stderr), findings = secrets.redact_all(
        [response.stdout, response.stderr], settings
    )
    metadata = dict(response.metadata)
    if findings:
        metadata["secrets"] = [f.model_dump() for f in findings]
    return response.model_copy(update={"stdout": stdout, "stderr": stderr, "metadata": metadata})
