# tether/tools/shell/__init__.py
import os

from tether.commands import ALLOWED_COMMANDS, run_command
from tether.errors import FilesystemError, TetherError
from tether.logger import get_logger
from tether.paths import validate_path
from tether.tools.toolkit import (
    ToolResponse,
    error_response,
    optional_field,
    redact_output,
    require_field,
    validate_invocation,
)

TOOL_NAME = "shell"  # Single source of truth
logger = get_logger(f"tools.{TOOL_NAME}")


def describe_tool() -> dict:
    return {
        "name": TOOL_NAME,
        "description": (
            "Run one allow-listed command without a shell. Pipes, redirection, "
            "chaining and substitution are rejected."
        ),
        "allowed_commands": list(ALLOWED_COMMANDS),
        "examples": [
            '{"command": "ls -la"}',
            '{"command": "git log -n 5", "working_directory": "~/project"}',
        ],
    }


def run_tool(input: dict, invoked_tool_name: str = TOOL_NAME) -> dict:
    """
    Parse and execute a command, with tool name validation and path
    containment of the working directory.
    """
    mismatch = validate_invocation(invoked_tool_name, TOOL_NAME)
    if mismatch:
        return mismatch.model_dump()

    invalid = require_field(input, "command") or optional_field(input, "working_directory")
    if invalid:
        return invalid.model_dump()

    command = input["command"].strip()
    workdir = input.get("working_directory")

    try:
        cwd = None
        if workdir:
            cwd = validate_path(workdir)
            if not os.path.isdir(cwd):
                raise FilesystemError(f"Working directory is not a directory: {cwd}", cwd)

        logger.info(f"[{TOOL_NAME}] Running command in {cwd or '.'}")
        result = run_command(command, cwd)
    except TetherError as e:
        return error_response(e).model_dump()

    response = ToolResponse(
        success=True,
        stdout=result.stdout.strip(),
        stderr=result.stderr.strip(),
        returncode=result.exit_code,
    )
    return redact_output(response).model_dump()
