# tether/tools/scan/__init__.py
from tether import secrets
from tether.tools.toolkit import ToolResponse, validate_invocation

TOOL_NAME = "scan"


def describe_tool() -> dict:
    return {
        "name": TOOL_NAME,
        "description": "Detect and redact credentials in a block of text.",
        "examples": ['{"content": "OPENAI_API_KEY=sk-..."}'],
    }


def run_tool(input: dict, invoked_tool_name: str = TOOL_NAME) -> dict:
    mismatch = validate_invocation(invoked_tool_name, TOOL_NAME)
    if mismatch:
        return mismatch.model_dump()

    # bare (non-JSON) input arrives as {"command": ...}
    content = input.get("content", input.get("command"))
    if not isinstance(content, str):
        return ToolResponse(
            success=False, reason="invalid", error="Missing 'content' in tool input."
        ).model_dump()

    result = secrets.scan(content)
    return ToolResponse(
        success=True,
        stdout=result.redacted_content,
        metadata={
            "has_secrets": result.has_secrets,
            "secrets": [f.model_dump() for f in result.findings],
        },
    ).model_dump()
