"""Sandbox context, sandbox guard and path contract.

Both checks are pure: they never touch the sandbox filesystem. Tools call
``guard`` first and return its result unchanged when it is not None.
"""

import logging
import posixpath

from pydantic import BaseModel, ConfigDict

from toolkernel.exceptions import ErrorCodes
from toolkernel.utils.responses import ToolResult, create_error_response

logger = logging.getLogger(__name__)

MISSING_SANDBOX_MESSAGE = (
    "This operation requires a sandbox environment. "
    "Sandbox is not available for this conversation."
)


class SandboxContext(BaseModel):
    """Identifies the sandbox a tool call runs against.

    Created per agent turn by the orchestrator; the kernel only validates it.
    """

    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    sandbox_id: str | None = None
    user_id: str | None = None


def is_absolute(path: str) -> bool:
    """Whether ``path`` is an absolute sandbox (POSIX) path."""
    return bool(path) and path.startswith("/")


def normalize_path(path: str) -> str:
    """Collapse ``.``/``..`` segments and duplicate separators."""
    return posixpath.normpath(path)


def check_sandbox(context: SandboxContext) -> ToolResult | None:
    """Reject the call when no sandbox id is present."""
    if context.sandbox_id:
        return None

    logger.warning(f"Tool call {context.tool_call_id} attempted without sandbox context")
    return create_error_response(
        error=ErrorCodes.MISSING_SANDBOX,
        message=MISSING_SANDBOX_MESSAGE,
        technical_details={"error": "Sandbox context required - sandboxId is missing"},
    )


def check_absolute(path: str, field: str = "path") -> ToolResult | None:
    """Reject relative paths."""
    if is_absolute(path):
        return None

    return create_error_response(
        error=ErrorCodes.INVALID_PATH,
        message=f"Path must be absolute: {path}",
        technical_details={"error": "Path must be absolute", "field": field, "provided_path": path},
    )


def guard(context: SandboxContext, **paths: str | None) -> ToolResult | None:
    """Run the sandbox guard, then the path contract for every given path.

    Args:
        context: Context of the current tool call
        **paths: Path arguments by parameter name; None values are skipped

    Returns:
        Error result for the first failed check, or None if all pass

    Example:
        >>> error = guard(context, file_path="/workspace/a.txt")
        >>> if error is not None:
        ...     return error
    """
    error = check_sandbox(context)
    if error is not None:
        return error

    for field, path in paths.items():
        if path is None:
            continue
        error = check_absolute(path, field)
        if error is not None:
            return error

    return None
