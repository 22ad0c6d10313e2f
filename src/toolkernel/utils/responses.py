"""Shared response helpers for tools.

Every tool returns a ``ToolResult``. Tools should build results with these
helpers rather than constructing the model by hand so that failure results
never carry a payload and always carry an error code.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from toolkernel.models import ToolData


class ToolResult(BaseModel):
    """Immutable result of a tool invocation.

    Attributes:
        success: Whether the operation completed
        data: Tool-specific payload (success only)
        user_feedback: Human-readable summary, never a stack trace
        preview_refresh_needed: True when the sandbox contents changed
        changed_files: Absolute sandbox paths written by the tool
        error: Machine-readable error code (failure only)
        technical_details: Diagnostic payload for logs and the orchestrator
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    data: ToolData | None = None
    user_feedback: str
    preview_refresh_needed: bool = False
    changed_files: list[str] | None = None
    error: str | None = None
    technical_details: dict[str, Any] | None = None

    @model_validator(mode="after")
    def check_shape(self) -> "ToolResult":
        """A result is either a success with no error code or a failure with no data."""
        if self.success and self.error is not None:
            raise ValueError("Successful results cannot carry an error code")
        if not self.success:
            if self.data is not None:
                raise ValueError("Failed results cannot carry data")
            if not self.error:
                raise ValueError("Failed results must carry an error code")
        return self

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible representation for transport and logging."""
        return self.model_dump(mode="json", exclude_none=True)


def create_success_response(
    data: BaseModel | None,
    message: str = "",
    *,
    preview_refresh_needed: bool = False,
    changed_files: list[str] | None = None,
    technical_details: dict[str, Any] | None = None,
) -> ToolResult:
    """Create standardized success response.

    Args:
        data: Tool payload variant
        message: User-facing summary
        preview_refresh_needed: Whether the sandbox contents changed
        changed_files: Paths written by the tool
        technical_details: Optional diagnostic payload

    Returns:
        ToolResult with success=True

    Example:
        >>> result = create_success_response(listing, "Listed 3 item(s).")
        >>> result.success
        True
    """
    return ToolResult(
        success=True,
        data=data,
        user_feedback=message,
        preview_refresh_needed=preview_refresh_needed,
        changed_files=changed_files,
        technical_details=technical_details,
    )


def create_error_response(
    error: str,
    message: str,
    technical_details: dict[str, Any] | None = None,
) -> ToolResult:
    """Create standardized error response.

    Tools use this when they encounter errors rather than raising exceptions.

    Args:
        error: Machine-readable error code (see ``ErrorCodes``)
        message: Human-friendly error message
        technical_details: Optional diagnostic payload

    Returns:
        ToolResult with success=False

    Example:
        >>> result = create_error_response("not_found", "File not found: /a.txt")
        >>> result.error
        'not_found'
    """
    return ToolResult(
        success=False,
        user_feedback=message,
        error=error,
        technical_details=technical_details,
    )
