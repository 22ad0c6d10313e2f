"""Base class for kernel toolsets.

Toolsets group related tools with shared dependencies (settings, sandbox
backend, locks), avoiding global state and enabling dependency injection
for testing.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

from toolkernel.config.schema import KernelSettings
from toolkernel.context import SandboxContext, guard
from toolkernel.utils.responses import ToolResult, create_error_response, create_success_response

ToolCategory = Literal["file_system", "validation", "utility"]
SafetyLevel = Literal["safe", "potentially_destructive"]


class ToolExample(BaseModel):
    """Example invocation shown to the orchestrator."""

    description: str
    input: dict[str, Any]


class ToolMetadata(BaseModel):
    """Descriptive metadata attached to a tool at registration."""

    display_name: str
    category: ToolCategory = "file_system"
    safety_level: SafetyLevel = "safe"
    estimated_duration_ms: int = 1000
    timeout_seconds: float | None = Field(
        default=None, description="Overrides the registry default timeout"
    )
    examples: list[ToolExample] = Field(default_factory=list)


class KernelToolset(ABC):
    """Base class for kernel toolsets.

    Each tool is an async method taking a ``SandboxContext`` first and
    ``Annotated[..., Field(description=...)]`` parameters after it. The
    registry derives the tool's input model and description from that
    signature and docstring.

    Example:
        >>> class MyTools(KernelToolset):
        ...     def get_tools(self):
        ...         return [self.my_tool]
        ...
        ...     async def my_tool(self, context: SandboxContext, arg: str) -> ToolResult:
        ...         if error := self._guard(context):
        ...             return error
        ...         return self._create_success_response(None, f"Processed: {arg}")
    """

    def __init__(self, settings: KernelSettings):
        """Initialize toolset with configuration.

        Args:
            settings: Kernel settings
        """
        self.settings = settings

    @abstractmethod
    def get_tools(self) -> list[Callable]:
        """Get list of tool functions.

        Returns:
            List of bound async tool methods
        """
        pass

    def get_tool_metadata(self) -> dict[str, ToolMetadata]:
        """Metadata for this toolset's tools, keyed by tool name."""
        return {}

    def _guard(self, context: SandboxContext, **paths: str | None) -> ToolResult | None:
        """Sandbox guard plus path contract; returns an error result or None."""
        return guard(context, **paths)

    def _create_success_response(
        self, data: BaseModel | None, message: str = "", **kwargs: Any
    ) -> ToolResult:
        """Create standardized success response.

        Args:
            data: Tool payload variant
            message: User-facing summary
            **kwargs: preview_refresh_needed, changed_files, technical_details

        Returns:
            ToolResult with success=True
        """
        return create_success_response(data, message, **kwargs)

    def _create_error_response(
        self, error: str, message: str, technical_details: dict[str, Any] | None = None
    ) -> ToolResult:
        """Create standardized error response.

        Tools use this when they encounter errors rather than raising
        exceptions.

        Args:
            error: Machine-readable error code (see ``ErrorCodes``)
            message: Human-friendly error message
            technical_details: Optional diagnostic payload

        Returns:
            ToolResult with success=False
        """
        return create_error_response(error, message, technical_details)
