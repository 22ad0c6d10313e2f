"""Tool registry: the orchestrator-facing tool contract.

A tool is ``{name, input schema, execute(input, context) -> ToolResult}``.
Tools are plain async toolset methods; the registry derives the input model
from the method's annotated signature and the description from its
docstring, validates input, bounds execution with a timeout and records a
trace of every call.

The registry is an explicit value built at startup and passed to whoever
dispatches tool calls, so tests can build isolated registries.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from toolkernel.config.schema import KernelSettings
from toolkernel.context import SandboxContext
from toolkernel.exceptions import ToolErrorTypes, ToolExecutionError, ToolNotFoundError
from toolkernel.locks import PathLocks
from toolkernel.sandbox.base import CommandRunner, SandboxFilesystem
from toolkernel.tools import FileSystemTools, ShellTools, ValidationTools
from toolkernel.tools.toolset import KernelToolset, ToolCategory, ToolMetadata
from toolkernel.trace_logger import ToolTraceLogger
from toolkernel.utils.responses import ToolResult

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[ToolResult]]

# Parameters supplied by the registry, never by tool input
_RESERVED_PARAMETERS = ("self", "context")


def build_input_model(handler: ToolHandler) -> type[BaseModel]:
    """Build a pydantic input model from a tool's annotated signature.

    Unknown input fields are rejected.

    Example:
        >>> model = build_input_model(tools.read_file)
        >>> sorted(model.model_fields)
        ['absolute_path', 'limit', 'offset']
    """
    func = getattr(handler, "__func__", handler)
    hints = get_type_hints(func, include_extras=True)

    fields: dict[str, Any] = {}
    for name, param in inspect.signature(func).parameters.items():
        if name in _RESERVED_PARAMETERS:
            continue
        annotation = hints.get(name, Any)
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[name] = (annotation, default)

    model_name = "".join(part.title() for part in func.__name__.split("_")) + "Input"
    return create_model(model_name, __config__=ConfigDict(extra="forbid"), **fields)


def describe(handler: ToolHandler) -> str:
    """First docstring paragraph, joined onto one line."""
    doc = inspect.getdoc(handler) or ""
    first_paragraph = doc.split("\n\n", 1)[0]
    return " ".join(first_paragraph.split())


@dataclass
class ToolDefinition:
    """A registered tool."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler
    metadata: ToolMetadata

    @classmethod
    def from_handler(
        cls, handler: ToolHandler, metadata: ToolMetadata | None = None
    ) -> "ToolDefinition":
        name = handler.__name__
        return cls(
            name=name,
            description=describe(handler),
            input_model=build_input_model(handler),
            handler=handler,
            metadata=metadata or ToolMetadata(display_name=name),
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool input."""
        return self.input_model.model_json_schema()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
            **self.metadata.model_dump(),
        }


@dataclass
class ToolRegistry:
    """Registry of tools keyed by name.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register_toolset(FileSystemTools(settings, sandbox))
        >>> result = await registry.execute(
        ...     "read_file", {"absolute_path": "/workspace/a.txt"}, context
        ... )
    """

    default_timeout: float = 30.0
    trace_logger: ToolTraceLogger | None = None
    _tools: dict[str, ToolDefinition] = field(default_factory=dict, init=False, repr=False)

    def register(self, definition: ToolDefinition) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if not definition.name:
            raise ValueError("Tool name is required")
        if definition.name in self._tools:
            raise ValueError(f"Tool '{definition.name}' is already registered")

        self._tools[definition.name] = definition
        logger.info(
            f"Registered tool {definition.name} "
            f"(category={definition.metadata.category}, safety={definition.metadata.safety_level})"
        )

    def register_toolset(self, toolset: KernelToolset) -> list[str]:
        """Register every tool of a toolset with its metadata.

        Returns:
            Names of the registered tools
        """
        metadata = toolset.get_tool_metadata()
        names = []
        for handler in toolset.get_tools():
            definition = ToolDefinition.from_handler(handler, metadata.get(handler.__name__))
            self.register(definition)
            names.append(definition.name)
        return names

    def unregister(self, name: str) -> bool:
        """Remove a tool; returns whether it was registered."""
        was_registered = self._tools.pop(name, None) is not None
        if was_registered:
            logger.info(f"Unregistered tool {name}")
        return was_registered

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list_tools(self, category: ToolCategory | None = None) -> list[ToolDefinition]:
        """Registered tools in registration order, optionally filtered by category."""
        return [
            definition
            for definition in self._tools.values()
            if category is None or definition.metadata.category == category
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def execute(
        self, name: str, raw_input: dict[str, Any] | None, context: SandboxContext
    ) -> ToolResult:
        """Validate input and run a tool.

        Tool-level failures come back as ``ToolResult(success=False)``.

        Raises:
            ToolNotFoundError: Unknown tool name
            ToolExecutionError: Invalid input, timeout or an unexpected handler exception
        """
        raw_input = raw_input or {}
        start = time.perf_counter()

        try:
            result = await self._execute(name, raw_input, context)
        except ToolExecutionError as e:
            self._trace(name, raw_input, context, start, error=str(e), error_type=e.error_type)
            raise

        self._trace(name, raw_input, context, start, result=result)
        return result

    async def _execute(
        self, name: str, raw_input: dict[str, Any], context: SandboxContext
    ) -> ToolResult:
        definition = self._tools.get(name)
        if definition is None:
            logger.warning(f"Unknown tool requested: {name}")
            raise ToolNotFoundError(name, context.tool_call_id)

        try:
            validated = definition.input_model.model_validate(raw_input)
        except ValidationError as e:
            raise ToolExecutionError(
                name,
                context.tool_call_id,
                ToolErrorTypes.VALIDATION_ERROR,
                f"Invalid input for tool '{name}': {e}",
                details=e.errors(include_url=False, include_context=False),
                original_error=e,
            ) from e

        timeout = definition.metadata.timeout_seconds or self.default_timeout
        kwargs = {field_name: getattr(validated, field_name) for field_name in type(validated).model_fields}

        logger.info(
            f"Executing tool {name} (call={context.tool_call_id}, sandbox={context.sandbox_id})"
        )
        try:
            result = await asyncio.wait_for(definition.handler(context, **kwargs), timeout=timeout)
        except TimeoutError as e:
            logger.error(f"Tool {name} timed out after {timeout:g}s")
            raise ToolExecutionError(
                name,
                context.tool_call_id,
                ToolErrorTypes.TIMEOUT_ERROR,
                f"Tool execution timed out after {int(timeout * 1000)}ms",
                original_error=e,
            ) from e
        except Exception as e:
            logger.error(f"Tool {name} raised {type(e).__name__}: {e}")
            raise ToolExecutionError(
                name,
                context.tool_call_id,
                ToolErrorTypes.EXECUTION_ERROR,
                str(e) or type(e).__name__,
                original_error=e,
            ) from e

        if not isinstance(result, ToolResult):
            raise ToolExecutionError(
                name,
                context.tool_call_id,
                ToolErrorTypes.EXECUTION_ERROR,
                f"Tool '{name}' returned {type(result).__name__} instead of ToolResult",
            )

        if result.success:
            logger.info(f"Tool {name} completed")
        else:
            logger.info(f"Tool {name} failed: {result.error}")
        return result

    def _trace(
        self,
        name: str,
        raw_input: dict[str, Any],
        context: SandboxContext,
        start: float,
        result: ToolResult | None = None,
        error: str | None = None,
        error_type: str | None = None,
    ) -> None:
        if self.trace_logger is None:
            return
        self.trace_logger.log_execution(
            tool_name=name,
            tool_call_id=context.tool_call_id,
            sandbox_id=context.sandbox_id,
            user_id=context.user_id,
            tool_input=raw_input,
            success=result.success if result else None,
            error=result.error if result else error,
            error_type=error_type,
            changed_files=result.changed_files if result else None,
            duration_ms=(time.perf_counter() - start) * 1000,
        )


def build_default_registry(
    settings: KernelSettings,
    filesystem: SandboxFilesystem,
    runner: CommandRunner,
    locks: PathLocks | None = None,
) -> ToolRegistry:
    """Register every kernel toolset against one backend and one set of locks.

    Args:
        settings: Kernel settings
        filesystem: Sandbox filesystem backend
        runner: Sandbox command runner
        locks: Shared per-path locks (created if omitted)

    Returns:
        A populated ToolRegistry
    """
    trace_logger = None
    if settings.registry.trace_file:
        trace_logger = ToolTraceLogger(Path(settings.registry.trace_file))

    registry = ToolRegistry(
        default_timeout=settings.registry.default_timeout, trace_logger=trace_logger
    )
    locks = locks or PathLocks()
    registry.register_toolset(FileSystemTools(settings, filesystem, locks))
    registry.register_toolset(ValidationTools(settings, runner, filesystem))
    registry.register_toolset(ShellTools(settings, runner))
    return registry
