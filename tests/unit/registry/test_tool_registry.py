"""Unit tests for the tool registry."""

import asyncio
import json
from typing import Annotated

import pytest
from pydantic import Field

from tests.mocks.mock_runner import ScriptedRunner
from toolkernel.context import SandboxContext
from toolkernel.exceptions import ToolErrorTypes, ToolExecutionError, ToolNotFoundError
from toolkernel.registry import (
    ToolDefinition,
    ToolRegistry,
    build_default_registry,
    build_input_model,
    describe,
)
from toolkernel.tools.toolset import KernelToolset, ToolMetadata
from toolkernel.trace_logger import ToolTraceLogger
from toolkernel.utils.responses import ToolResult


class SampleTools(KernelToolset):
    """Toolset exercising each registry outcome."""

    def get_tools(self) -> list:
        return [self.greet, self.slow, self.explode, self.not_a_result]

    def get_tool_metadata(self) -> dict[str, ToolMetadata]:
        return {
            "greet": ToolMetadata(display_name="Greet", category="utility"),
            "slow": ToolMetadata(display_name="Slow", category="utility", timeout_seconds=0.01),
        }

    async def greet(
        self,
        context: SandboxContext,
        name: Annotated[str, Field(description="Who to greet")],
        times: Annotated[int, Field(ge=1, description="Repetitions")] = 1,
    ) -> ToolResult:
        """Greet someone.

        Longer explanation that is not part of the description.
        """
        if error := self._guard(context):
            return error
        return self._create_success_response(None, " ".join([f"Hello, {name}!"] * times))

    async def slow(self, context: SandboxContext) -> ToolResult:
        """Never finishes in time."""
        await asyncio.sleep(1)
        return self._create_success_response(None, "done")

    async def explode(self, context: SandboxContext) -> ToolResult:
        """Raises instead of returning a result."""
        raise RuntimeError("kaboom")

    async def not_a_result(self, context: SandboxContext) -> ToolResult:
        """Returns the wrong type."""
        return {"success": True}


@pytest.fixture
def sample_tools(kernel_settings):
    return SampleTools(kernel_settings)


@pytest.fixture
def registry(sample_tools):
    registry = ToolRegistry()
    registry.register_toolset(sample_tools)
    return registry


@pytest.mark.unit
@pytest.mark.registry
class TestToolDefinition:
    """Tests for deriving definitions from toolset methods."""

    def test_input_model_excludes_context(self, sample_tools):
        model = build_input_model(sample_tools.greet)

        assert model.__name__ == "GreetInput"
        assert set(model.model_fields) == {"name", "times"}
        assert model.model_fields["name"].is_required()
        assert model.model_fields["times"].default == 1

    def test_input_schema_carries_descriptions_and_constraints(self, sample_tools):
        schema = ToolDefinition.from_handler(sample_tools.greet).input_schema

        assert schema["required"] == ["name"]
        assert schema["properties"]["name"]["description"] == "Who to greet"
        assert schema["properties"]["times"]["minimum"] == 1
        assert schema["additionalProperties"] is False

    def test_description_is_first_paragraph(self, sample_tools):
        assert describe(sample_tools.greet) == "Greet someone."

    def test_default_metadata(self, sample_tools):
        definition = ToolDefinition.from_handler(sample_tools.explode)
        assert definition.metadata.display_name == "explode"
        assert definition.metadata.category == "file_system"

    def test_to_dict(self, sample_tools):
        data = ToolDefinition.from_handler(
            sample_tools.greet, ToolMetadata(display_name="Greet")
        ).to_dict()

        assert data["name"] == "greet"
        assert data["display_name"] == "Greet"
        assert "input_schema" in data


@pytest.mark.unit
@pytest.mark.registry
class TestRegistration:
    """Tests for registering and looking up tools."""

    def test_register_toolset(self, sample_tools):
        registry = ToolRegistry()

        names = registry.register_toolset(sample_tools)

        assert names == ["greet", "slow", "explode", "not_a_result"]
        assert len(registry) == 4
        assert "greet" in registry
        assert registry.get("greet").metadata.display_name == "Greet"

    def test_duplicate_name_rejected(self, registry, sample_tools):
        with pytest.raises(ValueError, match="already registered"):
            registry.register(ToolDefinition.from_handler(sample_tools.greet))

    def test_unregister(self, registry):
        assert registry.unregister("greet")
        assert not registry.unregister("greet")
        assert "greet" not in registry

    def test_list_tools_by_category(self, registry):
        assert [t.name for t in registry.list_tools("utility")] == ["greet", "slow"]
        assert [t.name for t in registry.list_tools()][-1] == "not_a_result"

    def test_registries_are_isolated(self, sample_tools):
        first = ToolRegistry()
        first.register_toolset(sample_tools)
        assert len(ToolRegistry()) == 0


@pytest.mark.unit
@pytest.mark.registry
class TestExecute:
    """Tests for ToolRegistry.execute."""

    @pytest.mark.asyncio
    async def test_executes_with_validated_input(self, registry, context):
        result = await registry.execute("greet", {"name": "Ada", "times": 2}, context)

        assert result.success
        assert result.user_feedback == "Hello, Ada! Hello, Ada!"

    @pytest.mark.asyncio
    async def test_tool_failures_are_results(self, registry, no_sandbox_context):
        result = await registry.execute("greet", {"name": "Ada"}, no_sandbox_context)

        assert not result.success
        assert result.error == "missing_sandbox"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry, context):
        with pytest.raises(ToolNotFoundError) as exc_info:
            await registry.execute("nope", {}, context)

        assert exc_info.value.error_type == ToolErrorTypes.UNKNOWN_TOOL
        assert exc_info.value.tool_call_id == "call-1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw_input",
        [{}, {"name": "Ada", "times": 0}, {"name": "Ada", "unexpected": True}],
    )
    async def test_invalid_input(self, registry, context, raw_input):
        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute("greet", raw_input, context)

        error = exc_info.value
        assert error.error_type == ToolErrorTypes.VALIDATION_ERROR
        assert str(error).startswith("Invalid input for tool 'greet'")
        assert isinstance(error.details, list)

    @pytest.mark.asyncio
    async def test_timeout(self, registry, context):
        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute("slow", {}, context)

        assert exc_info.value.error_type == ToolErrorTypes.TIMEOUT_ERROR
        assert str(exc_info.value) == "Tool execution timed out after 10ms"

    @pytest.mark.asyncio
    async def test_handler_exception(self, registry, context):
        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute("explode", {}, context)

        assert exc_info.value.error_type == ToolErrorTypes.EXECUTION_ERROR
        assert isinstance(exc_info.value.original_error, RuntimeError)

    @pytest.mark.asyncio
    async def test_wrong_return_type(self, registry, context):
        with pytest.raises(ToolExecutionError, match="instead of ToolResult"):
            await registry.execute("not_a_result", {}, context)

    @pytest.mark.asyncio
    async def test_executions_are_traced(self, sample_tools, context, tmp_path):
        trace_file = tmp_path / "trace.jsonl"
        registry = ToolRegistry(trace_logger=ToolTraceLogger(trace_file))
        registry.register_toolset(sample_tools)

        await registry.execute("greet", {"name": "Ada"}, context)
        with pytest.raises(ToolExecutionError):
            await registry.execute("explode", {}, context)

        first, second = [json.loads(line) for line in trace_file.read_text().splitlines()]
        assert first["tool"] == "greet"
        assert first["success"] is True
        assert first["input_fields"] == ["name"]
        assert second["tool"] == "explode"
        assert second["error_type"] == ToolErrorTypes.EXECUTION_ERROR
        assert "success" not in second


@pytest.mark.unit
@pytest.mark.registry
class TestDefaultRegistry:
    """Tests for build_default_registry."""

    def test_registers_kernel_tools(self, kernel_settings, local_sandbox):
        registry = build_default_registry(kernel_settings, local_sandbox, ScriptedRunner())

        assert [t.name for t in registry.list_tools()] == [
            "list_directory",
            "read_file",
            "write_file",
            "replace",
            "search_file_content",
            "glob",
            "validate_project",
            "validate_code",
            "execute_command",
        ]
        assert registry.default_timeout == kernel_settings.registry.default_timeout
        assert registry.trace_logger is None

    def test_read_file_schema(self, kernel_settings, local_sandbox):
        registry = build_default_registry(kernel_settings, local_sandbox, ScriptedRunner())

        schema = registry.get("read_file").input_schema

        assert schema["required"] == ["absolute_path"]
        assert set(schema["properties"]) == {"absolute_path", "offset", "limit"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("window", [{"offset": -1}, {"limit": 0}])
    async def test_read_file_window_bounds_in_schema(
        self, kernel_settings, local_sandbox, context, window
    ):
        registry = build_default_registry(kernel_settings, local_sandbox, ScriptedRunner())

        with pytest.raises(ToolExecutionError) as exc_info:
            await registry.execute("read_file", {"absolute_path": "/workspace/a.txt", **window}, context)

        assert exc_info.value.error_type == ToolErrorTypes.VALIDATION_ERROR

    def test_trace_file_enables_tracing(self, kernel_settings, local_sandbox, tmp_path):
        kernel_settings.registry.trace_file = str(tmp_path / "traces" / "tools.jsonl")

        registry = build_default_registry(kernel_settings, local_sandbox, ScriptedRunner())

        assert registry.trace_logger is not None
        assert (tmp_path / "traces" / "tools.jsonl").exists()

    @pytest.mark.asyncio
    async def test_end_to_end_through_registry(self, kernel_settings, local_sandbox, workspace, context):
        registry = build_default_registry(kernel_settings, local_sandbox, ScriptedRunner())

        written = await registry.execute(
            "write_file", {"file_path": "/workspace/a.txt", "content": "hello\nworld"}, context
        )
        edited = await registry.execute(
            "replace",
            {"file_path": "/workspace/a.txt", "old_string": "world", "new_string": "there"},
            context,
        )

        assert written.success
        assert edited.success
        assert (workspace / "a.txt").read_text() == "hello\nthere"
