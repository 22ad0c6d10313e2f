"""Unit tests for toolkernel.tools.shell module."""

import pytest

from tests.mocks.mock_runner import ScriptedRunner, failed, ok
from toolkernel.exceptions import ErrorCodes
from toolkernel.models import CommandOutput
from toolkernel.sandbox.base import CommandResult
from toolkernel.tools.shell import ShellTools


@pytest.mark.unit
@pytest.mark.tools
class TestShellTools:
    """Tests for execute_command."""

    @pytest.mark.asyncio
    async def test_successful_command(self, kernel_settings, context):
        runner = ScriptedRunner(ok("On branch main\n"))
        tools = ShellTools(kernel_settings, runner)

        result = await tools.execute_command(context, "git", ["status"])

        assert result.success
        assert isinstance(result.data, CommandOutput)
        assert result.data.command == "git status"
        assert result.data.exit_code == 0
        assert result.data.stdout == "On branch main\n"
        assert result.user_feedback == "Executed: git status (exit code: 0)"
        assert "Output:\nOn branch main" in result.technical_details["full_output"]

    @pytest.mark.asyncio
    async def test_request_defaults(self, kernel_settings, context):
        runner = ScriptedRunner(ok())
        tools = ShellTools(kernel_settings, runner)

        await tools.execute_command(context, "ls")

        [request] = runner.requests
        assert request.sandbox_id == "sbx-test"
        assert request.user_id == "user-1"
        assert request.args == ()
        assert request.working_dir == "/workspace"
        assert request.timeout_ms == kernel_settings.sandbox.command_timeout * 1000

    @pytest.mark.asyncio
    async def test_timeout_is_clamped_to_maximum(self, kernel_settings, context):
        runner = ScriptedRunner(ok())
        tools = ShellTools(kernel_settings, runner)

        await tools.execute_command(context, "pnpm", ["build"], timeout=10_000)

        assert runner.requests[0].timeout_ms == kernel_settings.sandbox.max_command_timeout * 1000

    @pytest.mark.asyncio
    async def test_preview_refresh_for_modifying_commands(self, kernel_settings, context):
        tools = ShellTools(kernel_settings, ScriptedRunner(ok(), ok()))

        install = await tools.execute_command(context, "pnpm", ["add", "lodash"])
        listing = await tools.execute_command(context, "ls")

        assert install.preview_refresh_needed
        assert not listing.preview_refresh_needed

    @pytest.mark.asyncio
    async def test_blocked_command_never_runs(self, kernel_settings, context):
        runner = ScriptedRunner()
        tools = ShellTools(kernel_settings, runner)

        result = await tools.execute_command(context, "sh", ["-c", "sudo reboot"])

        assert result.error == ErrorCodes.COMMAND_BLOCKED
        assert result.user_feedback.startswith("Command blocked: ")
        assert runner.requests == []

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, kernel_settings, context):
        tools = ShellTools(kernel_settings, ScriptedRunner(failed(stderr="ERR_PNPM", exit_code=1)))

        result = await tools.execute_command(context, "pnpm", ["install"])

        assert result.error == ErrorCodes.COMMAND_FAILED
        assert result.user_feedback == "Command failed: pnpm install"
        assert result.technical_details["stderr"] == "ERR_PNPM"
        assert result.technical_details["exit_code"] == 1

    @pytest.mark.asyncio
    async def test_runner_failure_without_exit_code(self, kernel_settings, context):
        error = "Working directory not found: /workspace"
        runner = ScriptedRunner(CommandResult(stdout="", stderr=error, success=False, error=error))
        tools = ShellTools(kernel_settings, runner)

        result = await tools.execute_command(context, "ls")

        assert result.error == ErrorCodes.IO_FAILURE
        assert result.technical_details["error"] == error

    @pytest.mark.asyncio
    async def test_timed_out(self, kernel_settings, context):
        runner = ScriptedRunner(
            CommandResult(stdout="", stderr="", success=False, error="Command timed out after 5s", timed_out=True)
        )
        tools = ShellTools(kernel_settings, runner)

        result = await tools.execute_command(context, "pnpm", ["dev"], timeout=5)

        assert result.error == ErrorCodes.TIMEOUT
        assert result.user_feedback == "Command timed out after 5s: pnpm dev"

    @pytest.mark.asyncio
    async def test_relative_working_dir(self, kernel_settings, context):
        runner = ScriptedRunner()
        tools = ShellTools(kernel_settings, runner)

        result = await tools.execute_command(context, "ls", working_dir="workspace")

        assert result.error == ErrorCodes.INVALID_PATH
        assert result.technical_details["field"] == "working_dir"
        assert runner.requests == []

    @pytest.mark.asyncio
    async def test_non_positive_timeout(self, kernel_settings, context):
        tools = ShellTools(kernel_settings, ScriptedRunner())

        result = await tools.execute_command(context, "ls", timeout=0)

        assert result.error == ErrorCodes.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_missing_sandbox(self, kernel_settings, no_sandbox_context):
        runner = ScriptedRunner()
        tools = ShellTools(kernel_settings, runner)

        result = await tools.execute_command(no_sandbox_context, "ls")

        assert result.error == ErrorCodes.MISSING_SANDBOX
        assert runner.requests == []

    def test_metadata(self, kernel_settings):
        metadata = ShellTools(kernel_settings, ScriptedRunner()).get_tool_metadata()["execute_command"]

        assert metadata.category == "utility"
        assert metadata.safety_level == "potentially_destructive"
        assert metadata.timeout_seconds == kernel_settings.sandbox.max_command_timeout + 10
