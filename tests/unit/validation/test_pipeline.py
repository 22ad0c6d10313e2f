"""Unit tests for the validation pipeline."""

import asyncio

import pytest

from tests.mocks.mock_runner import ScriptedRunner, failed, ok
from toolkernel.config.schema import ValidationConfig
from toolkernel.sandbox.base import CommandRequest, CommandResult
from toolkernel.validation.pipeline import ValidationPipeline, synthesize_failure, truncate_output

TSC_ERROR = "src/App.tsx(3,7): error TS2322: Type 'string' is not assignable to type 'number'."


@pytest.fixture
def config():
    return ValidationConfig(stage_timeout=60, max_output_chars=100)


@pytest.mark.unit
@pytest.mark.validation
class TestValidationPipeline:
    """Tests for ValidationPipeline.run."""

    @pytest.mark.asyncio
    async def test_both_stages_pass(self, config):
        runner = ScriptedRunner(ok("no errors"), ok("built in 1s"))

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace", user_id="u1")

        assert report.is_valid
        assert report.errors == []
        assert report.type_check_passed
        assert report.build_passed
        assert [r.command for r in runner.requests] == ["pnpm", "pnpm"]
        assert [tuple(r.args) for r in runner.requests] == [("type-check",), ("build",)]

    @pytest.mark.asyncio
    async def test_requests_use_stage_timeout_and_project_dir(self, config):
        runner = ScriptedRunner(ok(), ok())

        await ValidationPipeline(runner, config).run("sbx", "/workspace/app", user_id="u1")

        request = runner.requests[0]
        assert request.sandbox_id == "sbx"
        assert request.working_dir == "/workspace/app"
        assert request.timeout_ms == 60_000
        assert request.user_id == "u1"

    @pytest.mark.asyncio
    async def test_type_check_errors_skip_build(self, config):
        runner = ScriptedRunner(failed(TSC_ERROR, exit_code=2))

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace")

        assert not report.is_valid
        assert len(report.errors) == 1
        assert report.errors[0].file == "src/App.tsx"
        assert not report.type_check_passed
        build = report.stage("build")
        assert build.skipped
        assert not build.passed
        assert len(runner.requests) == 1

    @pytest.mark.asyncio
    async def test_unparsed_failure_is_never_silent(self, config):
        """Test a failed stage with no recognizable output still yields an error."""
        runner = ScriptedRunner(failed("Something went wrong\nstack...", exit_code=1))

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace")

        assert not report.is_valid
        assert len(report.errors) >= 1
        assert report.errors[0].message == (
            "Type check failed with exit code 1: Something went wrong"
        )

    @pytest.mark.asyncio
    async def test_build_failure(self, config):
        runner = ScriptedRunner(ok(), failed(stderr='✘ [ERROR] Could not resolve "./x"'))

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace")

        assert not report.is_valid
        assert report.type_check_passed
        assert not report.build_passed
        assert report.errors[0].message == 'Could not resolve "./x"'

    @pytest.mark.asyncio
    async def test_warnings_do_not_invalidate(self, config):
        runner = ScriptedRunner(
            ok("src/a.ts(1,1): warning TS6133: 'x' is declared but never used."), ok()
        )

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace")

        assert report.is_valid
        assert len(report.warnings) == 1

    @pytest.mark.asyncio
    async def test_skip_build(self, config):
        runner = ScriptedRunner(ok())

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace", skip_build=True)

        assert report.is_valid
        assert report.stage("build").skipped
        assert len(runner.requests) == 1

    @pytest.mark.asyncio
    async def test_output_is_truncated(self, config):
        runner = ScriptedRunner(ok("x" * 500), ok())

        report = await ValidationPipeline(runner, config).run("sbx", "/workspace")

        stage = report.stage("type_check")
        assert stage.output_truncated
        assert stage.output.startswith("x" * 100)
        assert stage.output.endswith("[400 more characters truncated]")

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, config):
        """Test cancelling the caller cancels the running stage."""
        started = asyncio.Event()

        class HangingRunner:
            async def run(self, request: CommandRequest) -> CommandResult:
                started.set()
                await asyncio.sleep(60)
                raise AssertionError("not cancelled")

        task = asyncio.create_task(ValidationPipeline(HangingRunner(), config).run("sbx", "/ws"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.unit
@pytest.mark.validation
class TestHelpers:
    """Tests for pipeline helpers."""

    def test_truncate_output_under_limit(self):
        assert truncate_output("short", 10) == ("short", False)

    def test_truncate_output_over_limit(self):
        text, truncated = truncate_output("abcdefghij", 4)
        assert truncated
        assert text == "abcd\n... [6 more characters truncated]"

    def test_synthesize_failure_uses_runner_error(self):
        result = CommandResult(stdout="", stderr="", success=False, error="Command timed out after 60s")
        diagnostic = synthesize_failure("build", result)
        assert diagnostic.message.startswith("Build failed: Command timed out after 60s")
