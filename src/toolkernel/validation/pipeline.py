"""Two-stage validation pipeline: type-check, then build.

The build stage only runs when the type-check stage reported zero errors.
Each stage is bounded by the configured per-stage timeout, and cancelling
the task awaiting ``ValidationPipeline.run`` cancels the running command.
"""

import logging
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel, Field

from toolkernel.config.schema import ValidationConfig
from toolkernel.sandbox.base import CommandRequest, CommandResult, CommandRunner
from toolkernel.validation.parsers import (
    Diagnostic,
    parse_build_output,
    parse_type_check_output,
    strip_ansi,
)

logger = logging.getLogger(__name__)

StageName = Literal["type_check", "build"]

STAGE_LABELS: dict[str, str] = {"type_check": "Type check", "build": "Build"}


class StageReport(BaseModel):
    """Outcome of a single pipeline stage."""

    name: StageName
    command: str
    passed: bool
    skipped: bool = False
    exit_code: int | None = None
    duration_ms: int = 0
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    output: str = ""
    output_truncated: bool = False


class ValidationReport(BaseModel):
    """Combined outcome of the pipeline."""

    kind: Literal["validation_report"] = "validation_report"
    is_valid: bool
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    stages: list[StageReport] = Field(default_factory=list)

    def stage(self, name: StageName) -> StageReport | None:
        for report in self.stages:
            if report.name == name:
                return report
        return None

    @property
    def type_check_passed(self) -> bool:
        report = self.stage("type_check")
        return report is not None and report.passed

    @property
    def build_passed(self) -> bool:
        report = self.stage("build")
        return report is not None and report.passed


def truncate_output(output: str, limit: int) -> tuple[str, bool]:
    """Bound raw output to ``limit`` characters.

    Returns:
        Tuple of (possibly truncated text, whether truncation happened)
    """
    if len(output) <= limit:
        return output, False
    omitted = len(output) - limit
    return f"{output[:limit]}\n... [{omitted} more characters truncated]", True


def synthesize_failure(name: str, result: CommandResult) -> Diagnostic:
    """Build a generic diagnostic for a failed stage whose output matched no known format."""
    label = STAGE_LABELS.get(name, name)
    if result.error:
        message = f"{label} failed: {result.error}"
    else:
        message = f"{label} failed with exit code {result.exit_code}"

    first_line = next(
        (line.strip() for line in strip_ansi(result.combined_output).splitlines() if line.strip()),
        "",
    )
    if first_line:
        message += f": {first_line[:200]}"

    return Diagnostic(message=message)


class ValidationPipeline:
    """Runs the type-check and build stages against a sandbox.

    Example:
        >>> pipeline = ValidationPipeline(runner, settings.validation)
        >>> report = await pipeline.run("sbx-1", "/workspace")
        >>> report.is_valid
        True
    """

    def __init__(self, runner: CommandRunner, config: ValidationConfig):
        self.runner = runner
        self.config = config

    async def run(
        self,
        sandbox_id: str,
        project_dir: str,
        user_id: str | None = None,
        skip_build: bool = False,
    ) -> ValidationReport:
        """Run the pipeline.

        Args:
            sandbox_id: Sandbox to validate
            project_dir: Absolute sandbox path of the project
            user_id: Optional user for the command runner
            skip_build: Only run the type-check stage

        Returns:
            ValidationReport with per-stage results
        """
        type_check = await self._run_stage(
            "type_check",
            self.config.type_check_command,
            parse_type_check_output,
            sandbox_id,
            project_dir,
            user_id,
        )
        stages = [type_check]

        if type_check.errors:
            logger.info(f"Skipping build stage: type check reported {len(type_check.errors)} error(s)")
            stages.append(self._skipped_stage("build", self.config.build_command))
        elif skip_build:
            stages.append(self._skipped_stage("build", self.config.build_command))
        else:
            stages.append(
                await self._run_stage(
                    "build",
                    self.config.build_command,
                    parse_build_output,
                    sandbox_id,
                    project_dir,
                    user_id,
                )
            )

        errors = [error for stage in stages for error in stage.errors]
        warnings = [warning for stage in stages for warning in stage.warnings]
        return ValidationReport(
            is_valid=not errors, errors=errors, warnings=warnings, stages=stages
        )

    def _skipped_stage(self, name: StageName, command: list[str]) -> StageReport:
        return StageReport(name=name, command=" ".join(command), passed=False, skipped=True)

    async def _run_stage(
        self,
        name: StageName,
        command: list[str],
        parser: Callable[[str], list[Diagnostic]],
        sandbox_id: str,
        project_dir: str,
        user_id: str | None,
    ) -> StageReport:
        request = CommandRequest(
            sandbox_id=sandbox_id,
            command=command[0],
            args=tuple(command[1:]),
            working_dir=project_dir,
            timeout_ms=self.config.stage_timeout * 1000,
            user_id=user_id,
        )
        logger.info(f"Running {name} stage in {sandbox_id}: {request.display}")

        result = await self.runner.run(request)
        raw_output = result.combined_output
        diagnostics = parser(raw_output)

        errors = [d for d in diagnostics if d.severity == "error"]
        warnings = [d for d in diagnostics if d.severity == "warning"]
        if not result.success and not errors:
            errors = [synthesize_failure(name, result)]

        output, truncated = truncate_output(raw_output, self.config.max_output_chars)
        passed = result.success and not errors
        logger.info(
            f"{STAGE_LABELS[name]} stage {'passed' if passed else 'failed'} "
            f"({len(errors)} error(s), {len(warnings)} warning(s), {result.execution_time_ms}ms)"
        )

        return StageReport(
            name=name,
            command=request.display,
            passed=passed,
            exit_code=result.exit_code,
            duration_ms=result.execution_time_ms,
            errors=errors,
            warnings=warnings,
            output=output,
            output_truncated=truncated,
        )
