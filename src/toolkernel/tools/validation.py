"""Validation tools: the type-check and build pipeline, and static checks of single files."""

import logging
import posixpath
from typing import Annotated

from pydantic import Field

from toolkernel.config.schema import KernelSettings
from toolkernel.context import SandboxContext, check_absolute, check_sandbox
from toolkernel.exceptions import ErrorCodes, SandboxPathError
from toolkernel.models import CodeValidation
from toolkernel.sandbox.base import CommandRunner, SandboxFilesystem
from toolkernel.tools.toolset import KernelToolset, ToolExample, ToolMetadata
from toolkernel.utils.responses import ToolResult
from toolkernel.validation.parsers import Diagnostic
from toolkernel.validation.pipeline import ValidationPipeline, ValidationReport
from toolkernel.validation.syntax import (
    candidate_paths,
    check_source,
    extract_references,
    file_type_for,
)

logger = logging.getLogger(__name__)

# Error lines listed in feedback before collapsing into a count
MAX_LISTED_ERRORS = 10


def format_errors(report: ValidationReport, limit: int = MAX_LISTED_ERRORS) -> str:
    """Render report errors one per line, collapsing the overflow."""
    lines = [error.format() for error in report.errors[:limit]]
    remaining = len(report.errors) - limit
    if remaining > 0:
        lines.append(f"... and {remaining} more error(s)")
    return "\n".join(lines)


def format_file_report(name: str, report: CodeValidation) -> str:
    """Render a single-file report as a bulleted summary."""
    if not report.errors and not report.warnings:
        return f"Validation complete for {name}:\nNo issues found"

    blocks = [f"Validation complete for {name}:"]
    for label, diagnostics in (("error", report.errors), ("warning", report.warnings)):
        if not diagnostics:
            continue
        blocks.append(f"{len(diagnostics)} {label}(s) found:")
        for diagnostic in diagnostics:
            location = f" (line {diagnostic.line})" if diagnostic.line is not None else ""
            blocks.append(f"  - {diagnostic.message}{location}")
    return "\n".join(blocks)


class ValidationTools(KernelToolset):
    """Project and single-file validation.

    ``validate_project`` runs the type-check and build pipeline through the
    sandbox command runner. ``validate_code`` reads one file through the
    sandbox filesystem and checks it statically; it is only offered when a
    filesystem is given.
    """

    def __init__(
        self,
        settings: KernelSettings,
        runner: CommandRunner,
        filesystem: SandboxFilesystem | None = None,
    ):
        super().__init__(settings)
        self.pipeline = ValidationPipeline(runner, settings.validation)
        self.filesystem = filesystem

    def get_tools(self) -> list:
        if self.filesystem is None:
            return [self.validate_project]
        return [self.validate_project, self.validate_code]

    def get_tool_metadata(self) -> dict[str, ToolMetadata]:
        stage_timeout = self.settings.validation.stage_timeout
        return {
            "validate_project": ToolMetadata(
                display_name="Validate",
                category="validation",
                estimated_duration_ms=30000,
                # Two sequential stages, each bounded by the stage timeout
                timeout_seconds=float(2 * stage_timeout + 30),
                examples=[
                    ToolExample(description="Type-check and build the project", input={}),
                    ToolExample(
                        description="Type-check only",
                        input={"project_dir": "/workspace", "skip_build": True},
                    ),
                ],
            ),
            "validate_code": ToolMetadata(
                display_name="ValidateCode",
                category="validation",
                estimated_duration_ms=3000,
                examples=[
                    ToolExample(
                        description="Check an HTML page and the files it references",
                        input={"file_path": "/workspace/index.html"},
                    ),
                    ToolExample(
                        description="Check a stylesheet without reference checking",
                        input={"file_path": "/workspace/src/styles.css", "check_references": False},
                    ),
                ],
            ),
        }

    async def validate_project(
        self,
        context: SandboxContext,
        project_dir: Annotated[
            str | None,
            Field(description="Absolute path of the project to validate. Defaults to /workspace."),
        ] = None,
        skip_build: Annotated[
            bool, Field(description="Only run the type-check stage")
        ] = False,
    ) -> ToolResult:
        """Validate the project by running the type checker and, if it reports no errors, the build. Returns every diagnostic normalized to file, line, column and message."""
        if error := check_sandbox(context):
            return error

        project_dir = project_dir or self.settings.sandbox.working_dir
        if error := check_absolute(project_dir, "project_dir"):
            return error

        logger.info(f"Validating {context.sandbox_id}:{project_dir}")
        try:
            report = await self.pipeline.run(
                context.sandbox_id, project_dir, user_id=context.user_id, skip_build=skip_build
            )
        except OSError as e:
            logger.error(f"Validation runner failed for {context.sandbox_id}: {e}")
            return self._create_error_response(
                error=ErrorCodes.IO_FAILURE,
                message=f"Failed to run validation: {e}",
                technical_details={"error": str(e), "project_dir": project_dir},
            )

        warning_note = f" with {len(report.warnings)} warning(s)" if report.warnings else ""

        if not report.is_valid:
            failed = [stage.name for stage in report.stages if not stage.passed and not stage.skipped]
            return self._create_error_response(
                error=ErrorCodes.PIPELINE_FAILURE,
                message=f"Validation failed with {len(report.errors)} error(s):\n{format_errors(report)}",
                technical_details={
                    "failed_stages": failed,
                    "report": report.model_dump(mode="json"),
                },
            )

        if skip_build:
            message = f"Type check passed{warning_note} (build skipped)"
        else:
            message = f"Validation passed: type check and build succeeded{warning_note}"

        return self._create_success_response(
            report,
            message,
            technical_details={"project_dir": project_dir, "warning_count": len(report.warnings)},
        )

    async def _missing_references(
        self, sandbox_id: str, content: str, file_path: str, project_root: str
    ) -> tuple[list[Diagnostic], int]:
        """Return a diagnostic per unresolvable local reference, and the count checked."""
        references = extract_references(content)
        missing: list[Diagnostic] = []

        for reference in references:
            found = False
            for candidate in candidate_paths(reference, file_path, project_root):
                try:
                    entry = await self.filesystem.stat(sandbox_id, candidate)
                except (OSError, SandboxPathError) as e:
                    logger.debug(f"Reference {reference.target} not resolvable as {candidate}: {e}")
                    continue
                if entry is not None and not entry.is_directory:
                    found = True
                    break
            if not found:
                missing.append(
                    Diagnostic(
                        message=f"Referenced file not found: {reference.target}",
                        file=file_path,
                        line=reference.line,
                        kind="reference",
                    )
                )

        return missing, len(references)

    async def validate_code(
        self,
        context: SandboxContext,
        file_path: Annotated[str, Field(description="Absolute path of the HTML, CSS, JavaScript or TypeScript file to check")],
        check_references: Annotated[
            bool, Field(description="Check that locally referenced files exist")
        ] = True,
        project_root: Annotated[
            str | None,
            Field(description="Absolute project root for root-relative references. Defaults to /workspace."),
        ] = None,
    ) -> ToolResult:
        """Check a single HTML, CSS, JavaScript or TypeScript file for unbalanced tags, braces and brackets, missing referenced files, and common style slips. Does not run the compiler."""
        if error := self._guard(context, file_path=file_path, project_root=project_root):
            return error

        file_type = file_type_for(file_path)
        if file_type is None:
            extension = posixpath.splitext(file_path)[1]
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message=f"Unsupported file type: {extension or posixpath.basename(file_path)}",
                technical_details={"reason": "UNSUPPORTED_FILE_TYPE", "extension": extension},
            )

        sandbox_id = context.sandbox_id
        try:
            target = await self.filesystem.stat(sandbox_id, file_path)
            if target is None:
                return self._create_error_response(
                    error=ErrorCodes.NOT_FOUND,
                    message=f"File not found: {file_path}",
                    technical_details={"error": "File not found", "path": file_path},
                )
            if target.is_directory:
                return self._create_error_response(
                    error=ErrorCodes.IS_A_DIRECTORY,
                    message=f"Path is a directory, not a file: {file_path}",
                    technical_details={"error": "Is a directory", "path": file_path},
                )
            max_bytes = self.settings.filesystem.max_read_bytes
            if target.size > max_bytes:
                return self._create_error_response(
                    error=ErrorCodes.INVALID_ARGUMENT,
                    message=f"File too large: {target.size} bytes (max {max_bytes} bytes)",
                    technical_details={"reason": "FILE_TOO_LARGE", "size": target.size},
                )
            raw = await self.filesystem.read_bytes(sandbox_id, file_path)
        except SandboxPathError as e:
            return self._create_error_response(
                error=ErrorCodes.INVALID_PATH,
                message=f"Path is outside the sandbox: {file_path}",
                technical_details={"error": str(e), "provided_path": file_path},
            )
        except OSError as e:
            logger.error(f"Failed to read {sandbox_id}:{file_path} for validation: {e}")
            return self._create_error_response(
                error=ErrorCodes.IO_FAILURE,
                message=f"Failed reading file {file_path}: {e.strerror or e}",
                technical_details={"error": str(e), "path": file_path},
            )

        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError:
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message=f"Cannot validate binary or non UTF-8 file: {file_path}",
                technical_details={"reason": "UNREADABLE_CONTENT", "path": file_path},
            )

        diagnostics = check_source(content, file_path)
        references_checked = 0
        if check_references:
            root = project_root or self.settings.sandbox.working_dir
            missing, references_checked = await self._missing_references(
                sandbox_id, content, file_path, root
            )
            diagnostics.extend(missing)

        errors = [d for d in diagnostics if d.severity == "error"]
        warnings = [d for d in diagnostics if d.severity == "warning"]
        report = CodeValidation(
            file_path=file_path,
            file_type=file_type,
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            references_checked=references_checked,
        )
        logger.info(
            f"Checked {sandbox_id}:{file_path}: {len(errors)} error(s), {len(warnings)} warning(s)"
        )

        if errors:
            message = f"Found {len(errors)} error(s)"
            if warnings:
                message += f" and {len(warnings)} warning(s)"
        else:
            message = "File is valid"
            if warnings:
                message += f" ({len(warnings)} warning(s))"

        return self._create_success_response(
            report,
            message,
            technical_details={
                "path": file_path,
                "formatted_results": format_file_report(posixpath.basename(file_path), report),
            },
        )
