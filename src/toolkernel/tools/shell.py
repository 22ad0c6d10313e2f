"""Allow-listed command execution inside the sandbox."""

import logging
from typing import Annotated

from pydantic import Field

from toolkernel.config.schema import KernelSettings
from toolkernel.context import SandboxContext, check_absolute, check_sandbox
from toolkernel.exceptions import ErrorCodes
from toolkernel.models import CommandOutput
from toolkernel.sandbox.base import CommandRequest, CommandRunner
from toolkernel.security import may_modify_files, validate_command
from toolkernel.tools.toolset import KernelToolset, ToolExample, ToolMetadata
from toolkernel.utils.responses import ToolResult

logger = logging.getLogger(__name__)


class ShellTools(KernelToolset):
    """Runs approved development commands through the sandbox command runner."""

    def __init__(self, settings: KernelSettings, runner: CommandRunner):
        super().__init__(settings)
        self.runner = runner

    def get_tools(self) -> list:
        return [self.execute_command]

    def get_tool_metadata(self) -> dict[str, ToolMetadata]:
        max_timeout = self.settings.sandbox.max_command_timeout
        return {
            "execute_command": ToolMetadata(
                display_name="Shell",
                category="utility",
                safety_level="potentially_destructive",
                estimated_duration_ms=5000,
                # Runner enforces the command timeout; leave headroom for process startup
                timeout_seconds=float(max_timeout + 10),
                examples=[
                    ToolExample(
                        description="Install a package with pnpm",
                        input={"command": "pnpm", "args": ["add", "lodash"]},
                    ),
                    ToolExample(
                        description="Check git status",
                        input={"command": "git", "args": ["status"]},
                    ),
                    ToolExample(
                        description="Run the build with a longer timeout",
                        input={"command": "pnpm", "args": ["build"], "timeout": 120},
                    ),
                ],
            )
        }

    async def execute_command(
        self,
        context: SandboxContext,
        command: Annotated[
            str,
            Field(description='Executable to run (e.g., "pnpm", "git", "ls"). Only approved commands are allowed.'),
        ],
        args: Annotated[
            list[str] | None,
            Field(description='Arguments for the command (e.g., ["add", "lodash"])'),
        ] = None,
        working_dir: Annotated[
            str | None,
            Field(description="Absolute working directory. Defaults to /workspace."),
        ] = None,
        timeout: Annotated[
            int | None,
            Field(description="Timeout in seconds; the command is terminated when it expires"),
        ] = None,
    ) -> ToolResult:
        """Execute an approved command in the sandbox: package manager scripts, git, file inspection and build tools. Use pnpm for package management."""
        if error := check_sandbox(context):
            return error

        args = args or []
        working_dir = working_dir or self.settings.sandbox.working_dir
        if error := check_absolute(working_dir, "working_dir"):
            return error

        if timeout is not None and timeout <= 0:
            return self._create_error_response(
                error=ErrorCodes.INVALID_ARGUMENT,
                message="Timeout must be a positive number of seconds",
                technical_details={"timeout": timeout},
            )
        timeout = min(
            timeout or self.settings.sandbox.command_timeout,
            self.settings.sandbox.max_command_timeout,
        )

        full_command = " ".join([command, *args])
        logger.info(
            f"Shell command requested in {context.sandbox_id}: {full_command} "
            f"(cwd={working_dir}, timeout={timeout}s)"
        )

        if reason := validate_command(command, args):
            logger.warning(f"Command blocked for call {context.tool_call_id}: {reason}")
            return self._create_error_response(
                error=ErrorCodes.COMMAND_BLOCKED,
                message=f"Command blocked: {reason}",
                technical_details={"error": reason, "command": command, "args": args},
            )

        result = await self.runner.run(
            CommandRequest(
                sandbox_id=context.sandbox_id,
                command=command,
                args=tuple(args),
                working_dir=working_dir,
                timeout_ms=timeout * 1000,
                user_id=context.user_id,
            )
        )

        details = {
            "command": full_command,
            "exit_code": result.exit_code,
            "stdout": result.stdout,
            "stderr": result.stderr,
            "execution_time_ms": result.execution_time_ms,
        }

        if result.timed_out:
            return self._create_error_response(
                error=ErrorCodes.TIMEOUT,
                message=f"Command timed out after {timeout}s: {full_command}",
                technical_details={**details, "error": result.error},
            )

        if not result.success:
            return self._create_error_response(
                error=ErrorCodes.IO_FAILURE if result.exit_code is None else ErrorCodes.COMMAND_FAILED,
                message=f"Command failed: {full_command}",
                technical_details={**details, "error": result.error},
            )

        summary = f"Command executed successfully: {full_command}\n"
        if result.stdout:
            summary += f"\nOutput:\n{result.stdout}"
        if result.stderr:
            summary += f"\nWarnings/Errors:\n{result.stderr}"

        return self._create_success_response(
            CommandOutput(
                command=full_command,
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                execution_time_ms=result.execution_time_ms,
            ),
            f"Executed: {full_command} (exit code: {result.exit_code})",
            preview_refresh_needed=may_modify_files(command),
            technical_details={
                "command": full_command,
                "exit_code": result.exit_code,
                "stdout_length": len(result.stdout),
                "stderr_length": len(result.stderr),
                "full_output": summary,
            },
        )
