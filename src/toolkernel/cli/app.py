"""CLI entry point for the tool kernel."""

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from toolkernel import __version__
from toolkernel.cli.constants import ExitCodes
from toolkernel.cli.utils import get_console, setup_logging
from toolkernel.config import ConfigurationError, KernelSettings, get_config_path, load_settings
from toolkernel.context import SandboxContext
from toolkernel.exceptions import ToolExecutionError
from toolkernel.registry import ToolRegistry, build_default_registry
from toolkernel.sandbox import LocalSandbox
from toolkernel.utils.responses import ToolResult

app = typer.Typer(help="Toolkernel - sandboxed file and validation tools for coding agents")

console = get_console()

logger = logging.getLogger(__name__)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Path = typer.Option(None, "--config", help="Path to settings file"),
    log_level: str = typer.Option(
        None, "--log-level", help="Log level (debug, info, warning, error)"
    ),
    version_flag: bool = typer.Option(False, "--version", help="Show version"),
) -> None:
    """Toolkernel - run kernel tools against a local sandbox.

    \b
    Examples:
        toolkernel tools                                     # List registered tools
        toolkernel tools --category validation               # Only validation tools
        toolkernel run read_file --sandbox dev \\
            --input '{"absolute_path": "/workspace/a.txt"}'  # Execute a tool
        toolkernel config                                    # Show effective settings
    """
    if version_flag:
        console.print(f"Toolkernel version {__version__}")
        raise typer.Exit()

    ctx.obj = {"config_path": config}
    setup_logging(log_level or "warning")

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _load_settings(ctx: typer.Context) -> KernelSettings:
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        return load_settings(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


def _build_registry(settings: KernelSettings) -> ToolRegistry:
    sandbox = LocalSandbox(Path(settings.sandbox.root_dir))
    return build_default_registry(settings, sandbox, sandbox)


def _print_result(result: ToolResult) -> None:
    if result.success:
        console.print(f"[green]✓[/green] {escape(result.user_feedback)}")
    else:
        console.print(f"[red]✗[/red] {escape(result.user_feedback)} [dim]({result.error})[/dim]")

    payload = result.to_dict()
    payload.pop("user_feedback", None)
    console.print_json(json.dumps(payload, default=str))


@app.command("tools")
def tools_command(
    ctx: typer.Context,
    category: str = typer.Option(
        None, "--category", help="Filter by category (file_system, validation, utility)"
    ),
) -> None:
    """List registered tools."""
    settings = _load_settings(ctx)
    registry = _build_registry(settings)

    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Display Name")
    table.add_column("Category")
    table.add_column("Safety")
    table.add_column("Description", overflow="fold")

    for definition in registry.list_tools(category):  # type: ignore[arg-type]
        metadata = definition.metadata
        safety = (
            "[yellow]potentially_destructive[/yellow]"
            if metadata.safety_level == "potentially_destructive"
            else "[green]safe[/green]"
        )
        table.add_row(
            definition.name,
            metadata.display_name,
            metadata.category,
            safety,
            escape(definition.description),
        )

    console.print(table)


@app.command("run")
def run_command(
    ctx: typer.Context,
    tool: str = typer.Argument(..., help="Tool name"),
    sandbox: str = typer.Option(..., "--sandbox", "-s", help="Sandbox id"),
    tool_input: str = typer.Option("{}", "--input", "-i", help="Tool input as a JSON object"),
    call_id: str = typer.Option("cli", "--call-id", help="Tool call id for logs and traces"),
) -> None:
    """Execute a tool against a local sandbox and print the result."""
    try:
        raw_input = json.loads(tool_input)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON input:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    if not isinstance(raw_input, dict):
        console.print("[red]Tool input must be a JSON object[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    settings = _load_settings(ctx)
    registry = _build_registry(settings)
    context = SandboxContext(tool_call_id=call_id, sandbox_id=sandbox)

    try:
        result = asyncio.run(registry.execute(tool, raw_input, context))
    except ToolExecutionError as e:
        console.print(f"[red]{e.error_type}:[/red] {escape(str(e))}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCodes.INTERRUPTED)

    _print_result(result)
    if not result.success:
        raise typer.Exit(ExitCodes.TOOL_FAILED)


@app.command("config")
def config_command(ctx: typer.Context) -> None:
    """Show effective configuration (file, .env and environment)."""
    settings = _load_settings(ctx)
    config_path = (ctx.obj or {}).get("config_path") or get_config_path()

    if Path(config_path).exists():
        console.print(f"[bold]Configuration file:[/bold] {config_path}")
    else:
        console.print(f"[dim]No configuration file at {config_path}, using defaults[/dim]")

    console.print_json(settings.model_dump_json_pretty())


if __name__ == "__main__":
    app()
