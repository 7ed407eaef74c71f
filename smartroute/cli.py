"""Main CLI entry point for SmartRoute."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console

from .config import Config
from .display.analytics_view import (
    render_analytics,
    render_error,
    render_result,
    render_suggestions,
)
from .tools.base.conversation import ChatMessage, ConversationContext, WorkspaceType
from .tools.base.tool_errors import ToolError
from .tools.base.tool_interface import ToolParameters
from .tools.base.tool_manager import SmartToolController

console = Console()
app = typer.Typer(
    name="smartroute",
    help="SmartRoute - contextual tool routing and execution",
    no_args_is_help=True
)


def setup_logging(config: Config, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, str(config.log_level).upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_controller(verbose: bool = False) -> SmartToolController:
    config = Config()
    setup_logging(config, verbose)
    return SmartToolController(config=config)


def build_context(workspace: str, messages: List[str]) -> ConversationContext:
    try:
        workspace_type = WorkspaceType(workspace)
    except ValueError:
        raise typer.BadParameter(
            f"unknown workspace '{workspace}' (choose from {', '.join(w.value for w in WorkspaceType)})"
        )
    return ConversationContext(
        workspace_type=workspace_type,
        recent_messages=[ChatMessage(content=message) for message in messages],
    )


def parse_parameters(pairs: List[str]) -> Dict[str, Any]:
    """Parse key=value pairs; values are read as YAML scalars or lists."""
    values: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise typer.BadParameter(f"expected key=value, got '{pair}'")
        key, raw = pair.split("=", 1)
        try:
            values[key.strip()] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            values[key.strip()] = raw
    return values


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit")
) -> None:
    """
    SmartRoute: pick the right tool for a request and run it.
    """
    if version:
        from . import __version__
        console.print(f"SmartRoute version {__version__}")
        raise typer.Exit()


@app.command()
def suggest(
    text: str = typer.Argument(..., help="Request to find tools for"),
    workspace: str = typer.Option("general", "--workspace", "-w", help="Workspace type"),
    message: List[str] = typer.Option([], "--message", "-m", help="Earlier conversation message"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
) -> None:
    """Suggest tools for a request."""
    controller = build_controller(verbose)
    context = build_context(workspace, message + [text])

    suggestions = controller.analyze_context_and_suggest_tools(text, context)
    if not suggestions:
        console.print("[yellow]No suitable tools found.[/yellow]")
        return
    console.print(render_suggestions(suggestions))


@app.command()
def run(
    tool_id: str = typer.Argument(..., help="Id of the tool to run"),
    param: List[str] = typer.Option([], "--param", "-p", help="Parameter as key=value"),
    workspace: str = typer.Option("general", "--workspace", "-w", help="Workspace type"),
    message: List[str] = typer.Option([], "--message", "-m", help="Conversation message"),
    high_accuracy: bool = typer.Option(False, "--high-accuracy", help="Prefer ensemble validation"),
    parallel: bool = typer.Option(False, "--parallel", help="Allow parallel execution"),
    cascade: bool = typer.Option(False, "--cascade", help="Prefer cascading execution"),
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
) -> None:
    """Execute a tool."""
    controller = build_controller(verbose)
    context = build_context(workspace, message)
    parameters = ToolParameters(
        values=parse_parameters(param),
        requires_high_accuracy=high_accuracy,
        allow_parallel=parallel,
        prefer_cascading=cascade,
    )

    try:
        result = asyncio.run(controller.execute_tool(tool_id, parameters, context))
    except ToolError as e:
        console.print(render_error(str(e), title=f"{tool_id} ({e.kind.value})"))
        raise typer.Exit(1)

    console.print(render_result(tool_id, result))
    if not result.success:
        raise typer.Exit(1)


@app.command()
def analytics() -> None:
    """Show tool analytics and recommendations."""
    controller = build_controller()
    console.print(render_analytics(
        controller.get_tool_analytics(),
        controller.performance_tracker.snapshot(),
        controller.get_intelligent_recommendations(),
    ))


@app.command()
def export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file"),
) -> None:
    """Export registry, history, metrics and learning data as JSON."""
    controller = build_controller()
    data = json.dumps(controller.export_tool_data().to_dict(), indent=2)

    if output is None:
        console.print_json(data)
        return

    try:
        output.write_text(data)
    except OSError as e:
        console.print(f"[red]Error writing {output}: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✅ Exported tool data to {output}[/green]")


@app.command("init-config")
def init_config() -> None:
    """Write a default ~/.smartrouterc."""
    config = Config()
    config.create_default_config()
    console.print(f"✅ Created default config file at {config.config_path}")
    console.print("Override routing constants under the 'routing:' key or with SMARTROUTE_<NAME> variables.")


def run_app() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run_app()
