"""
Defines the command-line interface for the application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from agent_stream_app import __version__
from agent_stream_app.core import commands
from agent_stream_app.core.app import AgentStreamApp
from agent_stream_app.core.commands import CommandResult
from agent_stream_app.exceptions import ConfigurationError
from agent_stream_app.models.config import AppConfig

from .formatters import (
    format_error_with_suggestions,
    print_core_settings,
    print_definitions_table,
    print_flows_table,
    print_import_summary,
    print_json_panel,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=False,
        )
    ],
)
log = logging.getLogger("agent_stream_app")

app = typer.Typer(
    name="agent-stream",
    help="Manage agent flows and settings for an agent stream workspace.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
flows_app = typer.Typer(help="Create, import, rename, remove and save agent flows.")
settings_app = typer.Typer(help="Show or change core settings.")
config_app = typer.Typer(help="Show or change global agent configuration.")
app.add_typer(flows_app, name="flows")
app.add_typer(settings_app, name="settings")
app.add_typer(config_app, name="config")


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    home: Path | None = typer.Option(
        None,
        "--home",
        help="Workspace directory (default: $AGENT_STREAM_HOME or ~/.askit).",
    ),
):
    """Agent Stream CLI"""
    if version:
        console.print(f"[bold]agent-stream[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    log.setLevel(log_level)

    try:
        ctx.obj = AppConfig.from_env(home)
    except ValueError as e:
        raise ConfigurationError(f"Invalid workspace configuration: {e}") from e

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _open(ctx: typer.Context) -> AgentStreamApp:
    """Starts the application for one command and reports skipped flow files."""
    asapp = AgentStreamApp(ctx.obj)
    outcomes = asapp.startup()
    print_import_summary(outcomes)
    ctx.call_on_close(asapp.shutdown)
    return asapp


def _unwrap(result: CommandResult) -> Any:
    if not result.ok:
        console.print(
            format_error_with_suggestions(result.error, error_type=result.error_type)
        )
        raise typer.Exit(code=1)
    return result.value


def _parse_json_arg(raw: str, what: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        console.print(format_error_with_suggestions(f"{what} is not valid JSON: {e}"))
        raise typer.Exit(code=1) from e


# Flows


@flows_app.command("list")
def flows_list(ctx: typer.Context):
    """List all agent flows."""
    asapp = _open(ctx)
    print_flows_table(_unwrap(commands.get_agent_flows(asapp)))


@flows_app.command("show")
def flows_show(ctx: typer.Context, name: str = typer.Argument(..., help="Flow name.")):
    """Print a flow document."""
    asapp = _open(ctx)
    flows = _unwrap(commands.get_agent_flows(asapp))
    if name not in flows:
        console.print(format_error_with_suggestions(f"Agent flow '{name}' not found"))
        raise typer.Exit(code=1)
    print_json_panel(name, flows[name])


@flows_app.command("new")
def flows_new(ctx: typer.Context, name: str = typer.Argument(..., help="Flow name.")):
    """Create an empty flow and save it."""
    asapp = _open(ctx)
    flow = _unwrap(commands.new_agent_flow(asapp, name))
    _unwrap(commands.save_agent_flow(asapp, flow))
    console.print(f"[green]✓ Created agent flow '{flow['name']}'.[/green]")


@flows_app.command("import")
def flows_import(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Path to a flow '.json' file."),
    save: bool = typer.Option(
        True, "--save/--no-save", help="Also write the flow into the flow tree."
    ),
):
    """Import a flow file as a new flow with all agents disabled."""
    asapp = _open(ctx)
    flow = _unwrap(commands.import_agent_flow(asapp, str(path)))
    if save:
        _unwrap(commands.save_agent_flow(asapp, flow))
    console.print(
        f"[green]✓ Imported '{path.name}' as '{flow['name']}' "
        f"({len(flow['nodes'])} nodes, {len(flow['edges'])} edges).[/green]"
    )


@flows_app.command("rename")
def flows_rename(
    ctx: typer.Context,
    old_name: str = typer.Argument(..., help="Current flow name."),
    new_name: str = typer.Argument(..., help="New flow name."),
):
    """Rename a flow and move its file."""
    asapp = _open(ctx)
    name = _unwrap(commands.rename_agent_flow(asapp, old_name, new_name))
    console.print(f"[green]✓ Renamed '{old_name}' to '{name}'.[/green]")


@flows_app.command("remove")
def flows_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Flow name."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Bypass the confirmation prompt."
    ),
):
    """Remove a flow and delete its file."""
    if not force and not typer.confirm(f"Remove agent flow '{name}' and its file?"):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()
    asapp = _open(ctx)
    _unwrap(commands.remove_agent_flow(asapp, name))
    console.print(f"[green]✓ Removed agent flow '{name}'.[/green]")


@flows_app.command("save")
def flows_save(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Flow document to store in the flow tree."),
):
    """Store a flow document under the name it carries."""
    asapp = _open(ctx)
    try:
        document = _parse_json_arg(path.read_text(encoding="utf-8"), str(path))
    except OSError as e:
        console.print(format_error_with_suggestions(f"Cannot read '{path}': {e}"))
        raise typer.Exit(code=1) from e
    _unwrap(commands.insert_agent_flow(asapp, document))
    _unwrap(commands.save_agent_flow(asapp, document))
    console.print(f"[green]✓ Saved agent flow '{document.get('name')}'.[/green]")


# Settings


@settings_app.command("show")
def settings_show(ctx: typer.Context):
    """Show the core settings."""
    asapp = _open(ctx)
    print_core_settings(asapp.config.settings_file, _unwrap(commands.get_core_settings(asapp)))


@settings_app.command("set")
def settings_set(
    ctx: typer.Context,
    update: str = typer.Argument(
        ..., help='JSON object merged into the settings; null deletes a key.'
    ),
):
    """Merge a partial update into the core settings."""
    new_settings = _parse_json_arg(update, "Settings update")
    asapp = _open(ctx)
    _unwrap(commands.set_core_settings(asapp, new_settings))
    print_core_settings(asapp.config.settings_file, _unwrap(commands.get_core_settings(asapp)))


# Global configuration


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    def_name: str | None = typer.Argument(None, help="Agent definition name."),
):
    """Show the global config of one agent, or the whole table."""
    asapp = _open(ctx)
    if def_name is None:
        print_json_panel("Global Config", _unwrap(commands.get_global_configs(asapp)))
    else:
        print_json_panel(def_name, _unwrap(commands.get_global_config(asapp, def_name)))


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    def_name: str = typer.Argument(..., help="Agent definition name."),
    update: str = typer.Argument(..., help="JSON object merged into the agent's config."),
):
    """Merge a partial update into one agent's global config."""
    config = _parse_json_arg(update, "Config update")
    asapp = _open(ctx)
    _unwrap(commands.set_global_config(asapp, def_name, config))
    print_json_panel(def_name, _unwrap(commands.get_global_config(asapp, def_name)))


@config_app.command("set-all")
def config_set_all(
    ctx: typer.Context,
    update: str = typer.Argument(..., help="JSON object merged into the whole table."),
):
    """Merge a partial update into the whole global config table."""
    configs = _parse_json_arg(update, "Config update")
    asapp = _open(ctx)
    _unwrap(commands.set_global_configs(asapp, configs))
    print_json_panel("Global Config", _unwrap(commands.get_global_configs(asapp)))


# Definitions


@app.command("defs")
def defs_list(ctx: typer.Context):
    """List agent definitions."""
    asapp = _open(ctx)
    print_definitions_table(_unwrap(commands.get_agent_defs(asapp)))
