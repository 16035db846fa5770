"""
Functions for formatting and displaying data in the console using Rich.
"""

import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from agent_stream_app.storage.flow_importer import ImportOutcome, summarize

SUGGESTIONS = {
    "ValidationError": [
        "• Flow names are '/'-separated segments without blank parts.",
        "• Imported files must have the '.json' extension.",
    ],
    "NotFoundError": [
        "• List existing flows with `agent-stream flows list`.",
        "• List agent definitions with `agent-stream defs`.",
    ],
    "ConflictError": [
        "• Choose another name, or remove the existing flow first.",
    ],
    "StorageError": [
        "• Check that the home directory is writable.",
        "• Set AGENT_STREAM_HOME to use a different location.",
    ],
    "ParseError": [
        "• The file is not valid JSON or does not have the expected shape.",
        "• Run the command with -vv for detailed logs.",
    ],
}


def format_error_with_suggestions(
    error: Exception | str,
    context: dict | None = None,
    error_type: str | None = None,
) -> Panel:
    """
    Formats an error with actionable suggestions into a Rich Panel.

    A plain message is labelled with `error_type` when given, so flattened
    command errors still get the suggestions for their original class.
    """
    if isinstance(error, Exception):
        error_type = type(error).__name__
        error_msg = str(error)
    else:
        error_type = error_type or "Error"
        error_msg = error

    suggestions = SUGGESTIONS.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_flows_table(flows: dict[str, Any]):
    """Lists flows with their node and edge counts."""
    console = Console()
    if not flows:
        console.print("[yellow]No agent flows defined.[/yellow]")
        return

    table = Table(title="Agent Flows", title_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Nodes", justify="right")
    table.add_column("Enabled", justify="right", style="green")
    table.add_column("Edges", justify="right")

    for name in sorted(flows):
        flow = flows[name]
        nodes = flow.get("nodes", [])
        enabled = sum(1 for node in nodes if node.get("enabled"))
        table.add_row(name, str(len(nodes)), str(enabled), str(len(flow.get("edges", []))))
    console.print(table)


def print_json_panel(title: str, value: Any):
    """Pretty-prints a JSON value inside a panel."""
    console = Console()
    rendered = json.dumps(value, indent=2, ensure_ascii=False)
    console.print(
        Panel(
            Syntax(rendered, "json", word_wrap=True),
            title=title,
            border_style="cyan",
            expand=False,
        )
    )


def print_core_settings(settings_path: Path, settings: dict[str, Any]):
    """Displays the core settings record."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Autostart:", "✓ Enabled" if settings.get("autostart") else "✗ Disabled")
    for name, keys in sorted(settings.get("shortcut_keys", {}).items()):
        table.add_row(f"Shortcut {name}:", repr(keys) if keys.strip() == "" else keys)

    console.print(
        Panel(
            table,
            title=f"Core Settings ([dim]{settings_path}[/dim])",
            border_style="cyan",
        )
    )


def print_definitions_table(definitions: dict[str, Any]):
    """Lists agent definitions and how many global config keys each declares."""
    console = Console()
    if not definitions:
        console.print("[yellow]No agent definitions registered.[/yellow]")
        return

    table = Table(title="Agent Definitions", title_style="bold cyan")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="dim")
    table.add_column("Inputs")
    table.add_column("Outputs")
    table.add_column("Global Keys", justify="right")

    for name in sorted(definitions):
        definition = definitions[name]
        table.add_row(
            name,
            definition.get("category") or "",
            ", ".join(definition.get("inputs") or []),
            ", ".join(definition.get("outputs") or []),
            str(len(definition.get("global_config") or [])),
        )
    console.print(table)


def print_import_summary(outcomes: list[ImportOutcome]):
    """Reports failed files from a flow tree import, if any."""
    imported, failed = summarize(outcomes)
    if not failed:
        return
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="red")
    table.add_column(style="dim")
    for outcome in outcomes:
        if not outcome.ok:
            table.add_row(str(outcome.path), outcome.error)
    console.print(
        Panel(
            table,
            title=(
                f"[bold yellow]⚠️  {failed} flow file(s) skipped, "
                f"{imported} imported[/bold yellow]"
            ),
            border_style="yellow",
        )
    )
