"""Rich formatting helpers for the ibmi-actions CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from ibmi_actions.models.action import Action
    from ibmi_actions.models.diagnostics import Diagnostic

_SEVERITY_STYLES = {
    "error": "red",
    "warning": "yellow",
    "information": "cyan",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_diagnostics(file: str, diagnostics: list[Diagnostic], console: Console) -> None:
    """Display the diagnostics of one listed file."""
    console.print(f"[bold]{escape(file)}[/bold] ({len(diagnostics)} diagnostic(s))", highlight=False)
    if not diagnostics:
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Line", justify="right", style="yellow")
    table.add_column("Col", justify="right", style="dim")
    table.add_column("Severity")
    table.add_column("Code", style="cyan")
    table.add_column("Message")

    for diagnostic in diagnostics:
        start = diagnostic.range.start
        end = diagnostic.range.end
        style = _SEVERITY_STYLES.get(diagnostic.severity.value, "white")
        table.add_row(
            str(start.line + 1),
            f"{start.character}-{end.character}",
            f"[{style}]{diagnostic.severity.value}[/{style}]",
            diagnostic.code,
            escape(diagnostic.message),
        )

    console.print(table)


def format_actions(actions: list[Action], console: Console) -> None:
    """Display Actions as a compact table."""
    if not actions:
        console.print("[dim]No actions.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Name", style="green")
    table.add_column("Env", style="cyan")
    table.add_column("Extensions", style="dim")
    table.add_column("Command")

    for action in actions:
        table.add_row(
            escape(action.name),
            action.environment.value,
            ", ".join(action.extensions or []),
            escape(action.command.splitlines()[0] if action.command else ""),
        )

    console.print(table)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {message}", highlight=False)
