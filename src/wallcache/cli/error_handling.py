"""
CLI error rendering.

Turns WallcacheError instances into a rich panel with recovery
suggestions and exits with status 1.
"""

import logging

import typer
from rich.console import Console
from rich.padding import Padding
from rich.panel import Panel
from rich.text import Text

from wallcache.core.exceptions import WallcacheError

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def handle_error(err: WallcacheError) -> None:
    """Print ``err`` with its suggestions and exit with code 1."""
    logger.debug(f"Error details: {err.get_debug_info()}")

    console.print()
    error_panel = Panel(
        Text(err.message, justify="full"),
        title=f"[bold red]Error: {type(err).__name__} ({err.error_code.value})[/bold red]",
        border_style="red",
        expand=False
    )
    console.print(error_panel)

    if err.suggestions:
        console.print("\n[bold green]Suggested solutions:[/bold green]")
        for i, suggestion in enumerate(err.suggestions[:3], 1):
            suggestion_text = Text(f"{i}. {suggestion.action}: {suggestion.description}\n")
            if suggestion.command:
                suggestion_text.append("   Run: ", style="bold")
                suggestion_text.append(f"{suggestion.command}", style="cyan")
            console.print(Padding(suggestion_text, (0, 1)))

    if err.context.correlation_id:
        console.print(Padding(f"Trace ID: [yellow]{err.context.correlation_id}[/yellow]", (1, 0, 0, 0)))

    raise typer.Exit(code=1)
