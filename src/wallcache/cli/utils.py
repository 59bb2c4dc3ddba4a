"""
CLI Utilities

Shared helpers for CLI commands: option validation, headers and
confirmation prompts.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

console = Console()


def validate_sleep_interval(value: Optional[float]) -> Optional[float]:
    """Validate sleep interval is not negative."""
    if value is not None and value < 0:
        raise typer.BadParameter("Sleep interval must be a positive number")
    return value


def validate_positive_int(value: Optional[int]) -> Optional[int]:
    """Validate integer is positive."""
    if value is not None and value <= 0:
        raise typer.BadParameter("Value must be a positive integer")
    return value


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print a formatted header for CLI output."""
    if subtitle:
        header_text = f"[bold cyan]{title}[/bold cyan]\n[dim]{subtitle}[/dim]"
    else:
        header_text = f"[bold cyan]{title}[/bold cyan]"

    console.print(Panel(header_text, border_style="cyan"))


def format_size(num_bytes: int) -> str:
    """Human readable byte count."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} GB"


def confirm_action(message: str, default: bool = False) -> bool:
    """Ask for user confirmation."""
    return typer.confirm(message, default=default)


def handle_keyboard_interrupt() -> None:
    """Handle keyboard interrupt gracefully."""
    console.print("\n[yellow]Operation cancelled by user[/yellow]")
    raise typer.Exit(1)
