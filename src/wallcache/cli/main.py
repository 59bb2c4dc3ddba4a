#!/usr/bin/env python3
"""
wallcache CLI Main Application

Typer-based command-line interface for the wallpaper cache.
"""

from typing import Annotated, Optional

import typer
from rich.console import Console

from wallcache.cli import __version__
from wallcache.cli.commands import cache, catalog, config
from wallcache.cli.config_utils import CLIState, setup_logging

console = Console()

# Create main Typer application
app = typer.Typer(
    name="wallcache",
    help="Local cache for remote wallpaper images",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)

# Add subcommands
app.add_typer(catalog.app, name="catalog", help="Browse the remote wallpaper catalog")
app.add_typer(cache.app, name="cache", help="Manage the local image cache")
app.add_typer(config.app, name="config", help="Create and inspect configuration")


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]wallcache[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    ctx: typer.Context,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    )] = None,
    config_file: Annotated[Optional[str], typer.Option("--config", "-c", help="Configuration file path")] = None,
    cache_dir: Annotated[Optional[str], typer.Option("--cache-dir", help="Cache directory to use")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Enable debug logging")] = False,
):
    """
    wallcache - keep a local copy of remote wallpapers

    [bold]Quick Start:[/bold]

    • See the catalog: [cyan]wallcache catalog list[/cyan]
    • Cache everything: [cyan]wallcache cache sync[/cyan]
    • Check the cache: [cyan]wallcache cache stats[/cyan]
    """
    ctx.obj = CLIState(config_file=config_file, cache_dir=cache_dir, verbose=verbose, debug=debug)
    setup_logging(verbose=verbose, debug=debug)


def main():
    """Entry point for the wallcache console script."""
    app()


if __name__ == "__main__":
    main()
