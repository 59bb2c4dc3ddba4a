"""
Config Command

Create and inspect wallcache configuration files.
"""

from pathlib import Path
from typing import Annotated

import typer
import yaml

from wallcache.cli.config_utils import load_config_from_cli, print_config_summary
from wallcache.cli.utils import console
from wallcache.core.config import ConfigManager

app = typer.Typer(
    name="config",
    help="Create and inspect configuration",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("init")
def config_init(
    path: Annotated[str, typer.Argument(help="Where to write the configuration file")] = "wallcache.yaml",
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing file")] = False,
):
    """
    Write a configuration file containing every default value.

    [bold cyan]Examples:[/bold cyan]

    • [green]wallcache config init[/green]
    • [green]wallcache config init ~/.config/wallcache/config.yaml[/green]
    """
    output = Path(path).expanduser()
    if output.exists() and not force:
        console.print(f"[red]File already exists: {output}[/red] (use --force to overwrite)")
        raise typer.Exit(1)

    ConfigManager().create_example_config(output)
    console.print(f"[green]✓ Configuration written to {output}[/green]")


@app.command("show")
def config_show(
    ctx: typer.Context,
    raw: Annotated[bool, typer.Option("--raw", help="Print the effective configuration as YAML")] = False,
):
    """Show the effective configuration after file, environment and CLI overrides."""
    app_config = load_config_from_cli(ctx)

    if raw:
        typer.echo(yaml.safe_dump(app_config.model_dump(mode='json'), default_flow_style=False, sort_keys=False))
        return

    print_config_summary(app_config)
