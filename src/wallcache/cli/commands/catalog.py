"""
Catalog Command

Lists the remote wallpaper catalog together with the local cache state of
every entry.
"""

import json
from typing import Annotated, List, Optional

import typer
from rich.table import Table

from wallcache.cli.config_utils import create_service, load_config_from_cli
from wallcache.cli.error_handling import handle_error
from wallcache.cli.utils import console, validate_positive_int
from wallcache.core.exceptions import CatalogError
from wallcache.models import Wallpaper
from wallcache.service import WallpaperService

app = typer.Typer(
    name="catalog",
    help="Browse the remote wallpaper catalog",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def fetch_catalog_or_exit(service: WallpaperService) -> List[Wallpaper]:
    """Fetch the catalog, turning any recorded failure into a CLI error."""
    try:
        wallpapers = service.fetch_catalog()
    except CatalogError as e:
        handle_error(e)

    if service.last_catalog_error is not None:
        handle_error(service.last_catalog_error)
    return wallpapers


@app.command("list")
def catalog_list(
    ctx: typer.Context,
    limit: Annotated[Optional[int], typer.Option("--limit", "-l", callback=validate_positive_int, help="Show at most N wallpapers")] = None,
    url: Annotated[Optional[str], typer.Option("--url", help="Catalog URL to use instead of the configured one")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Print the catalog as JSON")] = False,
):
    """
    List wallpapers from the catalog and show which ones are cached.

    [bold cyan]Examples:[/bold cyan]

    • First 20 entries: [green]wallcache catalog list --limit 20[/green]
    • Machine readable: [green]wallcache catalog list --json[/green]
    """
    app_config = load_config_from_cli(ctx, catalog_url=url)
    service, _ = create_service(app_config)

    with service:
        wallpapers = fetch_catalog_or_exit(service)

    shown = wallpapers[:limit] if limit else wallpapers

    if json_output:
        typer.echo(json.dumps([w.to_dict() for w in shown], indent=2))
        return

    table = Table(title=f"Wallpaper catalog ({len(wallpapers)} entries)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Artist")
    table.add_column("Source")
    table.add_column("Cached", justify="center")

    for wallpaper in shown:
        table.add_row(
            wallpaper.id,
            wallpaper.artist or "-",
            wallpaper.source or "-",
            "[green]yes[/green]" if wallpaper.is_local else "[dim]no[/dim]",
        )

    console.print(table)
    cached = sum(1 for w in wallpapers if w.is_local)
    console.print(f"[dim]{cached} of {len(wallpapers)} wallpapers cached locally[/dim]")
