"""
Cache Command

Commands for filling, inspecting and cleaning the local wallpaper cache.
"""

import json
import threading
from typing import Annotated, List, Optional

import typer
from rich.table import Table

from wallcache.cli.commands.catalog import fetch_catalog_or_exit
from wallcache.cli.config_utils import create_service, load_config_from_cli
from wallcache.cli.error_handling import handle_error
from wallcache.cli.observers.progress import BatchProgressObserver, create_progress
from wallcache.cli.utils import (
    confirm_action, console, format_size, print_header,
    validate_positive_int, validate_sleep_interval
)
from wallcache.core.cache.retention import CacheState
from wallcache.core.exceptions import WallcacheError
from wallcache.models import BatchResult, Wallpaper
from wallcache.service import WallpaperService
from wallcache.utils import fingerprint, format_timestamp

app = typer.Typer(
    name="cache",
    help="Manage the local image cache",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("sync")
def cache_sync(
    ctx: typer.Context,
    limit: Annotated[Optional[int], typer.Option("--limit", "-l", callback=validate_positive_int, help="Cache at most N images")] = None,
    sleep: Annotated[Optional[float], typer.Option("--sleep", "-s", callback=validate_sleep_interval, help="Pause between downloads in seconds")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Per-download timeout in seconds")] = None,
    url: Annotated[Optional[str], typer.Option("--url", help="Catalog URL to use instead of the configured one")] = None,
):
    """
    Download every catalog image that is not freshly cached.

    Images are fetched one at a time. Press Ctrl+C to stop after the
    current download.

    [bold cyan]Examples:[/bold cyan]

    • Cache everything: [green]wallcache cache sync[/green]
    • Cache 10 images, 2s apart: [green]wallcache cache sync --limit 10 --sleep 2[/green]
    """
    app_config = load_config_from_cli(ctx, limit=limit, sleep=sleep, timeout=timeout, catalog_url=url)
    service, statistics = create_service(app_config)

    with service:
        wallpapers = fetch_catalog_or_exit(service)
        pending = [w for w in wallpapers if service.retention.classify(w.remote_url) != CacheState.FRESH]
        if app_config.batch.limit:
            pending = pending[:app_config.batch.limit]

        if not pending:
            console.print(f"[green]All {len(wallpapers)} catalog images are already cached[/green]")
            return

        print_header("Caching wallpapers", f"{len(pending)} of {len(wallpapers)} images to download")
        results = _run_batch(service, pending)

    _print_batch_results(results)

    stats = statistics.get_current_statistics()
    console.print(
        f"[dim]Downloaded {format_size(stats['total_bytes_downloaded'])} "
        f"in {stats['total_download_time']:.1f}s[/dim]"
    )


def _run_batch(service: WallpaperService, pending: List[Wallpaper]) -> List[BatchResult]:
    """
    Run the batch on a worker thread so Ctrl+C can cancel it cleanly.

    The current download finishes; the remaining items come back skipped.
    """
    cancel_event = threading.Event()
    results: List[BatchResult] = []

    with create_progress(console) as progress:
        task_id = progress.add_task("Caching", total=len(pending))
        observer = BatchProgressObserver(progress, task_id)
        service.emitter.subscribe('*', observer)

        worker = threading.Thread(
            target=lambda: results.extend(service.cache_batch(pending, cancel_event=cancel_event)),
            name="wallcache-batch",
            daemon=True,
        )
        worker.start()
        try:
            while worker.is_alive():
                worker.join(0.2)
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling after the current download...[/yellow]")
            cancel_event.set()
            worker.join()
        finally:
            service.emitter.unsubscribe('*', observer)

    return results


def _print_batch_results(results: List[BatchResult]) -> None:
    cached = [r for r in results if r.cached]
    failed = [r for r in results if not r.cached and not r.skipped]
    skipped = [r for r in results if r.skipped]

    if failed:
        table = Table(title="Failed downloads", title_style="bold red")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Error", style="red")
        for result in failed:
            table.add_row(result.id, result.error or "unknown error")
        console.print(table)

    summary = f"[green]{len(cached)} cached[/green], [red]{len(failed)} failed[/red]"
    if skipped:
        summary += f", [yellow]{len(skipped)} skipped[/yellow]"
    console.print(summary)


@app.command("download")
def cache_download(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="Image URL to cache")],
    image_id: Annotated[Optional[str], typer.Option("--id", help="Image id recorded in metadata")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Download timeout in seconds")] = None,
):
    """
    Cache a single image and print its local path.

    [bold cyan]Examples:[/bold cyan]

    • [green]wallcache cache download https://example.com/a.png --id a[/green]
    """
    app_config = load_config_from_cli(ctx, timeout=timeout)
    service, _ = create_service(app_config)

    with service:
        try:
            path = service.download(url, image_id or fingerprint(url).rsplit('.', 1)[0])
        except WallcacheError as e:
            handle_error(e)

    console.print(f"[green]✓ Cached[/green] {url}")
    typer.echo(str(path))


@app.command("resolve")
def cache_resolve(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="Image URL to look up")],
):
    """
    Print the cached file for URL, or exit with status 1 if it is not cached.
    """
    app_config = load_config_from_cli(ctx)
    service, _ = create_service(app_config)

    with service:
        path = service.resolve_local_path(url)

    if path is None:
        console.print(f"[yellow]Not cached:[/yellow] {url}")
        raise typer.Exit(1)
    typer.echo(str(path))


@app.command("stats")
def cache_stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Print statistics as JSON")] = False,
):
    """Show the number of cached images and their total size."""
    app_config = load_config_from_cli(ctx)
    service, _ = create_service(app_config)

    with service:
        stats = service.get_cache_stats()

    if json_output:
        typer.echo(json.dumps(stats.to_dict(), indent=2))
        return

    table = Table(title="Cache statistics", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", style="cyan")
    table.add_row("Cache directory", str(stats.cache_dir))
    table.add_row("Cached images", str(stats.total_entries))
    table.add_row("Total size", f"{stats.total_mb:.2f} MB")
    table.add_row("Oldest download", format_timestamp(stats.oldest_download) if stats.oldest_download else "-")
    table.add_row("Newest download", format_timestamp(stats.newest_download) if stats.newest_download else "-")
    console.print(table)


@app.command("clear")
def cache_clear(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
):
    """Delete every cached image and the cache metadata."""
    app_config = load_config_from_cli(ctx)

    if not yes and not confirm_action(f"Delete all cached images in {app_config.cache.cache_dir}?"):
        console.print("[yellow]Cache clear cancelled[/yellow]")
        raise typer.Exit(1)

    service, _ = create_service(app_config)
    with service:
        service.clear_cache()

    console.print("[green]✓ Cache cleared[/green]")


@app.command("purge")
def cache_purge(
    ctx: typer.Context,
    ttl_days: Annotated[Optional[float], typer.Option("--ttl-days", help="Override the retention period in days")] = None,
):
    """Remove expired, empty and orphaned cache entries."""
    app_config = load_config_from_cli(ctx, ttl_days=ttl_days)
    service, _ = create_service(app_config)

    with service:
        removed = service.purge_expired()

    console.print(f"[green]✓ Removed {removed} expired cache entries[/green]")
