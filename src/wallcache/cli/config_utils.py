"""
Configuration Utilities for CLI Commands

Shared helpers that turn global CLI options into a validated AppConfig,
configure logging and build a ready-to-use WallpaperService.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from wallcache.cli.error_handling import handle_error
from wallcache.cli.utils import console
from wallcache.core.config import AppConfig, ConfigManager
from wallcache.core.events import EventEmitter, LoggingObserver, StatisticsObserver
from wallcache.core.exceptions import ConfigurationError
from wallcache.service import WallpaperService

log_console = Console(stderr=True)

LOG_FORMAT = "%(message)s"
FILE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class CLIState:
    """Global options collected by the root callback."""
    config_file: Optional[str] = None
    cache_dir: Optional[str] = None
    verbose: bool = False
    debug: bool = False


def get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    return state if isinstance(state, CLIState) else CLIState()


def build_cli_args(**kwargs: Any) -> Dict[str, Any]:
    """Keep only the options that were actually given."""
    return {key: value for key, value in kwargs.items() if value is not None}


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Configure root logging for a CLI run.

    WARNING by default, INFO with ``--verbose`` and DEBUG with ``--debug``.
    Records go through rich so they do not tear progress bars.
    """
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="[%X]",
        handlers=[RichHandler(console=log_console, show_path=debug, rich_tracebacks=debug)]
    )
    logging.getLogger().setLevel(level)
    # urllib3 connection chatter is only useful when debugging
    logging.getLogger("urllib3").setLevel(logging.DEBUG if debug else logging.WARNING)


def add_file_logging(log_file: Path, debug: bool = False) -> None:
    """Mirror log output into ``log_file``."""
    root = logging.getLogger()
    target = str(Path(log_file).expanduser().resolve())
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return

    Path(target).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(target, encoding='utf-8')
    handler.setLevel(logging.DEBUG if debug else logging.INFO)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    root.addHandler(handler)
    if root.level > handler.level:
        root.setLevel(handler.level)


def load_config_from_cli(ctx: typer.Context, **overrides: Any) -> AppConfig:
    """
    Load configuration from file, environment and CLI options.

    Args:
        ctx: Typer context carrying the global CLIState
        **overrides: Command specific options (``None`` means not given)

    Returns:
        Validated AppConfig instance

    Raises:
        typer.Exit: If configuration is invalid
    """
    state = get_state(ctx)
    cli_args = build_cli_args(
        verbose=state.verbose or None,
        debug=state.debug or None,
        cache_dir=state.cache_dir,
        **overrides
    )

    try:
        app_config = ConfigManager(config_file=state.config_file).load_config(cli_args=cli_args)
    except ConfigurationError as e:
        handle_error(e)

    if app_config.log_file:
        add_file_logging(app_config.log_file, debug=app_config.debug)

    return app_config


def create_service(config: AppConfig) -> Tuple[WallpaperService, StatisticsObserver]:
    """
    Build a WallpaperService with the CLI's standard observers attached.

    A StatisticsObserver is always subscribed and returned alongside the
    service; event logging is added in debug mode.
    """
    statistics = StatisticsObserver(name="cli_statistics")
    emitter = EventEmitter()
    emitter.subscribe('*', statistics)
    if config.debug:
        emitter.subscribe('*', LoggingObserver(name="cli", log_level=logging.DEBUG))

    try:
        return WallpaperService(config, emitter=emitter), statistics
    except OSError as e:
        handle_error(ConfigurationError(
            f"Cannot use cache directory {config.cache.cache_dir}: {e}",
            config_key="cache.cache_dir",
            config_value=str(config.cache.cache_dir),
            cause=e
        ))


def print_config_summary(config: AppConfig) -> None:
    """Print a summary of the effective configuration."""
    config_lines = [
        f"Cache directory: [cyan]{config.cache.cache_dir}[/cyan]",
        f"TTL: [cyan]{config.cache.ttl_days:g} days[/cyan]",
        f"Download timeout: [cyan]{config.download.timeout:g}s[/cyan]",
        f"Sleep interval: [cyan]{config.batch.sleep_interval:g}s[/cyan]",
        f"Catalog: [cyan]{config.catalog.url}[/cyan]",
        f"Catalog failure policy: [cyan]{config.catalog.on_failure}[/cyan]",
    ]
    if config.batch.limit:
        config_lines.append(f"Limit: [cyan]{config.batch.limit}[/cyan]")
    if config.log_file:
        config_lines.append(f"Log file: [cyan]{config.log_file}[/cyan]")

    console.print(Panel(
        "\n".join(config_lines),
        title="[bold]Configuration[/bold]",
        border_style="green"
    ))
