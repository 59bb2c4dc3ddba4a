"""
CLI Progress Observer for wallcache

Drives a rich progress bar from batch events and remembers per-item
failures so the sync command can summarise them.
"""

from typing import Dict, Optional

from rich.console import Console
from rich.progress import (
    BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TaskID,
    TextColumn, TimeElapsedColumn
)

from wallcache.core.events.observers import Observer
from wallcache.core.events.types import (
    BatchCompletedEvent, BatchProgressEvent, DownloadCompletedEvent,
    DownloadStartedEvent, EventType
)


def create_progress(console: Optional[Console] = None) -> Progress:
    """Progress bar layout used for batch caching."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


class BatchProgressObserver(Observer):
    """
    Observer that mirrors batch progress into a rich Progress task.

    Subscribe it for all events; it ignores the ones it does not use.
    """

    def __init__(self, progress: Progress, task_id: TaskID, name: str = "cli_progress"):
        super().__init__(name)
        self.progress = progress
        self.task_id = task_id
        self.failures: Dict[str, str] = {}
        self.cache_hits = 0

    def handle_event(self, event: EventType) -> None:
        if isinstance(event, DownloadStartedEvent):
            self.progress.update(self.task_id, description=f"Downloading {event.image_id}")

        elif isinstance(event, DownloadCompletedEvent):
            if event.from_cache:
                self.cache_hits += 1
            elif not event.success:
                self.failures[event.image_id] = event.error_message or event.reason or "unknown error"

        elif isinstance(event, BatchProgressEvent):
            self.progress.update(self.task_id, completed=event.completed, total=event.total)

        elif isinstance(event, BatchCompletedEvent):
            status = "Cancelled" if event.cancelled else "Done"
            self.progress.update(
                self.task_id,
                description=f"{status}: {event.succeeded} cached, {event.failed} failed"
            )
