"""
Batch orchestration for wallpaper caching.

Runs the downloader over a list of catalog items one at a time, pausing
between items so the image host is not hammered, and turns every outcome
into a BatchResult. One bad item never aborts the batch.
"""

import logging
import threading
import time
from typing import Any, Callable, Iterable, List, Optional, Tuple

from wallcache.core.events.emitter import EventEmitter
from wallcache.core.events.types import BatchCompletedEvent, BatchProgressEvent
from wallcache.core.exceptions import WallcacheError
from wallcache.downloader import ImageDownloader
from wallcache.models import BatchResult, Wallpaper


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

CANCELLED = "cancelled"


class BatchOrchestrator:
    """
    Sequential batch runner.

    Exactly one download is in flight at any time. Results are returned in
    input order.
    """

    def __init__(
        self,
        downloader: ImageDownloader,
        sleep_interval: float = 1.0,
        emitter: Optional[EventEmitter] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize BatchOrchestrator.

        Args:
            downloader: Downloader used for every item
            sleep_interval: Seconds to pause between items (not after the last)
            emitter: Optional event emitter for progress events
            sleep: Function used for the pause when no cancel event is given
        """
        self.downloader = downloader
        self.sleep_interval = sleep_interval
        self.emitter = emitter
        self.sleep = sleep

    def run(
        self,
        items: Iterable[Any],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[BatchResult]:
        """
        Cache every item and report progress.

        Args:
            items: Wallpaper objects or mappings with ``id`` and ``imageUrl``
            on_progress: Called as ``on_progress(completed, total)`` after
                each item; exceptions it raises are logged and ignored
            cancel_event: When set, the remaining items are returned as
                skipped; it also interrupts the pause between items

        Returns:
            One BatchResult per input item, in input order

        Items that are neither Wallpaper objects nor mappings fail on their
        own like any other item.
        """
        raw_items = list(items)
        total = len(raw_items)
        results: List[BatchResult] = []
        started = time.monotonic()
        cancelled = False

        logger.info(f"Starting batch of {total} images")

        for index, raw in enumerate(raw_items):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.info(f"Batch cancelled after {index} of {total} images")
                results.extend(
                    BatchResult(item=self._coerce(r)[0], cached=False, error=CANCELLED, skipped=True)
                    for r in raw_items[index:]
                )
                break

            wallpaper, error = self._coerce(raw)
            if error is not None:
                logger.error(f"Skipping batch item {index + 1}: {error}")
                result = BatchResult(item=wallpaper, cached=False, error=error)
            else:
                result = self._process_item(wallpaper)
            results.append(result)
            self._report_progress(index + 1, total, result, on_progress)

            if index < total - 1:
                self._pause(cancel_event)

        succeeded = sum(1 for r in results if r.cached)
        skipped = sum(1 for r in results if r.skipped)
        failed = len(results) - succeeded - skipped
        logger.info(f"Batch finished: {succeeded} cached, {failed} failed, {skipped} skipped")

        if self.emitter:
            self.emitter.emit(BatchCompletedEvent(
                total=total, succeeded=succeeded, failed=failed, skipped=skipped,
                cancelled=cancelled, duration_seconds=time.monotonic() - started
            ))

        return results

    @staticmethod
    def _coerce(raw: Any) -> Tuple[Wallpaper, Optional[str]]:
        """Convert ``raw`` to a Wallpaper, or a placeholder plus the error."""
        try:
            return Wallpaper.from_item(raw), None
        except TypeError as e:
            placeholder = Wallpaper(id="", image_url=raw if isinstance(raw, str) else "")
            return placeholder, str(e)

    def _process_item(self, wallpaper: Wallpaper) -> BatchResult:
        url = wallpaper.remote_url
        try:
            local_path = self.downloader.download(url, wallpaper.id)
            return BatchResult(item=wallpaper, cached=True, local_path=local_path)
        except WallcacheError as e:
            logger.error(f"Error caching image {wallpaper.id}: {e.message}")
            return BatchResult(item=wallpaper, cached=False, error=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error caching image {wallpaper.id}")
            return BatchResult(item=wallpaper, cached=False, error=str(e))

    def _report_progress(
        self,
        completed: int,
        total: int,
        result: BatchResult,
        on_progress: Optional[ProgressCallback]
    ) -> None:
        if on_progress is not None:
            try:
                on_progress(completed, total)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

        if self.emitter:
            self.emitter.emit(BatchProgressEvent(
                completed=completed, total=total,
                image_id=result.id, success=result.cached
            ))

    def _pause(self, cancel_event: Optional[threading.Event]) -> None:
        if self.sleep_interval <= 0:
            return
        if cancel_event is not None:
            cancel_event.wait(self.sleep_interval)
        else:
            self.sleep(self.sleep_interval)
