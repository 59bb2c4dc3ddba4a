"""
Standard Observers for the wallcache Event System

Observers that turn cache events into log records and aggregated
statistics.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict

from wallcache.core.events.types import (
    BatchCompletedEvent, BatchProgressEvent, CacheClearedEvent,
    CacheEvictedEvent, DownloadCompletedEvent, DownloadStartedEvent,
    EventType
)


class Observer(ABC):
    """
    Abstract base class for all event observers.

    Observers receive events from the EventEmitter and process them
    according to their purpose (logging, statistics, progress display).
    """

    def __init__(self, name: str):
        self.name = name
        self.enabled = True
        self.statistics = {
            'events_received': 0,
            'events_processed': 0,
            'events_errored': 0,
            'last_event_time': None
        }

    @abstractmethod
    def handle_event(self, event: EventType) -> None:
        """Handle an incoming event."""

    def __call__(self, event: EventType) -> None:
        if not self.enabled:
            return

        try:
            self.statistics['events_received'] += 1
            self.statistics['last_event_time'] = time.time()

            self.handle_event(event)

            self.statistics['events_processed'] += 1

        except Exception as e:
            self.statistics['events_errored'] += 1
            logging.getLogger(__name__).error(f"Observer {self.name} error: {e}")

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False


class LoggingObserver(Observer):
    """Observer that writes cache events to a logger."""

    def __init__(self, name: str = "logging", log_level: int = logging.INFO):
        super().__init__(name)
        self.log_level = log_level
        self.logger = logging.getLogger(f"wallcache.events.{name}")

    def handle_event(self, event: EventType) -> None:
        if isinstance(event, DownloadCompletedEvent) and not event.success:
            level = logging.WARNING
        elif isinstance(event, (DownloadStartedEvent, BatchProgressEvent)):
            level = logging.DEBUG
        else:
            level = logging.INFO

        if level >= self.log_level:
            self.logger.log(level, self._format_event_message(event))

    def _format_event_message(self, event: EventType) -> str:
        """Format event as a log message."""
        base_info = f"[{event.event_type}] {event.event_id}"

        if isinstance(event, DownloadStartedEvent):
            return f"{base_info} Downloading {event.image_id} from {event.url}"
        elif isinstance(event, DownloadCompletedEvent):
            if event.success and event.from_cache:
                return f"{base_info} Cache hit: {event.image_id} -> {event.local_path}"
            if event.success:
                return f"{base_info} Downloaded {event.image_id} ({event.file_size} bytes)"
            return f"{base_info} Download FAILED: {event.image_id} [{event.reason}] {event.error_message}"
        elif isinstance(event, BatchProgressEvent):
            return f"{base_info} Batch progress {event.completed}/{event.total}"
        elif isinstance(event, BatchCompletedEvent):
            status = "cancelled" if event.cancelled else "completed"
            return (f"{base_info} Batch {status}: {event.succeeded}/{event.total} cached, "
                    f"{event.failed} failed, {event.skipped} skipped")
        elif isinstance(event, CacheEvictedEvent):
            return f"{base_info} Evicted ({event.reason}): {event.url}"
        elif isinstance(event, CacheClearedEvent):
            return f"{base_info} Cache cleared: {event.files_removed} removed, {event.files_skipped} skipped"
        return f"{base_info} {event.to_dict()}"


class StatisticsObserver(Observer):
    """Observer that aggregates download and eviction statistics."""

    def __init__(self, name: str = "statistics"):
        super().__init__(name)
        self.stats = {
            'session_start': time.time(),
            'downloads_started': 0,
            'downloads_completed': 0,
            'downloads_failed': 0,
            'cache_hits': 0,
            'total_bytes_downloaded': 0,
            'total_download_time': 0.0,
            'evictions': 0,
        }
        self.failure_reasons: Dict[str, int] = {}
        self._lock = threading.RLock()

    def handle_event(self, event: EventType) -> None:
        with self._lock:
            if isinstance(event, DownloadStartedEvent):
                self.stats['downloads_started'] += 1

            elif isinstance(event, DownloadCompletedEvent):
                if event.success and event.from_cache:
                    self.stats['cache_hits'] += 1
                elif event.success:
                    self.stats['downloads_completed'] += 1
                    self.stats['total_bytes_downloaded'] += event.file_size
                    self.stats['total_download_time'] += event.duration_seconds
                else:
                    self.stats['downloads_failed'] += 1
                    key = event.reason or 'unknown'
                    self.failure_reasons[key] = self.failure_reasons.get(key, 0) + 1

            elif isinstance(event, CacheEvictedEvent):
                self.stats['evictions'] += 1

    def get_current_statistics(self) -> Dict[str, Any]:
        """Get current statistics snapshot."""
        with self._lock:
            attempts = self.stats['downloads_completed'] + self.stats['downloads_failed']
            success_rate = (self.stats['downloads_completed'] / attempts * 100) if attempts else 0.0
            average_speed = (
                self.stats['total_bytes_downloaded'] / self.stats['total_download_time']
                if self.stats['total_download_time'] > 0 else 0.0
            )
            return {
                **self.stats,
                'session_duration': time.time() - self.stats['session_start'],
                'success_rate': success_rate,
                'average_download_speed': average_speed,
                'failure_reasons': dict(self.failure_reasons),
            }
