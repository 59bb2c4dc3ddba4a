#!/usr/bin/env python3
"""
Tests for wallcache Event Observers

Tests the observer base class, the logging observer and the statistics
observer.
"""

import logging

import pytest

from wallcache.core.events.emitter import EventEmitter
from wallcache.core.events.observers import LoggingObserver, Observer, StatisticsObserver
from wallcache.core.events.types import (
    BatchCompletedEvent, CacheEvictedEvent, DownloadCompletedEvent,
    DownloadStartedEvent
)


class RecordingObserver(Observer):
    def __init__(self, fail: bool = False):
        super().__init__("recording")
        self.fail = fail
        self.events = []

    def handle_event(self, event):
        if self.fail:
            raise ValueError("cannot handle")
        self.events.append(event)


class TestObserverBase:
    """Test shared observer behaviour."""

    def test_call_records_statistics(self):
        observer = RecordingObserver()
        observer(DownloadStartedEvent())

        assert len(observer.events) == 1
        assert observer.statistics['events_received'] == 1
        assert observer.statistics['events_processed'] == 1

    def test_errors_are_contained(self):
        observer = RecordingObserver(fail=True)
        observer(DownloadStartedEvent())  # Must not raise

        assert observer.statistics['events_errored'] == 1
        assert observer.statistics['events_processed'] == 0

    def test_disabled_observer_ignores_events(self):
        observer = RecordingObserver()
        observer.disable()
        observer(DownloadStartedEvent())
        assert observer.events == []

        observer.enable()
        observer(DownloadStartedEvent())
        assert len(observer.events) == 1


class TestLoggingObserver:
    """Test event logging."""

    def test_failed_download_logged_as_warning(self, caplog):
        observer = LoggingObserver(name="test")
        event = DownloadCompletedEvent(image_id="42", success=False, reason="timeout", error_message="slow")

        with caplog.at_level(logging.INFO, logger="wallcache.events.test"):
            observer(event)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "Download FAILED: 42 [timeout] slow" in record.getMessage()

    def test_debug_events_filtered_at_info(self, caplog):
        observer = LoggingObserver(name="quiet", log_level=logging.INFO)

        with caplog.at_level(logging.DEBUG, logger="wallcache.events.quiet"):
            observer(DownloadStartedEvent(image_id="1", url="https://x/1.jpg"))

        assert caplog.records == []

    def test_batch_summary_message(self, caplog):
        observer = LoggingObserver(name="batch")
        event = BatchCompletedEvent(total=5, succeeded=3, failed=2)

        with caplog.at_level(logging.INFO, logger="wallcache.events.batch"):
            observer(event)

        assert "Batch completed: 3/5 cached, 2 failed, 0 skipped" in caplog.text


class TestStatisticsObserver:
    """Test statistics aggregation."""

    def test_counts_downloads_hits_and_failures(self):
        emitter = EventEmitter()
        observer = StatisticsObserver()
        emitter.subscribe('*', observer)

        emitter.emit(DownloadStartedEvent(image_id="1"))
        emitter.emit(DownloadCompletedEvent(image_id="1", success=True, file_size=1000, duration_seconds=2.0))
        emitter.emit(DownloadCompletedEvent(image_id="2", success=True, from_cache=True))
        emitter.emit(DownloadCompletedEvent(image_id="3", success=False, reason="http_status"))
        emitter.emit(DownloadCompletedEvent(image_id="4", success=False, reason="http_status"))
        emitter.emit(CacheEvictedEvent(url="https://x/old.jpg", reason="stale"))

        stats = observer.get_current_statistics()

        assert stats['downloads_started'] == 1
        assert stats['downloads_completed'] == 1
        assert stats['cache_hits'] == 1
        assert stats['downloads_failed'] == 2
        assert stats['total_bytes_downloaded'] == 1000
        assert stats['average_download_speed'] == 500.0
        assert stats['success_rate'] == pytest.approx(100 / 3)
        assert stats['failure_reasons'] == {'http_status': 2}
        assert stats['evictions'] == 1

    def test_empty_statistics(self):
        stats = StatisticsObserver().get_current_statistics()
        assert stats['success_rate'] == 0.0
        assert stats['average_download_speed'] == 0.0
