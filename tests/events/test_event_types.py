"""
Tests for event type definitions.
"""

from wallcache.core.events.types import (
    BatchCompletedEvent, BatchProgressEvent, DownloadCompletedEvent
)


class TestEventTypes:
    """Test event dataclasses."""

    def test_event_type_is_class_name(self):
        assert DownloadCompletedEvent().event_type == "DownloadCompletedEvent"

    def test_unique_ids(self):
        assert BatchProgressEvent().event_id != BatchProgressEvent().event_id

    def test_progress_percentage(self):
        assert BatchProgressEvent(completed=1, total=4).progress_percentage == 25.0
        assert BatchProgressEvent(completed=0, total=0).progress_percentage == 0.0

    def test_to_dict(self):
        event = BatchCompletedEvent(total=5, succeeded=3, failed=2)
        data = event.to_dict()

        assert data['event_type'] == "BatchCompletedEvent"
        assert data['succeeded'] == 3
        assert data['event_id'] == event.event_id
        assert 'datetime' in data
