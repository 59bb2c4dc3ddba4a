"""
Event Types for wallcache

Defines the events emitted while downloading, batching and evicting,
so progress reporting and logging stay decoupled from the cache core.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Union


@dataclass
class BaseEvent:
    """
    Base class for all wallcache events.

    Provides common fields for event identification and timing.
    """
    timestamp: float = field(default_factory=time.time)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4())[:12])

    @property
    def datetime(self) -> datetime:
        """Get event timestamp as datetime object."""
        return datetime.fromtimestamp(self.timestamp)

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        return {
            'event_type': self.event_type,
            'timestamp': self.timestamp,
            'event_id': self.event_id,
            'datetime': self.datetime.isoformat(),
            **{k: v for k, v in self.__dict__.items()
               if k not in ['timestamp', 'event_id']}
        }


@dataclass
class DownloadStartedEvent(BaseEvent):
    """Emitted when an image transfer begins (not for cache hits)."""
    image_id: str = ""
    url: str = ""
    filename: str = ""


@dataclass
class DownloadCompletedEvent(BaseEvent):
    """
    Emitted when an image download finishes, successfully or not.

    ``from_cache`` is set when a fresh cached file satisfied the request
    without any transfer.
    """
    image_id: str = ""
    url: str = ""
    local_path: str = ""
    success: bool = False
    from_cache: bool = False
    file_size: int = 0
    duration_seconds: float = 0.0
    error_message: str = ""
    reason: str = ""


@dataclass
class BatchProgressEvent(BaseEvent):
    """Emitted after every batch item, success or failure."""
    completed: int = 0
    total: int = 0
    image_id: str = ""
    success: bool = False

    @property
    def progress_percentage(self) -> float:
        if self.total > 0:
            return (self.completed / self.total) * 100
        return 0.0


@dataclass
class BatchCompletedEvent(BaseEvent):
    """Emitted when a batch run ends, including cancelled runs."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0


@dataclass
class CacheEvictedEvent(BaseEvent):
    """Emitted when cached files are removed by the retention policy."""
    url: str = ""
    reason: str = ""  # 'stale', 'corrupt', 'orphaned'


@dataclass
class CacheClearedEvent(BaseEvent):
    """Emitted after a full cache wipe."""
    files_removed: int = 0
    files_skipped: int = 0


# Type alias for any event type
EventType = Union[
    BaseEvent,
    DownloadStartedEvent,
    DownloadCompletedEvent,
    BatchProgressEvent,
    BatchCompletedEvent,
    CacheEvictedEvent,
    CacheClearedEvent,
]
