"""
Event System for wallcache

Observer pattern implementation that decouples progress reporting and
logging from the download, batch and eviction code paths.
"""

from wallcache.core.events.types import (
    BaseEvent,
    DownloadStartedEvent,
    DownloadCompletedEvent,
    BatchProgressEvent,
    BatchCompletedEvent,
    CacheEvictedEvent,
    CacheClearedEvent,
)

from wallcache.core.events.emitter import EventEmitter

from wallcache.core.events.observers import (
    Observer,
    LoggingObserver,
    StatisticsObserver,
)

__all__ = [
    # Event types
    'BaseEvent',
    'DownloadStartedEvent',
    'DownloadCompletedEvent',
    'BatchProgressEvent',
    'BatchCompletedEvent',
    'CacheEvictedEvent',
    'CacheClearedEvent',

    # Event system
    'EventEmitter',

    # Observers
    'Observer',
    'LoggingObserver',
    'StatisticsObserver',
]
