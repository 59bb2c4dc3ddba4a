"""
Retention Policy

Decides whether a cached image is fresh, stale, corrupt or missing, and
applies the matching clean-up. Classification is a pure query;
``reconcile`` performs the deletions.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from wallcache.core.cache.metadata import MetadataStore
from wallcache.core.events.emitter import EventEmitter
from wallcache.core.events.types import CacheEvictedEvent
from wallcache.models import CacheEntry
from wallcache.utils import fingerprint, utc_now


logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(days=7)


class CacheState(Enum):
    """Classification of a source URL against the local cache."""
    FRESH = "fresh"
    STALE = "stale"
    MISSING = "missing"
    CORRUPT = "corrupt"


class RetentionPolicy:
    """
    Absolute-age TTL policy over the cache directory.

    Entries older than ``ttl`` are stale; entries without a known download
    time are always stale. There is no LRU or size-based ranking.
    """

    def __init__(
        self,
        cache_dir: Path,
        store: MetadataStore,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
        emitter: Optional[EventEmitter] = None
    ):
        self.cache_dir = Path(cache_dir)
        self.store = store
        self.ttl = ttl
        self.clock = clock
        self.emitter = emitter

    def local_path(self, url: str) -> Path:
        """Fingerprinted location of ``url`` inside the cache directory."""
        return self.cache_dir / fingerprint(url)

    def is_expired(self, url: str) -> bool:
        """True when ``url`` has no metadata, no timestamp, or is older than the TTL."""
        return self._entry_expired(self.store.get(url), self.clock())

    def _entry_expired(self, entry: Optional[CacheEntry], now: datetime) -> bool:
        if entry is None or entry.download_time is None:
            return True
        return now - entry.download_time > self.ttl

    def classify(self, url: str) -> CacheState:
        """Classify ``url`` without modifying the filesystem or metadata."""
        return self._classify(url, self.store.get(url), self.clock())

    def _classify(self, url: str, entry: Optional[CacheEntry], now: datetime) -> CacheState:
        path = self.local_path(url)
        try:
            if not path.is_file():
                return CacheState.MISSING
            size = path.stat().st_size
        except OSError as e:
            logger.error(f"Error checking file stats for {path}: {e}")
            return CacheState.MISSING

        if size == 0:
            return CacheState.CORRUPT
        if self._entry_expired(entry, now):
            return CacheState.STALE
        return CacheState.FRESH

    def reconcile(self, url: str, state: CacheState) -> bool:
        """
        Apply the clean-up matching ``state``.

        Corrupt and stale files are deleted together with their metadata
        entry; a missing file has its orphaned entry dropped. Fresh entries
        are left alone.

        Returns:
            True if anything was removed
        """
        if state == CacheState.FRESH:
            return False

        with self.store.lock:
            changed = False
            if state in (CacheState.CORRUPT, CacheState.STALE):
                changed = self._delete_file(self.local_path(url))
            if self.store.remove(url):
                changed = True

        if changed:
            reason = 'orphaned' if state == CacheState.MISSING else state.value
            logger.info(f"Removed {reason} cache for: {url}")
            self._emit_evicted(url, reason)
        return changed

    def exists(self, url: str) -> bool:
        """
        True only for a fresh, non-empty cached file.

        Anything else is reconciled as a side effect, so a zero-byte or
        expired file never survives this check.
        """
        state = self.classify(url)
        if state != CacheState.FRESH:
            self.reconcile(url, state)
            return False
        return True

    def purge_expired(self) -> int:
        """
        Remove every entry that is no longer fresh in one metadata pass.

        Returns:
            Number of metadata entries removed
        """
        logger.info("Starting cleanup of expired cache...")
        evicted: Dict[str, CacheState] = {}
        now = self.clock()

        def _purge(entries: Dict[str, CacheEntry]) -> None:
            for url, entry in list(entries.items()):
                state = self._classify(url, entry, now)
                if state == CacheState.FRESH:
                    continue
                if state in (CacheState.CORRUPT, CacheState.STALE):
                    self._delete_file(self.local_path(url))
                del entries[url]
                evicted[url] = state

        self.store.update(_purge)

        for url, state in evicted.items():
            self._emit_evicted(url, 'orphaned' if state == CacheState.MISSING else state.value)

        logger.info(f"Cleanup completed. Removed {len(evicted)} expired cache entries.")
        return len(evicted)

    def _delete_file(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete cached file {path}: {e}")
            return False

    def _emit_evicted(self, url: str, reason: str) -> None:
        if self.emitter:
            self.emitter.emit(CacheEvictedEvent(url=url, reason=reason))
