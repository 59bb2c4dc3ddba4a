"""
Cache Manager

Administrative operations over the wallpaper cache directory: on-demand
statistics, full eviction and local path resolution.
"""

import logging
from pathlib import Path
from typing import Optional

from wallcache.core.cache.metadata import MetadataStore
from wallcache.core.events.emitter import EventEmitter
from wallcache.core.events.types import CacheClearedEvent
from wallcache.models import CacheStats
from wallcache.utils import fingerprint


logger = logging.getLogger(__name__)


class CacheManager:
    """
    Owns the cache directory as a whole.

    Statistics are recomputed from the directory on every call rather than
    tracked incrementally, so they stay correct after external changes.
    """

    def __init__(
        self,
        cache_dir: Path,
        store: MetadataStore,
        emitter: Optional[EventEmitter] = None
    ):
        """
        Initialize cache manager and create the cache directory.

        Args:
            cache_dir: Directory holding cached images and metadata
            store: Metadata store living in ``cache_dir``
            emitter: Optional event emitter for clear notifications

        Raises:
            OSError: If the cache directory cannot be created
        """
        self.cache_dir = Path(cache_dir)
        self.store = store
        self.emitter = emitter
        self.ensure_cache_dir()

    def ensure_cache_dir(self) -> None:
        """Create the cache directory if it does not exist."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def local_path(self, url: str) -> Path:
        return self.cache_dir / fingerprint(url)

    def resolve_local_path(self, url: str) -> Optional[Path]:
        """
        Return the cached file for ``url`` if a non-empty one is present.

        This is a read-only lookup: it neither checks freshness nor deletes
        anything.
        """
        path = self.local_path(url)
        try:
            if path.is_file() and path.stat().st_size > 0:
                return path
        except OSError as e:
            logger.debug(f"Cannot stat {path}: {e}")
        return None

    def stats(self) -> CacheStats:
        """
        Count cached files and their total size.

        The metadata file is excluded. Files that cannot be stat'ed (for
        example because another process holds a lock) are skipped.
        """
        stats = CacheStats(cache_dir=self.cache_dir)

        try:
            children = list(self.cache_dir.iterdir()) if self.cache_dir.exists() else []
        except OSError as e:
            logger.error(f"Error getting cache stats: {e}")
            children = []

        for child in children:
            if self.store.is_store_file(child):
                continue
            try:
                if not child.is_file():
                    continue
                size = child.stat().st_size
            except OSError as e:
                logger.info(f"Skipping file {child.name} due to error: {e}")
                continue
            stats.total_entries += 1
            stats.total_bytes += size

        times = [entry.download_time for entry in self.store.read().values() if entry.download_time]
        if times:
            stats.oldest_download = min(times)
            stats.newest_download = max(times)

        return stats

    def clear_all(self) -> int:
        """
        Delete every file in the cache directory, then recreate it.

        Files that cannot be deleted are skipped. The metadata file is
        deleted like any other file, so metadata reads empty afterwards.

        Returns:
            Number of files removed
        """
        removed = 0
        skipped = 0

        with self.store.lock:
            if self.cache_dir.exists():
                for child in list(self.cache_dir.iterdir()):
                    try:
                        if not child.is_file():
                            continue
                        child.unlink()
                        removed += 1
                    except OSError as e:
                        skipped += 1
                        logger.info(f"Failed to delete file {child}: {e}")

            self.ensure_cache_dir()

        logger.info(f"Cache cleared successfully ({removed} removed, {skipped} skipped)")
        if self.emitter:
            self.emitter.emit(CacheClearedEvent(files_removed=removed, files_skipped=skipped))
        return removed
