"""
Wallpaper service.

Public entry point of wallcache. Wires the metadata store, retention
policy, cache manager, downloader, batch orchestrator and catalog client
together from one AppConfig, and exposes the operations the CLI and any
embedding application use.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

import requests

from wallcache.batch import BatchOrchestrator, ProgressCallback
from wallcache.catalog import CatalogClient
from wallcache.core.cache.manager import CacheManager
from wallcache.core.cache.metadata import MetadataStore
from wallcache.core.cache.retention import RetentionPolicy
from wallcache.core.config.models import AppConfig
from wallcache.core.events.emitter import EventEmitter
from wallcache.core.exceptions import (
    CatalogError, ConfigurationError, DownloadError, ErrorCode, WallcacheError
)
from wallcache.downloader import ImageDownloader
from wallcache.models import BatchResult, CacheStats, Wallpaper, WallpaperResult
from wallcache.utils import utc_now


logger = logging.getLogger(__name__)

WallpaperSetter = Callable[[Path], Any]


class WallpaperService:
    """
    Facade over the wallpaper cache.

    One service owns one cache directory. All metadata mutations and cache
    clearing are serialised through the store's lock.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        session: Optional[requests.Session] = None,
        emitter: Optional[EventEmitter] = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Optional[Callable[[float], None]] = None
    ):
        """
        Initialize the service and create the cache directory.

        Args:
            config: Application configuration (defaults if omitted)
            session: Shared requests session for catalog and image requests
            emitter: Event emitter receiving download, batch and cache events
            clock: Source of "now" for download timestamps and expiry
            sleep: Optional replacement for ``time.sleep`` (batch pauses and
                catalog retries)
        """
        self.config = config or AppConfig()
        self.emitter = emitter or EventEmitter()
        self.session = session or requests.Session()

        cache_config = self.config.cache
        self.cache_dir = Path(cache_config.cache_dir).expanduser()
        lock = threading.RLock()

        self.store = MetadataStore(cache_config.metadata_path, lock=lock)
        self.cache = CacheManager(self.cache_dir, self.store, emitter=self.emitter)
        self.retention = RetentionPolicy(
            self.cache_dir, self.store, ttl=cache_config.ttl, clock=clock, emitter=self.emitter
        )
        self.downloader = ImageDownloader(
            self.retention,
            self.store,
            timeout=self.config.download.timeout,
            user_agent=self.config.download.user_agent,
            chunk_size=self.config.download.chunk_size,
            session=self.session,
            emitter=self.emitter,
            clock=clock
        )

        sleep_kwargs = {'sleep': sleep} if sleep else {}
        self.orchestrator = BatchOrchestrator(
            self.downloader,
            sleep_interval=self.config.batch.sleep_interval,
            emitter=self.emitter,
            **sleep_kwargs
        )
        self.catalog = CatalogClient(
            self.config.catalog,
            user_agent=self.config.download.user_agent,
            session=self.session,
            resolver=self.cache.resolve_local_path,
            **sleep_kwargs
        )

        logger.debug(f"Wallpaper service ready (cache: {self.cache_dir})")

    @property
    def last_catalog_error(self) -> Optional[CatalogError]:
        """Error of the last catalog fetch, if it failed."""
        return self.catalog.last_error

    def fetch_catalog(self) -> List[Wallpaper]:
        """
        Fetch the remote catalog annotated with local cache state.

        Raises:
            CatalogError: Only when ``catalog.on_failure`` is ``raise``
        """
        return self.catalog.fetch()

    def cache_batch(
        self,
        items: Iterable[Any],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> List[BatchResult]:
        """Cache ``items`` sequentially; see BatchOrchestrator.run."""
        return self.orchestrator.run(items, on_progress=on_progress, cancel_event=cancel_event)

    def download(self, url: str, image_id: str) -> Path:
        """Cache a single image and return its local path."""
        return self.downloader.download(url, image_id)

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_cache(self) -> None:
        """Delete every cached file and the metadata."""
        self.cache.clear_all()

    def resolve_local_path(self, url: str) -> Optional[Path]:
        """Cached file for ``url``, or None. Does not check freshness."""
        return self.cache.resolve_local_path(url)

    def purge_expired(self) -> int:
        """Remove stale, corrupt and orphaned entries; return how many."""
        return self.retention.purge_expired()

    def prepare_wallpaper(self, image: Any) -> Path:
        """
        Return a local file for ``image``, downloading it if needed.

        A non-empty cached file for the image's original URL is reused as is.

        Args:
            image: Wallpaper or mapping with ``id`` and ``imageUrl`` /
                ``originalUrl``

        Raises:
            ConfigurationError: If the image has no id or no valid URL
            DownloadError: If the download fails
        """
        if not image:
            raise ConfigurationError("Image data is required", error_code=ErrorCode.CONFIG_MISSING_REQUIRED)
        try:
            wallpaper = Wallpaper.from_item(image)
        except TypeError as e:
            raise ConfigurationError(str(e), config_key="image", cause=e)
        if not wallpaper.id:
            raise ConfigurationError("Image ID is required", error_code=ErrorCode.CONFIG_MISSING_REQUIRED)

        if wallpaper.original_url:
            cached = self.cache.resolve_local_path(wallpaper.original_url)
            if cached:
                logger.info(f"Using cached image for wallpaper: {cached}")
                return cached

        logger.info(f"Downloading image for wallpaper: {wallpaper.id}")
        return self.downloader.download(wallpaper.remote_url, wallpaper.id)

    def apply_wallpaper(self, image: Any, setter: WallpaperSetter) -> WallpaperResult:
        """
        Prepare ``image`` and hand its local file to ``setter``.

        Never raises; every failure is reported in the returned result.
        """
        try:
            image_path = self.prepare_wallpaper(image)
        except DownloadError as e:
            logger.error(f"Failed to download image for wallpaper: {e.message}")
            return WallpaperResult(success=False, error=f"Failed to download image: {e.message}")
        except WallcacheError as e:
            logger.error(f"Error setting wallpaper: {e.message}")
            return WallpaperResult(success=False, error=e.message)

        try:
            setter(image_path)
        except Exception as e:
            logger.error(f"Failed to set wallpaper {image_path}: {e}")
            return WallpaperResult(success=False, error=f"Failed to set wallpaper: {e}", image_path=image_path)

        logger.info(f"Wallpaper set successfully: {image_path}")
        return WallpaperResult(success=True, message="Wallpaper set successfully", image_path=image_path)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'WallpaperService':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
