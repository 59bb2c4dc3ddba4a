"""
wallcache - a local content cache for remote wallpaper images.

Typical use::

    from wallcache import WallpaperService

    service = WallpaperService()
    wallpapers = service.fetch_catalog()
    service.cache_batch(wallpapers)
"""

__version__ = "0.1.0"

from wallcache.core.config.models import AppConfig
from wallcache.core.exceptions import (
    CatalogError,
    ConfigurationError,
    DownloadError,
    IntegrityError,
    PersistenceError,
    TransientNetworkError,
    WallcacheError,
)
from wallcache.models import BatchResult, CacheEntry, CacheStats, Wallpaper, WallpaperResult
from wallcache.service import WallpaperService
from wallcache.utils import fingerprint

__all__ = [
    '__version__',
    'AppConfig',
    'WallpaperService',
    'Wallpaper',
    'CacheEntry',
    'BatchResult',
    'CacheStats',
    'WallpaperResult',
    'fingerprint',
    'WallcacheError',
    'DownloadError',
    'TransientNetworkError',
    'IntegrityError',
    'CatalogError',
    'ConfigurationError',
    'PersistenceError',
]
