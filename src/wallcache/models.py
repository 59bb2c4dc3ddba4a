#!/usr/bin/env python3
"""
Data models for wallcache.

Plain dataclasses for catalog wallpapers, persisted cache entries, batch
results and cache statistics, with dictionary conversion for JSON
persistence and for consumers that expect mapping-shaped records.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from wallcache.utils import format_timestamp, parse_timestamp


@dataclass
class Wallpaper:
    """
    A wallpaper record from the remote catalog.

    The catalog publishes ``{id, user, category, original}``; this model
    normalises those to ``artist``, ``source`` and ``image_url``. When the
    record has been matched against the local cache, ``original_url`` keeps
    the remote address and ``image_url`` may point at a ``file://`` URI.
    """
    id: str
    image_url: str
    artist: str = ""
    source: str = ""
    original_url: Optional[str] = None
    is_local: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def remote_url(self) -> str:
        """The URL used as cache key, regardless of local annotation."""
        return self.original_url or self.image_url

    @classmethod
    def from_catalog_record(cls, record: Mapping[str, Any]) -> 'Wallpaper':
        """Build a Wallpaper from a raw catalog record."""
        return cls(
            id=str(record.get('id', '')),
            artist=record.get('user') or "",
            source=record.get('category') or "",
            image_url=record.get('original') or "",
        )

    @classmethod
    def from_item(cls, item: Any) -> 'Wallpaper':
        """
        Coerce a batch input item into a Wallpaper.

        Accepts an existing Wallpaper or a mapping using either the
        application's camelCase keys (``imageUrl``, ``originalUrl``) or
        snake_case keys. Unrecognised keys are kept in ``extra`` so they
        survive into the batch result.
        """
        if isinstance(item, cls):
            return item
        if not isinstance(item, Mapping):
            raise TypeError(f"Unsupported batch item type: {type(item).__name__}")

        known = {'id', 'imageUrl', 'image_url', 'artist', 'source',
                 'originalUrl', 'original_url', 'isLocal', 'is_local'}
        image_url = item.get('imageUrl', item.get('image_url')) or ""
        return cls(
            id=str(item.get('id', '')),
            image_url=image_url,
            artist=item.get('artist') or "",
            source=item.get('source') or "",
            original_url=item.get('originalUrl', item.get('original_url')),
            is_local=bool(item.get('isLocal', item.get('is_local', False))),
            extra={k: v for k, v in item.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = dict(self.extra)
        data.update({
            'id': self.id,
            'artist': self.artist,
            'source': self.source,
            'image_url': self.image_url,
            'original_url': self.original_url,
            'is_local': self.is_local,
        })
        return data


@dataclass
class CacheEntry:
    """
    Persisted metadata for one cached source URL.

    Serialised with the field names of the ``metadata.json`` written by the
    desktop application, so existing cache directories stay readable.
    """
    source_url: str
    local_path: str
    download_time: Optional[datetime] = None
    file_size: int = 0
    image_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk JSON representation."""
        return {
            'id': self.image_id,
            'localPath': self.local_path,
            'downloadTime': format_timestamp(self.download_time) if self.download_time else None,
            'originalUrl': self.source_url,
            'fileSize': self.file_size,
        }

    @classmethod
    def from_dict(cls, source_url: str, data: Mapping[str, Any]) -> 'CacheEntry':
        """
        Create a CacheEntry from its on-disk representation.

        Missing or malformed fields are tolerated; an entry without a usable
        ``downloadTime`` simply parses with ``download_time=None``.
        """
        try:
            file_size = int(data.get('fileSize') or 0)
        except (TypeError, ValueError):
            file_size = 0

        image_id = data.get('id')
        return cls(
            source_url=source_url,
            local_path=str(data.get('localPath') or ""),
            download_time=parse_timestamp(data.get('downloadTime')),
            file_size=max(0, file_size),
            image_id=str(image_id) if image_id is not None else None,
        )


@dataclass
class BatchResult:
    """
    Outcome of one item in a batch run.

    Exactly one of ``local_path`` (success) or ``error`` (failure) is set.
    ``skipped`` marks items never attempted because the batch was cancelled.
    """
    item: Wallpaper
    cached: bool
    local_path: Optional[Path] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def id(self) -> str:
        return self.item.id

    def to_dict(self) -> Dict[str, Any]:
        data = self.item.to_dict()
        data['cached'] = self.cached
        if self.local_path is not None:
            data['local_path'] = str(self.local_path)
        if self.error is not None:
            data['error'] = self.error
        if self.skipped:
            data['skipped'] = True
        return data


@dataclass
class CacheStats:
    """Aggregate statistics for the cache directory."""
    total_entries: int = 0
    total_bytes: int = 0
    cache_dir: Optional[Path] = None
    oldest_download: Optional[datetime] = None
    newest_download: Optional[datetime] = None

    @property
    def total_mb(self) -> float:
        return self.total_bytes / 1024 / 1024

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_entries': self.total_entries,
            'total_bytes': self.total_bytes,
            'cache_dir': str(self.cache_dir) if self.cache_dir else None,
            'oldest_download': format_timestamp(self.oldest_download) if self.oldest_download else None,
            'newest_download': format_timestamp(self.newest_download) if self.newest_download else None,
        }


@dataclass
class WallpaperResult:
    """Result of applying a wallpaper through an external setter."""
    success: bool
    message: str = ""
    error: str = ""
    image_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'success': self.success}
        if self.success:
            data['message'] = self.message
            data['image_path'] = str(self.image_path) if self.image_path else None
        else:
            data['error'] = self.error
        return data
