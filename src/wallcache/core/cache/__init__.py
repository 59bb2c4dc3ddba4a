"""
Core Cache Module

Provides the on-disk wallpaper cache:
- JSON metadata store with whole-file atomic writes
- TTL-based retention with explicit classification and reconciliation
- Statistics and full eviction over the cache directory
"""

from .metadata import MetadataStore
from .retention import CacheState, RetentionPolicy
from .manager import CacheManager

__all__ = [
    'MetadataStore',
    'CacheState',
    'RetentionPolicy',
    'CacheManager',
]
