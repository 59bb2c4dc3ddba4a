"""
Configuration Management Package

Provides Pydantic-based configuration models and management for wallcache.
"""

from wallcache.core.config.models import AppConfig, CacheConfig, DownloadConfig, BatchConfig, CatalogConfig
from wallcache.core.config.manager import ConfigManager

__all__ = [
    "AppConfig",
    "CacheConfig",
    "DownloadConfig",
    "BatchConfig",
    "CatalogConfig",
    "ConfigManager",
]
