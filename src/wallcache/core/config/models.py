"""
Configuration Models

Pydantic models for type-safe configuration management with validation,
defaults, and field documentation.
"""

from datetime import timedelta
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)

DEFAULT_CATALOG_URL = (
    "https://gh-proxy.com/https://raw.githubusercontent.com/"
    "moelylink/wallpaper-api/refs/heads/main/wallpaper.json"
)


def default_cache_dir() -> Path:
    """Default location of the wallpaper cache directory."""
    return Path.home() / ".wallcache" / "wallpaper-cache"


class CacheConfig(BaseModel):
    """Configuration for the on-disk cache."""

    cache_dir: Path = Field(
        default_factory=default_cache_dir,
        description="Directory holding cached images and the metadata file"
    )
    metadata_filename: str = Field(
        default="metadata.json",
        description="Name of the metadata file inside the cache directory"
    )
    ttl_days: float = Field(
        default=7.0,
        gt=0,
        description="Age in days after which a cached image is considered stale"
    )

    @field_validator('metadata_filename')
    @classmethod
    def validate_metadata_filename(cls, v):
        """The metadata file must live directly in the cache directory."""
        if not v or '/' in v or '\\' in v or v in {'.', '..'}:
            raise ValueError(f"Invalid metadata filename: {v!r}")
        return v

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.ttl_days)

    @property
    def metadata_path(self) -> Path:
        return Path(self.cache_dir).expanduser() / self.metadata_filename


class DownloadConfig(BaseModel):
    """Configuration for single image downloads."""

    timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Per-download timeout in seconds"
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent with image and catalog requests"
    )
    chunk_size: int = Field(
        default=8192,
        ge=1024,
        le=1048576,
        description="Download chunk size in bytes"
    )


class BatchConfig(BaseModel):
    """Configuration for sequential batch caching."""

    sleep_interval: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Pause between two consecutive downloads (seconds)"
    )
    limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum number of catalog items cached by one sync"
    )


class CatalogConfig(BaseModel):
    """Configuration for the remote wallpaper catalog."""

    url: str = Field(
        default=DEFAULT_CATALOG_URL,
        description="URL of the JSON wallpaper catalog"
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        le=300,
        description="Catalog request timeout in seconds"
    )
    max_retries: int = Field(
        default=1,
        ge=0,
        le=10,
        description="Retries after the first failed catalog request"
    )
    retry_delay: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Delay between catalog request attempts (seconds)"
    )
    on_failure: str = Field(
        default="empty",
        description="What a failed catalog fetch does: 'empty' returns no wallpapers, 'raise' raises"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        parsed = urlparse(v)
        if parsed.scheme not in {'http', 'https'} or not parsed.netloc:
            raise ValueError(f"Catalog URL must be an http(s) URL: {v}")
        return v

    @field_validator('on_failure')
    @classmethod
    def validate_on_failure(cls, v):
        supported = {'empty', 'raise'}
        if v.lower() not in supported:
            raise ValueError(f"Unsupported catalog failure policy: {v}. Supported: {', '.join(sorted(supported))}")
        return v.lower()


class AppConfig(BaseModel):
    """Root application configuration model."""

    version: str = Field(default="0.1.0", description="Configuration version")

    cache: CacheConfig = Field(default_factory=CacheConfig, description="Cache configuration")
    download: DownloadConfig = Field(default_factory=DownloadConfig, description="Download configuration")
    batch: BatchConfig = Field(default_factory=BatchConfig, description="Batch configuration")
    catalog: CatalogConfig = Field(default_factory=CatalogConfig, description="Catalog configuration")

    verbose: bool = Field(
        default=False,
        description="Enable verbose output"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed logging"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional file receiving log output"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )
