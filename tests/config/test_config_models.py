"""
Tests for Configuration Models

Tests the Pydantic configuration models for validation, defaults,
and serialization.
"""

from datetime import timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from wallcache.core.config.models import (
    DEFAULT_CATALOG_URL, DEFAULT_USER_AGENT, AppConfig, BatchConfig,
    CacheConfig, CatalogConfig, DownloadConfig
)


class TestCacheConfig:
    """Test CacheConfig model validation and defaults."""

    def test_default_values(self, isolated_environment):
        config = CacheConfig()

        assert config.cache_dir == isolated_environment / ".wallcache" / "wallpaper-cache"
        assert config.metadata_filename == "metadata.json"
        assert config.ttl == timedelta(days=7)
        assert config.metadata_path == config.cache_dir / "metadata.json"

    def test_metadata_path_expands_home(self, isolated_environment):
        config = CacheConfig(cache_dir="~/walls", metadata_filename="index.json")
        assert config.metadata_path == isolated_environment / "walls" / "index.json"

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValidationError):
            CacheConfig(ttl_days=0)

    @pytest.mark.parametrize("name", ["", "../metadata.json", "sub/metadata.json", ".."])
    def test_metadata_filename_must_be_plain_name(self, name):
        with pytest.raises(ValidationError):
            CacheConfig(metadata_filename=name)

    def test_cache_dir_from_string(self, tmp_path):
        config = CacheConfig(cache_dir=str(tmp_path / "c"))
        assert config.cache_dir == tmp_path / "c"


class TestDownloadAndBatchConfig:
    """Test download and batch settings."""

    def test_download_defaults(self):
        config = DownloadConfig()
        assert config.timeout == 30.0
        assert config.user_agent == DEFAULT_USER_AGENT
        assert "Mozilla/5.0" in config.user_agent
        assert config.chunk_size == 8192

    def test_timeout_bounds(self):
        with pytest.raises(ValidationError):
            DownloadConfig(timeout=0)
        with pytest.raises(ValidationError):
            DownloadConfig(timeout=601)

    def test_batch_defaults(self):
        config = BatchConfig()
        assert config.sleep_interval == 1.0
        assert config.limit is None

    def test_negative_sleep_rejected(self):
        with pytest.raises(ValidationError):
            BatchConfig(sleep_interval=-0.5)

    def test_zero_sleep_allowed(self):
        assert BatchConfig(sleep_interval=0).sleep_interval == 0


class TestCatalogConfig:
    """Test catalog settings."""

    def test_defaults(self):
        config = CatalogConfig()
        assert config.url == DEFAULT_CATALOG_URL
        assert config.timeout == 10.0
        assert config.max_retries == 1
        assert config.retry_delay == 2.0
        assert config.on_failure == "empty"

    def test_url_must_be_http(self):
        with pytest.raises(ValidationError):
            CatalogConfig(url="ftp://example.com/catalog.json")

    def test_on_failure_is_normalised(self):
        assert CatalogConfig(on_failure="RAISE").on_failure == "raise"

    def test_unknown_failure_policy_rejected(self):
        with pytest.raises(ValidationError, match="Unsupported catalog failure policy"):
            CatalogConfig(on_failure="retry-forever")


class TestAppConfig:
    """Test the root configuration model."""

    def test_nested_override(self, tmp_path):
        config = AppConfig(
            cache={'cache_dir': str(tmp_path), 'ttl_days': 3},
            batch={'sleep_interval': 0.5, 'limit': 10},
        )

        assert config.cache.cache_dir == Path(tmp_path)
        assert config.cache.ttl == timedelta(days=3)
        assert config.batch.limit == 10
        assert config.download.timeout == 30.0

    def test_serialization(self, tmp_path):
        config = AppConfig(cache={'cache_dir': str(tmp_path)})
        data = config.model_dump(mode='json')

        assert data['cache']['cache_dir'] == str(tmp_path)
        assert data['catalog']['on_failure'] == "empty"
        assert AppConfig(**data) == config

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            AppConfig(unknown_option=True)

    def test_field_validation_on_assignment(self):
        config = AppConfig()
        with pytest.raises(ValidationError):
            config.verbose = "not-a-bool-at-all"
