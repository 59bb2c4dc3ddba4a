#!/usr/bin/env python3
"""
Tests for CatalogClient.

Covers record normalisation, local cache annotation, the retry policy and
both failure policies.
"""

import logging
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from conftest import make_response
from wallcache.catalog import CatalogClient
from wallcache.core.config.models import CatalogConfig
from wallcache.core.exceptions import CatalogError, ErrorCode
from wallcache.models import Wallpaper


CATALOG_URL = "https://catalog.example.com/wallpaper.json"


@pytest.fixture
def catalog_config():
    return CatalogConfig(url=CATALOG_URL)


@pytest.fixture
def sleep():
    return Mock()


class TestCatalogParsing:
    """Test record normalisation."""

    def test_records_are_mapped_in_order(self, session, catalog_config, sample_catalog, sleep):
        session.get.return_value = make_response(json_data=sample_catalog)
        client = CatalogClient(catalog_config, session=session, sleep=sleep)

        wallpapers = client.fetch()

        assert [w.id for w in wallpapers] == ['1001', '1002', '1003']
        assert wallpapers[0].artist == 'alice'
        assert wallpapers[0].source == 'anime'
        assert wallpapers[0].image_url == 'https://img.example.com/a/1001.png'
        assert wallpapers[0].original_url == 'https://img.example.com/a/1001.png'
        assert not any(w.is_local for w in wallpapers)
        assert client.last_error is None

    def test_user_agent_and_timeout_are_sent(self, session, catalog_config, sleep):
        session.get.return_value = make_response(json_data=[])
        client = CatalogClient(catalog_config, user_agent="test-agent/1.0", session=session, sleep=sleep)

        client.fetch()

        session.get.assert_called_once_with(
            CATALOG_URL, headers={'User-Agent': 'test-agent/1.0'}, timeout=catalog_config.timeout
        )

    def test_malformed_records_are_skipped(self, session, catalog_config, sleep):
        session.get.return_value = make_response(json_data=[
            {'id': 1, 'original': 'https://img.example.com/1.jpg'}, "junk", None, 42
        ])

        wallpapers = CatalogClient(catalog_config, session=session, sleep=sleep).fetch()

        assert [w.id for w in wallpapers] == ['1']

    def test_empty_catalog(self, session, catalog_config, sleep):
        session.get.return_value = make_response(json_data=[])
        assert CatalogClient(catalog_config, session=session, sleep=sleep).fetch() == []


class TestCatalogAnnotation:
    """Test marking catalog entries that are already cached."""

    def test_cached_entry_points_at_local_file(self, session, catalog_config, sample_catalog, sleep, tmp_path):
        cached_file = tmp_path / "cached.png"
        cached_file.write_bytes(b"png")
        resolver = Mock(side_effect=lambda url: cached_file if url.endswith("1001.png") else None)
        session.get.return_value = make_response(json_data=sample_catalog)

        wallpapers = CatalogClient(catalog_config, session=session, resolver=resolver, sleep=sleep).fetch()

        assert wallpapers[0].is_local is True
        assert wallpapers[0].image_url == cached_file.resolve().as_uri()
        assert wallpapers[0].original_url == 'https://img.example.com/a/1001.png'
        assert wallpapers[0].remote_url == 'https://img.example.com/a/1001.png'
        assert wallpapers[1].is_local is False
        assert wallpapers[1].image_url == wallpapers[1].original_url

    def test_annotate_is_idempotent(self, tmp_path):
        cached_file = tmp_path / "cached.png"
        client = CatalogClient(resolver=lambda url: cached_file, session=Mock())
        wallpaper = Wallpaper(id='1', image_url='https://img.example.com/1.png')

        client.annotate(wallpaper)
        client.annotate(wallpaper)

        assert wallpaper.original_url == 'https://img.example.com/1.png'
        assert wallpaper.image_url == Path(cached_file).resolve().as_uri()


class TestCatalogFailures:
    """Test retries and failure policies."""

    def test_one_retry_after_two_seconds(self, session, catalog_config, sample_catalog, sleep):
        session.get.side_effect = [
            requests.ConnectionError("reset"),
            make_response(json_data=sample_catalog),
        ]

        wallpapers = CatalogClient(catalog_config, session=session, sleep=sleep).fetch()

        assert len(wallpapers) == 3
        assert session.get.call_count == 2
        sleep.assert_called_once_with(2.0)

    def test_failure_returns_empty_list_and_records_error(self, session, catalog_config, sleep, caplog):
        session.get.side_effect = requests.ConnectionError("down")
        client = CatalogClient(catalog_config, session=session, sleep=sleep)

        with caplog.at_level(logging.ERROR, logger="wallcache.catalog"):
            assert client.fetch() == []

        assert session.get.call_count == 2
        assert isinstance(client.last_error, CatalogError)
        assert client.last_error.error_code == ErrorCode.CATALOG_UNAVAILABLE
        assert "returning empty list" in caplog.text

    def test_raise_policy(self, session, sleep):
        session.get.side_effect = requests.Timeout("slow")
        client = CatalogClient(CatalogConfig(url=CATALOG_URL, on_failure='raise'), session=session, sleep=sleep)

        with pytest.raises(CatalogError) as exc_info:
            client.fetch()

        assert exc_info.value.error_code == ErrorCode.NETWORK_TIMEOUT
        assert client.last_error is exc_info.value

    def test_http_error_status_is_kept(self, session, catalog_config, sleep):
        session.get.return_value = make_response(status_code=503)
        client = CatalogClient(catalog_config, session=session, sleep=sleep)

        assert client.fetch() == []
        assert client.last_error.status_code == 503

    def test_invalid_json(self, session, catalog_config, sleep):
        response = make_response()
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response
        client = CatalogClient(catalog_config, session=session, sleep=sleep)

        assert client.fetch() == []
        assert client.last_error.error_code == ErrorCode.CATALOG_INVALID_FORMAT
        sleep.assert_not_called()

    def test_non_list_payload(self, session, catalog_config, sleep):
        session.get.return_value = make_response(json_data={'wallpapers': []})
        client = CatalogClient(catalog_config, session=session, sleep=sleep)

        assert client.fetch() == []
        assert "JSON array" in client.last_error.message

    def test_successful_fetch_clears_previous_error(self, session, catalog_config, sleep):
        session.get.side_effect = [
            requests.ConnectionError("down"),
            requests.ConnectionError("down"),
            make_response(json_data=[]),
        ]
        client = CatalogClient(catalog_config, session=session, sleep=sleep)

        client.fetch()
        assert client.last_error is not None
        client.fetch()
        assert client.last_error is None

    def test_no_retry_when_disabled(self, session, sleep):
        session.get.side_effect = requests.ConnectionError("down")
        client = CatalogClient(CatalogConfig(url=CATALOG_URL, max_retries=0), session=session, sleep=sleep)

        client.fetch()

        session.get.assert_called_once()
        sleep.assert_not_called()
