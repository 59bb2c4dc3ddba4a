"""
Shared Test Configuration and Fixtures

Fixtures for building cache components on a temporary directory, a
controllable clock, and fake ``requests`` sessions so no test touches the
network.
"""

import os
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union
from unittest.mock import MagicMock, Mock

import pytest
import requests

from wallcache.core.cache.manager import CacheManager
from wallcache.core.cache.metadata import MetadataStore
from wallcache.core.cache.retention import RetentionPolicy
from wallcache.core.config.models import AppConfig
from wallcache.core.events.emitter import EventEmitter
from wallcache.downloader import ImageDownloader


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_response(
    chunks: Union[List[bytes], Exception, None] = None,
    status_code: int = 200,
    json_data=None
) -> MagicMock:
    """
    Build a mock streaming response.

    ``chunks`` may be a list of byte strings, or a list whose last element
    is an exception instance raised mid-stream.
    """
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code

    def iter_content(chunk_size=8192):
        for chunk in chunks or []:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    response.iter_content.side_effect = iter_content

    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=response
        )
    else:
        response.raise_for_status.return_value = None

    if json_data is not None:
        response.json.return_value = json_data
    return response


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep real config files, env vars and the home cache out of tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    for name in list(os.environ):
        if name.startswith("WALLCACHE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "wallpaper-cache"
    path.mkdir()
    return path


@pytest.fixture
def store(cache_dir):
    return MetadataStore(cache_dir / "metadata.json", lock=threading.RLock())


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def retention(cache_dir, store, clock, emitter):
    return RetentionPolicy(cache_dir, store, clock=clock, emitter=emitter)


@pytest.fixture
def cache_manager(cache_dir, store, emitter):
    return CacheManager(cache_dir, store, emitter=emitter)


@pytest.fixture
def session():
    """A requests.Session double; tests set ``session.get`` behaviour."""
    return Mock(spec=requests.Session)


@pytest.fixture
def downloader(retention, store, session, emitter, clock):
    return ImageDownloader(
        retention, store, timeout=30.0, chunk_size=4,
        session=session, emitter=emitter, clock=clock
    )


@pytest.fixture
def app_config(cache_dir):
    return AppConfig(cache={'cache_dir': str(cache_dir)}, batch={'sleep_interval': 0.0})


@pytest.fixture
def sample_catalog() -> List[Dict[str, str]]:
    return [
        {'id': '1001', 'user': 'alice', 'category': 'anime', 'original': 'https://img.example.com/a/1001.png'},
        {'id': '1002', 'user': 'bob', 'category': 'landscape', 'original': 'https://img.example.com/b/1002.jpg'},
        {'id': '1003', 'user': 'carol', 'category': 'anime', 'original': 'https://img.example.com/c/1003'},
    ]
