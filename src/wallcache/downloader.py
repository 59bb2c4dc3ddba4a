#!/usr/bin/env python3
"""
Image downloader for the wallpaper cache.

This module provides the ImageDownloader class, which streams one remote
image into its fingerprinted cache location, verifies the result, and
records it in the metadata store. A file is only ever left on disk when
the transfer completed and produced a non-empty file.
"""

import logging
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import urlparse

import requests

from wallcache.core.cache.metadata import MetadataStore
from wallcache.core.cache.retention import RetentionPolicy
from wallcache.core.config.models import DEFAULT_USER_AGENT
from wallcache.core.events.emitter import EventEmitter
from wallcache.core.events.types import DownloadCompletedEvent, DownloadStartedEvent
from wallcache.core.exceptions import (
    ConfigurationError, DownloadError, DownloadFailureReason, ErrorCode,
    ErrorContext, download_error
)
from wallcache.models import CacheEntry
from wallcache.utils import utc_now


logger = logging.getLogger(__name__)


def validate_image_url(url: Any) -> str:
    """
    Check that ``url`` is usable as an image source.

    Returns:
        The stripped URL

    Raises:
        ConfigurationError: If the URL is empty, not a string, or not an
            absolute http(s) URL
    """
    if not isinstance(url, str) or not url.strip():
        raise ConfigurationError(
            "Invalid image URL: URL is empty or not a string",
            error_code=ErrorCode.CONFIG_MISSING_REQUIRED,
            config_key="image_url",
            config_value=url
        )

    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        parsed = None

    if parsed is None or parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ConfigurationError(
            f"Invalid image URL format: {url}",
            config_key="image_url",
            config_value=url
        )
    return url


class ImageDownloader:
    """
    Streams single images into the cache.

    Downloads are idempotent: a URL whose cached file is fresh is returned
    straight from disk without any network traffic. There is no automatic
    retry; a failed URL is re-attempted by the next call.
    """

    def __init__(
        self,
        retention: RetentionPolicy,
        store: MetadataStore,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        chunk_size: int = 8192,
        session: Optional[requests.Session] = None,
        emitter: Optional[EventEmitter] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize ImageDownloader.

        Args:
            retention: Policy deciding whether an existing file can be reused
            store: Metadata store updated after each successful download
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header; some image hosts reject library defaults
            chunk_size: Bytes per streamed chunk
            session: Optional requests session (a new one is created if omitted)
            emitter: Optional event emitter for download events
            clock: Source of the download timestamp
        """
        self.retention = retention
        self.store = store
        self.timeout = timeout
        self.user_agent = user_agent
        self.chunk_size = chunk_size
        self.session = session or requests.Session()
        self.emitter = emitter
        self.clock = clock

    def download(self, url: str, image_id: str) -> Path:
        """
        Make sure ``url`` is cached and return its local path.

        Args:
            url: Remote image URL (the cache key)
            image_id: Catalog id, used for logging and stored in metadata

        Returns:
            Path to the cached file

        Raises:
            ConfigurationError: If ``url`` is not a valid http(s) URL
            DownloadError: If the transfer fails for any reason; no partial
                file is left behind
        """
        url = validate_image_url(url)
        local_path = self.retention.local_path(url)

        if self.retention.exists(url):
            try:
                cached_size = local_path.stat().st_size
            except OSError as e:
                logger.warning(f"Cached file for {image_id} vanished, downloading again: {e}")
            else:
                logger.info(f"Image already cached: {image_id}")
                self._emit(DownloadCompletedEvent(
                    image_id=image_id, url=url, local_path=str(local_path),
                    success=True, from_cache=True, file_size=cached_size
                ))
                return local_path

        logger.info(f"Downloading image: {image_id} from {url}")
        self._emit(DownloadStartedEvent(image_id=image_id, url=url, filename=local_path.name))
        started = time.monotonic()

        try:
            file_size = self._fetch_to_file(url, image_id, local_path)
        except DownloadError as e:
            self._remove_partial(local_path)
            logger.error(f"Error downloading image {image_id}: {e.message}")
            self._emit(DownloadCompletedEvent(
                image_id=image_id, url=url, success=False,
                duration_seconds=time.monotonic() - started,
                error_message=e.message, reason=e.reason.value
            ))
            raise

        self.store.put(CacheEntry(
            source_url=url,
            local_path=os.path.abspath(local_path),
            download_time=self.clock(),
            file_size=file_size,
            image_id=image_id,
        ))

        duration = time.monotonic() - started
        logger.info(f"Image downloaded successfully: {image_id} ({file_size} bytes)")
        self._emit(DownloadCompletedEvent(
            image_id=image_id, url=url, local_path=str(local_path), success=True,
            file_size=file_size, duration_seconds=duration
        ))
        return local_path

    def _fetch_to_file(self, url: str, image_id: str, local_path: Path) -> int:
        """Stream ``url`` into ``local_path`` and return the verified size."""
        context = ErrorContext(operation="download", image_id=image_id, url=url, file_path=str(local_path))
        headers = {'User-Agent': self.user_agent}

        try:
            response = self.session.get(url, stream=True, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise self._request_failure(e, url, context)

        try:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                raise download_error(
                    f"HTTP {response.status_code} for {url}",
                    DownloadFailureReason.HTTP_STATUS,
                    url=url, status_code=response.status_code, context=context, cause=e
                )
            self._write_stream(local_path, response, url, context)
        finally:
            response.close()

        try:
            file_size = local_path.stat().st_size
        except OSError as e:
            raise download_error(
                f"Downloaded file is missing: {e}",
                DownloadFailureReason.WRITE_ERROR, url=url, context=context, cause=e
            )

        if file_size == 0:
            logger.error(f"Downloaded file is empty: {image_id}")
            raise download_error("Downloaded file is empty", DownloadFailureReason.EMPTY_FILE, url=url, context=context)

        return file_size

    def _write_stream(self, local_path: Path, response: requests.Response, url: str, context: ErrorContext) -> None:
        """
        Write the response body to disk chunk by chunk.

        Raises:
            DownloadError: On stream errors (network side) or write errors
                (disk side)
        """
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            with open(local_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:  # Filter out keep-alive chunks
                        self._write_chunk(f, chunk, url, context)
        except DownloadError:
            raise
        except requests.RequestException as e:
            raise self._request_failure(e, url, context)
        except OSError as e:
            logger.error(f"Failed to write file {local_path}: {e}")
            raise download_error(
                f"Failed to write file {local_path}: {e}",
                DownloadFailureReason.WRITE_ERROR, url=url, context=context, cause=e
            )

    @staticmethod
    def _write_chunk(f, chunk: bytes, url: str, context: ErrorContext) -> None:
        try:
            f.write(chunk)
        except OSError as e:
            raise download_error(
                f"Failed to write file {context.file_path}: {e}",
                DownloadFailureReason.WRITE_ERROR, url=url, context=context, cause=e
            )

    @staticmethod
    def _request_failure(e: requests.RequestException, url: str, context: ErrorContext) -> DownloadError:
        """Map a requests exception to the matching DownloadError."""
        if isinstance(e, requests.Timeout):
            reason = DownloadFailureReason.TIMEOUT
            message = f"Timed out downloading {url}: {e}"
        elif isinstance(e, requests.ConnectionError):
            reason = DownloadFailureReason.CONNECTION
            message = f"Connection failed for {url}: {e}"
        else:
            reason = DownloadFailureReason.STREAM_ERROR
            message = f"Stream error for {url}: {e}"
        return download_error(message, reason, url=url, context=context, cause=e)

    def _remove_partial(self, local_path: Path) -> None:
        """Delete whatever a failed transfer left at ``local_path``."""
        try:
            local_path.unlink()
            logger.debug(f"Removed partial file {local_path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Could not remove partial file {local_path}: {e}")

    def _emit(self, event) -> None:
        if self.emitter:
            self.emitter.emit(event)
