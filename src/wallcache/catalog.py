"""
Wallpaper catalog client.

Fetches the remote JSON catalog, normalises its records into Wallpaper
objects and marks the ones already present in the local cache.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, List, Optional

import requests

from wallcache.core.config.models import DEFAULT_USER_AGENT, CatalogConfig
from wallcache.core.exceptions import CatalogError, ErrorCode, ErrorContext
from wallcache.models import Wallpaper
from wallcache.utils import request_retry


logger = logging.getLogger(__name__)

LocalResolver = Callable[[str], Optional[Path]]


class CatalogClient:
    """
    Client for the remote wallpaper catalog.

    The catalog is a JSON array of ``{id, user, category, original}``
    records. Depending on ``config.on_failure`` a failed fetch either
    returns an empty list (remembering the error in ``last_error``) or
    raises CatalogError.
    """

    def __init__(
        self,
        config: Optional[CatalogConfig] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
        resolver: Optional[LocalResolver] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize CatalogClient.

        Args:
            config: Catalog configuration (defaults if omitted)
            user_agent: User-Agent header for catalog requests
            session: Optional requests session
            resolver: Maps a remote URL to its cached file, if any
            sleep: Function used to wait between retry attempts
        """
        self.config = config or CatalogConfig()
        self.user_agent = user_agent
        self.session = session or requests.Session()
        self.resolver = resolver
        self.sleep = sleep
        self.last_error: Optional[CatalogError] = None

    def fetch(self) -> List[Wallpaper]:
        """
        Fetch the catalog and annotate it with local cache state.

        Returns:
            Wallpapers in catalog order, or an empty list on failure when the
            failure policy is ``empty``

        Raises:
            CatalogError: On failure when the failure policy is ``raise``
        """
        self.last_error = None
        try:
            records = self._get_records()
            wallpapers = self._parse(records)
        except CatalogError as e:
            self.last_error = e
            if self.config.on_failure == 'raise':
                raise
            logger.error(f"Error fetching wallpapers, returning empty list: {e.message}")
            return []

        logger.info(f"Fetched {len(wallpapers)} wallpapers from catalog")
        return [self.annotate(wallpaper) for wallpaper in wallpapers]

    def annotate(self, wallpaper: Wallpaper) -> Wallpaper:
        """
        Point ``image_url`` at the cached file when one exists.

        The remote address is always kept in ``original_url``.
        """
        remote_url = wallpaper.remote_url
        local_path = self.resolver(remote_url) if self.resolver and remote_url else None

        wallpaper.original_url = remote_url
        wallpaper.is_local = local_path is not None
        wallpaper.image_url = Path(local_path).resolve().as_uri() if local_path else remote_url
        return wallpaper

    def _get_records(self) -> Any:
        context = ErrorContext(operation="fetch_catalog", url=self.config.url)

        @request_retry(
            max_retries=self.config.max_retries,
            delay=self.config.retry_delay,
            sleep=self.sleep
        )
        def _request() -> requests.Response:
            response = self.session.get(
                self.config.url,
                headers={'User-Agent': self.user_agent},
                timeout=self.config.timeout
            )
            response.raise_for_status()
            return response

        try:
            response = _request()
        except requests.RequestException as e:
            status_code = getattr(getattr(e, 'response', None), 'status_code', None)
            error_code = ErrorCode.NETWORK_TIMEOUT if isinstance(e, requests.Timeout) else ErrorCode.CATALOG_UNAVAILABLE
            raise CatalogError(
                f"Catalog request failed: {e}",
                error_code=error_code,
                url=self.config.url,
                status_code=status_code,
                context=context,
                cause=e
            )

        try:
            return response.json()
        except ValueError as e:
            raise CatalogError(
                f"Catalog response is not valid JSON: {e}",
                error_code=ErrorCode.CATALOG_INVALID_FORMAT,
                url=self.config.url,
                context=context,
                cause=e
            )

    def _parse(self, records: Any) -> List[Wallpaper]:
        if not isinstance(records, list):
            raise CatalogError(
                f"Catalog must be a JSON array, got {type(records).__name__}",
                error_code=ErrorCode.CATALOG_INVALID_FORMAT,
                url=self.config.url
            )

        wallpapers = []
        for record in records:
            if not isinstance(record, dict):
                logger.debug(f"Skipping malformed catalog record: {record!r}")
                continue
            wallpapers.append(Wallpaper.from_catalog_record(record))
        return wallpapers
