#!/usr/bin/env python3
"""
Utility functions for wallcache.

This module provides helpers used across the package, including the
URL fingerprinting that names cache files, timestamp formatting and
parsing, and the retry decorator used for catalog requests.
"""

import functools
import hashlib
import logging
import random
import re
import time
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Callable, Optional, Tuple, Type
from urllib.parse import unquote, urlparse


logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"

_EXTENSION_PATTERN = re.compile(r'^\.[a-z0-9]{1,8}$')


def url_extension(url: str) -> str:
    """
    Extract the file extension from a URL path.

    Query strings and fragments never contribute to the extension. When the
    path has no usable suffix the default ``.jpg`` is returned.

    Examples:
        >>> url_extension("https://example.com/a/b.PNG?w=100")
        '.png'
        >>> url_extension("https://example.com/image?id=1.webp")
        '.jpg'
    """
    try:
        path = urlparse(url).path
    except ValueError:
        return DEFAULT_EXTENSION

    suffix = PurePosixPath(unquote(path)).suffix.lower()
    if suffix and _EXTENSION_PATTERN.match(suffix):
        return suffix
    return DEFAULT_EXTENSION


def fingerprint(url: str) -> str:
    """
    Derive the cache filename for a source URL.

    The name is the hex MD5 digest of the URL followed by the URL's
    extension, so the same remote asset always maps to the same file
    no matter which catalog id refers to it.

    Args:
        url: Source URL of the remote resource

    Returns:
        str: Filename such as ``'5d41402abc4b2a76b9719d911017c592.png'``
    """
    digest = hashlib.md5(url.encode('utf-8')).hexdigest()
    return f"{digest}{url_extension(url)}"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO 8601 UTC string with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value: object) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts the ``Z`` suffix written by JavaScript's ``toISOString``. Naive
    values are assumed to be UTC. Anything unparsable yields ``None``.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def exponential_backoff_retry(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    jitter: bool = True,
    log_level: int = logging.INFO,
    sleep: Callable[[float], None] = time.sleep
) -> Callable:
    """
    Decorator that implements exponential backoff retry logic.

    Args:
        max_retries: Maximum number of retry attempts after the first call
        initial_delay: Delay in seconds before the first retry
        backoff_factor: Multiplier applied to the delay after each retry;
            ``1.0`` gives a fixed delay
        exceptions: Exception types that trigger a retry
        jitter: Whether to add random jitter to delays
        log_level: Level used for the retry log lines
        sleep: Function used to wait between attempts

    Returns:
        Decorated function with retry logic

    Examples:
        @exponential_backoff_retry(max_retries=1, initial_delay=2.0, backoff_factor=1.0)
        def fetch():
            pass
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):  # +1 for initial attempt
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(f"{func.__name__} failed after {max_retries + 1} attempts: {e}")
                        raise

                    delay = initial_delay * (backoff_factor ** attempt)
                    if jitter:
                        delay += random.uniform(0, min(1.0, delay * 0.1))

                    logger.log(
                        log_level,
                        f"{func.__name__} attempt {attempt + 1} failed ({e}), retrying in {delay:.1f}s..."
                    )
                    sleep(delay)

        return wrapper
    return decorator


def request_retry(
    max_retries: int = 1,
    delay: float = 2.0,
    sleep: Callable[[float], None] = time.sleep
) -> Callable:
    """
    Convenience decorator for HTTP requests with a fixed retry delay.

    Retries on any ``requests`` exception, including HTTP status errors
    raised by ``raise_for_status``.

    Args:
        max_retries: Retries after the first attempt (default: 1)
        delay: Seconds to wait between attempts (default: 2.0)
        sleep: Function used to wait between attempts
    """
    import requests

    return exponential_backoff_retry(
        max_retries=max_retries,
        initial_delay=delay,
        backoff_factor=1.0,
        exceptions=(requests.exceptions.RequestException,),
        jitter=False,
        log_level=logging.WARNING,
        sleep=sleep
    )
