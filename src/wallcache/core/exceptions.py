"""
Core Exception Hierarchy for wallcache

Provides error classification with error codes, recovery suggestions,
and context information so that cache and download failures can be
reported consistently to library callers and CLI users.
"""

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Numeric error codes, grouped by subsystem."""

    # 1xxx: transport
    NETWORK_CONNECTION_FAILED = 1001
    NETWORK_TIMEOUT = 1002

    # 3xxx: configuration and caller input
    CONFIG_INVALID_FORMAT = 3001
    CONFIG_MISSING_REQUIRED = 3002
    CONFIG_INVALID_VALUE = 3003
    CONFIG_FILE_NOT_FOUND = 3004

    # 4xxx: image downloads
    DOWNLOAD_HTTP_STATUS = 4001
    DOWNLOAD_STREAM_FAILED = 4002
    DOWNLOAD_EMPTY_FILE = 4003
    DOWNLOAD_WRITE_FAILED = 4004

    # 5xxx: catalog
    CATALOG_UNAVAILABLE = 5001
    CATALOG_INVALID_FORMAT = 5002

    # 6xxx: metadata persistence
    FS_METADATA_READ = 6001
    FS_METADATA_WRITE = 6002

    UNKNOWN_ERROR = 9000


class DownloadFailureReason(Enum):
    """Why a single download did not produce a valid cache file."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    STREAM_ERROR = "stream_error"
    EMPTY_FILE = "empty_file"
    WRITE_ERROR = "write_error"


_REASON_CODES = {
    DownloadFailureReason.TIMEOUT: ErrorCode.NETWORK_TIMEOUT,
    DownloadFailureReason.CONNECTION: ErrorCode.NETWORK_CONNECTION_FAILED,
    DownloadFailureReason.HTTP_STATUS: ErrorCode.DOWNLOAD_HTTP_STATUS,
    DownloadFailureReason.STREAM_ERROR: ErrorCode.DOWNLOAD_STREAM_FAILED,
    DownloadFailureReason.EMPTY_FILE: ErrorCode.DOWNLOAD_EMPTY_FILE,
    DownloadFailureReason.WRITE_ERROR: ErrorCode.DOWNLOAD_WRITE_FAILED,
}


@dataclass
class ErrorContext:
    """Where an error happened: the operation and the image, URL or file involved."""

    operation: str = ""
    image_id: Optional[str] = None
    url: Optional[str] = None
    file_path: Optional[str] = None
    correlation_id: Optional[str] = None
    user_context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecoverySuggestion:
    """Something the user can do about an error, optionally as a CLI command."""

    action: str
    description: str
    command: Optional[str] = None
    priority: int = 1  # lower sorts first

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class WallcacheError(Exception):
    """
    Base exception for all wallcache errors.

    Carries an error code, recovery suggestions and a context object
    for debugging. Every error gets a short correlation id so log lines
    and CLI output can be matched up.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
        suggestions: Optional[List[RecoverySuggestion]] = None
    ):
        """
        Args:
            message: Human-readable error description
            error_code: Error code for the failing subsystem
            context: Operation, image, URL or file involved
            cause: Underlying exception, if any
            recoverable: False when retrying cannot help without user action
            suggestions: Initial recovery suggestions
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = sorted(suggestions or [], key=lambda s: s.priority)

        if not self.context.correlation_id:
            self.context.correlation_id = uuid.uuid4().hex[:8]

    def add_suggestion(self, suggestion: RecoverySuggestion) -> None:
        self.suggestions.append(suggestion)
        self.suggestions.sort(key=lambda s: s.priority)

    def get_user_message(self) -> str:
        """Plain-text rendering for logs and non-rich output."""
        parts = [f"Error: {self.message}"]
        if self.error_code is not ErrorCode.UNKNOWN_ERROR:
            parts.append(f"Error Code: {self.error_code.value}")
        parts.append(f"Trace ID: {self.context.correlation_id}")

        if self.suggestions:
            parts.append("\nSuggested solutions:")
            for number, suggestion in enumerate(self.suggestions[:3], 1):
                parts.append(f"  {number}. {suggestion.action}: {suggestion.description}")
                if suggestion.command:
                    parts.append(f"     Run: {suggestion.command}")

        return "\n".join(parts)

    def get_debug_info(self) -> Dict[str, Any]:
        """Structured dump of the error for debug logging."""
        cause = self.cause
        return {
            'error_type': type(self).__name__,
            'message': self.message,
            'error_code': self.error_code.value,
            'recoverable': self.recoverable,
            'context': self.context.to_dict(),
            'cause': {
                'type': type(cause).__name__ if cause else None,
                'message': str(cause) if cause else None,
            },
            'suggestions': [s.to_dict() for s in self.suggestions],
        }


def _with_context(kwargs: Dict[str, Any], **values: Any) -> ErrorContext:
    """Return the context from ``kwargs`` (creating one) with ``values`` filled in."""
    context = kwargs.get('context') or ErrorContext()
    for name, value in values.items():
        if value is not None:
            setattr(context, name, value)
    kwargs['context'] = context
    return context


class NetworkError(WallcacheError):
    """Base class for failures talking to the catalog or an image host."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.NETWORK_CONNECTION_FAILED,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        context = _with_context(kwargs, url=url)
        if status_code is not None:
            context.user_context['status_code'] = status_code
        self.status_code = status_code

        super().__init__(message, error_code=error_code, **kwargs)

        if error_code in (ErrorCode.NETWORK_CONNECTION_FAILED, ErrorCode.NETWORK_TIMEOUT):
            self.add_suggestion(RecoverySuggestion(
                action="Check your connection",
                description="The image host or catalog could not be reached.",
                priority=1
            ))
            self.add_suggestion(RecoverySuggestion(
                action="Sync again later",
                description="Images that failed are downloaded on the next sync.",
                command="wallcache cache sync",
                priority=2
            ))


class DownloadError(NetworkError):
    """
    A single image download failed.

    Callers only see one outcome for all failure kinds; ``reason`` tells
    them which one it was.
    """

    def __init__(
        self,
        message: str,
        reason: DownloadFailureReason = DownloadFailureReason.STREAM_ERROR,
        url: Optional[str] = None,
        **kwargs
    ):
        self.reason = reason
        kwargs.setdefault('error_code', _REASON_CODES[reason])
        super().__init__(message, url=url, **kwargs)

    @property
    def transient(self) -> bool:
        """Whether a later retry has a reasonable chance of succeeding."""
        return self.reason in (DownloadFailureReason.TIMEOUT, DownloadFailureReason.CONNECTION)


class TransientNetworkError(DownloadError):
    """Timeout or connection failure while fetching an image."""


class IntegrityError(DownloadError):
    """The server answered successfully but the stored file is unusable."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, reason=DownloadFailureReason.EMPTY_FILE, url=url, **kwargs)


class CatalogError(NetworkError):
    """Exception raised when the wallpaper catalog cannot be fetched or parsed."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.CATALOG_UNAVAILABLE, **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class PersistenceError(WallcacheError):
    """The metadata file could not be read or written."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FS_METADATA_WRITE,
        file_path: Optional[str] = None,
        **kwargs
    ):
        _with_context(kwargs, file_path=file_path)
        super().__init__(message, error_code=error_code, **kwargs)


class ConfigurationError(WallcacheError):
    """Invalid configuration, or an invalid explicit request such as a bad image URL."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = _with_context(kwargs)
        if config_key:
            context.user_context.update(config_key=config_key, config_value=config_value)
        kwargs.setdefault('recoverable', False)

        super().__init__(message, error_code=error_code, **kwargs)

        if error_code == ErrorCode.CONFIG_FILE_NOT_FOUND:
            self.add_suggestion(RecoverySuggestion(
                action="Write a config file",
                description="Generate one with every default filled in.",
                command="wallcache config init wallcache.yaml",
            ))
        elif error_code == ErrorCode.CONFIG_INVALID_FORMAT:
            self.add_suggestion(RecoverySuggestion(
                action="Fix the config file",
                description="Compare it against the effective configuration.",
                command="wallcache config show",
            ))


def download_error(
    message: str,
    reason: DownloadFailureReason,
    url: Optional[str] = None,
    **kwargs
) -> DownloadError:
    """Create the DownloadError subclass that matches ``reason``."""
    if reason == DownloadFailureReason.EMPTY_FILE:
        return IntegrityError(message, url=url, **kwargs)
    if reason in (DownloadFailureReason.TIMEOUT, DownloadFailureReason.CONNECTION):
        return TransientNetworkError(message, reason=reason, url=url, **kwargs)
    return DownloadError(message, reason=reason, url=url, **kwargs)
