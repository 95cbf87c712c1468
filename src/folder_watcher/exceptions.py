"""Custom exceptions for the folder watcher package."""

from typing import Optional


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class ConfigError(WatcherError):
    """Invalid watcher or client configuration."""
    pass


class TransportError(WatcherError):
    """Failure talking to the remote store, including malformed responses."""
    pass


class DropboxAPIError(TransportError):
    """Error response from the Dropbox API."""
    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        error_tag: Optional[str] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.error_tag = error_tag


class CursorResetError(DropboxAPIError):
    """The listing cursor was invalidated; a full listing is required."""
    pass


class WatcherCancelledError(WatcherError):
    """Watcher stopped because cancel() was called."""
    pass


class WatcherAlreadyRunningError(WatcherError):
    """Watcher run loop is already running."""
    pass
