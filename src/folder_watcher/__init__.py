"""
Folder Watcher Package

Keeps an in-memory copy of a remote folder (Dropbox-style: entries with
stable ids and case-insensitive paths) in sync and reports what changed.

Features:
- Initial and cursor-based incremental listings
- Long-polling with server-directed backoff
- Change sets of added, updated and removed entry ids
- Delete+add coalescing into updates, id wins over path
- Cancellation from any thread, single terminal outcome
"""

from .models import (
    DirMode,
    EntryTag,
    FolderEntry,
    FolderChanges,
    ListFolderResult,
    LongPollResult,
    MediaInfo,
    MediaMetadata,
)

from .config import WatcherConfig, DropboxConfig

from .exceptions import (
    WatcherError,
    ConfigError,
    TransportError,
    DropboxAPIError,
    CursorResetError,
    WatcherCancelledError,
    WatcherAlreadyRunningError,
)

from .entry_store import EntryStore
from .reconciler import Reconciler
from .transport import BaseTransport
from .drivers import CursorState, FetchDriver, LongPollDriver
from .dropbox_client import DropboxClient
from .watcher import FolderWatcher


__all__ = [
    # Models
    "DirMode",
    "EntryTag",
    "FolderEntry",
    "FolderChanges",
    "ListFolderResult",
    "LongPollResult",
    "MediaInfo",
    "MediaMetadata",
    # Config
    "WatcherConfig",
    "DropboxConfig",
    # Exceptions
    "WatcherError",
    "ConfigError",
    "TransportError",
    "DropboxAPIError",
    "CursorResetError",
    "WatcherCancelledError",
    "WatcherAlreadyRunningError",
    # Components
    "EntryStore",
    "Reconciler",
    "BaseTransport",
    "CursorState",
    "FetchDriver",
    "LongPollDriver",
    "DropboxClient",
    # Main loop
    "FolderWatcher",
]

__version__ = "0.1.0"
