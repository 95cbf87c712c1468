"""
Abstract transport used by the watcher to reach the remote store.
"""

from abc import ABC, abstractmethod

from .models import ListFolderResult, LongPollResult


class BaseTransport(ABC):
    """
    Abstract base class for listing transports.

    Implementations own credentials and connections. A watcher only holds a
    reference, so one transport can serve several watchers.
    """

    @abstractmethod
    def send_initial_listing(self, path: str, recursive: bool) -> ListFolderResult:
        """
        List a folder from scratch.

        Args:
            path: Folder to list ("" for the root)
            recursive: Whether to include all descendants

        Returns:
            The first page of the listing

        Raises:
            TransportError: If the request fails
        """
        pass

    @abstractmethod
    def send_incremental_listing(self, cursor: str) -> ListFolderResult:
        """
        Fetch changes since a cursor.

        Raises:
            TransportError: If the request fails
        """
        pass

    @abstractmethod
    def send_long_poll(self, cursor: str, timeout: int) -> LongPollResult:
        """
        Block until changes exist past the cursor or the server gives up.

        Args:
            cursor: Cursor from the latest listing page
            timeout: Wait hint in seconds, passed to the server

        Raises:
            TransportError: If the request fails
        """
        pass
