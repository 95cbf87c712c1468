"""Listing and long-poll drivers used by the watcher run loop."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .models import DirMode, FolderChanges, ListFolderResult, LongPollResult
from .reconciler import Reconciler
from .transport import BaseTransport

logger = logging.getLogger(__name__)


@dataclass
class CursorState:
    """
    Listing position shared by the fetch and long-poll drivers.

    Attributes:
        cursor: Opaque token, "" until a listing has completed
        has_more: Whether the server has more pages for the cursor
    """
    cursor: str = ""
    has_more: bool = False


class FetchDriver:
    """
    Pulls listing pages and feeds them to the reconciler.

    Uses an initial listing while the cursor is empty and incremental
    listings afterwards. Transport errors propagate to the caller.
    """

    def __init__(
        self,
        transport: BaseTransport,
        reconciler: Reconciler,
        state: CursorState,
        path: str,
        dir_mode: DirMode = DirMode.SHALLOW,
    ):
        self.transport = transport
        self.reconciler = reconciler
        self.state = state
        self.path = path
        self.dir_mode = dir_mode

    def request_page(self) -> ListFolderResult:
        """
        Send the next listing request without applying it.

        Returns:
            The listing page
        """
        if not self.state.cursor:
            logger.debug(f"Initial listing of {self.path!r} ({self.dir_mode.value})")
            return self.transport.send_initial_listing(
                self.path,
                self.dir_mode == DirMode.RECURSIVE,
            )
        return self.transport.send_incremental_listing(self.state.cursor)

    def apply_page(
        self,
        result: ListFolderResult,
        on_change: Optional[Callable[[FolderChanges], None]] = None,
    ) -> FolderChanges:
        """
        Record the page's cursor and reconcile its entries.

        The cursor and has_more flag are stored even for empty pages.

        Args:
            result: Listing page from request_page()
            on_change: Called with the changes if there are any

        Returns:
            The changes produced by the page
        """
        self.state.cursor = result.cursor
        self.state.has_more = result.has_more

        changes = self.reconciler.apply(result.entries)
        logger.debug(
            f"Applied {len(result.entries)} entries: +{len(changes.added)} "
            f"~{len(changes.updated)} -{len(changes.removed)} (has_more={result.has_more})"
        )
        if changes and on_change is not None:
            on_change(changes)
        return changes

    def fetch(self, on_change: Optional[Callable[[FolderChanges], None]] = None) -> FolderChanges:
        """Request and apply one page."""
        return self.apply_page(self.request_page(), on_change)

    def fetch_all(self, on_change: Optional[Callable[[FolderChanges], None]] = None) -> int:
        """
        Fetch pages until the server reports no more.

        Returns:
            Number of pages fetched
        """
        pages = 0
        while True:
            self.fetch(on_change)
            pages += 1
            if not self.state.has_more:
                return pages


class LongPollDriver:
    """
    Waits for the server to report changes past the current cursor.

    A backoff returned by the server is always slept in full before going on.
    """

    def __init__(
        self,
        transport: BaseTransport,
        state: CursorState,
        timeout: int = 30,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the driver.

        Args:
            transport: Transport to long-poll with
            state: Cursor state shared with the fetch driver
            timeout: Wait hint in seconds sent to the server
            sleep: Sleep function, replaceable for simulated time
        """
        self.transport = transport
        self.state = state
        self.timeout = timeout
        self._sleep = sleep or time.sleep

    def request(self) -> LongPollResult:
        """Send one long-poll request carrying the current cursor."""
        return self.transport.send_long_poll(self.state.cursor, self.timeout)

    def settle(self, result: LongPollResult) -> bool:
        """
        Honor a long-poll answer: sleep out any backoff, then record changes.

        Returns:
            True if the server reported changes
        """
        if result.backoff > 0:
            logger.warning(f"Server requested backoff of {result.backoff}s")
            self._sleep(result.backoff)
        if result.changes:
            self.state.has_more = True
            return True
        return False

    def poll_once(self) -> bool:
        """
        Send one long-poll and honor its backoff.

        Returns:
            True if the server reported changes
        """
        return self.settle(self.request())

    def wait_for_changes(self) -> None:
        """Long-poll until the server reports changes."""
        while not self.poll_once():
            logger.debug("Long-poll returned without changes")
