"""Folder watcher run loop."""

import logging
import threading
from typing import Callable, Mapping, Optional

from .config import WatcherConfig
from .drivers import CursorState, FetchDriver, LongPollDriver
from .entry_store import EntryStore
from .exceptions import (
    TransportError,
    WatcherAlreadyRunningError,
    WatcherCancelledError,
)
from .models import DirMode, FolderChanges, FolderEntry
from .reconciler import Reconciler
from .transport import BaseTransport

logger = logging.getLogger(__name__)


class FolderWatcher:
    """
    Keeps an EntryStore in sync with a remote folder and reports changes.

    The run loop alternates between fetching listing pages until the server
    has no more, and long-polling until the server reports new changes. It
    ends on the first transport error or when cancel() is observed; that
    outcome is delivered exactly once through run()'s return value and
    wait().

    The change callback runs on the worker thread. Slow callbacks stall
    fetching and polling.
    """

    def __init__(
        self,
        transport: BaseTransport,
        path: str,
        dir_mode: DirMode = DirMode.SHALLOW,
        config: Optional[WatcherConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize the watcher.

        Args:
            transport: Shared transport; the watcher never closes it
            path: Remote folder to watch ("" for the root)
            dir_mode: Whether to watch the whole subtree
            config: Watcher configuration
            sleep: Sleep function for long-poll backoff (for tests)
        """
        if transport is None:
            raise ValueError("transport is required")

        self.config = config or WatcherConfig()
        self.config.validate()

        self.transport = transport
        self.path = path
        self.dir_mode = dir_mode
        self.entries = EntryStore()

        self._state = CursorState()
        self._fetcher = FetchDriver(
            transport,
            Reconciler(self.entries),
            self._state,
            path,
            dir_mode,
        )
        self._poller = LongPollDriver(
            transport,
            self._state,
            timeout=self.config.longpoll_timeout_s,
            sleep=sleep,
        )

        self._cancel_event = threading.Event()
        self._exit_event = threading.Event()
        self._exit_error: Optional[BaseException] = None
        self._running = False
        self._started = False
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def cursor(self) -> str:
        return self._state.cursor

    @property
    def has_more(self) -> bool:
        return self._state.has_more

    @property
    def is_running(self) -> bool:
        """Check if the run loop is active."""
        return self._running

    @property
    def exit_error(self) -> Optional[BaseException]:
        """The terminal outcome, or None while the loop has not ended."""
        return self._exit_error

    def snapshot(self) -> Mapping[str, FolderEntry]:
        """Read-only copy of the entries, safe to hand to other threads."""
        return self.entries.snapshot()

    def cancel(self) -> None:
        """
        Ask the run loop to stop.

        Never blocks. Repeated calls, and calls after the loop ended, have no
        further effect. An in-flight request is not aborted; its result is
        discarded when it returns.
        """
        self._cancel_event.set()

    def _cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self, on_change: Callable[[FolderChanges], None]) -> BaseException:
        """
        Run the watch loop on the calling thread until it ends.

        Args:
            on_change: Called with each non-empty set of changes

        Returns:
            WatcherCancelledError if stopped by cancel(), otherwise the
            TransportError that ended the loop

        Raises:
            WatcherAlreadyRunningError: If this watcher already ran
        """
        with self._lock:
            if self._started:
                raise WatcherAlreadyRunningError("Watcher has already been started")
            self._started = True
            self._running = True

        logger.info(f"Watching {self.path!r} ({self.dir_mode.value})")
        outcome: Optional[BaseException] = None
        try:
            outcome = self._loop(on_change)
            return outcome
        except BaseException as e:
            outcome = e
            raise
        finally:
            self._finish(outcome)

    def start(self, on_change: Callable[[FolderChanges], None]) -> threading.Thread:
        """
        Run the watch loop on a background worker thread.

        Returns immediately; use wait() for the outcome.

        Args:
            on_change: Called on the worker thread with each set of changes

        Returns:
            The worker thread
        """
        with self._lock:
            if self._started or self._thread is not None:
                raise WatcherAlreadyRunningError("Watcher has already been started")
            self._thread = threading.Thread(
                target=self.run,
                args=(on_change,),
                name="FolderWatcher",
                daemon=True,
            )
        self._thread.start()
        return self._thread

    def wait(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """
        Block until the run loop ends.

        Args:
            timeout: Maximum seconds to wait (None waits forever)

        Returns:
            The terminal outcome, or None if the timeout expired first
        """
        if not self._exit_event.wait(timeout=timeout):
            return None
        return self._exit_error

    def stop(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """Cancel and wait for the run loop to end."""
        self.cancel()
        return self.wait(timeout=timeout)

    def _finish(self, outcome: Optional[BaseException]) -> None:
        with self._lock:
            self._running = False
            if self._exit_event.is_set():
                return
            self._exit_error = outcome
            self._exit_event.set()

        if isinstance(outcome, WatcherCancelledError):
            logger.info(f"Watcher for {self.path!r} cancelled")
        elif outcome is not None:
            logger.error(f"Watcher for {self.path!r} stopped: {outcome}")

    def _cancellation(self) -> WatcherCancelledError:
        return WatcherCancelledError(f"watcher for {self.path!r} was cancelled")

    def _loop(self, on_change: Callable[[FolderChanges], None]) -> BaseException:
        while True:
            # Fetching
            while True:
                if self._cancelled():
                    return self._cancellation()
                try:
                    page = self._fetcher.request_page()
                except TransportError as e:
                    return e
                if self._cancelled():
                    return self._cancellation()
                self._fetcher.apply_page(page, on_change)
                if not self._state.has_more:
                    break

            logger.info(f"Listing of {self.path!r} drained ({len(self.entries)} entries)")

            # LongPolling
            while True:
                if self._cancelled():
                    return self._cancellation()
                try:
                    result = self._poller.request()
                except TransportError as e:
                    return e
                if self._cancelled():
                    return self._cancellation()
                if self._poller.settle(result):
                    logger.info(f"Changes available under {self.path!r}")
                    break

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False
