"""Shared fixtures for folder watcher tests."""

import threading
from typing import List, Optional

import pytest

from src.folder_watcher.exceptions import TransportError
from src.folder_watcher.models import (
    EntryTag,
    FolderEntry,
    ListFolderResult,
    LongPollResult,
)
from src.folder_watcher.transport import BaseTransport


def file_entry(entry_id: str, path: str, rev: str = "015a0000000000000001") -> FolderEntry:
    return FolderEntry(
        tag=EntryTag.FILE,
        name=path.rsplit("/", 1)[-1],
        id=entry_id,
        path_lower=path.lower(),
        path_display=path,
        rev=rev,
        size=1,
    )


def folder_entry(entry_id: str, path: str) -> FolderEntry:
    return FolderEntry(
        tag=EntryTag.FOLDER,
        name=path.rsplit("/", 1)[-1],
        id=entry_id,
        path_lower=path.lower(),
        path_display=path,
    )


def tombstone(path: str) -> FolderEntry:
    return FolderEntry(
        tag=EntryTag.DELETED,
        name=path.rsplit("/", 1)[-1],
        path_lower=path.lower(),
        path_display=path,
    )


class ScriptedTransport(BaseTransport):
    """
    Transport answering from pre-scripted queues.

    Each queue holds ListFolderResult/LongPollResult objects or exceptions
    to raise. Calls are recorded for assertions.
    """

    def __init__(
        self,
        listings: Optional[List] = None,
        polls: Optional[List] = None,
    ):
        self.listings = list(listings or [])
        self.polls = list(polls or [])
        self.calls: List[tuple] = []
        self.on_poll = None

    def _next(self, queue: List):
        if not queue:
            raise TransportError("script exhausted")
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def send_initial_listing(self, path: str, recursive: bool) -> ListFolderResult:
        self.calls.append(("initial", path, recursive))
        return self._next(self.listings)

    def send_incremental_listing(self, cursor: str) -> ListFolderResult:
        self.calls.append(("incremental", cursor))
        return self._next(self.listings)

    def send_long_poll(self, cursor: str, timeout: int) -> LongPollResult:
        self.calls.append(("longpoll", cursor, timeout))
        if self.on_poll is not None:
            self.on_poll()
        return self._next(self.polls)


class BlockingTransport(BaseTransport):
    """Transport whose long-poll blocks until released."""

    def __init__(self, entries: Optional[List[FolderEntry]] = None):
        self.entries = entries or []
        self.polling = threading.Event()
        self.release = threading.Event()
        self.poll_count = 0

    def send_initial_listing(self, path: str, recursive: bool) -> ListFolderResult:
        return ListFolderResult(entries=list(self.entries), cursor="c1", has_more=False)

    def send_incremental_listing(self, cursor: str) -> ListFolderResult:
        return ListFolderResult(entries=[], cursor=cursor, has_more=False)

    def send_long_poll(self, cursor: str, timeout: int) -> LongPollResult:
        self.poll_count += 1
        self.polling.set()
        self.release.wait(timeout=5.0)
        return LongPollResult(changes=False)


class FakeClock:
    """Simulated sleep that records requested durations."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
