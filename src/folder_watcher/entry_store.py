"""In-memory index of remote entries keyed by id and by lower-cased path."""

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from .models import FolderEntry


class EntryStore:
    """
    Live entries of a watched folder, indexed twice.

    Every stored entry sits in the id index under its own id and in the
    path index under its own path_lower. The store has no lock: only the
    watcher's worker thread may mutate it. Other threads should read a
    snapshot().
    """

    def __init__(self):
        """Initialize an empty store."""
        self._by_id: Dict[str, FolderEntry] = {}
        self._by_path: Dict[str, FolderEntry] = {}

    def upsert(self, entry: FolderEntry) -> Optional[FolderEntry]:
        """
        Install an entry under its id and path.

        The entry's previous path slot is freed if it moved, and a different
        entry already occupying the target path is evicted from both indexes.

        Args:
            entry: A non-tombstone entry with id and path_lower set

        Returns:
            The evicted occupant of the target path, or None
        """
        if entry.is_deleted or not entry.id or not entry.path_lower:
            raise ValueError(f"cannot store entry without id and path: {entry!r}")

        previous = self._by_id.get(entry.id)
        if previous is not None and previous.path_lower != entry.path_lower:
            if self._by_path.get(previous.path_lower) is previous:
                del self._by_path[previous.path_lower]

        evicted = self._by_path.get(entry.path_lower)
        if evicted is not None and evicted.id != entry.id:
            if self._by_id.get(evicted.id) is evicted:
                del self._by_id[evicted.id]
        else:
            evicted = None

        self._by_id[entry.id] = entry
        self._by_path[entry.path_lower] = entry
        return evicted

    def remove_by_id(self, entry_id: str) -> Optional[FolderEntry]:
        """
        Remove an entry from both indexes.

        Args:
            entry_id: Id of the entry to remove

        Returns:
            The removed entry, or None if no entry has that id
        """
        entry = self._by_id.pop(entry_id, None)
        if entry is None:
            return None
        if self._by_path.get(entry.path_lower) is entry:
            del self._by_path[entry.path_lower]
        return entry

    def lookup_by_id(self, entry_id: str) -> Optional[FolderEntry]:
        return self._by_id.get(entry_id)

    def lookup_by_path(self, path_lower: str) -> Optional[FolderEntry]:
        return self._by_path.get(path_lower)

    def ids(self) -> List[str]:
        return list(self._by_id)

    def snapshot(self) -> Mapping[str, FolderEntry]:
        """
        Get a read-only copy of the id index.

        Returns:
            Mapping of entry id to entry, detached from later mutation
        """
        return MappingProxyType(dict(self._by_id))

    def clear(self) -> int:
        """
        Remove all entries.

        Returns:
            Number of entries removed
        """
        count = len(self._by_id)
        self._by_id.clear()
        self._by_path.clear()
        return count

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, entry_id: str) -> bool:
        return entry_id in self._by_id

    def __iter__(self) -> Iterator[FolderEntry]:
        return iter(list(self._by_id.values()))
