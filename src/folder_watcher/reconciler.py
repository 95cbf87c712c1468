"""Reconciliation of listing pages against the entry store."""

import logging
from enum import Enum
from typing import Dict, Iterable, Optional

from .entry_store import EntryStore
from .models import FolderChanges, FolderEntry

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


class Reconciler:
    """
    Applies listing rows to an EntryStore and computes the resulting changes.

    Rows are applied one at a time against the live store, so a later row
    sees the effect of earlier rows in the same page. Deletions are only
    marked while rows are applied and resolved once the page is done, which
    lets a delete followed by the same id reappearing coalesce into an
    update. When an id and a path disagree, the id wins.
    """

    def __init__(self, store: EntryStore):
        """
        Initialize the reconciler.

        Args:
            store: Store to update in place
        """
        self.store = store

    def apply(self, rows: Iterable[FolderEntry]) -> FolderChanges:
        """
        Apply one page of listing rows.

        Args:
            rows: Listing rows in server order

        Returns:
            The changes of this pass (empty if nothing changed)
        """
        # id -> path it vacated, or None when its slot was taken over
        pending_deletes: Dict[str, Optional[str]] = {}
        kinds: Dict[str, ChangeKind] = {}
        # whether an id was in the store before this pass touched it
        known_before: Dict[str, bool] = {}

        def touch(entry_id: str) -> None:
            if entry_id not in known_before:
                known_before[entry_id] = entry_id in self.store

        def classify(entry_id: str, kind: ChangeKind) -> None:
            # An id first seen in this pass stays "added" however often it changes
            if kinds.get(entry_id) == ChangeKind.ADDED and kind == ChangeKind.UPDATED:
                return
            kinds[entry_id] = kind

        for row in rows:
            if not row.path_lower:
                logger.debug(f"Skipping unmounted entry: {row.name!r}")
                continue

            prev = self.store.lookup_by_path(row.path_lower)

            if row.is_deleted:
                if prev is not None:
                    touch(prev.id)
                    pending_deletes[prev.id] = row.path_lower
                continue

            if not row.id:
                logger.debug(f"Skipping entry without id: {row.path_lower}")
                continue

            touch(row.id)

            if prev is None:
                if row.id in pending_deletes:
                    # deleted earlier in this page, now alive at a new path
                    del pending_deletes[row.id]
                    classify(row.id, ChangeKind.UPDATED)
                else:
                    classify(row.id, ChangeKind.ADDED)
            elif prev.id == row.id:
                pending_deletes.pop(row.id, None)
                classify(row.id, ChangeKind.UPDATED)
            else:
                touch(prev.id)
                pending_deletes.pop(row.id, None)
                # the store keeps both indexes in step, so prev is still known by id
                pending_deletes[prev.id] = None
                classify(row.id, ChangeKind.UPDATED)

            self.store.upsert(row)

        for entry_id, vacated_path in pending_deletes.items():
            self.store.remove_by_id(entry_id)
            if known_before.get(entry_id):
                kinds[entry_id] = ChangeKind.REMOVED
                logger.debug(f"Removed {entry_id} from {vacated_path or 'replaced slot'}")
            else:
                # appeared and disappeared within this page
                kinds.pop(entry_id, None)

        changes = FolderChanges()
        for entry_id, kind in kinds.items():
            if kind == ChangeKind.ADDED:
                changes.added.append(entry_id)
            elif kind == ChangeKind.UPDATED:
                changes.updated.append(entry_id)
            else:
                changes.removed.append(entry_id)
        return changes
