"""Bounded linear undo history.

Each entry is a full copy of the document taken just before a mutation.
There is no redo: undoing discards the newer state.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional

from models import HistoryEntry
from store import TaskStore

logger = logging.getLogger(__name__)

MAX_UNDO_LEVELS = 20


class History:
    def __init__(self, max_levels: int = MAX_UNDO_LEVELS):
        self.max_levels: int = max(1, max_levels)
        self._entries: List[HistoryEntry] = []

    def snapshot(self, store: TaskStore, action: str) -> None:
        tasks, roots, selected_id, next_id = store.capture()
        self._entries.append(HistoryEntry(
            tasks=tasks,
            roots=roots,
            selected_id=selected_id,
            next_id=next_id,
            action=action,
            timestamp=datetime.now().isoformat(),
        ))
        if len(self._entries) > self.max_levels:
            dropped = self._entries.pop(0)
            logger.debug("history full; dropped %r", dropped.action)

    def undo(self, store: TaskStore) -> Optional[str]:
        """Restore the newest entry into store; returns its label or None if empty.

        The current selection survives when its task exists in the restored
        document, otherwise the entry's own selection is used.
        """
        if not self._entries:
            return None
        entry = self._entries.pop()
        selected = store.selected_id
        if selected is None or selected not in entry.tasks:
            selected = entry.selected_id
        store.restore(entry.tasks, entry.roots, selected, entry.next_id)
        logger.debug("undo %r", entry.action)
        return entry.action

    @property
    def can_undo(self) -> bool:
        return bool(self._entries)

    def peek_label(self) -> Optional[str]:
        return self._entries[-1].action if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
