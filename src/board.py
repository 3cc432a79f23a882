"""Board logic: the mutation engine over one task document.

Every mutating operation follows the same envelope: snapshot into history,
change the store, invalidate the projection, flag the document for saving.
Operations on unknown ids and rejected moves return early, before the
snapshot, and leave everything untouched.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from dropzone import DROP_ZONE_THRESHOLD, resolve, row_at
from history import History, MAX_UNDO_LEVELS
from models import (AFTER, BEFORE, CHILD, PARENT, PLACEMENTS, SIBLING,
                    SORT_ALPHABETICAL, SORT_MODES, DisplayRow, clean_text)
from projection import Projection
from settings import Settings
from store import TaskStore

logger = logging.getLogger(__name__)


class Board:
    def __init__(
        self,
        store: Optional[TaskStore] = None,
        settings: Optional[Settings] = None,
        max_undo: int = MAX_UNDO_LEVELS,
        drop_zone_threshold: float = DROP_ZONE_THRESHOLD,
        **projection_options,
    ):
        self.store: TaskStore = store if store is not None else TaskStore()
        self.settings: Settings = settings if settings is not None else Settings()
        self.history: History = History(max_undo)
        self.projection: Projection = Projection(self.store, self.settings, **projection_options)
        self.drop_zone_threshold = drop_zone_threshold
        self.needs_save: bool = False

    # -------------------- envelope --------------------
    def _begin(self, action: str) -> None:
        self.history.snapshot(self.store, action)

    def _commit(self) -> None:
        self.projection.invalidate()
        self.needs_save = True

    # -------------------- queries --------------------
    @property
    def selected_id(self) -> Optional[int]:
        return self.store.selected_id

    def display_list(self) -> List[DisplayRow]:
        return self.projection.get_display_list()

    def is_visible(self, task_id: int) -> bool:
        """False when task_id is hidden by the completed filter (itself or an ancestor done)."""
        task = self.store.get(task_id)
        if task is None:
            return False
        if self.settings.show_completed:
            return True
        return not task.done and not self.store.is_ancestor_done(task_id)

    # -------------------- task operations --------------------
    def add(self, text: str, placement: str = SIBLING) -> Optional[int]:
        """Create a task relative to the selection; returns its id, or None for empty text."""
        text = clean_text(text)
        if not text:
            return None
        if placement not in PLACEMENTS:
            logger.debug("add: unknown placement %r, using sibling", placement)
            placement = SIBLING
        self._begin("Add task")
        store = self.store
        selected = store.get(store.selected_id)

        if selected is not None and placement == CHILD:
            new_id = store.create(text, parent_id=selected.id)
        elif selected is not None and placement == PARENT and selected.parent_id is not None:
            former_parent = store.get(selected.parent_id)
            siblings = store.siblings_of(former_parent.id)
            new_id = store.create(text, parent_id=former_parent.parent_id,
                                  index=siblings.index(former_parent.id) + 1)
            store.selected_id = new_id
        elif selected is not None:
            # plain sibling, or parent-level of a root which is the same thing
            siblings = store.siblings_of(selected.id)
            new_id = store.create(text, parent_id=selected.parent_id,
                                  index=siblings.index(selected.id) + 1)
            store.selected_id = new_id
        else:
            new_id = store.create(text)
            store.selected_id = new_id

        store.renumber()
        self._commit()
        return new_id

    def delete(self, task_id: int) -> bool:
        if not self.store.contains(task_id):
            return False
        self._begin("Delete task")
        removed = self.store.delete_subtree(task_id)
        logger.debug("deleted %d task(s) under %s", len(removed), task_id)
        self._commit()
        return True

    def toggle_done(self, task_id: int) -> bool:
        task = self.store.get(task_id)
        if task is None:
            return False
        self._begin("Toggle done")
        task.done = not task.done
        self._drop_hidden_selection()
        self._commit()
        return True

    def toggle_collapsed(self, task_id: int) -> bool:
        task = self.store.get(task_id)
        if task is None or not task.children:
            return False
        self._begin("Toggle collapse")
        task.collapsed = not task.collapsed
        self._commit()
        return True

    def can_move(self, task_id: int, target_id: int, position: str) -> bool:
        store = self.store
        target = store.get(target_id)
        if not store.contains(task_id) or target is None or task_id == target_id:
            return False
        if position == CHILD:
            return not store.is_descendant_or_self(target_id, task_id)
        if position in (BEFORE, AFTER):
            return target.parent_id is None or not store.is_descendant_or_self(target.parent_id, task_id)
        return False

    def move(self, task_id: int, target_id: int, position: str) -> bool:
        """Re-parent or reorder task_id relative to target_id; False if refused."""
        if not self.can_move(task_id, target_id, position):
            logger.debug("move(%s, %s, %s) rejected", task_id, target_id, position)
            return False
        self._begin("Move task")
        store = self.store
        if position == CHILD:
            store.set_parent(task_id, target_id)
        else:
            target = store.get(target_id)
            store.detach(task_id)
            siblings = store.siblings_of(target_id)
            index = siblings.index(target_id)
            if position == AFTER:
                index += 1
            store.set_parent(task_id, target.parent_id, index)
        store.renumber()
        self._commit()
        return True

    def drop(self, task_id: int, pointer_y: float, scroll_offset: float = 0,
             viewport_height: Optional[int] = None) -> bool:
        """Finish a drag of task_id at pointer_y over the current display list.

        With a viewport height the scroll offset is first clamped to the
        scrollable range of the list.
        """
        if viewport_height is not None:
            scroll_offset = self.projection.clamp_scroll(scroll_offset, viewport_height)
        target = resolve(pointer_y, self.display_list(), scroll_offset, self.drop_zone_threshold)
        if target is None:
            return False
        return self.move(task_id, target.id, target.position)

    def undo(self) -> Optional[str]:
        action = self.history.undo(self.store)
        if action is None:
            return None
        # the filter is not part of history and may have changed since
        self._drop_hidden_selection()
        self._commit()
        return action

    # -------------------- selection / view --------------------
    def select(self, task_id: Optional[int]) -> None:
        if task_id is not None and not self.is_visible(task_id):
            task_id = None
        self.store.select(task_id)

    def select_at(self, pointer_y: float, scroll_offset: float = 0) -> Optional[int]:
        """Select the row under pointer_y; a miss clears the selection."""
        row = row_at(pointer_y, self.display_list(), scroll_offset)
        self.select(row.id if row is not None else None)
        return self.selected_id

    def _drop_hidden_selection(self) -> None:
        selected = self.store.selected_id
        if selected is not None and not self.is_visible(selected):
            self.store.selected_id = None

    def set_show_completed(self, show: bool) -> None:
        if show == self.settings.show_completed:
            return
        self._begin("Toggle show completed")
        self.settings.show_completed = show
        self._drop_hidden_selection()
        self._commit()

    def set_sort_mode(self, mode: str) -> None:
        if mode not in SORT_MODES or mode == self.settings.sort_mode:
            return
        self._begin("Sort alphabetical" if mode == SORT_ALPHABETICAL else "Sort custom")
        self.settings.sort_mode = mode
        self._commit()

    def set_wrap_task_text(self, wrap: bool) -> None:
        if wrap == self.settings.wrap_task_text:
            return
        self._begin("Toggle text wrap")
        self.settings.wrap_task_text = wrap
        self._commit()

    def load_document(self, store: TaskStore, settings: Settings) -> None:
        """Swap in another document; its undo history starts empty."""
        self.store = store
        self.settings = settings
        self.projection.store = store
        self.projection.settings = settings
        self.projection.invalidate()
        self.history.clear()
        self.needs_save = False

    def __str__(self) -> str:
        done = sum(1 for t in self.store.tasks.values() if t.done)
        return f'{len(self.store)} tasks, {done} done, {len(self.history)} undo level(s)'


