"""Projection cache: the flat, filtered, sorted list of visible rows.

The list is rebuilt only after ``invalidate()``; repeated reads in between
return the same list object. Sorting happens on copies of the sibling lists,
so the stored ``order`` values are never touched here.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from models import DisplayRow, SORT_ALPHABETICAL, Task
from settings import Settings
from store import TaskStore

logger = logging.getLogger(__name__)

ROW_HEIGHT = 24
LINE_HEIGHT = 18
INDENT_COLUMNS = 2
WRAP_PADDING = 8


def wrap_lines(text: str, limit: int) -> List[str]:
    """Greedy word wrap; a single over-long word gets a line of its own."""
    words = text.split()
    if not words:
        return [text]
    lines: List[str] = []
    current = ''
    for w in words:
        candidate = w if not current else current + ' ' + w
        if len(candidate) <= limit or limit <= 0:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = w
    if current:
        lines.append(current)
    return lines


class Projection:
    def __init__(
        self,
        store: TaskStore,
        settings: Optional[Settings] = None,
        row_height: int = ROW_HEIGHT,
        line_height: int = LINE_HEIGHT,
        wrap_width: Optional[int] = None,
        indent_columns: int = INDENT_COLUMNS,
    ):
        self.store = store
        self.settings = settings or Settings()
        self.row_height = row_height
        self.line_height = line_height
        # character columns available to a root row; None disables wrapping
        self.wrap_width = wrap_width
        self.indent_columns = indent_columns
        self._rows: Optional[List[DisplayRow]] = None

    @property
    def dirty(self) -> bool:
        return self._rows is None

    def invalidate(self) -> None:
        self._rows = None

    def get_display_list(self) -> List[DisplayRow]:
        if self._rows is None:
            self._rows = self._build()
            logger.debug("display list rebuilt: %d rows", len(self._rows))
        return self._rows

    def max_scroll(self, viewport_height: int) -> int:
        total = sum(row.height for row in self.get_display_list())
        return max(0, total - viewport_height)

    def clamp_scroll(self, offset: float, viewport_height: int) -> float:
        return max(0, min(offset, self.max_scroll(viewport_height)))

    # -------------------- rebuild --------------------
    def _sorted(self, ids: List[int]) -> List[int]:
        tasks = self.store.tasks
        present = [i for i in ids if i in tasks]
        if self.settings.sort_mode == SORT_ALPHABETICAL:
            return sorted(present, key=lambda i: tasks[i].text.lower())
        return sorted(present, key=lambda i: tasks[i].order)

    def _build(self) -> List[DisplayRow]:
        tasks = self.store.tasks
        hide_done = not self.settings.show_completed
        rows: List[DisplayRow] = []
        stack = [(rid, 0) for rid in reversed(self._sorted(self.store.root_ids))]
        while stack:
            task_id, depth = stack.pop()
            task = tasks[task_id]
            if hide_done and task.done:
                continue
            rows.append(DisplayRow(id=task_id, depth=depth, height=self._row_height(task, depth)))
            if not task.collapsed:
                stack.extend((cid, depth + 1) for cid in reversed(self._sorted(task.children)))
        return rows

    def text_lines(self, task: Task, depth: int) -> List[str]:
        """The task text as drawn: wrapped when wrapping is on and a width is set."""
        if not self.settings.wrap_task_text or self.wrap_width is None:
            return [task.text]
        available = self.wrap_width - depth * self.indent_columns
        if available <= 0:
            return [task.text]
        return wrap_lines(task.text, available)

    def _row_height(self, task: Task, depth: int) -> int:
        lines = self.text_lines(task, depth)
        if len(lines) <= 1:
            return self.row_height
        return max(self.row_height, len(lines) * self.line_height + WRAP_PADDING)
