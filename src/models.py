"""Data models for the task tree.

Tasks reference each other by integer id only (parent_id / children), so the
whole document is a flat table keyed by id. Display rows and drop targets are
derived records that hold ids, never tasks.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# add() placements relative to the current selection
SIBLING = "sibling"
CHILD = "child"
PARENT = "parent"
PLACEMENTS: Tuple[str, ...] = (SIBLING, CHILD, PARENT)

# move() / drop positions relative to a target task
BEFORE = "before"
AFTER = "after"
POSITIONS: Tuple[str, ...] = (BEFORE, AFTER, CHILD)

SORT_CUSTOM = "custom"
SORT_ALPHABETICAL = "alphabetical"
SORT_MODES: Tuple[str, ...] = (SORT_CUSTOM, SORT_ALPHABETICAL)

# separates the fields of a saved task line
FIELD_DELIMITER = ":"


def clean_text(text: str) -> str:
    """Single-line text without the field delimiter."""
    for ch in (FIELD_DELIMITER, "\r", "\n"):
        text = text.replace(ch, " ")
    return text.strip()


@dataclass
class Task:
    """A single node of the tree.

    Fields:
        id: Document-unique integer, never reused.
        text: Single-line text (no field delimiter).
        parent_id: Parent task id; None for roots.
        done: Completion flag.
        collapsed: When set, descendants are hidden from the display list.
        order: Sibling comparator for the "custom" sort mode.
        children: Ordered child ids.
    """
    id: int
    text: str
    parent_id: Optional[int] = None
    done: bool = False
    collapsed: bool = False
    order: int = 0
    children: List[int] = field(default_factory=list)

    def copy(self) -> "Task":
        return Task(
            id=self.id,
            text=self.text,
            parent_id=self.parent_id,
            done=self.done,
            collapsed=self.collapsed,
            order=self.order,
            children=list(self.children),
        )

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Task(id={self.id}, text={self.text!r}, parent={self.parent_id})"


@dataclass(frozen=True)
class DisplayRow:
    id: int
    depth: int
    height: int


@dataclass(frozen=True)
class DropTarget:
    id: int
    position: str
    depth: int


@dataclass(frozen=True)
class HistoryEntry:
    """Independent copy of the document taken before a mutation."""
    tasks: Dict[int, Task]
    roots: Tuple[int, ...]
    selected_id: Optional[int]
    next_id: int
    action: str
    timestamp: str
