"""Task store: the document's node table, root ordering and selection.

All structural edits are id rewrites on a flat table. Tree walks use explicit
stacks; nesting depth is unbounded.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from models import Task, clean_text

logger = logging.getLogger(__name__)


class TaskStore:
    def __init__(self) -> None:
        self.tasks: Dict[int, Task] = {}
        self.root_ids: List[int] = []
        self.next_id: int = 1
        self.selected_id: Optional[int] = None

    # -------------------- queries --------------------
    def get(self, task_id: Optional[int]) -> Optional[Task]:
        if task_id is None:
            return None
        return self.tasks.get(task_id)

    def contains(self, task_id: Optional[int]) -> bool:
        return task_id is not None and task_id in self.tasks

    def roots(self) -> List[int]:
        return list(self.root_ids)

    def children_of(self, task_id: int) -> List[int]:
        task = self.tasks.get(task_id)
        return list(task.children) if task else []

    def siblings_of(self, task_id: int) -> List[int]:
        """Return the live list that holds task_id (parent's children or roots)."""
        task = self.tasks.get(task_id)
        parent = self.get(task.parent_id) if task else None
        if parent is not None:
            return parent.children
        return self.root_ids

    def is_descendant_or_self(self, candidate_id: int, ancestor_id: int) -> bool:
        """True if candidate_id == ancestor_id or lies in ancestor_id's subtree."""
        if candidate_id == ancestor_id:
            return True
        stack = list(self.children_of(ancestor_id))
        seen = set()
        while stack:
            current = stack.pop()
            if current == candidate_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.children_of(current))
        return False

    def is_ancestor_done(self, task_id: int) -> bool:
        task = self.tasks.get(task_id)
        seen = set()
        while task is not None and task.parent_id is not None and task.parent_id not in seen:
            seen.add(task.parent_id)
            task = self.tasks.get(task.parent_id)
            if task is not None and task.done:
                return True
        return False

    def walk(self) -> Iterator[Tuple[int, int]]:
        """Yield (task_id, depth) in pre-order over the stored ordering."""
        stack = [(rid, 0) for rid in reversed(self.root_ids)]
        while stack:
            task_id, depth = stack.pop()
            task = self.tasks.get(task_id)
            if task is None:
                continue
            yield task_id, depth
            stack.extend((cid, depth + 1) for cid in reversed(task.children))

    def max_order(self) -> int:
        return max((t.order for t in self.tasks.values()), default=0)

    # -------------------- structural edits --------------------
    def _allocate_id(self) -> int:
        nid = self.next_id
        self.next_id += 1
        return nid

    def create(self, text: str, parent_id: Optional[int] = None, index: Optional[int] = None) -> int:
        """Register a new task and insert it at index (default: end) of its sibling list.

        The text is flattened to one line without the field delimiter.
        """
        parent = self.get(parent_id)
        task = Task(id=self._allocate_id(), text=clean_text(text), order=self.max_order() + 1)
        self.tasks[task.id] = task
        self._attach(task, parent, index)
        return task.id

    def detach(self, task_id: int) -> None:
        """Unlink task_id from its parent's children (or the roots); the task stays in the table."""
        task = self.tasks.get(task_id)
        if task is None:
            return
        siblings = self.siblings_of(task_id)
        if task_id in siblings:
            siblings.remove(task_id)
        task.parent_id = None

    def _attach(self, task: Task, parent: Optional[Task], index: Optional[int]) -> None:
        siblings = parent.children if parent is not None else self.root_ids
        task.parent_id = parent.id if parent is not None else None
        if index is None or index > len(siblings):
            siblings.append(task.id)
        else:
            siblings.insert(max(0, index), task.id)

    def set_parent(self, task_id: int, new_parent_id: Optional[int], index: Optional[int] = None) -> bool:
        """Re-attach task_id under new_parent_id (None: root). Refuses cycle-forming edges."""
        task = self.tasks.get(task_id)
        if task is None:
            return False
        parent = self.get(new_parent_id)
        if parent is not None and self.is_descendant_or_self(parent.id, task_id):
            logger.debug("set_parent(%s, %s) refused: would create a cycle", task_id, new_parent_id)
            return False
        self.detach(task_id)
        self._attach(task, parent, index)
        return True

    def delete_subtree(self, task_id: int) -> List[int]:
        """Remove task_id and all descendants; returns removed ids (children first)."""
        task = self.tasks.get(task_id)
        if task is None:
            return []
        removed: List[int] = []
        stack: List[Tuple[int, bool]] = [(task_id, False)]
        while stack:
            current, expanded = stack.pop()
            node = self.tasks.get(current)
            if node is None:
                continue
            if expanded:
                if current != task_id:
                    del self.tasks[current]
                removed.append(current)
                continue
            stack.append((current, True))
            stack.extend((cid, False) for cid in reversed(node.children))
        self.detach(task_id)
        del self.tasks[task_id]
        if self.selected_id in removed:
            self.selected_id = None
        return removed

    def renumber(self) -> None:
        """Reassign order as 1..n following a pre-order walk from the roots."""
        for counter, (task_id, _) in enumerate(self.walk(), start=1):
            self.tasks[task_id].order = counter

    # -------------------- selection --------------------
    def select(self, task_id: Optional[int]) -> None:
        self.selected_id = task_id if self.contains(task_id) else None

    # -------------------- snapshots --------------------
    def capture(self) -> Tuple[Dict[int, Task], Tuple[int, ...], Optional[int], int]:
        """Structural copy of the mutable state; shares nothing with the live table."""
        tasks = {tid: t.copy() for tid, t in self.tasks.items()}
        return tasks, tuple(self.root_ids), self.selected_id, self.next_id

    def restore(self, tasks: Dict[int, Task], roots: Tuple[int, ...], selected_id: Optional[int], next_id: int) -> None:
        self.tasks = {tid: t.copy() for tid, t in tasks.items()}
        self.root_ids = list(roots)
        self.next_id = next_id
        self.selected_id = selected_id if selected_id in self.tasks else None

    def __len__(self) -> int:
        return len(self.tasks)

    def __str__(self) -> str:
        return f'{len(self.tasks)} tasks, {len(self.root_ids)} roots'
