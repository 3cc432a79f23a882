"""Persistence helpers for the task tree and its settings record.

Task file, one task per line::

    id:parent_id:text:done:order:collapsed

An empty (or ``0``) parent means a root. Loading is two-pass: every matching
line becomes a task first, then children and roots are rebuilt from the
declared parents alone. Lines that do not match are skipped.
"""
from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import List, Optional, Set

from models import Task, clean_text
from settings import Settings, dump_settings, parse_settings
from store import TaskStore

logger = logging.getLogger(__name__)

TASKS_SUFFIX = '.tasks'
SETTINGS_SUFFIX = '.settings'
TASK_LINE_RE = re.compile(r"^(\d+):([^:]*):([^:]*):(\w+):(\d+):([^:]*)")


def _parse_parent(raw: str) -> Optional[int]:
    if not raw.isdigit() or int(raw) == 0:
        return None
    return int(raw)


def parse_tasks(content: str) -> TaskStore:
    store = TaskStore()
    # pass one: instantiate
    for line in content.splitlines():
        m = TASK_LINE_RE.match(line)
        if not m:
            if line.strip():
                logger.debug("skipping malformed task line: %r", line)
            continue
        tid, parent, text, done, order, collapsed = m.groups()
        task = Task(
            id=int(tid),
            text=text,
            parent_id=_parse_parent(parent),
            done=done == 'true',
            collapsed=collapsed == 'true',
            order=int(order),
        )
        store.tasks[task.id] = task
        store.next_id = max(store.next_id, task.id + 1)

    # pass two: link strictly from declared parents
    tasks = store.tasks
    ranked = sorted(tasks.values(), key=lambda t: (t.order, t.id))
    for task in ranked:
        parent = tasks.get(task.parent_id) if task.parent_id is not None else None
        if parent is None or parent.id == task.id:
            task.parent_id = None
            store.root_ids.append(task.id)
        else:
            parent.children.append(task.id)
    _break_cycles(store, ranked)
    return store


def _break_cycles(store: TaskStore, ranked: List[Task]) -> None:
    """Promote tasks unreachable from the roots (parent loops in the file) to roots."""
    reached: Set[int] = {tid for tid, _ in store.walk()}
    for task in ranked:
        if task.id in reached:
            continue
        logger.debug("task %s is part of a parent cycle; promoting to root", task.id)
        parent = store.tasks[task.parent_id]
        parent.children.remove(task.id)
        task.parent_id = None
        store.root_ids.append(task.id)
        stack = [task.id]
        while stack:
            current = stack.pop()
            reached.add(current)
            stack.extend(store.tasks[current].children)


def dump_tasks(store: TaskStore) -> str:
    lines = []
    for tid, _ in store.walk():
        task = store.tasks[tid]
        lines.append('%d:%s:%s:%s:%d:%s' % (
            task.id,
            '' if task.parent_id is None else str(task.parent_id),
            clean_text(task.text),
            str(task.done).lower(),
            task.order,
            str(task.collapsed).lower(),
        ))
    return ''.join(line + '\n' for line in lines)


class Storage:
    """File plumbing: ``<data_dir>/<basename>.tasks`` and ``.settings``."""

    def __init__(self, data_dir: Path, basename: str = 'tasktree'):
        self.data_dir = Path(data_dir)
        self.basename = basename

    @property
    def tasks_file(self) -> Path:
        return self.data_dir / (self.basename + TASKS_SUFFIX)

    @property
    def settings_file(self) -> Path:
        return self.data_dir / (self.basename + SETTINGS_SUFFIX)

    def load_tasks(self) -> TaskStore:
        """Missing file -> empty document."""
        if not self.tasks_file.exists():
            return TaskStore()
        store = parse_tasks(self.tasks_file.read_text(encoding='utf-8'))
        logger.info("loaded %d task(s) from %s", len(store), self.tasks_file)
        return store

    def save_tasks(self, store: TaskStore) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.tasks_file.write_text(dump_tasks(store), encoding='utf-8')
        logger.debug("saved %d task(s) to %s", len(store), self.tasks_file)

    def load_settings(self) -> Settings:
        if not self.settings_file.exists():
            return Settings()
        return parse_settings(self.settings_file.read_text(encoding='utf-8'))

    def save_settings(self, settings: Settings) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file.write_text(dump_settings(settings), encoding='utf-8')
