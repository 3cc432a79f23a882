"""Pointer hit-testing against the display list.

Rows are stacked from ``origin - scroll_offset`` downwards using each row's
own height. Spans are closed intervals, so a pointer exactly on a boundary
belongs to the upper row.
"""
from __future__ import annotations
from typing import Iterable, Optional

from models import AFTER, BEFORE, CHILD, DisplayRow, DropTarget

DROP_ZONE_THRESHOLD = 0.2  # fraction of row height for the before/after bands
ORIGIN_Y = 10


def row_at(pointer_y: float, rows: Iterable[DisplayRow], scroll_offset: float = 0,
           origin: float = ORIGIN_Y) -> Optional[DisplayRow]:
    top = origin - scroll_offset
    for row in rows:
        if top <= pointer_y <= top + row.height:
            return row
        top += row.height
    return None


def resolve(pointer_y: float, rows: Iterable[DisplayRow], scroll_offset: float = 0,
            threshold: float = DROP_ZONE_THRESHOLD, origin: float = ORIGIN_Y) -> Optional[DropTarget]:
    """Map a pointer y coordinate to a drop intent.

    The top band of the row under the pointer means "before", the bottom
    band "after", anything between "child" (reported one level deeper).
    """
    top = origin - scroll_offset
    for row in rows:
        if top <= pointer_y <= top + row.height:
            relative = pointer_y - top
            band = row.height * threshold
            if relative < band:
                return DropTarget(id=row.id, position=BEFORE, depth=row.depth)
            if relative > row.height - band:
                return DropTarget(id=row.id, position=AFTER, depth=row.depth)
            return DropTarget(id=row.id, position=CHILD, depth=row.depth + 1)
        top += row.height
    return None
