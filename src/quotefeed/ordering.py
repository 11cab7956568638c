"""List reordering shared by the author roster and the reading queue."""
from __future__ import annotations

from typing import Iterable, List, TypeVar

T = TypeVar("T")


def move_items(items: List[T], from_indices: Iterable[int], to_index: int) -> List[T]:
    """Return ``items`` with the entries at ``from_indices`` moved to ``to_index``.

    ``to_index`` is an offset into the original list, as produced by a drag in
    a list view: moving index 0 to offset 2 places that entry after the one
    originally at index 1. Moved entries keep their relative order.
    """

    selected = sorted({index for index in from_indices if 0 <= index < len(items)})
    if not selected:
        return list(items)
    to_index = max(0, min(to_index, len(items)))
    moving = [items[index] for index in selected]
    skipped = set(selected)
    remaining = [item for index, item in enumerate(items) if index not in skipped]
    insert_at = to_index - sum(1 for index in selected if index < to_index)
    return remaining[:insert_at] + moving + remaining[insert_at:]
