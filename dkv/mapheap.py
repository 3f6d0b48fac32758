"""A min-heap of (key, priority) items that also supports lookup and removal by key."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(eq=False)
class HeapItem:
    """An entry of a MapHeap; index is its position in the heap, -1 once removed."""

    key: int
    priority: int
    index: int = field(default=-1, repr=False)

    def __str__(self) -> str:
        return f"{{Key: {self.key}, Priority: {self.priority}}}"


class MapHeap:
    """Priority queue ordered by lowest priority, with O(1) key lookup.

    Not thread-safe; callers must synchronise concurrent use.
    """

    def __init__(self) -> None:
        self._items: list[HeapItem] = []
        self._by_key: dict[int, HeapItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def add_item(self, key: int, priority: int) -> None:
        """Add a new item, or change the priority of the existing item with this key."""
        item = self._by_key.get(key)
        if item is not None:
            item.priority = priority
            self._fix(item.index)
            return
        item = HeapItem(key, priority, len(self._items))
        self._items.append(item)
        self._by_key[key] = item
        self._up(item.index)

    def remove_by_key(self, key: int) -> Optional[int]:
        """Remove the item with this key and return its priority, or None if absent."""
        item = self._by_key.get(key)
        if item is None:
            return None
        self._remove(item.index)
        return item.priority

    def peek(self) -> Optional[HeapItem]:
        """Return the item with the lowest priority without removing it."""
        return self._items[0] if self._items else None

    def pop(self) -> HeapItem:
        """Remove and return the item with the lowest priority."""
        if not self._items:
            raise IndexError("pop from empty MapHeap")
        return self._remove(0)

    def get_by_key(self, key: int) -> Optional[HeapItem]:
        """Return the item with this key without removing it, or None."""
        return self._by_key.get(key)

    def _less(self, i: int, j: int) -> bool:
        return self._items[i].priority < self._items[j].priority

    def _swap(self, i: int, j: int) -> None:
        items = self._items
        items[i], items[j] = items[j], items[i]
        items[i].index = i
        items[j].index = j

    def _up(self, j: int) -> None:
        while j > 0:
            parent = (j - 1) // 2
            if not self._less(j, parent):
                break
            self._swap(parent, j)
            j = parent

    def _down(self, start: int, n: int) -> bool:
        i = start
        while True:
            left = 2 * i + 1
            if left >= n:
                break
            child = left
            right = left + 1
            if right < n and self._less(right, left):
                child = right
            if not self._less(child, i):
                break
            self._swap(i, child)
            i = child
        return i > start

    def _fix(self, i: int) -> None:
        if not self._down(i, len(self._items)):
            self._up(i)

    def _remove(self, i: int) -> HeapItem:
        last = len(self._items) - 1
        if i != last:
            self._swap(i, last)
        item = self._items.pop()
        item.index = -1
        del self._by_key[item.key]
        if i != last:
            self._fix(i)
        return item