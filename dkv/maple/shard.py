"""Shards of the maple engine: entries, GC events and per-shard garbage collection."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, replace
from typing import Callable, Iterator, Optional, Sequence, TypeVar

from dkv.mapheap import MapHeap
from dkv.mpsc import MPSCQueue

S = TypeVar("S")


class EventType(enum.IntEnum):
    """Kinds of change a shard's garbage collector is told about."""

    WRITE = 0
    DELETE = 1

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Event:
    """A change to one key that the garbage collector must account for."""

    type: EventType
    key: int

    def __str__(self) -> str:
        return f"Event{{Type: {self.type}, Key: {self.key}}}"


@dataclass(frozen=True)
class Entry:
    """A stored value with its expiry time, deletion time and write index (0 = never)."""

    value: Optional[bytes] = None
    expire_at: int = 0
    delete_at: int = 0
    index: int = 0

    def ttl_info(self, write_index: int) -> tuple[bool, bool]:
        """Return (is_expired, is_deleted) at the given write index."""
        is_expired = self.expire_at != 0 and write_index >= self.expire_at
        is_deleted = self.delete_at != 0 and write_index >= self.delete_at
        return is_expired, is_deleted


ComputeFn = Callable[[Entry, bool], "tuple[Entry, bool]"]


class Shard:
    """A partition of the key space with its own data map, GC heaps and event queue.

    The heaps are meant to be touched only by the shard's garbage collector.
    """

    def __init__(self) -> None:
        self._data: dict[int, Entry] = {}
        self._lock = threading.RLock()
        self.expire_heap = MapHeap()
        self.delete_heap = MapHeap()
        self.events: MPSCQueue[Event] = MPSCQueue()

    def compute(self, key: int, fn: ComputeFn) -> Optional[Entry]:
        """Atomically replace the entry for key with fn(old, loaded).

        fn returns (entry, remove). When remove is true the key is dropped
        (if present); otherwise entry is stored. Returns the stored entry,
        or None if the key ends up absent. A missing key is passed to fn as
        an empty Entry with loaded=False.
        """
        with self._lock:
            old = self._data.get(key)
            loaded = old is not None
            new, remove = fn(old if loaded else Entry(), loaded)
            if remove:
                self._data.pop(key, None)
                return None
            self._data[key] = new
            return new

    def load(self, key: int) -> Optional[Entry]:
        """Return the entry for key, or None."""
        with self._lock:
            return self._data.get(key)

    def store(self, key: int, entry: Entry) -> None:
        """Store an entry unconditionally."""
        with self._lock:
            self._data[key] = entry

    def size(self) -> int:
        """Return the number of entries physically held."""
        with self._lock:
            return len(self._data)

    def __iter__(self) -> Iterator[tuple[int, Entry]]:
        """Iterate over a snapshot of (key, entry) pairs."""
        with self._lock:
            pairs = list(self._data.items())
        return iter(pairs)

    def apply_event(self, event: Event) -> None:
        """Update the GC heaps for one event."""
        if event.type == EventType.WRITE:
            entry = self.load(event.key)
            if entry is None:
                return
            if entry.expire_at != 0:
                self.expire_heap.add_item(event.key, entry.expire_at)
            if entry.delete_at != 0:
                self.delete_heap.add_item(event.key, entry.delete_at)
        elif event.type == EventType.DELETE:
            self.expire_heap.remove_by_key(event.key)
            self.delete_heap.remove_by_key(event.key)
        else:
            raise ValueError(f"unknown event {event}")

    def collect(self, write_index: int) -> None:
        """Drop values that expired and entries that were deleted at write_index.

        Heap items are removed even when the entry has been rewritten since
        it was scheduled; a rewrite produces a new event that reschedules it.
        """

        def expire(entry: Entry, loaded: bool) -> tuple[Entry, bool]:
            if not loaded:
                return entry, True
            is_expired, _ = entry.ttl_info(write_index)
            if not is_expired:
                return entry, False
            return replace(entry, value=None), False

        def delete(entry: Entry, loaded: bool) -> tuple[Entry, bool]:
            if not loaded:
                return entry, True
            _, is_deleted = entry.ttl_info(write_index)
            if not is_deleted:
                return entry, False
            return Entry(), True

        while (item := self.expire_heap.peek()) is not None and item.priority <= write_index:
            key = item.key
            self.compute(key, expire)
            self.expire_heap.remove_by_key(key)

        while (item := self.delete_heap.peek()) is not None and item.priority <= write_index:
            key = item.key
            self.compute(key, delete)
            self.expire_heap.remove_by_key(key)
            self.delete_heap.remove_by_key(key)


def get_shard(key: int, shards: Sequence[S]) -> S:
    """Pick the shard for a hashed key, using its higher bits."""
    return shards[(key >> 7) % len(shards)]