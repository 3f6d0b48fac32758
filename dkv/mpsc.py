"""An unbounded multi-producer, single-consumer queue with close semantics."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class MPSCQueue(Generic[T]):
    """Unbounded queue: any thread may push, one consumer receives.

    After close() no more items are accepted, but items already queued are
    still delivered; once drained, recv() returns None.
    """

    def __init__(self) -> None:
        self._items: deque[T] = deque()
        self._closed = False
        self._cond = threading.Condition()

    def push(self, value: T) -> bool:
        """Enqueue a value; return False if it is None or the queue is closed."""
        if value is None:
            return False
        with self._cond:
            if self._closed:
                return False
            self._items.append(value)
            self._cond.notify()
        return True

    def recv(self, timeout: Optional[float] = None) -> Optional[T]:
        """Return the next value, waiting up to timeout seconds (None waits forever).

        Returns None once the queue is closed and empty; raises TimeoutError
        if nothing arrived in time.
        """
        with self._cond:
            ready = self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if self._items:
                return self._items.popleft()
            if ready and self._closed:
                return None
            raise TimeoutError("no item received before timeout")

    def close(self) -> None:
        """Stop accepting new items and wake a waiting consumer."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def is_closed(self) -> bool:
        """Return whether the queue has been closed."""
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        """Yield values until the queue is closed and drained."""
        while True:
            value = self.recv()
            if value is None:
                return
            yield value