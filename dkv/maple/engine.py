"""The maple engine: a sharded in-memory KVDB with logical-time expiry and background GC."""

from __future__ import annotations

import math
import os
import threading
import time
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Callable, Optional

from dkv.db import KVDB, DatabaseInfo, Feature, Implementation
from dkv.hashing import generate_seed, hash_string
from dkv.maple.shard import Entry, Event, EventType, Shard, get_shard
from dkv.maple.snapshot import SnapshotRecord, read_snapshot, write_snapshot
from dkv.mpsc import MPSCQueue
from dkv.statistics import SizeHistogram, new_distribution_stats

DEFAULT_GC_INTERVAL = 0.1
_SAMPLES_PER_SHARD = 100
_ENTRY_OVERHEAD = 32

_SUPPORTED = (
    Feature.SET
    | Feature.SET_E
    | Feature.SET_E_IF_UNSET
    | Feature.GET
    | Feature.EXPIRE
    | Feature.DELETE
    | Feature.HAS
    | Feature.SAVE
    | Feature.LOAD
    | Feature.GARBAGE_COLLECT
)

_Decide = Callable[[Entry, Entry, bool], "tuple[Entry, bool]"]


@dataclass
class DBOptions:
    """Construction options: number of shards and seconds between GC runs."""

    num_shards: int = field(default_factory=lambda: os.cpu_count() or 1)
    gc_interval: float = DEFAULT_GC_INTERVAL


def default_options() -> DBOptions:
    """Return options with one shard per CPU and the default GC interval."""
    return DBOptions()


class MapleDB(KVDB):
    """Sharded key-value database driven by a caller-supplied write index.

    Expired entries keep their key (has() is true) but lose their value;
    deleted entries disappear. Physical clean-up happens in background
    threads, one per shard, but reads always honour the logical state.
    """

    def __init__(self, opts: Optional[DBOptions] = None) -> None:
        opts = opts or default_options()
        if opts.num_shards < 1:
            raise ValueError("num_shards must be at least 1")
        self._num_shards = opts.num_shards
        self._gc_interval = opts.gc_interval if opts.gc_interval > 0 else DEFAULT_GC_INTERVAL
        self._seed = generate_seed()
        self._shards = [Shard() for _ in range(self._num_shards)]
        self._index = 0
        self._index_lock = threading.Lock()
        self._gc_lock = threading.Lock()
        self._gc_running = False
        self._gc_threads: list[threading.Thread] = []
        self._start_gc()

    # ------------------------------------------------------------------ keys

    def string_to_uint64(self, s: str) -> int:
        """Hash a key with this database's seed."""
        return hash_string(s, self._seed)

    # ---------------------------------------------------------------- writes

    def set(self, key: str, value: Optional[bytes], write_index: int) -> None:
        self._compute(key, value, write_index, 0, 0, lambda new, _old, _loaded: (new, False))

    def set_e(
        self,
        key: str,
        value: Optional[bytes],
        write_index: int,
        expire_in: int,
        delete_in: int,
    ) -> None:
        self._compute(
            key, value, write_index, expire_in, delete_in, lambda new, _old, _loaded: (new, False)
        )

    def set_e_if_unset(
        self,
        key: str,
        value: Optional[bytes],
        write_index: int,
        expire_in: int,
        delete_in: int,
    ) -> None:
        self._compute(
            key,
            value,
            write_index,
            expire_in,
            delete_in,
            lambda new, old, loaded: (old if loaded else new, False),
        )

    def expire(self, key: str, write_index: int) -> None:
        def decide(_new: Entry, old: Entry, loaded: bool) -> tuple[Entry, bool]:
            if not loaded:
                return old, True
            return replace(old, expire_at=write_index, value=None), False

        self._compute(key, None, write_index, 0, 0, decide)

    def delete(self, key: str, write_index: int) -> None:
        def decide(_new: Entry, old: Entry, loaded: bool) -> tuple[Entry, bool]:
            if not loaded:
                return old, True
            return replace(old, delete_at=write_index), False

        self._compute(key, None, write_index, 0, 0, decide)

    def _compute(
        self,
        key: str,
        value: Optional[bytes],
        write_index: int,
        expire_in: int,
        delete_in: int,
        decide: _Decide,
    ) -> None:
        """Apply a conditional write, ignoring writes older than the stored entry."""
        self.set_write_idx(write_index)
        int_key = self.string_to_uint64(key)
        shard = get_shard(int_key, self._shards)

        value_copy = bytes(value) if value is not None else b""
        expire_at = write_index + expire_in if expire_in > 0 else 0
        delete_at = write_index + delete_in if delete_in > 0 else 0
        event: Optional[Event] = None

        def update(old: Entry, exists: bool) -> tuple[Entry, bool]:
            nonlocal event
            if exists and write_index < old.index:
                return old, False
            loaded = exists
            if exists:
                is_expired, is_deleted = old.ttl_info(write_index)
                loaded = not is_deleted
                if is_expired:
                    old = replace(old, value=None, expire_at=write_index)
            candidate = Entry(value_copy, expire_at, delete_at, write_index)
            entry, remove = decide(candidate, old, loaded)
            if remove:
                if exists:
                    event = Event(EventType.DELETE, int_key)
                return old, True
            if expire_in > 0 or delete_in > 0:
                event = Event(EventType.WRITE, int_key)
            return entry, False

        shard.compute(int_key, update)
        if event is not None:
            shard.events.push(event)

    # ----------------------------------------------------------------- reads

    def get(self, key: str) -> Optional[bytes]:
        int_key = self.string_to_uint64(key)
        entry = get_shard(int_key, self._shards).load(int_key)
        if entry is None:
            return None
        is_expired, is_deleted = entry.ttl_info(self.write_idx())
        if is_expired or is_deleted:
            return None
        return bytes(entry.value or b"")

    def has(self, key: str) -> bool:
        int_key = self.string_to_uint64(key)
        entry = get_shard(int_key, self._shards).load(int_key)
        if entry is None:
            return False
        _, is_deleted = entry.ttl_info(self.write_idx())
        return not is_deleted

    # ---------------------------------------------------------- garbage collection

    def _start_gc(self) -> None:
        with self._gc_lock:
            if self._gc_running:
                return
            self._gc_running = True
            threads = []
            for shard in self._shards:
                if shard.events.is_closed():
                    shard.events = MPSCQueue()
                thread = threading.Thread(target=self._run_gc, args=(shard,), daemon=True)
                threads.append(thread)
            self._gc_threads = threads
        for thread in threads:
            thread.start()

    def _stop_gc(self) -> None:
        with self._gc_lock:
            if not self._gc_running:
                return
            self._gc_running = False
            threads = self._gc_threads
            self._gc_threads = []
            for shard in self._shards:
                shard.events.close()
        for thread in threads:
            thread.join()

    def _run_gc(self, shard: Shard) -> None:
        while True:
            deadline = time.monotonic() + self._gc_interval
            while (remaining := deadline - time.monotonic()) > 0:
                try:
                    event = shard.events.recv(timeout=remaining)
                except TimeoutError:
                    break
                if event is None:
                    return
                shard.apply_event(event)
            shard.collect(self.write_idx())

    # ------------------------------------------------------------ persistence

    def save(self, stream: BinaryIO) -> None:
        """Write a fuzzy snapshot of all entries that are not deleted."""
        current = self.write_idx()
        records = []
        for shard in self._shards:
            for key, entry in shard:
                _, is_deleted = entry.ttl_info(current)
                if is_deleted:
                    continue
                records.append(
                    SnapshotRecord(
                        key=key,
                        expire_at=entry.expire_at,
                        delete_at=entry.delete_at,
                        index=entry.index,
                        value=bytes(entry.value or b""),
                    )
                )
        write_snapshot(stream, self._seed, records)

    def load(self, stream: BinaryIO) -> None:
        """Replace all data with a snapshot; not safe to run concurrently with other calls."""
        self._stop_gc()
        try:
            seed, records = read_snapshot(stream)
            shards = [Shard() for _ in range(self._num_shards)]
            max_index = 0
            for record in records:
                max_index = max(max_index, record.index)
                shard = get_shard(record.key, shards)
                shard.store(
                    record.key,
                    Entry(record.value, record.expire_at, record.delete_at, record.index),
                )
                if record.expire_at != 0:
                    shard.expire_heap.add_item(record.key, record.expire_at)
                if record.delete_at != 0:
                    shard.delete_heap.add_item(record.key, record.delete_at)
            self._shards = shards
            self._seed = seed
            with self._index_lock:
                self._index = 0
            self.set_write_idx(max_index)
        finally:
            self._start_gc()

    # ------------------------------------------------------- features and info

    def get_info(self) -> DatabaseInfo:
        current = self.write_idx()
        histogram = SizeHistogram()
        samples = expired_backlog = deleted_backlog = 0
        shard_sizes = []
        for shard in self._shards:
            for count, (_key, entry) in enumerate(shard, start=1):
                histogram.add_sample(len(entry.value or b""))
                is_expired, is_deleted = entry.ttl_info(current)
                if is_expired and entry.value is not None:
                    expired_backlog += 1
                if is_deleted:
                    deleted_backlog += 1
                samples += 1
                if count >= _SAMPLES_PER_SHARD:
                    break
            shard_sizes.append(float(shard.size()))

        median_size = histogram.median_estimate() + _ENTRY_OVERHEAD
        avg_size = histogram.average_size() + _ENTRY_OVERHEAD
        size_bytes = (median_size * 60 + avg_size * 40) // 100

        metadata = {
            "current_write_index": current,
            "shard_count": len(self._shards),
            "shard_distribution": new_distribution_stats(shard_sizes),
            "expired_backlog": expired_backlog / samples if samples else math.nan,
            "deleted_backlog": deleted_backlog / samples if samples else math.nan,
            "info": (
                "All values (including SizeBytes) are estimates and may vary "
                "depending on the database state."
            ),
        }
        features = [
            Feature.SET,
            Feature.SET_E,
            Feature.SET_E_IF_UNSET,
            Feature.EXPIRE | Feature.DELETE,
            Feature.GET,
            Feature.HAS,
            Feature.SAVE,
            Feature.LOAD,
            Feature.GARBAGE_COLLECT,
        ]
        return DatabaseInfo(
            size_bytes=size_bytes,
            db_type=Implementation.MAPLE,
            supported_features=features,
            metadata=metadata,
        )

    def supports_feature(self, feature: Feature) -> bool:
        return (_SUPPORTED & feature) == feature

    def close(self) -> None:
        """Stop the garbage collector."""
        self._stop_gc()

    # ------------------------------------------------------------ write index

    def set_write_idx(self, index: int) -> None:
        with self._index_lock:
            if index > self._index:
                self._index = index

    def write_idx(self) -> int:
        with self._index_lock:
            return self._index