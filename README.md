# dkv

An in-memory key-value database with logical-time expiration and deletion,
binary snapshots, a local store that hands out write indices itself, a lock
manager built on top of any store, and a state machine that applies a log of
serialized commands to a database.

The package has no third-party dependencies.

## Installation

```
pip install .
```

## The database engine

`dkv.maple.engine.MapleDB` is a sharded database implementing the
`dkv.db.KVDB` base class. Every write carries a *write index*, a logical
timestamp that only moves forward. Expiration and deletion times are given
relative to that index (0 means never):

- an **expired** entry has no value: `get` returns `None`, but `has` still
  returns `True`;
- a **deleted** entry is gone: `get` returns `None` and `has` returns `False`.

Writes with an index lower than the one stored for a key are ignored.
`set_write_idx` advances the clock without writing; `write_idx` reads it.

```python
import io
from dkv.maple.engine import MapleDB, default_options

db = MapleDB(default_options())
db.set_e("session", b"data", 100, 10, 20)   # expires at 110, deleted at 120

db.set_write_idx(109)
db.get("session")      # b"data"

db.set_write_idx(110)
db.get("session")      # None
db.has("session")      # True

db.set_write_idx(120)
db.has("session")      # False

db.set("kept", b"value", 120)
buffer = io.BytesIO()
db.save(buffer)
buffer.seek(0)
other = MapleDB()
other.load(buffer)
other.get("kept")      # b"value"

db.close()
other.close()
```

Other operations:

- `set_e_if_unset(key, value, write_index, expire_in, delete_in)` writes a
  key only if it does not exist yet (or has been deleted);
- `expire(key, write_index)` drops the value but keeps the key;
- `delete(key, write_index)` removes the key;
- `supports_feature(feature)` checks `dkv.db.Feature` flags, which may be
  combined with `|`;
- `get_info()` returns a `dkv.db.DatabaseInfo` with an estimated size, the
  supported features and a metadata dict (current write index, shard count,
  shard distribution statistics and GC backlog ratios).

`dkv.maple.engine.DBOptions` sets `num_shards` (default: number of CPUs) and
`gc_interval` in seconds (default 0.1). A background thread per shard removes
expired values and deleted entries; `close()` stops these threads. Reads
always reflect the logical state, whether or not collection has run yet.

### Snapshot format

`dkv.maple.snapshot` holds `write_snapshot` and `read_snapshot`. A snapshot
is little endian: the magic `MAPLEDB\0`, a version byte (3), the hash seed,
the entry count, then for every entry its hashed key, expiry time, deletion
time, write index, value length and value. Malformed or truncated data
raises `SnapshotFormatError` (a `ValueError`).

## Stores

`dkv.store.Store` is the store interface; `dkv.local_store.LocalStore` wraps
a database created by a factory and gives every write the next write index,
so expiry and deletion times count writes. Operations the database does not
support raise `dkv.store.StoreError`, which carries a `dkv.store.RetCode` in
`code` and a message in `msg`.

```python
from dkv.local_store import LocalStore
from dkv.maple.engine import MapleDB

store = LocalStore(MapleDB)
store.set("greeting", b"hello")
store.get("greeting")   # b"hello"
store.expire("greeting")
store.get("greeting")   # None
store.has("greeting")   # True
```

## Locks

`dkv.lockmgr.LockManager` keeps its state only in the store it is given, so
any number of managers may share one store. `acquire_lock` returns a random
256-byte owner ID on success and `None` if someone else holds the lock; a
non-zero timeout deletes the lock after that many store writes.
`release_lock` returns `True` if the lock was released or did not exist and
`False` if another owner holds it.

```python
from dkv.lockmgr import LockManager

locks = LockManager(store)
owner_id = locks.acquire_lock("resource:123", 30)
if owner_id is not None:
    locks.release_lock("resource:123", owner_id)
```

## Commands, queries and the state machine

`dkv.protocol` defines `Command` (with `serialize`, `size_bytes` and the
class method `Command.deserialize`, which raises `ValueError` on truncated
data), `CommandType`, `Query`, `QueryType` and `QueryResult`. A serialized
command is: type byte, `expire_in` and `delete_in` (u64), key length (u32),
all big endian, then the key and the optional value.

`dkv.statemachine.KVStateMachine` applies batches of `LogEntry` objects
(log index plus serialized command) to a database with `update`, storing a
`Result` (a `RetCode` value and a message) on each entry. `lookup` answers a
`Query` with a `QueryResult`, a bool or a `DatabaseInfo`, and raises
`StoreError` for invalid or unsupported queries. `save_snapshot` and
`recover_from_snapshot` delegate to the database's `save` and `load`.
`create_state_machine_factory(db_factory)` returns a callable taking
`(shard_id, replica_id)`.

## Utilities

- `dkv.mapheap.MapHeap`: a min-heap of `HeapItem`s with lookup and removal by key.
- `dkv.mpsc.MPSCQueue`: an unbounded multi-producer, single-consumer queue;
  `recv(timeout)` raises `TimeoutError` when nothing arrives and returns
  `None` once the queue is closed and drained.
- `dkv.statistics`: `SizeHistogram`, `new_stats` and `new_distribution_stats`.
- `dkv.hashing`: `generate_seed` and seeded FNV-1a `hash_string`.

## What it does not do

Everything runs inside one process. There is no network server, no client,
no command-line program and no consensus or log replication: the state
machine applies whatever entries it is handed, and nothing here proposes,
replicates or persists a log. Data lives in memory only and survives a
restart only through an explicit `save` and `load`.

## Running the tests

```
pip install .[test]
pytest
```