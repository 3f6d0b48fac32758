"""State machine that applies replicated commands and answers queries against a KVDB."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Optional, Sequence

from dkv.db import KVDB, Feature
from dkv.protocol import Command, CommandType, Query, QueryResult, QueryType
from dkv.store import DBFactory, RetCode, StoreError

_log = logging.getLogger(__name__)

_SLOW_UPDATE_SECONDS = 0.005


@dataclass(frozen=True)
class Result:
    """Outcome of one applied log entry: a RetCode value and a message."""

    value: int
    data: bytes = b""


@dataclass
class LogEntry:
    """A committed log entry: its log index, the serialized command and, once applied, its result."""

    index: int
    cmd: bytes
    result: Optional[Result] = None


class KVStateMachine:
    """Applies commands from the replicated log to a database and serves read queries."""

    def __init__(self, shard_id: int, replica_id: int, database: KVDB) -> None:
        self.shard_id = shard_id
        self.replica_id = replica_id
        self.database = database

    def lookup(self, query: Any) -> Any:
        """Answer a read-only query.

        GET yields a QueryResult, HAS a bool and GET_DB_INFO a DatabaseInfo.
        Raises StoreError for invalid or unsupported queries.
        """
        if not isinstance(query, Query):
            raise StoreError(
                RetCode.INTERNAL_ERROR, f"invalid Query type: {type(query).__name__}"
            )
        qtype = int(query.type)
        if qtype == QueryType.GET:
            if not self.database.supports_feature(Feature.GET):
                raise StoreError(RetCode.UNSUPPORTED_OPERATION, "Get operation is not supported")
            value = self.database.get(query.key)
            return QueryResult(ok=value is not None, value=value)
        if qtype == QueryType.HAS:
            if not self.database.supports_feature(Feature.HAS):
                raise StoreError(RetCode.UNSUPPORTED_OPERATION, "Has operation is not supported")
            return self.database.has(query.key)
        if qtype == QueryType.GET_DB_INFO:
            return self.database.get_info()
        raise StoreError(RetCode.INVALID_OPERATION, f"unknown Query operation: {qtype}")

    def update(self, entries: Sequence[LogEntry]) -> Sequence[LogEntry]:
        """Apply each entry's command, recording a Result on it, and return the entries."""
        if not entries:
            return entries
        start = time.perf_counter()
        for entry in entries:
            entry.result = self._apply(entry)
        elapsed = time.perf_counter() - start
        if elapsed > _SLOW_UPDATE_SECONDS:
            _log.info(
                "State machine took long to update. Batch updated %d entries, took %.2fms",
                len(entries),
                elapsed * 1000.0,
            )
        return entries

    def _apply(self, entry: LogEntry) -> Result:
        if not entry.cmd:
            return Result(RetCode.INVALID_OPERATION, b"empty command ignored")
        try:
            cmd = Command.deserialize(entry.cmd)
        except ValueError as exc:
            return Result(
                RetCode.INTERNAL_ERROR, f"failed to deserialize command: {exc}".encode()
            )
        try:
            feature = cmd.type.to_db_feature()
        except ValueError:
            return Result(
                RetCode.INVALID_OPERATION, f"unknown Command operation: {cmd.type}".encode()
            )
        if not self.database.supports_feature(feature):
            return Result(
                RetCode.UNSUPPORTED_OPERATION,
                f"{cmd.type} operation is not supported".encode(),
            )

        db = self.database
        if cmd.type == CommandType.SET:
            db.set(cmd.key, cmd.value, entry.index)
            message = f"set: key={cmd.key}"
        elif cmd.type == CommandType.SET_E:
            db.set_e(cmd.key, cmd.value, entry.index, cmd.expire_in, cmd.delete_in)
            message = f"set: key={cmd.key}"
        elif cmd.type == CommandType.SET_IF_UNSET:
            db.set_e_if_unset(cmd.key, cmd.value, entry.index, cmd.expire_in, cmd.delete_in)
            message = f"setIfUnset: key={cmd.key}"
        elif cmd.type == CommandType.EXPIRE:
            db.expire(cmd.key, entry.index)
            message = f"expired key={cmd.key}"
        elif cmd.type == CommandType.DELETE:
            db.delete(cmd.key, entry.index)
            message = f"deleted key={cmd.key}"
        else:
            return Result(
                RetCode.INVALID_OPERATION, f"unknown Command operation: {cmd.type}".encode()
            )
        return Result(RetCode.SUCCESS, message.encode("utf-8", "surrogateescape"))

    def prepare_snapshot(self) -> None:
        """Nothing to prepare: snapshots are fuzzy."""
        return None

    def save_snapshot(self, stream: BinaryIO) -> None:
        """Write a fuzzy snapshot of the database to stream."""
        if not self.database.supports_feature(Feature.SAVE):
            raise StoreError(
                RetCode.UNSUPPORTED_OPERATION,
                "the used KVDB implementation does not support Save() operations",
            )
        self.database.save(stream)

    def recover_from_snapshot(self, stream: BinaryIO) -> None:
        """Restore the database from a snapshot read from stream."""
        if not self.database.supports_feature(Feature.LOAD):
            raise StoreError(
                RetCode.UNSUPPORTED_OPERATION,
                "the used KVDB implementation does not support Load() operations",
            )
        self.database.load(stream)

    def close(self) -> None:
        """Close the underlying database."""
        self.database.close()


def create_state_machine_factory(
    db_factory: DBFactory,
) -> Callable[[int, int], KVStateMachine]:
    """Return a factory building a state machine with a fresh database for (shard_id, replica_id)."""

    def factory(shard_id: int, replica_id: int) -> KVStateMachine:
        return KVStateMachine(shard_id, replica_id, db_factory())

    return factory