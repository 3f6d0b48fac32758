"""Binary snapshot format of the maple engine.

Layout, little endian: magic "MAPLEDB\\0", version (u8), seed (u64), entry
count (u64), then per entry key (u64), expire_at (u64), delete_at (u64),
index (u64), value length (u32) and the value bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterable

MAGIC = b"MAPLEDB\x00"
VERSION = 3

_HEADER = struct.Struct("<BQQ")
_RECORD = struct.Struct("<QQQQI")
_MAX_VALUE_LEN = 0xFFFFFFFF


class SnapshotFormatError(ValueError):
    """Raised when snapshot data is malformed or truncated."""


@dataclass(frozen=True)
class SnapshotRecord:
    """One entry of a snapshot, keyed by its hashed key."""

    key: int
    expire_at: int
    delete_at: int
    index: int
    value: bytes = b""


def write_snapshot(stream: BinaryIO, seed: int, records: Iterable[SnapshotRecord]) -> None:
    """Write a snapshot holding seed and records to a binary stream."""
    records = list(records)
    parts = [MAGIC, _HEADER.pack(VERSION, seed, len(records))]
    for record in records:
        value = record.value or b""
        if len(value) > _MAX_VALUE_LEN:
            raise ValueError(f"value for key {record.key} is too large")
        parts.append(
            _RECORD.pack(record.key, record.expire_at, record.delete_at, record.index, len(value))
        )
        parts.append(bytes(value))
    stream.write(b"".join(parts))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) != size:
        raise SnapshotFormatError("unexpected end of snapshot data")
    return data


def read_snapshot(stream: BinaryIO) -> tuple[int, list[SnapshotRecord]]:
    """Read a snapshot and return its seed and records."""
    if _read_exact(stream, len(MAGIC)) != MAGIC:
        raise SnapshotFormatError("invalid file format: magic number mismatch")
    (version,) = struct.unpack("<B", _read_exact(stream, 1))
    if version != VERSION:
        raise SnapshotFormatError(f"unsupported version: {version} (expected {VERSION})")
    seed, count = struct.unpack("<QQ", _read_exact(stream, 16))
    records = []
    for _ in range(count):
        key, expire_at, delete_at, index, length = _RECORD.unpack(
            _read_exact(stream, _RECORD.size)
        )
        value = _read_exact(stream, length)
        records.append(SnapshotRecord(key, expire_at, delete_at, index, value))
    return seed, records