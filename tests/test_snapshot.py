import io
import struct

import pytest

from dkv.maple.snapshot import (
    MAGIC,
    VERSION,
    SnapshotFormatError,
    SnapshotRecord,
    read_snapshot,
    write_snapshot,
)


def _dump(seed, records):
    buf = io.BytesIO()
    write_snapshot(buf, seed, records)
    return buf.getvalue()


def test_header_bytes():
    data = _dump(0x0102030405060708, [])
    assert data[:8] == b"MAPLEDB\x00"
    assert data[8] == 3
    assert data[9:17] == struct.pack("<Q", 0x0102030405060708)
    assert struct.unpack_from("<Q", data, 17)[0] == 0


def test_round_trip():
    records = [
        SnapshotRecord(key=1, expire_at=10, delete_at=20, index=5, value=b"hello"),
        SnapshotRecord(key=2**64 - 1, expire_at=0, delete_at=0, index=7, value=b""),
        SnapshotRecord(key=42, expire_at=3, delete_at=0, index=1, value=bytes(range(256))),
    ]
    seed, loaded = read_snapshot(io.BytesIO(_dump(99, records)))
    assert seed == 99
    assert loaded == records


def test_empty_round_trip():
    seed, loaded = read_snapshot(io.BytesIO(_dump(7, [])))
    assert seed == 7
    assert loaded == []


def test_record_layout_follows_header():
    data = _dump(0, [SnapshotRecord(key=11, expire_at=12, delete_at=13, index=14, value=b"ab")])
    offset = len(MAGIC) + 1 + 8 + 8
    assert struct.unpack_from("<QQQQI", data, offset) == (11, 12, 13, 14, 2)
    assert data.endswith(b"ab")


def test_bad_magic():
    data = bytearray(_dump(0, []))
    data[0:1] = b"X"
    with pytest.raises(SnapshotFormatError, match="magic number mismatch"):
        read_snapshot(io.BytesIO(bytes(data)))


def test_bad_version():
    data = bytearray(_dump(0, []))
    data[len(MAGIC)] = VERSION + 1
    with pytest.raises(SnapshotFormatError, match="unsupported version"):
        read_snapshot(io.BytesIO(bytes(data)))


def test_truncated_data():
    data = _dump(0, [SnapshotRecord(key=1, expire_at=0, delete_at=0, index=1, value=b"xyz")])
    with pytest.raises(SnapshotFormatError):
        read_snapshot(io.BytesIO(data[:-1]))


def test_empty_stream():
    with pytest.raises(SnapshotFormatError):
        read_snapshot(io.BytesIO(b""))