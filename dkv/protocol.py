"""Commands and queries exchanged with the replicated state machine, and their wire format.

A serialized command is: type (1 byte), expire_in (u64), delete_in (u64),
key length (u32), all big endian, then the key bytes and the optional value.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import Optional

from dkv.db import Feature

_HEADER = struct.Struct(">BQQI")


class CommandType(enum.IntEnum):
    """Write operations the state machine can apply.

    Unrecognised byte values yield an "Unknown(n)" member that has no feature.
    """

    SET = 0
    SET_E = 1
    SET_IF_UNSET = 2
    EXPIRE = 3
    DELETE = 4

    @classmethod
    def _missing_(cls, value: object) -> Optional["CommandType"]:
        if isinstance(value, int) and 0 <= value <= 0xFF:
            member = int.__new__(cls, value)
            member._name_ = f"Unknown({value})"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        return _COMMAND_LABELS.get(int(self), f"Unknown({int(self)})")

    def to_db_feature(self) -> Feature:
        """Return the database feature this command needs."""
        try:
            return _COMMAND_FEATURES[int(self)]
        except KeyError:
            raise ValueError(f"unknown command type {int(self)}") from None


_COMMAND_LABELS = {
    0: "Set",
    1: "SetE",
    2: "SetIfUnset",
    3: "Expire",
    4: "Delete",
}

_COMMAND_FEATURES = {
    0: Feature.SET,
    1: Feature.SET_E,
    2: Feature.SET_E_IF_UNSET,
    3: Feature.EXPIRE,
    4: Feature.DELETE,
}


def _encode_key(key: str) -> bytes:
    return key.encode("utf-8", "surrogateescape")


@dataclass
class Command:
    """One write operation, as stored in the replicated log."""

    type: CommandType
    key: str
    expire_in: int = 0
    delete_in: int = 0
    value: Optional[bytes] = None

    def size_bytes(self) -> int:
        """Return the exact length of the serialized command."""
        size = _HEADER.size + len(_encode_key(self.key))
        if self.value is not None:
            size += len(self.value)
        return size

    def serialize(self) -> bytes:
        """Encode the command in its wire format."""
        key = _encode_key(self.key)
        header = _HEADER.pack(int(self.type), self.expire_in, self.delete_in, len(key))
        return header + key + bytes(self.value or b"")

    @classmethod
    def deserialize(cls, data: bytes) -> "Command":
        """Decode a command; raise ValueError if data is truncated."""
        if len(data) < _HEADER.size:
            raise ValueError("data too short for command")
        type_byte, expire_in, delete_in, key_len = _HEADER.unpack_from(data)
        end = _HEADER.size + key_len
        if len(data) < end:
            raise ValueError(f"data too short for key of length {key_len}")
        key = bytes(data[_HEADER.size:end]).decode("utf-8", "surrogateescape")
        value = bytes(data[end:]) if len(data) > end else None
        return cls(CommandType(type_byte), key, expire_in, delete_in, value)


class QueryType(enum.IntEnum):
    """Read-only queries the state machine answers."""

    GET = 0
    HAS = 1
    GET_DB_INFO = 2

    def __str__(self) -> str:
        return {0: "Get", 1: "Has", 2: "GetDBInfo"}.get(int(self), "Unknown")


@dataclass(frozen=True)
class Query:
    """A read request; key is empty for queries that need none."""

    type: QueryType
    key: str = ""


@dataclass(frozen=True)
class QueryResult:
    """Answer to a GET query."""

    ok: bool
    value: Optional[bytes] = None