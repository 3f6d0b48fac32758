"""Key-value database contract: feature flags, info record and the KVDB base class."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Optional


class Implementation(str, enum.Enum):
    """Identifiers of the available database engines."""

    MAPLE = "maple"


class Feature(enum.IntFlag):
    """Capabilities a database engine may offer, combinable as bit flags."""

    SET = enum.auto()
    SET_E = enum.auto()
    SET_E_IF_UNSET = enum.auto()
    GET = enum.auto()
    EXPIRE = enum.auto()
    DELETE = enum.auto()
    HAS = enum.auto()
    SAVE = enum.auto()
    LOAD = enum.auto()
    GARBAGE_COLLECT = enum.auto()

    def __str__(self) -> str:
        return _FEATURE_LABELS.get(int(self), "Unknown")


_FEATURE_LABELS = {
    int(Feature.SET): "Set",
    int(Feature.SET_E): "SetE",
    int(Feature.SET_E_IF_UNSET): "SetEIfUnset",
    int(Feature.GET): "Get",
    int(Feature.EXPIRE): "Expire",
    int(Feature.DELETE): "Delete",
    int(Feature.HAS): "Has",
    int(Feature.SAVE): "Save",
    int(Feature.LOAD): "Load",
    int(Feature.GARBAGE_COLLECT): "GarbageCollect",
}


@dataclass
class DatabaseInfo:
    """Metadata reported by a database; size figures are usually estimates."""

    size_bytes: int
    db_type: Implementation
    supported_features: list[Feature] = field(default_factory=list)
    metadata: Any = None


class KVDB(abc.ABC):
    """Base class for key-value database engines.

    Every write takes a write index, a logical timestamp. Expiration and
    deletion times are given relative to it, and the engine's clock only
    ever moves forward.
    """

    @abc.abstractmethod
    def set(self, key: str, value: Optional[bytes], write_index: int) -> None:
        """Insert or overwrite an entry."""

    @abc.abstractmethod
    def set_e(
        self,
        key: str,
        value: Optional[bytes],
        write_index: int,
        expire_in: int,
        delete_in: int,
    ) -> None:
        """Insert or overwrite an entry with relative expiry and deletion times (0 = never)."""

    @abc.abstractmethod
    def set_e_if_unset(
        self,
        key: str,
        value: Optional[bytes],
        write_index: int,
        expire_in: int,
        delete_in: int,
    ) -> None:
        """Insert an entry only if the key does not exist yet."""

    @abc.abstractmethod
    def expire(self, key: str, write_index: int) -> None:
        """Mark an entry as expired; it stays visible to has()."""

    @abc.abstractmethod
    def delete(self, key: str, write_index: int) -> None:
        """Remove an entry entirely."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return a copy of the live value for key, or None if absent or expired."""

    @abc.abstractmethod
    def has(self, key: str) -> bool:
        """Return whether the key exists, expired or not."""

    @abc.abstractmethod
    def save(self, stream: BinaryIO) -> None:
        """Write the database state to a binary stream."""

    @abc.abstractmethod
    def load(self, stream: BinaryIO) -> None:
        """Replace the database state with data read from a binary stream."""

    @abc.abstractmethod
    def supports_feature(self, feature: Feature) -> bool:
        """Return whether every feature in the given flag set is supported."""

    @abc.abstractmethod
    def get_info(self) -> DatabaseInfo:
        """Return information about the database."""

    @abc.abstractmethod
    def set_write_idx(self, index: int) -> None:
        """Advance the write index if index is greater than the current one."""

    @abc.abstractmethod
    def write_idx(self) -> int:
        """Return the current write index."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release resources held by the database."""