"""The store contract shared by local and replicated key-value stores, and its error type."""

from __future__ import annotations

import abc
import enum
from typing import Callable, Optional, Union

from dkv.db import KVDB, DatabaseInfo

DBFactory = Callable[[], KVDB]
"""Creates the database a store runs on."""


class RetCode(enum.IntEnum):
    """Result codes of store operations."""

    SUCCESS = 0
    INTERNAL_ERROR = 1
    UNSUPPORTED_OPERATION = 2
    INVALID_OPERATION = 3


_CODE_LABELS = {
    RetCode.INTERNAL_ERROR: "RetCInternalError",
    RetCode.INVALID_OPERATION: "InvalidOperation",
}


class StoreError(Exception):
    """A failed store operation, carrying a result code and a message."""

    def __init__(self, code: Union[RetCode, int], msg: str) -> None:
        try:
            code = RetCode(code)
        except ValueError:
            code = int(code)
        super().__init__(code, msg)
        self.code = code
        self.msg = msg

    def __str__(self) -> str:
        label = _CODE_LABELS.get(self.code, "Unknown")
        return f"KVStoreError (code {label}): {self.msg}"


class Store(abc.ABC):
    """A key-value store; every failure is raised as StoreError."""

    @abc.abstractmethod
    def set(self, key: str, value: Optional[bytes]) -> None:
        """Insert or update a key-value pair."""

    @abc.abstractmethod
    def set_e(self, key: str, value: Optional[bytes], expire_in: int, delete_in: int) -> None:
        """Insert or update a pair with relative expiry and deletion times (0 = never)."""

    @abc.abstractmethod
    def set_e_if_unset(
        self, key: str, value: Optional[bytes], expire_in: int, delete_in: int
    ) -> None:
        """Insert a pair only if the key does not exist; an existing key is left untouched."""

    @abc.abstractmethod
    def expire(self, key: str) -> None:
        """Expire the value of a key; the key stays visible to has()."""

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key and its value."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the live value for key, or None if absent or expired."""

    @abc.abstractmethod
    def has(self, key: str) -> bool:
        """Return whether the key exists, even if its value has expired."""

    @abc.abstractmethod
    def get_db_info(self) -> DatabaseInfo:
        """Return metadata about the underlying database; it may be incomplete or stale."""