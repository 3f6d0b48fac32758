"""A single-node, in-memory store that drives a database's write index itself."""

from __future__ import annotations

import threading
from typing import Optional

from dkv.db import DatabaseInfo, Feature
from dkv.store import DBFactory, RetCode, Store, StoreError


class LocalStore(Store):
    """Store backed directly by one database; every write gets the next write index."""

    def __init__(self, factory: DBFactory) -> None:
        self._db = factory()
        self._index = 0
        self._index_lock = threading.Lock()

    def _next_index(self) -> int:
        with self._index_lock:
            self._index += 1
            return self._index

    def _require(self, feature: Feature, name: str) -> None:
        if not self._db.supports_feature(feature):
            raise StoreError(RetCode.UNSUPPORTED_OPERATION, f"{name} operation is not supported")

    def set(self, key: str, value: Optional[bytes]) -> None:
        self._require(Feature.SET, "Set")
        self._db.set(key, value, self._next_index())

    def set_e(self, key: str, value: Optional[bytes], expire_in: int, delete_in: int) -> None:
        self._require(Feature.SET_E, "SetE")
        self._db.set_e(key, value, self._next_index(), expire_in, delete_in)

    def set_e_if_unset(
        self, key: str, value: Optional[bytes], expire_in: int, delete_in: int
    ) -> None:
        self._require(Feature.SET_E_IF_UNSET, "SetEIfUnset")
        self._db.set_e_if_unset(key, value, self._next_index(), expire_in, delete_in)

    def expire(self, key: str) -> None:
        self._require(Feature.EXPIRE, "Expire")
        self._db.expire(key, self._next_index())

    def delete(self, key: str) -> None:
        self._require(Feature.DELETE, "Delete")
        self._db.delete(key, self._next_index())

    def get(self, key: str) -> Optional[bytes]:
        self._require(Feature.GET, "Get")
        return self._db.get(key)

    def has(self, key: str) -> bool:
        self._require(Feature.HAS, "Has")
        return self._db.has(key)

    def get_db_info(self) -> DatabaseInfo:
        return self._db.get_info()