"""Locks kept entirely in a key-value store, identified by random owner IDs."""

from __future__ import annotations

import secrets
from typing import Optional

from dkv.store import Store

OWNER_ID_LENGTH = 256


def generate_owner_id() -> bytes:
    """Return a new random owner ID of OWNER_ID_LENGTH bytes."""
    return secrets.token_bytes(OWNER_ID_LENGTH)


class LockManager:
    """Acquires and releases locks through a store.

    All state lives in the store, so any number of managers over the same
    store coordinate correctly.
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def acquire_lock(self, key: str, timeout: int = 0) -> Optional[bytes]:
        """Try to take the lock; return the owner ID on success, None if held by someone else.

        A non-zero timeout releases the lock automatically after that many writes.
        """
        owner_id = generate_owner_id()
        self._store.set_e_if_unset(key, owner_id, 0, timeout)
        if self._store.get(key) == owner_id:
            return owner_id
        return None

    def release_lock(self, key: str, owner_id: bytes) -> bool:
        """Release the lock if owner_id holds it.

        Returns True if the lock was released or did not exist, False if it
        is held by another owner.
        """
        value = self._store.get(key)
        if value is None:
            return True
        if value != owner_id:
            return False
        self._store.delete(key)
        return True