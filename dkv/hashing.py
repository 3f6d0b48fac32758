"""Seed generation and seeded FNV-1a string hashing."""

from __future__ import annotations

import os
import time
from typing import Union

_MASK64 = (1 << 64) - 1
_FNV_OFFSET64 = 14695981039346656037
_FNV_PRIME64 = 1099511628211


def generate_seed() -> int:
    """Return a random unsigned 64-bit seed, falling back to the clock if no entropy is available."""
    try:
        raw = os.urandom(8)
    except (OSError, NotImplementedError):
        return time.time_ns() & _MASK64
    return int.from_bytes(raw, "little")


def hash_string(s: Union[str, bytes], seed: int) -> int:
    """Hash a string (UTF-8 encoded) with 64-bit FNV-1a, mixing the seed into the offset basis."""
    data = s.encode("utf-8") if isinstance(s, str) else bytes(s)
    h = (_FNV_OFFSET64 ^ seed) & _MASK64
    for byte in data:
        h ^= byte
        h = (h * _FNV_PRIME64) & _MASK64
    return h