"""
Key-Value Store Module

The stub server's in-memory table: byte keys, opaque values and an
optional expiration in seconds, enforced lazily on access.
"""

import time
from typing import Any, Dict, Optional, Tuple


class KVStore:
    """
    Dict of key -> (value, expires_at).

    expires_at is an absolute time.time() deadline, 0 for entries that
    never expire. Expired entries are dropped the next time they are
    looked up.
    """

    def __init__(self):
        self._store: Dict[bytes, Tuple[Any, float]] = {}

    def _live(self, key: bytes) -> bool:
        entry = self._store.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at and expires_at <= time.time():
            del self._store[key]
            return False
        return True

    def put(self, key: bytes, value: Any, ttl: int = 0) -> None:
        """Insert or replace key; ttl is in seconds, 0 keeps it forever."""
        expires_at = time.time() + ttl if ttl > 0 else 0
        self._store[key] = (value, expires_at)

    def get(self, key: bytes) -> Optional[Any]:
        if not self._live(key):
            return None
        return self._store[key][0]

    def delete(self, key: bytes) -> bool:
        """Return True if a live key was removed."""
        if not self._live(key):
            return False
        del self._store[key]
        return True
