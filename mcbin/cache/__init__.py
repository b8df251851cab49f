"""Cache module backing the stub server."""

from .store import KVStore

__all__ = ["KVStore"]
