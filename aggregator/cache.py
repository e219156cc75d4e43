"""Address-keyed caches shared by concurrent requests.

The chain client keeps two of these for the life of the service: token
metadata and pool token addresses. Both are populated lazily on first miss
and are read-mostly. Racing writers may populate the same key twice; the
value is deterministic for a given address, so the last write wins.
"""

from __future__ import annotations

import threading
from typing import Generic, TypeVar

from aggregator.models.types import normalize_address

V = TypeVar("V")


class AddressCache(Generic[V]):
    """Thread-safe mapping from normalized address to a cached value."""

    def __init__(self, name: str = "cache") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._entries: dict[str, V] = {}

    def get(self, address: str) -> V | None:
        key = normalize_address(address)
        with self._lock:
            return self._entries.get(key)

    def set(self, address: str, value: V) -> None:
        key = normalize_address(address)
        with self._lock:
            self._entries[key] = value

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        key = normalize_address(address)
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


__all__ = ["AddressCache"]
