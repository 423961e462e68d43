"""
Storage interfaces and records for embedding cache persistence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CacheEntry:
    """A cached embedding vector for one piece of text."""

    namespace: str
    key: str
    vector: tuple[float, ...]
    created_at: float
    accessed_at: float


class CacheStore(Protocol):
    """Protocol for the durable snapshot behind an embedding cache."""

    def initialize(self) -> None:
        """Create required tables."""

    def load(self, *, namespace: str) -> list[CacheEntry]:
        """Return every entry of a namespace, least recently used first."""

    def put(self, entry: CacheEntry) -> None:
        """Insert or replace a single entry."""

    def delete(self, *, namespace: str, keys: list[str]) -> int:
        """Delete entries by key. Return count deleted."""

    def replace(self, *, namespace: str, entries: list[CacheEntry]) -> None:
        """Atomically replace a namespace with the given snapshot."""

    def count(self, *, namespace: str | None = None) -> int:
        """Count entries, optionally within one namespace."""

    def close(self) -> None:
        """Release the underlying file."""
