"""
Write-through embedding cache.

Vectors are keyed by a SHA-256 digest of the source text and persisted to a
``CacheStore`` on every mutation, so a corpus is embedded at most once across
process restarts. Concurrent misses for the same text share one in-flight
computation; the embedding client is called at most once per key.
"""

from __future__ import annotations

import hashlib
import logging
import math
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable

from .embeddings import EmbeddingClient
from .errors import DependencyFailure
from .storage import CacheEntry, CacheStore

logger = logging.getLogger(__name__)


def content_hash(text: str) -> str:
    """Stable cache key for a piece of text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class EmbeddingCache:
    """Memoize ``EmbeddingClient.embed`` with durable, single-flight semantics."""

    def __init__(
        self,
        client: EmbeddingClient,
        store: CacheStore,
        *,
        max_entries: int | None = None,
        max_age_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.namespace = client.namespace
        self.dim = client.dim
        self.max_entries = max_entries
        self.max_age_seconds = max_age_seconds
        self.hits = 0
        self.misses = 0
        self._store = store
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._in_flight: dict[str, Future[tuple[float, ...]]] = {}
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._is_open = False

    def __enter__(self) -> EmbeddingCache:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def open(self) -> None:
        """Load the persisted snapshot for this namespace."""
        if self._is_open:
            return
        now = self._clock()
        stale: list[str] = []
        with self._lock:
            self._entries.clear()
            for entry in self._store.load(namespace=self.namespace):
                if len(entry.vector) != self.dim or self._is_expired(entry, now):
                    stale.append(entry.key)
                    continue
                self._entries[entry.key] = entry
            evicted = self._evict_locked()
            self._is_open = True
            self._write_lock.acquire()
        stale.extend(evicted)
        try:
            if stale:
                self._store.delete(namespace=self.namespace, keys=stale)
        finally:
            self._write_lock.release()
        logger.info(
            "Embedding cache %s opened with %d entries (%d dropped)",
            self.namespace,
            len(self._entries),
            len(stale),
        )

    def close(self) -> None:
        """Write the final snapshot."""
        if not self._is_open:
            return
        with self._lock:
            snapshot = list(self._entries.values())
            self._is_open = False
            self._write_lock.acquire()
        try:
            self._store.replace(namespace=self.namespace, entries=snapshot)
        finally:
            self._write_lock.release()

    def snapshot(self) -> dict[str, list[float]]:
        """Current key to vector mapping."""
        with self._lock:
            return {key: list(entry.vector) for key, entry in self._entries.items()}

    def resolve(self, text: str) -> list[float]:
        """Return the embedding for *text*, calling the client only on a miss."""
        key = content_hash(text)
        now = self._clock()
        expired: CacheEntry | None = None

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_expired(entry, now):
                expired = self._entries.pop(key)
                entry = None
            if entry is not None:
                self._entries.move_to_end(key)
                self._entries[key] = CacheEntry(
                    namespace=entry.namespace,
                    key=entry.key,
                    vector=entry.vector,
                    created_at=entry.created_at,
                    accessed_at=now,
                )
                self.hits += 1
                logger.debug("Embedding cache hit: %s", key[:12])
                return list(entry.vector)

            future = self._in_flight.get(key)
            is_leader = future is None
            if future is None:
                future = Future()
                self._in_flight[key] = future
                self.misses += 1
            if expired is not None:
                self._write_lock.acquire()

        if expired is not None:
            try:
                self._store.delete(namespace=self.namespace, keys=[expired.key])
            finally:
                self._write_lock.release()

        if not is_leader:
            logger.debug("Embedding cache waiting on in-flight key: %s", key[:12])
            return list(future.result())

        logger.debug("Embedding cache miss: %s", key[:12])
        try:
            vector = self._embed(text)
        except BaseException as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(exc)
            raise

        entry = CacheEntry(
            namespace=self.namespace,
            key=key,
            vector=vector,
            created_at=now,
            accessed_at=now,
        )
        with self._lock:
            self._entries[key] = entry
            evicted = self._evict_locked()
            self._in_flight.pop(key, None)
            # Taken before the cache lock is released so store writes land in
            # the same order as the in-memory mutations.
            self._write_lock.acquire()
        future.set_result(vector)

        try:
            self._store.put(entry)
            if evicted:
                self._store.delete(namespace=self.namespace, keys=evicted)
        finally:
            self._write_lock.release()
        return list(vector)

    def _embed(self, text: str) -> tuple[float, ...]:
        values = self.client.embed(text)
        if len(values) != self.dim:
            raise DependencyFailure(
                f"Embedding service returned {len(values)} dimensions, expected {self.dim}."
            )
        vector = tuple(float(value) for value in values)
        if not all(math.isfinite(value) for value in vector):
            raise DependencyFailure("Embedding service returned non-finite values.")
        return vector

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        if self.max_age_seconds is None:
            return False
        return now - entry.created_at > self.max_age_seconds

    def _evict_locked(self) -> list[str]:
        evicted: list[str] = []
        if self.max_entries is None:
            return evicted
        while len(self._entries) > self.max_entries:
            key, _ = self._entries.popitem(last=False)
            evicted.append(key)
        return evicted
