"""
DuckDB storage backend for the embedding cache snapshot.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import duckdb

from .base import CacheEntry

logger = logging.getLogger(__name__)


class DuckDBCacheStore:
    """DuckDB-backed persistence for cached embedding vectors.

    Vectors are stored as ``DOUBLE[]`` so Python floats round-trip exactly.
    A single connection is shared and serialized behind a lock.
    """

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()

    def initialize(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS embedding_cache (
                    namespace VARCHAR NOT NULL,
                    key VARCHAR NOT NULL,
                    vector DOUBLE[] NOT NULL,
                    created_at DOUBLE NOT NULL,
                    accessed_at DOUBLE NOT NULL,
                    PRIMARY KEY (namespace, key)
                );
                """
            )

    def load(self, *, namespace: str) -> list[CacheEntry]:
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT namespace, key, vector, created_at, accessed_at
                FROM embedding_cache
                WHERE namespace = ?
                ORDER BY accessed_at ASC, key ASC
                """,
                [namespace],
            ).fetchall()
        return [
            CacheEntry(
                namespace=str(row[0]),
                key=str(row[1]),
                vector=tuple(float(value) for value in row[2]),
                created_at=float(row[3]),
                accessed_at=float(row[4]),
            )
            for row in rows
        ]

    def put(self, entry: CacheEntry) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO embedding_cache (namespace, key, vector, created_at, accessed_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (namespace, key) DO UPDATE SET
                    vector = excluded.vector,
                    created_at = excluded.created_at,
                    accessed_at = excluded.accessed_at
                """,
                [
                    entry.namespace,
                    entry.key,
                    list(entry.vector),
                    entry.created_at,
                    entry.accessed_at,
                ],
            )

    def delete(self, *, namespace: str, keys: list[str]) -> int:
        if not keys:
            return 0
        placeholders = ", ".join("?" for _ in keys)
        with self._lock:
            before = self._count_locked(namespace)
            self._conn.execute(
                f"DELETE FROM embedding_cache WHERE namespace = ? AND key IN ({placeholders})",
                [namespace, *keys],
            )
            return before - self._count_locked(namespace)

    def replace(self, *, namespace: str, entries: list[CacheEntry]) -> None:
        with self._lock:
            self._conn.begin()
            try:
                self._conn.execute(
                    "DELETE FROM embedding_cache WHERE namespace = ?", [namespace]
                )
                if entries:
                    self._conn.executemany(
                        """
                        INSERT INTO embedding_cache
                            (namespace, key, vector, created_at, accessed_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        [
                            [
                                namespace,
                                entry.key,
                                list(entry.vector),
                                entry.created_at,
                                entry.accessed_at,
                            ]
                            for entry in entries
                        ],
                    )
                self._conn.commit()
            except duckdb.Error:
                self._conn.rollback()
                raise
        logger.debug("Wrote cache snapshot for %s (%d entries)", namespace, len(entries))

    def count(self, *, namespace: str | None = None) -> int:
        with self._lock:
            return self._count_locked(namespace)

    def _count_locked(self, namespace: str | None) -> int:
        if namespace is None:
            row = self._conn.execute("SELECT COUNT(*) FROM embedding_cache").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM embedding_cache WHERE namespace = ?",
                [namespace],
            ).fetchone()
        return int(row[0]) if row else 0
