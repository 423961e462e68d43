"""Persistence for the embedding cache."""

from .base import CacheEntry, CacheStore
from .duckdb import DuckDBCacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "DuckDBCacheStore",
]
