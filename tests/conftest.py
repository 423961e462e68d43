from __future__ import annotations

import threading
from typing import Any

import pytest

from search_gateway.backend import BackendResult
from search_gateway.config import GatewayConfig, parse_config
from search_gateway.query import TranslatedQuery
from search_gateway.storage import CacheEntry


class FakeEmbeddingClient:
    """Records calls and returns a deterministic vector per text."""

    def __init__(
        self,
        dim: int = 3,
        namespace: str = "fake:model",
        *,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self._dim = dim
        self._namespace = namespace
        self.error = error
        self.gate = gate
        self.calls: list[str] = []
        self._lock = threading.Lock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return [float(len(text)) + index / 10 for index in range(self._dim)]


class MemoryCacheStore:
    """In-memory ``CacheStore`` that keeps a log of mutations."""

    def __init__(self) -> None:
        self.entries: dict[tuple[str, str], CacheEntry] = {}
        self.puts: list[CacheEntry] = []
        self.replaced: list[str] = []
        self.closed = False

    def initialize(self) -> None:
        return None

    def load(self, *, namespace: str) -> list[CacheEntry]:
        entries = [entry for (ns, _), entry in self.entries.items() if ns == namespace]
        return sorted(entries, key=lambda entry: entry.accessed_at)

    def put(self, entry: CacheEntry) -> None:
        self.puts.append(entry)
        self.entries[(entry.namespace, entry.key)] = entry

    def delete(self, *, namespace: str, keys: list[str]) -> int:
        removed = 0
        for key in keys:
            if self.entries.pop((namespace, key), None) is not None:
                removed += 1
        return removed

    def replace(self, *, namespace: str, entries: list[CacheEntry]) -> None:
        self.replaced.append(namespace)
        for key in [key for (ns, key) in self.entries if ns == namespace]:
            del self.entries[(namespace, key)]
        for entry in entries:
            self.entries[(namespace, entry.key)] = entry

    def count(self, *, namespace: str | None = None) -> int:
        if namespace is None:
            return len(self.entries)
        return sum(1 for ns, _ in self.entries if ns == namespace)

    def close(self) -> None:
        self.closed = True


class FakeBackend:
    """Returns a canned ``BackendResult`` and records every query."""

    def __init__(self, result: BackendResult | None = None, *, error: Exception | None = None) -> None:
        self.result = result or BackendResult(rows=[], num_found=0)
        self.error = error
        self.queries: list[tuple[str, TranslatedQuery]] = []
        self.closed = False

    def query(self, collection: str, query: TranslatedQuery) -> BackendResult:
        self.queries.append((collection, query))
        if self.error is not None:
            raise self.error
        return self.result

    def close(self) -> None:
        self.closed = True


def solr_payload(
    docs: list[dict[str, Any]],
    *,
    num_found: int | None = None,
    qtime: int = 3,
    highlighting: dict[str, Any] | None = None,
    facet_fields: dict[str, list[Any]] | None = None,
    facet_queries: dict[str, int] | None = None,
    facet_ranges: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "responseHeader": {"status": 0, "QTime": qtime},
        "response": {
            "numFound": len(docs) if num_found is None else num_found,
            "start": 0,
            "docs": docs,
        },
    }
    if highlighting is not None:
        payload["highlighting"] = highlighting
    if facet_fields is not None or facet_queries is not None or facet_ranges is not None:
        payload["facet_counts"] = {
            "facet_queries": facet_queries or {},
            "facet_fields": facet_fields or {},
            "facet_ranges": facet_ranges or {},
        }
    return payload


@pytest.fixture()
def gateway_config() -> GatewayConfig:
    return parse_config(
        {
            "collection": {
                "name": "documents",
                "keyword_fields": ["title", "description"],
                "vector_fields": {
                    "title": {
                        "source_field": "title",
                        "vector_field": "title-vector",
                        "k": 5,
                    },
                    "body": {
                        "source_field": "body",
                        "vector_field": "body-vector",
                        "topology": {"kind": "embedded_doc"},
                    },
                    "chunks": {
                        "source_field": "body",
                        "vector_field": "chunk-vector",
                        "topology": {
                            "kind": "child_collection",
                            "chunk_collection": "documents-chunks",
                        },
                    },
                },
            },
            "default_search": {
                "rows": 10,
                "include_fields": ["id", "title", "description", "secret"],
                "exclude_fields": ["secret"],
                "boost_weight": 0.25,
            },
        }
    )


@pytest.fixture()
def keyword_config() -> GatewayConfig:
    return parse_config({"collection": {"keyword_fields": ["title", "description"]}})
