"""
Search orchestration: translate, query the backend, map the response.

``SearchService`` owns every long-lived resource of a deployment: the
embedding clients, one ``EmbeddingCache`` per distinct embedding endpoint,
the cache store they share, and the backend client.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Sequence

from .backend import SearchBackend, SolrClient
from .config import EmbeddingConfig, GatewayConfig, VectorFieldConfig, load_config, validate_config
from .embedding_cache import EmbeddingCache
from .embeddings import EmbeddingClient, EmbeddingProvider, HttpEmbeddingClient
from .errors import ConfigurationError, SearchGatewayError
from .models import SearchRequest, SearchResponse
from .query import QueryTranslator, TranslatedQuery
from .response import ResponseMapper
from .storage import CacheStore, DuckDBCacheStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[EmbeddingConfig, str | None], EmbeddingClient]


def build_embedding_client(config: EmbeddingConfig, endpoint: str | None = None) -> EmbeddingClient:
    """Create the embedding client for *endpoint*, or for the default endpoint."""
    target = endpoint or config.endpoint
    if config.provider == "http":
        if not target:
            raise ConfigurationError("The http embedding provider needs an endpoint.")
        if config.dim is None:
            raise ConfigurationError("The http embedding provider needs embedding.dim.")
        return HttpEmbeddingClient(
            target, dim=config.dim, timeout_seconds=config.timeout_seconds
        )
    try:
        return EmbeddingProvider(
            model=config.model,
            dim=config.dim,
            endpoint=target,
            timeout_seconds=config.timeout_seconds,
            api_key_env=config.api_key_env,
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


class SearchService:
    """Unary ``search(request) -> response`` over the configured collection."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        backend: SearchBackend | None = None,
        store: CacheStore | None = None,
        client_factory: ClientFactory = build_embedding_client,
    ) -> None:
        validate_config(config)
        self.config = config
        self.backend = backend or SolrClient(
            config.solr.url,
            timeout_seconds=config.solr.timeout_seconds,
            id_field=config.collection.id_field,
        )
        self.translator = QueryTranslator(config, self._embed)
        self.mapper = ResponseMapper()

        self._store = store
        self._owns_store = store is None
        self._clients: dict[str | None, EmbeddingClient] = {}
        for field in config.collection.vector_fields.values():
            endpoint = self._endpoint_for(field)
            if endpoint not in self._clients:
                self._clients[endpoint] = client_factory(config.embedding, endpoint)
        self._caches: dict[str | None, EmbeddingCache] = {}

    @classmethod
    def from_config(cls, config_path: str | None = None, **kwargs: Any) -> SearchService:
        return cls(load_config(config_path), **kwargs)

    def __enter__(self) -> SearchService:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def cache_size(self) -> int:
        return sum(cache.size for cache in self._caches.values())

    def open(self) -> None:
        """Open the embedding caches; a no-op for keyword-only deployments."""
        if self._caches or not self._clients:
            return
        if self._store is None:
            self._store = DuckDBCacheStore(self.config.cache.path)
        for endpoint, client in self._clients.items():
            cache = EmbeddingCache(
                client,
                self._store,
                max_entries=self.config.cache.max_entries,
                max_age_seconds=self.config.cache.max_age_seconds,
            )
            cache.open()
            self._caches[endpoint] = cache

    def close(self) -> None:
        """Snapshot the caches and release every connection."""
        for cache in self._caches.values():
            cache.close()
        self._caches.clear()
        if self._store is not None and self._owns_store:
            self._store.close()
            self._store = None
        for client in self._clients.values():
            close = getattr(client, "close", None)
            if callable(close):
                close()
        self.backend.close()

    def translate(self, request: SearchRequest) -> TranslatedQuery:
        return self.translator.translate(request)

    def search(self, request: SearchRequest) -> SearchResponse:
        started = time.perf_counter()
        logger.debug(
            "Search request: query=%r strategy=%s", request.query, request.strategy
        )
        try:
            translated = self.translator.translate(request)
            result = self.backend.query(self.config.collection.name, translated)
            response = self.mapper.map(result, translated.excluded_fields)
        except SearchGatewayError as exc:
            logger.error("Search for %r failed: %s", request.query, exc)
            raise
        logger.debug(
            "Search returned %d of %d results in %.1fms",
            response.results_count,
            response.total_results,
            (time.perf_counter() - started) * 1000,
        )
        return response

    def _embed(self, field: VectorFieldConfig, text: str) -> Sequence[float]:
        cache = self._caches.get(self._endpoint_for(field))
        if cache is None:
            raise RuntimeError("SearchService must be opened before semantic search.")
        return cache.resolve(text)

    def _endpoint_for(self, field: VectorFieldConfig) -> str | None:
        # A field naming the default endpoint shares the default client and cache.
        return field.embedding_endpoint or self.config.embedding.endpoint
