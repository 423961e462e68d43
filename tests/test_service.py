"""Tests for the search service end to end over fakes."""

from __future__ import annotations

from pathlib import Path

import pytest

from search_gateway.backend import BackendResult
from search_gateway.config import EmbeddingConfig, parse_config
from search_gateway.errors import ClientError, ConfigurationError, DependencyTimeout
from search_gateway.models import FacetRequest, SearchRequest
from search_gateway.service import SearchService, build_embedding_client

from conftest import FakeBackend, FakeEmbeddingClient, MemoryCacheStore, solr_payload


class _ClientFactory:
    def __init__(self) -> None:
        self.clients: dict[str | None, FakeEmbeddingClient] = {}

    def __call__(self, config: EmbeddingConfig, endpoint: str | None) -> FakeEmbeddingClient:
        client = FakeEmbeddingClient(namespace=f"fake:{endpoint}")
        self.clients[endpoint] = client
        return client


def _rows_payload() -> dict:
    return solr_payload(
        [
            {"id": "1", "title": "Intro to ML", "description": "A primer", "secret": "s"},
            {"id": "2", "title": "Deep learning", "description": "Networks", "secret": "s"},
        ],
        facet_fields={"type": ["book", 2], "category": ["education", 2]},
    )


def test_keyword_search_end_to_end(gateway_config) -> None:
    backend = FakeBackend(BackendResult.from_json(_rows_payload()))
    factory = _ClientFactory()

    with SearchService(
        gateway_config, backend=backend, store=MemoryCacheStore(), client_factory=factory
    ) as service:
        response = service.search(
            SearchRequest(
                query="machine learning",
                strategy="keyword",
                rows=10,
                facets=[FacetRequest(field="type"), FacetRequest(field="category")],
            )
        )

    collection, translated = backend.queries[0]
    assert collection == "documents"
    assert "{!knn" not in " ".join(v for vs in translated.params.values() for v in vs)
    assert response.total_results == 2
    assert response.results_count == 2
    assert all("secret" not in item.fields for item in response.results)
    assert set(response.facets) == {"type", "category"}
    assert all(client.calls == [] for client in factory.clients.values())
    assert backend.closed


def test_semantic_search_embeds_once_per_endpoint_and_text(gateway_config) -> None:
    backend = FakeBackend()
    factory = _ClientFactory()
    store = MemoryCacheStore()

    with SearchService(
        gateway_config, backend=backend, store=store, client_factory=factory
    ) as service:
        request = SearchRequest(query="neural networks", strategy="semantic")
        service.search(request)
        service.search(request)
        assert service.cache_size == 1

    # All three vector fields share the default endpoint.
    assert list(factory.clients) == [None]
    assert factory.clients[None].calls == ["neural networks"]
    assert store.replaced == ["fake:None"]
    assert not store.closed


def test_per_field_endpoint_gets_its_own_client(gateway_config) -> None:
    data = gateway_config.model_dump()
    data["collection"]["vector_fields"]["chunks"]["embedding_endpoint"] = "http://chunks/embed"
    config = parse_config(data)
    factory = _ClientFactory()

    with SearchService(
        config, backend=FakeBackend(), store=MemoryCacheStore(), client_factory=factory
    ) as service:
        service.search(SearchRequest(query="q", strategy="semantic"))

    assert set(factory.clients) == {None, "http://chunks/embed"}
    assert factory.clients[None].calls == ["q"]
    assert factory.clients["http://chunks/embed"].calls == ["q"]


def test_client_errors_do_not_reach_the_backend(keyword_config) -> None:
    backend = FakeBackend()

    with SearchService(keyword_config, backend=backend) as service:
        with pytest.raises(ClientError):
            service.search(SearchRequest(query="q", strategy="semantic"))

    assert backend.queries == []


def test_backend_timeout_propagates(keyword_config) -> None:
    backend = FakeBackend(error=DependencyTimeout("solr timed out"))

    with SearchService(keyword_config, backend=backend) as service:
        with pytest.raises(DependencyTimeout):
            service.search(SearchRequest(query="q"))


def test_semantic_search_requires_open_service(gateway_config) -> None:
    service = SearchService(
        gateway_config,
        backend=FakeBackend(),
        store=MemoryCacheStore(),
        client_factory=_ClientFactory(),
    )

    with pytest.raises(RuntimeError, match="opened"):
        service.search(SearchRequest(query="q", strategy="semantic"))


def test_invalid_config_is_fatal_at_construction(keyword_config) -> None:
    bad = keyword_config.model_copy(
        update={
            "default_search": keyword_config.default_search.model_copy(update={"boost_weight": 2.0})
        }
    )

    with pytest.raises(ConfigurationError):
        SearchService(bad, backend=FakeBackend())


def test_cache_persists_across_service_restarts(gateway_config, tmp_path: Path) -> None:
    config = gateway_config.model_copy(
        update={"cache": gateway_config.cache.model_copy(update={"path": str(tmp_path / "c.duckdb")})}
    )
    request = SearchRequest(query="hello", strategy="semantic", vector_fields=["title"])

    first = _ClientFactory()
    with SearchService(config, backend=FakeBackend(), client_factory=first) as service:
        service.search(request)

    second = _ClientFactory()
    with SearchService(config, backend=FakeBackend(), client_factory=second) as service:
        service.search(request)

    assert first.clients[None].calls == ["hello"]
    assert second.clients[None].calls == []


def test_http_provider_requires_dim_and_endpoint() -> None:
    with pytest.raises(ConfigurationError, match="endpoint"):
        build_embedding_client(EmbeddingConfig(provider="http", dim=3))
    with pytest.raises(ConfigurationError, match="dim"):
        build_embedding_client(EmbeddingConfig(provider="http", endpoint="http://v/embed"))


def test_genai_provider_without_key_is_configuration_error(monkeypatch) -> None:
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
        build_embedding_client(EmbeddingConfig())


def test_field_naming_the_default_endpoint_shares_its_cache(tmp_path: Path) -> None:
    config = parse_config(
        {
            "embedding": {"provider": "http", "endpoint": "http://vec", "dim": 3},
            "cache": {"path": str(tmp_path / "c.duckdb")},
            "collection": {
                "vector_fields": {
                    "a": {"source_field": "title", "vector_field": "a-vector"},
                    "b": {
                        "source_field": "body",
                        "vector_field": "b-vector",
                        "embedding_endpoint": "http://vec",
                    },
                }
            },
        }
    )
    factory = _ClientFactory()

    with SearchService(config, backend=FakeBackend(), client_factory=factory) as service:
        service.search(SearchRequest(query="hello", strategy="semantic"))
        service.search(SearchRequest(query="world", strategy="semantic", vector_fields=["a"]))

    assert list(factory.clients) == ["http://vec"]
    assert factory.clients["http://vec"].calls == ["hello", "world"]

    reopened = _ClientFactory()
    with SearchService(config, backend=FakeBackend(), client_factory=reopened) as service:
        assert service.cache_size == 2
