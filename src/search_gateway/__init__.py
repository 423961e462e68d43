"""
Search gateway.

Translates structured search requests into Solr queries, enriching them with
vector similarity clauses from a cached embedding service, and maps Solr's
results back into typed responses.
"""

from .config import GatewayConfig, VectorFieldConfig, load_config
from .embedding_cache import EmbeddingCache
from .errors import (
    ClientError,
    ConfigurationError,
    DependencyFailure,
    DependencyTimeout,
    SearchGatewayError,
)
from .models import SearchRequest, SearchResponse
from .service import SearchService

__all__ = [
    "GatewayConfig",
    "VectorFieldConfig",
    "load_config",
    "EmbeddingCache",
    "ClientError",
    "ConfigurationError",
    "DependencyFailure",
    "DependencyTimeout",
    "SearchGatewayError",
    "SearchRequest",
    "SearchResponse",
    "SearchService",
]
