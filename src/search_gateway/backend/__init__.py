"""Search backend adapters."""

from .base import BackendResult, BackendRow, FacetCount, SearchBackend
from .solr import SolrClient

__all__ = [
    "BackendResult",
    "BackendRow",
    "FacetCount",
    "SearchBackend",
    "SolrClient",
]
