"""
Nearest-neighbour query fragments for each vector storage topology.
"""

from __future__ import annotations

from typing import Sequence, assert_never

from ..config import (
    ChildCollectionTopology,
    EmbeddedDocTopology,
    InlineTopology,
    VectorFieldConfig,
)
from ..errors import ClientError
from ..models import SimilarityOptions
from .params import quote_local_param, stringify

DEFAULT_MIN_TRAVERSE = "-Infinity"


def format_vector(vector: Sequence[float]) -> str:
    """Serialize a vector deterministically as ``[v1,v2,...]``."""
    return "[" + ",".join(f"{value:.6f}" for value in vector) + "]"


def knn_fragment(vector_field: str, vector: Sequence[float], top_k: int) -> str:
    return f"{{!knn f={vector_field} topK={top_k}}}{format_vector(vector)}"


def similarity_fragment(
    vector_field: str, vector: Sequence[float], similarity: SimilarityOptions
) -> str:
    """Threshold match: every vector at least ``min_return`` similar is returned."""
    if similarity.min_return is None:
        raise ClientError("min_traverse needs min_return to be set as well.")
    min_traverse = (
        DEFAULT_MIN_TRAVERSE
        if similarity.min_traverse is None
        else stringify(similarity.min_traverse)
    )
    return (
        f"{{!vectorSimilarity f={vector_field} "
        f"minReturn={stringify(similarity.min_return)} minTraverse={min_traverse}}}"
        f"{format_vector(vector)}"
    )


class VectorQueryResolver:
    """Build a backend similarity fragment from a vector field and an embedding."""

    def __init__(self, id_field: str = "id") -> None:
        self.id_field = id_field

    def build_fragment(
        self,
        config: VectorFieldConfig,
        vector: Sequence[float],
        top_k: int | None = None,
        similarity: SimilarityOptions | None = None,
    ) -> str:
        k = config.k if top_k is None else top_k
        if k <= 0:
            raise ClientError(f"top_k must be greater than 0, got {k}")
        if not vector:
            raise ClientError(f"Empty vector for field {config.name!r}")

        if similarity is not None and (
            similarity.min_return is not None or similarity.min_traverse is not None
        ):
            inner = similarity_fragment(config.vector_field, vector, similarity)
        else:
            inner = knn_fragment(config.vector_field, vector, k)

        topology = config.topology
        if isinstance(topology, InlineTopology):
            return inner
        if isinstance(topology, EmbeddedDocTopology):
            # Match child documents and return their parent.
            return f"{{!parent which={quote_local_param(topology.parent_filter)}}}{inner}"
        if isinstance(topology, ChildCollectionTopology):
            return (
                f"{{!join from={topology.parent_id_field} to={self.id_field} "
                f"fromIndex={topology.chunk_collection}}}{inner}"
            )
        assert_never(topology)
