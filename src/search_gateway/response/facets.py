from __future__ import annotations

import logging

from ..backend import BackendResult, FacetCount
from ..models import FacetBucket

logger = logging.getLogger(__name__)


class FacetProcessor:
    """Normalize backend facet counts into ordered buckets.

    Field facets and range facets are keyed by field name. Each facet query
    is keyed by the query itself and holds a single bucket.
    """

    def process(self, result: BackendResult) -> dict[str, list[FacetBucket]]:
        facets: dict[str, list[FacetBucket]] = {}

        for name, counts in result.facet_fields.items():
            facets.setdefault(name, []).extend(_buckets(counts))

        for query, count in result.facet_queries.items():
            facets.setdefault(query, []).append(FacetBucket(value=query, count=count))

        for name, counts in result.facet_ranges.items():
            facets.setdefault(name, []).extend(_buckets(counts))

        logger.debug("Processed %d facets", len(facets))
        return facets


def _buckets(counts: list[FacetCount]) -> list[FacetBucket]:
    return [FacetBucket(value=item.value, count=item.count) for item in counts]
