"""
Map a parsed backend result into a ``SearchResponse``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Collection

from ..backend import BackendResult, BackendRow
from ..models import SearchResponse, SearchResult
from .facets import FacetProcessor
from .values import to_json_value

SNIPPET_SEPARATOR = " ... "


class ResponseMapper:
    def __init__(
        self,
        facet_processor: FacetProcessor | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.facet_processor = facet_processor or FacetProcessor()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def map(
        self,
        result: BackendResult,
        excluded: Collection[str] = (),
    ) -> SearchResponse:
        """Build the response; *excluded* fields never reach a field map."""
        excluded = frozenset(excluded)
        results = [self._map_row(row, result, excluded) for row in result.rows]
        return SearchResponse(
            results=results,
            total_results=result.num_found,
            results_count=len(results),
            elapsed_ms=result.qtime,
            timestamp=self._clock(),
            facets=self.facet_processor.process(result),
        )

    def _map_row(
        self,
        row: BackendRow,
        result: BackendResult,
        excluded: frozenset[str],
    ) -> SearchResult:
        fields = {
            name: to_json_value(value)
            for name, value in row.fields.items()
            if name not in excluded
        }
        fragments = [
            fragment
            for per_field in result.highlighting.get(row.id, {}).values()
            for fragment in per_field
        ]
        return SearchResult(
            id=row.id,
            fields=fields,
            snippet=SNIPPET_SEPARATOR.join(fragments),
            matched_fragments=fragments,
        )
