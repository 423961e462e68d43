"""
Typed records for backend search results.

The backend's JSON is parsed into these records right after the HTTP call so
nothing downstream handles raw response containers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..errors import DependencyFailure
from ..query import TranslatedQuery


@dataclass(frozen=True)
class FacetCount:
    value: str
    count: int


@dataclass(frozen=True)
class BackendRow:
    """One document as returned by the backend."""

    id: str
    fields: dict[str, Any]


@dataclass(frozen=True)
class BackendResult:
    rows: list[BackendRow]
    num_found: int
    qtime: int = 0
    highlighting: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    facet_fields: dict[str, list[FacetCount]] = field(default_factory=dict)
    facet_queries: dict[str, int] = field(default_factory=dict)
    facet_ranges: dict[str, list[FacetCount]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Any, *, id_field: str = "id") -> BackendResult:
        """Parse a Solr ``wt=json`` select response."""
        if not isinstance(payload, dict):
            raise DependencyFailure("Backend response is not a JSON object.")
        response = payload.get("response")
        if not isinstance(response, dict):
            raise DependencyFailure("Backend response has no 'response' section.")

        try:
            return cls._parse(payload, response, id_field)
        except (TypeError, ValueError, AttributeError) as exc:
            raise DependencyFailure(f"Malformed backend response: {exc}") from exc

    @classmethod
    def _parse(cls, payload: dict[str, Any], response: dict[str, Any], id_field: str) -> BackendResult:
        rows: list[BackendRow] = []
        for doc in response.get("docs") or []:
            if not isinstance(doc, dict):
                continue
            doc_id = doc.get(id_field)
            rows.append(BackendRow(id="" if doc_id is None else str(doc_id), fields=dict(doc)))

        header = payload.get("responseHeader") or {}
        facet_counts = payload.get("facet_counts") or {}

        ranges: dict[str, list[FacetCount]] = {}
        for name, data in (facet_counts.get("facet_ranges") or {}).items():
            if isinstance(data, dict):
                ranges[name] = _parse_counts(data.get("counts"))

        return cls(
            rows=rows,
            num_found=int(response.get("numFound", len(rows))),
            qtime=int(header.get("QTime", 0)),
            highlighting=_parse_highlighting(payload.get("highlighting")),
            facet_fields={
                name: _parse_counts(counts)
                for name, counts in (facet_counts.get("facet_fields") or {}).items()
            },
            facet_queries={
                name: int(count)
                for name, count in (facet_counts.get("facet_queries") or {}).items()
            },
            facet_ranges=ranges,
        )


class SearchBackend(Protocol):
    """Executes a translated query against one collection."""

    def query(self, collection: str, query: TranslatedQuery) -> BackendResult:
        """Run the query and return the parsed result."""

    def close(self) -> None:
        """Release network resources."""


def _parse_counts(raw: Any) -> list[FacetCount]:
    # Solr's default json.nl=flat renders pairs as [value, count, value, count, ...].
    if isinstance(raw, dict):
        return [FacetCount(value=_facet_value(value), count=int(count)) for value, count in raw.items()]
    if not isinstance(raw, list):
        return []
    if raw and all(isinstance(item, list) and len(item) == 2 for item in raw):
        return [FacetCount(value=_facet_value(value), count=int(count)) for value, count in raw]
    return [
        FacetCount(value=_facet_value(raw[index]), count=int(raw[index + 1]))
        for index in range(0, len(raw) - 1, 2)
    ]


def _facet_value(value: Any) -> str:
    # A null value is the "missing" bucket.
    return "" if value is None else str(value)


def _parse_highlighting(raw: Any) -> dict[str, dict[str, list[str]]]:
    if not isinstance(raw, dict):
        return {}
    highlighting: dict[str, dict[str, list[str]]] = {}
    for doc_id, per_field in raw.items():
        if not isinstance(per_field, dict):
            continue
        highlighting[str(doc_id)] = {
            name: [str(fragment) for fragment in fragments]
            for name, fragments in per_field.items()
            if isinstance(fragments, list)
        }
    return highlighting
