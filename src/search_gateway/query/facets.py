"""
Facet and highlighting parameters.
"""

from __future__ import annotations

from ..models import HighlightOptions, SearchRequest
from .params import stringify


def add_facets(request: SearchRequest, params: dict[str, list[str]]) -> None:
    """Expand facet requests into backend facet parameters."""
    if not request.facets and not request.facet_queries:
        return

    params["facet"] = ["true"]
    for facet in request.facets:
        prefix = f"f.{facet.field}.facet"
        name = _exclude_tags(facet.exclude_tags) + facet.field
        if facet.range is not None:
            params.setdefault("facet.range", []).append(name)
            params[f"{prefix}.range.start"] = [facet.range.start]
            params[f"{prefix}.range.end"] = [facet.range.end]
            params[f"{prefix}.range.gap"] = [facet.range.gap]
            if facet.range.hardend is not None:
                params[f"{prefix}.range.hardend"] = [stringify(facet.range.hardend)]
            if facet.range.other is not None:
                params[f"{prefix}.range.other"] = [facet.range.other]
            continue

        params.setdefault("facet.field", []).append(name)
        if facet.limit is not None:
            params[f"{prefix}.limit"] = [stringify(facet.limit)]
        if facet.missing is not None:
            params[f"{prefix}.missing"] = [stringify(facet.missing)]
        if facet.prefix is not None:
            params[f"{prefix}.prefix"] = [facet.prefix]

    for facet_query in request.facet_queries:
        params.setdefault("facet.query", []).append(facet_query)


def _exclude_tags(tags: list[str]) -> str:
    # Facet counts ignore the filters carrying these tags.
    return f"{{!ex={','.join(tags)}}}" if tags else ""


def add_highlighting(
    options: HighlightOptions,
    params: dict[str, list[str]],
    *,
    default_fields: list[str],
) -> None:
    fields = options.fields or default_fields
    params["hl"] = ["true"]
    params["hl.fl"] = [",".join(fields)]
    params["hl.simple.pre"] = [options.pre_tag]
    params["hl.simple.post"] = [options.post_tag]
    params["hl.snippets"] = [stringify(options.snippet_count)]
    params["hl.fragsize"] = [stringify(options.fragment_size)]
