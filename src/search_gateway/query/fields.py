"""
Field projection for the backend query and the response field maps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import DefaultSearch
from ..models import SearchRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSelection:
    """Resolved ``fl`` value and the fields that must never be returned."""

    field_list: str
    excluded: frozenset[str]


def resolve_field_list(
    request: SearchRequest,
    defaults: DefaultSearch,
    *,
    id_field: str = "id",
) -> FieldSelection:
    """Resolve the projection for a request.

    An explicit inclusion list wins over the deployment defaults. Unknown
    field names are passed through untouched; the backend ignores them.
    """
    field_list = request.field_list
    requested_excludes = list(field_list.exclude) if field_list else []

    if field_list is not None and field_list.include:
        excluded = set(requested_excludes)
        conflicts = excluded.intersection(field_list.include)
        if conflicts:
            logger.warning(
                "Fields %s are both included and excluded. They will be excluded.",
                sorted(conflicts),
            )
        candidates = list(field_list.include)
    else:
        excluded = set(defaults.exclude_fields) | set(requested_excludes)
        candidates = list(defaults.include_fields)

    fields: list[str] = []
    for name in candidates:
        if name not in excluded and name not in fields:
            fields.append(name)

    if not fields:
        return FieldSelection(field_list="*", excluded=frozenset(excluded))
    if id_field not in fields:
        fields.insert(0, id_field)
    return FieldSelection(field_list=",".join(fields), excluded=frozenset(excluded))
