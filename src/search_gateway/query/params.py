"""
The translated backend query and deterministic parameter formatting.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def stringify(value: str | bool | int | float) -> str:
    """Render a parameter value the same way every time."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.6f}"
    return str(value)


@dataclass(frozen=True)
class TranslatedQuery:
    """Backend parameters for one search, plus the resolved projection.

    ``params`` maps a parameter name to its ordered values; repeated
    parameters such as ``fq`` or ``facet.field`` carry several values.
    """

    params: dict[str, list[str]]
    field_list: str
    excluded_fields: frozenset[str] = field(default_factory=frozenset)

    def get(self, name: str) -> list[str]:
        return list(self.params.get(name, []))

    def first(self, name: str) -> str | None:
        values = self.params.get(name)
        return values[0] if values else None

    def to_pairs(self) -> list[tuple[str, str]]:
        """Flatten into ``(name, value)`` pairs for form encoding."""
        return [(name, value) for name, values in self.params.items() for value in values]


def quote_local_param(value: str) -> str:
    """Quote a local parameter value, escaping backslashes and double quotes."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
