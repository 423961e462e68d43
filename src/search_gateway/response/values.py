"""
Uniform conversion of backend field values.

Every value becomes one of a closed set of variants. Anything that is not
null, text, a number, a boolean, a mapping or a sequence falls back to its
string form.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, TypeAlias


@dataclass(frozen=True)
class NullValue:
    def to_json(self) -> None:
        return None


@dataclass(frozen=True)
class StringValue:
    value: str

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class NumberValue:
    value: int | float

    def to_json(self) -> int | float:
        return self.value


@dataclass(frozen=True)
class BoolValue:
    value: bool

    def to_json(self) -> bool:
        return self.value


@dataclass(frozen=True)
class StructValue:
    fields: tuple[tuple[str, FieldValue], ...]

    def to_json(self) -> dict[str, Any]:
        return {name: value.to_json() for name, value in self.fields}


@dataclass(frozen=True)
class ListValue:
    items: tuple[FieldValue, ...]

    def to_json(self) -> list[Any]:
        return [item.to_json() for item in self.items]


FieldValue: TypeAlias = (
    NullValue | StringValue | NumberValue | BoolValue | StructValue | ListValue
)


def to_value(raw: Any) -> FieldValue:
    """Convert a backend value, recursing into mappings and sequences."""
    if raw is None:
        return NullValue()
    if isinstance(raw, str):
        return StringValue(raw)
    # bool is a subclass of int and must be matched first.
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, (int, float)):
        return NumberValue(raw)
    if isinstance(raw, Decimal):
        return NumberValue(float(raw))
    if isinstance(raw, Mapping):
        return StructValue(tuple((str(name), to_value(value)) for name, value in raw.items()))
    if isinstance(raw, (list, tuple)):
        return ListValue(tuple(to_value(item) for item in raw))
    return StringValue(str(raw))


def to_json_value(raw: Any) -> Any:
    return to_value(raw).to_json()
