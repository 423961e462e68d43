"""Backend result to response mapping."""

from .facets import FacetProcessor
from .mapper import SNIPPET_SEPARATOR, ResponseMapper
from .values import (
    BoolValue,
    FieldValue,
    ListValue,
    NullValue,
    NumberValue,
    StringValue,
    StructValue,
    to_json_value,
    to_value,
)

__all__ = [
    "FacetProcessor",
    "SNIPPET_SEPARATOR",
    "ResponseMapper",
    "BoolValue",
    "FieldValue",
    "ListValue",
    "NullValue",
    "NumberValue",
    "StringValue",
    "StructValue",
    "to_json_value",
    "to_value",
]
