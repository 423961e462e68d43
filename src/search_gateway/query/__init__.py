"""Backend query translation."""

from .facets import add_facets, add_highlighting
from .fields import FieldSelection, resolve_field_list
from .params import TranslatedQuery, quote_local_param, stringify
from .translator import EmbedFn, QueryTranslator
from .vector import VectorQueryResolver, format_vector, knn_fragment, similarity_fragment

__all__ = [
    "add_facets",
    "add_highlighting",
    "FieldSelection",
    "resolve_field_list",
    "TranslatedQuery",
    "quote_local_param",
    "stringify",
    "EmbedFn",
    "QueryTranslator",
    "VectorQueryResolver",
    "format_vector",
    "knn_fragment",
    "similarity_fragment",
]
