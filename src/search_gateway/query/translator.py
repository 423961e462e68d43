"""
Translate a ``SearchRequest`` into backend query parameters.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..config import GatewayConfig, VectorFieldConfig
from ..errors import ClientError
from ..models import KeywordOptions, SearchRequest, SearchStrategy
from .facets import add_facets, add_highlighting
from .fields import resolve_field_list
from .params import TranslatedQuery, quote_local_param, stringify
from .vector import VectorQueryResolver

logger = logging.getLogger(__name__)

EmbedFn = Callable[[VectorFieldConfig, str], Sequence[float]]


class QueryTranslator:
    """Assemble keyword, semantic and hybrid backend queries.

    Sub-queries are placed in their own parameters and referenced with
    ``$name`` so query text and vectors never need escaping.
    """

    def __init__(
        self,
        config: GatewayConfig,
        embed: EmbedFn,
        resolver: VectorQueryResolver | None = None,
    ) -> None:
        self.config = config
        self._embed = embed
        self._resolver = resolver or VectorQueryResolver(config.collection.id_field)

    def translate(self, request: SearchRequest) -> TranslatedQuery:
        defaults = self.config.default_search
        strategy: SearchStrategy = request.strategy or defaults.strategy
        params: dict[str, list[str]] = {}

        self._add_query(request, strategy, params)
        self._add_pagination(request, params)
        self._add_filters(request, strategy, params)
        self._add_sort(request, params)

        selection = resolve_field_list(
            request, defaults, id_field=self.config.collection.id_field
        )
        params["fl"] = [selection.field_list]

        add_facets(request, params)
        if request.highlight is not None:
            add_highlighting(
                request.highlight, params, default_fields=defaults.highlight_fields
            )
        params["wt"] = ["json"]
        for name, values in request.extra_params.items():
            params.setdefault(name, []).extend(values)

        logger.debug("Translated %s query with parameters: %s", strategy, sorted(params))
        return TranslatedQuery(
            params=params,
            field_list=selection.field_list,
            excluded_fields=selection.excluded,
        )

    def _add_query(
        self,
        request: SearchRequest,
        strategy: SearchStrategy,
        params: dict[str, list[str]],
    ) -> None:
        if strategy == "keyword":
            params["q"] = [self._keyword_clause(request, params)]
            return
        if strategy == "semantic":
            params["q"] = [self._semantic_clause(request, params)]
            return

        if strategy == "keyword_semantic_boost":
            primary = self._keyword_clause(request, params)
            boosted = self._semantic_clause(request, params)
        elif strategy == "semantic_keyword_boost":
            primary = self._semantic_clause(request, params)
            boosted = self._keyword_clause(request, params)
        else:
            raise ClientError(f"Unsupported search strategy: {strategy!r}")

        weight = stringify(self.config.default_search.boost_weight)
        params["primary_clause"] = [primary]
        params["boosted_clause"] = [boosted]
        params["boost_clause"] = [f"{{!boost b={weight} v=$boosted_clause}}"]
        params["q"] = ["{!bool should=$primary_clause should=$boost_clause}"]

    def _keyword_clause(self, request: SearchRequest, params: dict[str, list[str]]) -> str:
        options = request.keyword or KeywordOptions()
        fields = options.query_fields or self.config.collection.keyword_fields
        if not fields:
            raise ClientError("Keyword search requested but no keyword fields are configured.")
        text = request.query if options.query_text is None else options.query_text
        params["keyword_query"] = [text]
        qf = quote_local_param(" ".join(fields))
        return f"{{!edismax q.op={options.operator} qf={qf} v=$keyword_query}}"

    def _semantic_clause(self, request: SearchRequest, params: dict[str, list[str]]) -> str:
        vector_fields = self._select_vector_fields(request)
        references: list[str] = []
        for index, field in enumerate(vector_fields):
            vector = self._embed(field, request.query)
            name = f"vector_query_{index}"
            params[name] = [
                self._resolver.build_fragment(
                    field, vector, request.top_k, similarity=request.similarity
                )
            ]
            references.append(f"should=${name}")
        return "{!bool " + " ".join(references) + "}"

    def _select_vector_fields(self, request: SearchRequest) -> list[VectorFieldConfig]:
        configured = self.config.collection.vector_fields
        if not configured:
            raise ClientError(
                "Semantic search requested but no vector fields are configured."
            )
        if not request.vector_fields:
            return list(configured.values())

        selected: list[VectorFieldConfig] = []
        for name in request.vector_fields:
            field = configured.get(name)
            if field is None:
                known = ", ".join(sorted(configured))
                raise ClientError(f"Unknown vector field {name!r}. Configured: {known}")
            selected.append(field)
        return selected

    def _add_pagination(self, request: SearchRequest, params: dict[str, list[str]]) -> None:
        defaults = self.config.default_search
        rows = defaults.rows if request.rows is None else request.rows
        if request.start < 0:
            raise ClientError(f"start must not be negative, got {request.start}")
        if not 1 <= rows <= defaults.max_rows:
            raise ClientError(f"rows must be between 1 and {defaults.max_rows}, got {rows}")
        params["start"] = [stringify(request.start)]
        params["rows"] = [stringify(rows)]

    def _add_sort(self, request: SearchRequest, params: dict[str, list[str]]) -> None:
        if request.sort is not None:
            params["sort"] = [f"{request.sort.field} {request.sort.order}"]
        elif self.config.default_search.sort:
            params["sort"] = [self.config.default_search.sort]

    def _add_filters(
        self,
        request: SearchRequest,
        strategy: SearchStrategy,
        params: dict[str, list[str]],
    ) -> None:
        # Each filter is tagged fq_tag<N> so a facet can exclude it by name.
        filters = [
            f"{{!tag=fq_tag{index}}}{expression}"
            for index, expression in enumerate(request.filters)
        ]
        if strategy != "keyword" and request.similarity is not None:
            filters.extend(request.similarity.pre_filters)
        if filters:
            params["fq"] = filters
