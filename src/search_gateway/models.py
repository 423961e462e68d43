from datetime import datetime
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

SearchStrategy: TypeAlias = Literal[
    "keyword", "semantic", "keyword_semantic_boost", "semantic_keyword_boost"
]
SortOrder: TypeAlias = Literal["asc", "desc"]
KeywordOperator: TypeAlias = Literal["AND", "OR"]


class SortOption(BaseModel):
    """Sort on a single field"""

    model_config = ConfigDict(frozen=True)

    field: str = Field(description="Field to sort on, or `score`")
    order: SortOrder = Field(default="desc", description="Sort direction")


class FacetRange(BaseModel):
    """Range parameters for a range facet"""

    model_config = ConfigDict(frozen=True)

    start: str = Field(description="Lower bound of the first bucket")
    end: str = Field(description="Upper bound of the last bucket")
    gap: str = Field(description="Bucket width, e.g. `10` or `+1MONTH`")
    hardend: bool | None = Field(default=None, description="Clip the last bucket at `end`")
    other: str | None = Field(default=None, description="Extra buckets: before, after, between, all")


class FacetRequest(BaseModel):
    """Facet counts requested for one field"""

    model_config = ConfigDict(frozen=True)

    field: str = Field(description="Field to facet on")
    limit: int | None = Field(default=None, description="Maximum number of buckets")
    missing: bool | None = Field(default=None, description="Include a bucket for documents without a value")
    prefix: str | None = Field(default=None, description="Only count values starting with this prefix")
    range: FacetRange | None = Field(default=None, description="Makes this a range facet")
    exclude_tags: list[str] = Field(
        default_factory=list, description="Filter tags, such as `fq_tag0`, ignored when counting"
    )


class FieldList(BaseModel):
    """Explicit projection for the result field maps"""

    model_config = ConfigDict(frozen=True)

    include: list[str] = Field(default_factory=list, description="Fields to return")
    exclude: list[str] = Field(default_factory=list, description="Fields never to return")


class HighlightOptions(BaseModel):
    """Snippet highlighting settings"""

    model_config = ConfigDict(frozen=True)

    fields: list[str] = Field(default_factory=list, description="Fields to highlight")
    pre_tag: str = Field(default="<em>", description="Markup placed before a match")
    post_tag: str = Field(default="</em>", description="Markup placed after a match")
    snippet_count: int = Field(default=1, ge=1, description="Fragments per field")
    fragment_size: int = Field(default=100, ge=1, description="Characters per fragment")


class KeywordOptions(BaseModel):
    """Per-request control over the keyword clause"""

    model_config = ConfigDict(frozen=True)

    operator: KeywordOperator = Field(default="OR", description="How query terms are combined")
    query_fields: list[str] = Field(
        default_factory=list, description="Fields to search; the configured keyword fields when empty"
    )
    query_text: str | None = Field(default=None, description="Keyword text used instead of `query`")


class SimilarityOptions(BaseModel):
    """Similarity thresholds and pre-filters for semantic clauses"""

    model_config = ConfigDict(frozen=True)

    min_return: float | None = Field(default=None, description="Minimum similarity of a returned match")
    min_traverse: float | None = Field(
        default=None, description="Minimum similarity for graph traversal; needs `min_return`"
    )
    pre_filters: list[str] = Field(
        default_factory=list, description="Filter expressions applied with the semantic clause"
    )


class SearchRequest(BaseModel):
    """A search request, immutable once received"""

    model_config = ConfigDict(frozen=True)

    query: str = Field(description="Free-text query")
    start: int = Field(default=0, description="Offset of the first result")
    rows: int | None = Field(default=None, description="Page size; the deployment default when unset")
    filters: list[str] = Field(default_factory=list, description="Filter expressions, applied in order")
    sort: SortOption | None = Field(default=None, description="Sort order")
    facets: list[FacetRequest] = Field(default_factory=list, description="Field and range facets")
    facet_queries: list[str] = Field(default_factory=list, description="Query facets")
    strategy: SearchStrategy | None = Field(default=None, description="Blend of keyword and semantic matching")
    vector_fields: list[str] = Field(default_factory=list, description="Vector fields to use; all when empty")
    top_k: int | None = Field(default=None, description="Overrides the configured top-K per vector field")
    field_list: FieldList | None = Field(default=None, description="Field inclusion and exclusion")
    highlight: HighlightOptions | None = Field(default=None, description="Enables snippet highlighting")
    keyword: KeywordOptions | None = Field(default=None, description="Keyword clause overrides")
    similarity: SimilarityOptions | None = Field(default=None, description="Semantic similarity thresholds")
    extra_params: dict[str, list[str]] = Field(
        default_factory=dict, description="Backend parameters appended as given"
    )


class FacetBucket(BaseModel):
    """One facet value and its document count"""

    value: str
    count: int


class SearchResult(BaseModel):
    """One matching document"""

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)
    snippet: str = ""
    matched_fragments: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Search results with facets and timing"""

    results: list[SearchResult] = Field(default_factory=list)
    total_results: int
    results_count: int
    elapsed_ms: int
    timestamp: datetime
    facets: dict[str, list[FacetBucket]] = Field(default_factory=dict)
