"""
Deployment configuration for the search gateway.

The configuration is a YAML document bound onto pydantic models. Vector field
topologies form a closed tagged union keyed by ``kind``; anything outside it
is rejected while the file is loaded, never per request.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Annotated, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .models import SearchStrategy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.search_gateway/config.yaml"
ENV_CONFIG_PATH = "SEARCH_GATEWAY_CONFIG"


class InlineTopology(BaseModel):
    """Vector stored as a field of the primary document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"


class EmbeddedDocTopology(BaseModel):
    """Vector stored on nested child documents of the primary document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["embedded_doc"] = "embedded_doc"
    parent_filter: str = Field(default="type:parent", min_length=1)


class ChildCollectionTopology(BaseModel):
    """Vector stored on chunk documents in a separate, linked collection."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["child_collection"] = "child_collection"
    chunk_collection: str = Field(min_length=1)
    parent_id_field: str = Field(default="parent-id", min_length=1)


VectorTopology = Annotated[
    InlineTopology | EmbeddedDocTopology | ChildCollectionTopology,
    Field(discriminator="kind"),
]


class VectorFieldConfig(BaseModel):
    """One semantically searchable field."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    source_field: str = Field(min_length=1)
    vector_field: str = Field(min_length=1)
    topology: VectorTopology = Field(default_factory=InlineTopology)
    k: int = Field(default=10, ge=1)
    embedding_endpoint: str | None = None

    @field_validator("topology", mode="before")
    @classmethod
    def _expand_topology_shorthand(cls, value: Any) -> Any:
        # `topology: inline` is accepted as shorthand for `{kind: inline}`.
        if isinstance(value, str):
            return {"kind": value.strip().lower()}
        return value


class CollectionConfig(BaseModel):
    """Primary collection layout."""

    name: str = Field(default="documents", min_length=1)
    id_field: str = Field(default="id", min_length=1)
    keyword_fields: list[str] = Field(default_factory=lambda: ["title", "body"])
    vector_fields: dict[str, VectorFieldConfig] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _name_vector_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        vector_fields = data.get("vector_fields")
        if isinstance(vector_fields, dict):
            named: dict[str, Any] = {}
            for name, field in vector_fields.items():
                if isinstance(field, dict) and "name" not in field:
                    field = {**field, "name": name}
                named[name] = field
            data = {**data, "vector_fields": named}
        return data


class DefaultSearch(BaseModel):
    """Defaults applied when a request leaves a setting unspecified."""

    rows: int = Field(default=30, ge=1)
    max_rows: int = Field(default=1000, ge=1)
    sort: str = "score desc"
    strategy: SearchStrategy = "keyword"
    include_fields: list[str] = Field(default_factory=list)
    exclude_fields: list[str] = Field(default_factory=list)
    boost_weight: float = 0.5
    highlight_fields: list[str] = Field(default_factory=lambda: ["title", "body"])


class SolrConfig(BaseModel):
    url: str = "http://localhost:8983/solr"
    timeout_seconds: float = Field(default=10.0, gt=0)


class EmbeddingConfig(BaseModel):
    """Embedding service settings.

    ``model`` and ``dim`` fall back to environment variables and then to the
    provider defaults when left unset.
    """

    provider: Literal["genai", "http"] = "genai"
    model: str | None = None
    dim: int | None = Field(default=None, ge=1)
    endpoint: str | None = None
    timeout_seconds: float = Field(default=10.0, gt=0)
    api_key_env: str = "GOOGLE_API_KEY"


class CacheConfig(BaseModel):
    path: str = "~/.search_gateway/embeddings.duckdb"
    max_entries: int | None = Field(default=None, ge=1)
    max_age_seconds: float | None = Field(default=None, gt=0)


class GatewayConfig(BaseModel):
    """Root of the deployment configuration."""

    solr: SolrConfig = Field(default_factory=SolrConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    default_search: DefaultSearch = Field(default_factory=DefaultSearch)


def resolve_config_path(override_path: str | None = None) -> Path:
    """
    Resolve the configuration path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) SEARCH_GATEWAY_CONFIG
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_CONFIG_PATH) or DEFAULT_CONFIG_PATH
    return Path(raw_path).expanduser().resolve()


def parse_config(data: dict[str, Any]) -> GatewayConfig:
    """Bind a raw mapping onto ``GatewayConfig`` and validate it."""
    try:
        config = GatewayConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid gateway configuration: {exc}") from exc
    validate_config(config)
    return config


def load_config(override_path: str | None = None) -> GatewayConfig:
    """Load and validate the YAML configuration.

    A missing file is an error only when the path was given explicitly;
    otherwise the built-in defaults are used.
    """
    explicit = override_path is not None or os.getenv(ENV_CONFIG_PATH) is not None
    path = resolve_config_path(override_path)
    if not path.exists():
        if explicit:
            raise ConfigurationError(f"Configuration file not found: {path}")
        logger.info("No configuration file at %s; using defaults.", path)
        return parse_config({})

    try:
        raw = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {path}")
    return parse_config(raw)


def validate_config(config: GatewayConfig) -> None:
    """Startup checks that span more than one field."""
    collection = config.collection
    defaults = config.default_search

    names: set[str] = set()
    seen: dict[str, str] = {}
    for name, field in collection.vector_fields.items():
        if field.name in names:
            raise ConfigurationError(f"Vector field name {field.name!r} is configured twice.")
        names.add(field.name)
        if field.vector_field in seen:
            raise ConfigurationError(
                f"Vector field {field.vector_field!r} is configured twice "
                f"({seen[field.vector_field]!r} and {name!r})."
            )
        seen[field.vector_field] = name

    if not 0.0 < defaults.boost_weight < 1.0:
        raise ConfigurationError(
            f"default_search.boost_weight must be in (0, 1), got {defaults.boost_weight}"
        )
    if defaults.rows > defaults.max_rows:
        raise ConfigurationError("default_search.rows must not exceed default_search.max_rows")
    if defaults.strategy != "keyword" and not collection.vector_fields:
        raise ConfigurationError(
            f"Default strategy {defaults.strategy!r} needs at least one vector field."
        )
    if defaults.strategy != "semantic" and not collection.keyword_fields:
        raise ConfigurationError(
            f"Default strategy {defaults.strategy!r} needs at least one keyword field."
        )

    logger.info(
        "Configuration valid: collection=%s keyword_fields=%d vector_fields=%d",
        collection.name,
        len(collection.keyword_fields),
        len(collection.vector_fields),
    )
