"""
Embedding clients for query-time semantic search.

``EmbeddingProvider`` wraps the Google GenAI embedding API and
``HttpEmbeddingClient`` talks to a self-hosted vectorizer over HTTP. Both
turn one text into one fixed-length vector and translate transport failures
into the gateway's error taxonomy.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

import httpx
from google.genai import Client as GenAIClient
from google.genai import errors as genai_errors
from google.genai.types import HttpOptions

from .errors import DependencyFailure, DependencyTimeout

logger = logging.getLogger(__name__)

_DEFAULT_MODEL = "gemini-embedding-001"
_DEFAULT_DIM = 768
_DEFAULT_TIMEOUT_SECONDS = 10.0


class EmbeddingClient(Protocol):
    """Produces a fixed-length vector for a text."""

    @property
    def namespace(self) -> str:
        """Identifies the model/endpoint; vectors from different namespaces never mix."""

    @property
    def dim(self) -> int:
        """Length of every vector this client returns."""

    def embed(self, text: str) -> list[float]:
        """Embed a single text."""


class EmbeddingProvider:
    """Generate query embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        endpoint: str | None = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        api_key_env: str = "GOOGLE_API_KEY",
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv("SEARCH_GATEWAY_EMBEDDING_MODEL", _DEFAULT_MODEL)
        self._dim = dim or int(os.getenv("SEARCH_GATEWAY_EMBEDDING_DIM", str(_DEFAULT_DIM)))
        self.endpoint = endpoint

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv(api_key_env)
            if resolved_key is None:
                raise ValueError(
                    f"{api_key_env} not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(
                api_key=resolved_key,
                http_options=HttpOptions(
                    base_url=endpoint, timeout=int(timeout_seconds * 1000)
                ),
            )

    @property
    def namespace(self) -> str:
        if self.endpoint:
            return f"genai:{self.model}@{self.endpoint}"
        return f"genai:{self.model}"

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        """Embed a single query text for retrieval."""
        try:
            result = self._client.models.embed_content(
                model=self.model,
                contents=[text],
                config={
                    "task_type": "RETRIEVAL_QUERY",
                    "output_dimensionality": self._dim,
                },
            )
        except httpx.TimeoutException as exc:
            raise DependencyTimeout(f"Embedding request timed out: {exc}") from exc
        except (genai_errors.APIError, httpx.HTTPError) as exc:
            raise DependencyFailure(f"Embedding request failed: {exc}") from exc

        if not result.embeddings:
            raise DependencyFailure("Embedding service returned no embeddings.")
        return list(result.embeddings[0].values)


class HttpEmbeddingClient:
    """Client for a self-hosted vectorizer.

    The vectorizer accepts ``{"text": ...}`` and answers with
    ``{"embeddings": [...]}``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        dim: int,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._dim = dim
        self._client = client or httpx.Client(timeout=timeout_seconds)

    @property
    def namespace(self) -> str:
        return f"http:{self.endpoint}"

    @property
    def dim(self) -> int:
        return self._dim

    def embed(self, text: str) -> list[float]:
        try:
            response = self._client.post(self.endpoint, json={"text": text})
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise DependencyTimeout(f"Vectorizer at {self.endpoint} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DependencyFailure(f"Vectorizer at {self.endpoint} failed: {exc}") from exc
        except ValueError as exc:
            raise DependencyFailure(f"Vectorizer at {self.endpoint} returned invalid JSON") from exc

        embeddings = payload.get("embeddings") if isinstance(payload, dict) else None
        if not isinstance(embeddings, list) or not embeddings:
            raise DependencyFailure(f"Vectorizer at {self.endpoint} returned no embeddings.")
        try:
            return [float(value) for value in embeddings]
        except (TypeError, ValueError) as exc:
            raise DependencyFailure(f"Vectorizer at {self.endpoint} returned non-numeric values") from exc

    def close(self) -> None:
        self._client.close()
