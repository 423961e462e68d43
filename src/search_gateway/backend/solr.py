"""
HTTP client for the Solr select handler.
"""

from __future__ import annotations

import logging
import time

import httpx

from ..errors import DependencyFailure, DependencyTimeout
from ..query import TranslatedQuery
from .base import BackendResult

logger = logging.getLogger(__name__)


class SolrClient:
    """Run translated queries with ``POST <url>/<collection>/select``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        id_field: str = "id",
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.id_field = id_field
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def query(self, collection: str, query: TranslatedQuery) -> BackendResult:
        url = f"{self.base_url}/{collection}/select"
        started = time.perf_counter()
        try:
            # Form encoding keeps long vectors out of the URL.
            response = self._client.post(url, data=query.params)
        except httpx.TimeoutException as exc:
            raise DependencyTimeout(f"Solr request to {url} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DependencyFailure(f"Solr request to {url} failed: {exc}") from exc

        if response.is_error:
            raise DependencyFailure(
                f"Solr returned HTTP {response.status_code} for {url}: {_error_message(response)}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DependencyFailure(f"Solr returned invalid JSON for {url}") from exc

        result = BackendResult.from_json(payload, id_field=self.id_field)
        logger.debug(
            "Solr %s: %d of %d rows in %.1fms (QTime %dms)",
            collection,
            len(result.rows),
            result.num_found,
            (time.perf_counter() - started) * 1000,
            result.qtime,
        )
        return result

    def close(self) -> None:
        self._client.close()


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("msg"):
        return str(error["msg"])
    return response.text[:200]
