"""Client for the OSV vulnerability database (https://osv.dev)."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from typing import Any

import httpx

from vibesafe import __version__

logger = logging.getLogger(__name__)

DEFAULT_OSV_URL = "https://api.osv.dev"
MAX_BATCH_SIZE = 1000


class IntegrityFault(RuntimeError):
    """The service answered with a result list that does not line up with the queries."""


class OSVClient:
    """HTTP client for OSV batch queries and vulnerability details.

    Batch responses carry only vulnerability ids; :meth:`get_vulnerability`
    fetches the full record (severity, summary, affected ranges) and caches
    it per id.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_OSV_URL,
        timeout: float = 30.0,
        batch_size: int = MAX_BATCH_SIZE,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": f"vibesafe/{__version__}"},
        )
        self._cache: dict[str, dict[str, Any] | None] = {}
        self._lock = threading.Lock()

    def __enter__(self) -> OSVClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def batches(self, queries: Sequence[Any]) -> Iterator[Sequence[Any]]:
        for start in range(0, len(queries), self.batch_size):
            yield queries[start : start + self.batch_size]

    def query_batch(self, queries: Sequence[dict[str, Any]]) -> list[list[dict[str, Any]]]:
        """Query one batch and return the vulnerability list for each query, in order.

        Raises:
            httpx.HTTPError: The request failed or returned an error status.
            ValueError: The body is not JSON or has no ``results`` list.
            IntegrityFault: The number of results differs from the number of queries.
        """
        logger.debug("Querying OSV for %d packages", len(queries))
        response = self._client.post("/v1/querybatch", json={"queries": list(queries)})
        response.raise_for_status()

        data = response.json()
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ValueError("OSV response has no results list")
        if len(results) != len(queries):
            raise IntegrityFault(
                f"OSV returned {len(results)} results for {len(queries)} queries"
            )
        return [list((result or {}).get("vulns") or []) for result in results]

    def get_vulnerability(self, vuln_id: str) -> dict[str, Any] | None:
        """Full vulnerability record, or None when it cannot be fetched."""
        with self._lock:
            if vuln_id in self._cache:
                return self._cache[vuln_id]

        record: dict[str, Any] | None
        try:
            response = self._client.get(f"/v1/vulns/{vuln_id}")
            response.raise_for_status()
            record = response.json()
            if not isinstance(record, dict):
                raise ValueError("vulnerability record is not an object")
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Could not fetch details for %s: %s", vuln_id, e)
            record = None

        with self._lock:
            self._cache[vuln_id] = record
        return record
