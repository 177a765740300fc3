"""Vector storage for memory facts.

Facts live in a Qdrant collection: each point carries the embedding vector and
the fact metadata as payload, so both are always written and deleted together.
The Qdrant REST API is used directly through httpx.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from .models import MemoryFact

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the vector store rejects a request."""


class VectorStore(Protocol):
    """Similarity-search backend used by the memory pipelines."""

    async def ensure_namespace(self, dimension: int) -> None: ...

    async def upsert(self, fact: MemoryFact, vector: list[float]) -> None: ...

    async def search(
        self, vector: list[float], limit: int, min_score: float
    ) -> list[tuple[MemoryFact, float]]: ...

    async def patch(self, fact_id: str, payload: dict[str, Any]) -> None: ...

    async def delete(self, fact_id: str) -> None: ...

    async def count(self) -> int: ...

    async def close(self) -> None: ...


class QdrantStore:
    """VectorStore backed by a Qdrant collection with cosine distance."""

    def __init__(
        self,
        url: str = "http://localhost:6333",
        collection: str = "smartmem",
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            url: Base URL of the Qdrant server.
            collection: Collection holding the facts.
            api_key: Optional Qdrant API key.
            timeout: Request timeout in seconds.
            client: Optional preconfigured httpx client (mainly for tests).
        """
        self.base_url = url.rstrip("/")
        self.collection = collection
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["api-key"] = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = headers

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}/collections/{self.collection}"

    async def _request(
        self, method: str, path: str = "", json: dict[str, Any] | None = None
    ) -> httpx.Response:
        return await self._client.request(
            method, self.collection_url + path, headers=self._headers, json=json
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if not response.is_success:
            raise StoreError(f"Qdrant {action} failed: {response.text}")

    async def ensure_namespace(self, dimension: int) -> None:
        """Create the collection if it does not exist yet.

        Args:
            dimension: Size of the vectors stored in the collection.

        Raises:
            StoreError: If the collection cannot be created.
        """
        response = await self._request("GET")
        if response.is_success:
            return

        response = await self._request(
            "PUT",
            json={"vectors": {"size": dimension, "distance": "Cosine"}},
        )
        self._raise_for_status(response, "create collection")
        logger.info(f"Created Qdrant collection {self.collection} (dim={dimension})")

    async def upsert(self, fact: MemoryFact, vector: list[float]) -> None:
        """Insert or replace a fact and its vector as a single point."""
        response = await self._request(
            "PUT",
            "/points",
            json={
                "points": [
                    {"id": fact.id, "vector": vector, "payload": fact.to_payload()}
                ]
            },
        )
        self._raise_for_status(response, "upsert")

    async def search(
        self, vector: list[float], limit: int, min_score: float = 0.3
    ) -> list[tuple[MemoryFact, float]]:
        """Find the nearest facts with similarity at or above min_score.

        Returns:
            (fact, similarity) pairs, most similar first.
        """
        response = await self._request(
            "POST",
            "/points/search",
            json={
                "vector": vector,
                "limit": limit,
                "score_threshold": min_score,
                "with_payload": True,
            },
        )
        self._raise_for_status(response, "search")

        hits = response.json().get("result", [])
        return [
            (MemoryFact.from_payload(hit["id"], hit.get("payload") or {}), hit["score"])
            for hit in hits
        ]

    async def patch(self, fact_id: str, payload: dict[str, Any]) -> None:
        """Overwrite some payload fields of a fact."""
        response = await self._request(
            "POST", "/points/payload", json={"points": [fact_id], "payload": payload}
        )
        self._raise_for_status(response, "update payload")

    async def delete(self, fact_id: str) -> None:
        """Delete a fact and its vector."""
        response = await self._request(
            "POST", "/points/delete", json={"points": [fact_id]}
        )
        self._raise_for_status(response, "delete")

    async def count(self) -> int:
        """Number of stored facts, 0 if the collection cannot be read."""
        response = await self._request("GET")
        if not response.is_success:
            return 0
        return response.json()["result"]["points_count"]

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
