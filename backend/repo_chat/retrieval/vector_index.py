"""Vector index client backed by Qdrant."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from qdrant_client import AsyncQdrantClient, models

from repo_chat.core.config import Settings
from repo_chat.core.errors import ConfigurationError
from repo_chat.models.entities import Chunk, IndexRecord, ScoredChunk

logger = logging.getLogger(__name__)

MEMORY_LOCATION = ":memory:"


class VectorIndex:
    """Upsert and similarity search over a single named Qdrant collection.

    Points carry ``{"page_content": ..., "metadata": {...}}`` payloads so that
    collections written by other LangChain-style tooling stay readable.
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str,
        dim: int,
        batch_size: int = 64,
    ) -> None:
        self.client = client
        self.collection_name = collection_name
        self.dim = dim
        self.batch_size = batch_size
        self._create_lock = asyncio.Lock()

    async def ensure_collection(self) -> None:
        async with self._create_lock:
            if await self.client.collection_exists(self.collection_name):
                return
            logger.info("Creating collection %s (dim=%s)", self.collection_name, self.dim)
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=models.VectorParams(size=self.dim, distance=models.Distance.COSINE),
            )

    async def upsert(self, records: Sequence[IndexRecord]) -> int:
        if not records:
            return 0
        for record in records:
            if len(record.vector) != self.dim:
                raise ValueError("Vector dimension mismatch")
        await self.ensure_collection()
        written = 0
        for offset in range(0, len(records), self.batch_size):
            batch = records[offset : offset + self.batch_size]
            await self.client.upsert(
                collection_name=self.collection_name,
                points=[
                    models.PointStruct(id=record.id, vector=record.vector, payload=_to_payload(record.chunk))
                    for record in batch
                ],
            )
            written += len(batch)
        return written

    async def query(self, vector: Sequence[float], k: int = 5) -> list[ScoredChunk]:
        if len(vector) != self.dim:
            raise ValueError("Query vector dimension mismatch")
        if not await self.client.collection_exists(self.collection_name):
            logger.warning("Collection %s does not exist yet", self.collection_name)
            return []
        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=list(vector),
            limit=k,
            with_payload=True,
        )
        hits = [ScoredChunk(chunk=_from_payload(point.payload), score=float(point.score)) for point in response.points]
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits

    async def list_collections(self) -> list[str]:
        response = await self.client.get_collections()
        return [collection.name for collection in response.collections]

    async def clear(self) -> list[str]:
        """Drop every collection on the server."""
        names = await self.list_collections()
        for name in names:
            await self.client.delete_collection(collection_name=name)
            logger.info("Deleted collection %s", name)
        return names


def build_vector_index(settings: Settings, dim: int) -> VectorIndex:
    if not settings.qdrant_url:
        raise ConfigurationError("Vector store not initialized: QDRANT_URL is not set")
    if settings.qdrant_url == MEMORY_LOCATION:
        client = AsyncQdrantClient(location=MEMORY_LOCATION)
    else:
        client = AsyncQdrantClient(url=settings.qdrant_url, api_key=settings.qdrant_api_key)
    return VectorIndex(client=client, collection_name=settings.collection_name, dim=dim)


def _to_payload(chunk: Chunk) -> dict[str, Any]:
    return {"page_content": chunk.content, "metadata": dict(chunk.metadata)}


def _from_payload(payload: dict[str, Any] | None) -> Chunk:
    payload = payload or {}
    return Chunk(content=str(payload.get("page_content", "")), metadata=payload.get("metadata") or {})


__all__ = ["VectorIndex", "build_vector_index", "MEMORY_LOCATION"]
