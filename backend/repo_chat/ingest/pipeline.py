"""Repository ingest pipeline orchestration."""

from __future__ import annotations

import time
from typing import Sequence

from repo_chat.core.config import Settings
from repo_chat.core.errors import IngestionError, RepoChatError, ValidationError
from repo_chat.core.logging import get_logger
from repo_chat.core.metrics import CHUNKS_UPSERTED, INGEST_DURATION
from repo_chat.ingest.chunker import split_documents
from repo_chat.ingest.embeddings import Embedder
from repo_chat.ingest.loaders import RepositoryLoader
from repo_chat.ingest.normalize import derive_repo_name, normalize_repo_url
from repo_chat.models.entities import Chunk, IndexRecord, IngestSummary
from repo_chat.retrieval.vector_index import VectorIndex
from repo_chat.utils.ids import new_point_id, stable_point_id

logger = get_logger(__name__)


class RepositoryIngestor:
    """Coordinate loading, chunking, embedding, and index upserts for one repository.

    Steps run strictly in sequence. A failure part-way through an upsert leaves the
    already written batches in the index.
    """

    def __init__(
        self,
        settings: Settings,
        loader: RepositoryLoader,
        embedder: Embedder,
        vector_index: VectorIndex,
    ) -> None:
        self.settings = settings
        self.loader = loader
        self.embedder = embedder
        self.vector_index = vector_index

    async def ingest(self, url: str | None) -> IngestSummary:
        if not url or not url.strip():
            raise ValidationError("Repository URL is required")

        canonical = normalize_repo_url(url)
        repo_name = derive_repo_name(url)
        log_extra = {"ctx_repo": repo_name}
        started = time.perf_counter()
        status = "failed"
        try:
            documents = await self.loader.load(canonical)
            logger.info("Loaded %s documents", len(documents), extra=log_extra)

            chunks = split_documents(
                documents,
                size=self.settings.chunk_size,
                overlap=self.settings.chunk_overlap,
                repo=repo_name,
            )
            logger.info("Split into %s chunks", len(chunks), extra=log_extra)

            vectors = await self.embedder.embed_batch([chunk.content for chunk in chunks])
            records = self._build_records(chunks, vectors)
            written = await self.vector_index.upsert(records)
            CHUNKS_UPSERTED.inc(written)
            logger.info("Added %s chunks to vector store", written, extra=log_extra)
            status = "completed"
        except RepoChatError:
            raise
        except Exception as exc:
            logger.exception("Error processing repository %s: %s", canonical, exc, extra=log_extra)
            raise IngestionError.from_exception(exc) from exc
        finally:
            INGEST_DURATION.labels(status=status).observe(time.perf_counter() - started)

        return IngestSummary(
            repo_name=repo_name,
            canonical_url=canonical,
            documents_loaded=len(documents),
            documents_processed=written,
        )

    def _build_records(self, chunks: Sequence[Chunk], vectors: Sequence[list[float]]) -> list[IndexRecord]:
        if len(chunks) != len(vectors):
            raise ValueError(f"Embedder returned {len(vectors)} vectors for {len(chunks)} chunks")
        records: list[IndexRecord] = []
        for chunk, vector in zip(chunks, vectors):
            if self.settings.deterministic_ids:
                point_id = stable_point_id(
                    chunk.metadata.get("repository", chunk.metadata.get("repo")),
                    chunk.metadata.get("source"),
                    chunk.metadata.get("start"),
                )
            else:
                point_id = new_point_id()
            records.append(IndexRecord(id=point_id, vector=vector, chunk=chunk))
        return records


__all__ = ["RepositoryIngestor"]
