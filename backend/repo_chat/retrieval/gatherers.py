"""Context gatherers feeding the chat prompt."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Protocol, Sequence

from repo_chat.core.logging import get_logger
from repo_chat.core.metrics import GATHERER_FAILURES
from repo_chat.ingest.embeddings import Embedder
from repo_chat.models.entities import ScoredChunk
from repo_chat.retrieval.structure import analyze_project
from repo_chat.retrieval.vector_index import VectorIndex
from repo_chat.retrieval.web_search import (
    NO_RESULTS_PLACEHOLDER,
    WebSearchClient,
    classify_search_response,
    render_search_response,
)

logger = get_logger(__name__)


class ContextGatherer(Protocol):
    name: str
    fallback: str

    async def gather(self, question: str) -> str: ...


class RetrievalGatherer:
    name = "context"
    fallback = "No repository context available."

    def __init__(self, embedder: Embedder, vector_index: VectorIndex, k: int = 5) -> None:
        self.embedder = embedder
        self.vector_index = vector_index
        self.k = k

    async def gather(self, question: str) -> str:
        vector = await self.embedder.embed(question)
        hits = await self.vector_index.query(vector, k=self.k)
        return format_hits(hits)


def format_hits(hits: Sequence[ScoredChunk]) -> str:
    return "\n\n".join(f"File: {hit.chunk.source}\n{hit.chunk.content}" for hit in hits)


class SearchGatherer:
    name = "search_results"
    fallback = NO_RESULTS_PLACEHOLDER

    def __init__(self, client: WebSearchClient, max_results: int = 3) -> None:
        self.client = client
        self.max_results = max_results

    async def gather(self, question: str) -> str:
        payload = await self.client.search(question, max_results=self.max_results)
        return render_search_response(classify_search_response(payload))


class StructureGatherer:
    name = "code_analysis"
    fallback = "Code analysis unavailable."

    def __init__(self, root: Path, max_depth: int = 2) -> None:
        self.root = root
        self.max_depth = max_depth

    async def gather(self, question: str) -> str:
        # Scans the host working tree, not the ingested repository.
        return await asyncio.to_thread(analyze_project, question, self.root, self.max_depth)


@dataclass(frozen=True, slots=True)
class GatherOutcome:
    name: str
    value: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _settle(name: str, pending: Awaitable[str]) -> GatherOutcome:
    try:
        return GatherOutcome(name=name, value=await pending)
    except Exception as exc:
        return GatherOutcome(name=name, error=exc)


async def gather_context(
    gatherers: Sequence[ContextGatherer],
    question: str,
    isolate: bool = True,
) -> dict[str, str]:
    """Run every gatherer concurrently and wait for all of them to settle.

    With ``isolate`` a failing gatherer contributes its fallback text; otherwise
    the first failure is re-raised once all branches are done.
    """
    outcomes = await asyncio.gather(*(_settle(g.name, g.gather(question)) for g in gatherers))
    merged: dict[str, str] = {}
    for gatherer, outcome in zip(gatherers, outcomes):
        if outcome.ok:
            merged[gatherer.name] = outcome.value or ""
            continue
        GATHERER_FAILURES.labels(gatherer=gatherer.name).inc()
        if not isolate:
            raise outcome.error
        logger.warning(
            "Gatherer %s failed: %s",
            gatherer.name,
            outcome.error,
            extra={"ctx_gatherer": gatherer.name},
        )
        merged[gatherer.name] = gatherer.fallback
    return merged


__all__ = [
    "ContextGatherer",
    "RetrievalGatherer",
    "SearchGatherer",
    "StructureGatherer",
    "GatherOutcome",
    "gather_context",
    "format_hits",
]
