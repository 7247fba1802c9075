"""Shared FastAPI dependencies."""

from __future__ import annotations

import threading
from functools import lru_cache
from typing import Callable, TypeVar

from repo_chat.chat.llm import TextGenerator, build_generator
from repo_chat.chat.orchestrator import ChatOrchestrator
from repo_chat.core.config import Settings, get_settings
from repo_chat.core.errors import ConfigurationError
from repo_chat.core.logging import get_logger
from repo_chat.ingest.embeddings import Embedder, build_embedder
from repo_chat.ingest.loaders import GithubRepoLoader, RepositoryLoader
from repo_chat.ingest.pipeline import RepositoryIngestor
from repo_chat.retrieval.gatherers import RetrievalGatherer, SearchGatherer, StructureGatherer
from repo_chat.retrieval.vector_index import VectorIndex, build_vector_index
from repo_chat.retrieval.web_search import TavilySearchClient, WebSearchClient

logger = get_logger(__name__)

T = TypeVar("T")


class AppContext:
    """Process-wide handles to the external collaborators.

    Each handle is built on first access, exactly once, behind a lock. Handles can
    also be supplied up front, which is how tests substitute offline doubles.
    """

    def __init__(
        self,
        settings: Settings,
        embedder: Embedder | None = None,
        vector_index: VectorIndex | None = None,
        loader: RepositoryLoader | None = None,
        search_client: WebSearchClient | None = None,
        generator: TextGenerator | None = None,
    ) -> None:
        self.settings = settings
        self._embedder = embedder
        self._vector_index = vector_index
        self._loader = loader
        self._search_client = search_client
        self._generator = generator
        self._lock = threading.RLock()

    def _once(self, attr: str, factory: Callable[[], T]) -> T:
        value = getattr(self, attr)
        if value is not None:
            return value
        with self._lock:
            value = getattr(self, attr)
            if value is None:
                value = factory()
                setattr(self, attr, value)
                logger.info("Initialized %s", attr.lstrip("_"))
        return value

    @property
    def embedder(self) -> Embedder:
        return self._once("_embedder", lambda: build_embedder(self.settings))

    @property
    def vector_index(self) -> VectorIndex:
        return self._once("_vector_index", lambda: build_vector_index(self.settings, self.embedder.dim))

    @property
    def loader(self) -> RepositoryLoader:
        return self._once(
            "_loader",
            lambda: GithubRepoLoader(
                branch=self.settings.github_branch,
                access_token=self.settings.github_token,
                max_concurrency=self.settings.loader_max_concurrency,
                exclude=self.settings.loader_exclude,
            ),
        )

    @property
    def search_client(self) -> WebSearchClient:
        return self._once("_search_client", lambda: TavilySearchClient(self.settings.tavily_api_key))

    @property
    def generator(self) -> TextGenerator:
        return self._once("_generator", lambda: build_generator(self.settings))

    def ingestor(self) -> RepositoryIngestor:
        return RepositoryIngestor(
            settings=self.settings,
            loader=self.loader,
            embedder=self.embedder,
            vector_index=self.vector_index,
        )

    def orchestrator(self) -> ChatOrchestrator:
        # Touch every required handle so missing configuration fails before gathering.
        embedder, vector_index, generator = self.embedder, self.vector_index, self.generator
        gatherers = [
            RetrievalGatherer(embedder, vector_index, k=self.settings.retrieval_k),
            SearchGatherer(self.search_client, max_results=self.settings.search_max_results),
            StructureGatherer(self.settings.analysis_root, max_depth=self.settings.analysis_depth),
        ]
        return ChatOrchestrator(
            gatherers=gatherers,
            generator=generator,
            isolate_gatherers=self.settings.isolate_gatherers,
            stream_buffer=self.settings.stream_buffer,
        )

    def warm_up(self) -> None:
        """Build the shared handles eagerly; missing configuration is only logged."""
        for name in ("embedder", "vector_index", "generator"):
            try:
                getattr(self, name)
            except ConfigurationError as exc:
                logger.warning("%s", exc)


_CONTEXT: AppContext | None = None
_CONTEXT_LOCK = threading.Lock()


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_context() -> AppContext:
    global _CONTEXT
    if _CONTEXT is None:
        with _CONTEXT_LOCK:
            if _CONTEXT is None:
                _CONTEXT = AppContext(get_app_settings())
    return _CONTEXT


def set_context(context: AppContext | None) -> None:
    global _CONTEXT
    with _CONTEXT_LOCK:
        _CONTEXT = context


__all__ = ["AppContext", "get_app_settings", "get_context", "set_context"]
