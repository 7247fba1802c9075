"""Web search client and response shape handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, Union

import httpx

from repo_chat.core.errors import ConfigurationError
from repo_chat.core.logging import get_logger

logger = get_logger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
NO_RESULTS_PLACEHOLDER = "No search results available."


@dataclass(frozen=True, slots=True)
class SearchHit:
    title: str
    url: str


@dataclass(frozen=True, slots=True)
class SearchResultList:
    """Provider returned a bare list of hits."""

    hits: tuple[SearchHit, ...]


@dataclass(frozen=True, slots=True)
class SearchResultsEnvelope:
    """Provider returned an object wrapping its hits in ``results``."""

    hits: tuple[SearchHit, ...]
    answer: str | None = None


@dataclass(frozen=True, slots=True)
class UnrecognizedSearchResponse:
    payload: Any


SearchResponse = Union[SearchResultList, SearchResultsEnvelope, UnrecognizedSearchResponse]


def classify_search_response(payload: Any) -> SearchResponse:
    """Map a raw provider payload onto one of the known response shapes. Never raises."""
    if isinstance(payload, (list, tuple)):
        return SearchResultList(hits=_parse_hits(payload))
    if isinstance(payload, Mapping) and isinstance(payload.get("results"), (list, tuple)):
        answer = payload.get("answer")
        return SearchResultsEnvelope(
            hits=_parse_hits(payload["results"]),
            answer=answer if isinstance(answer, str) else None,
        )
    return UnrecognizedSearchResponse(payload=payload)


def render_search_response(response: SearchResponse) -> str:
    if isinstance(response, (SearchResultList, SearchResultsEnvelope)):
        lines = [f"- {hit.title}: {hit.url}" for hit in response.hits]
        return "\n".join(lines) if lines else NO_RESULTS_PLACEHOLDER
    if isinstance(response, UnrecognizedSearchResponse):
        logger.warning("Unexpected search response format: %r", _preview(response.payload))
        return NO_RESULTS_PLACEHOLDER
    raise TypeError(f"Unhandled search response variant: {type(response).__name__}")


def _parse_hits(items: Sequence[Any]) -> tuple[SearchHit, ...]:
    hits: list[SearchHit] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        hits.append(SearchHit(title=str(item.get("title", "")), url=str(item.get("url", ""))))
    return tuple(hits)


def _preview(payload: Any, limit: int = 200) -> str:
    text = repr(payload)
    return text if len(text) <= limit else text[:limit] + "..."


class WebSearchClient(Protocol):
    async def search(self, query: str, max_results: int) -> Any: ...


class TavilySearchClient:
    """Minimal async client for the Tavily search REST endpoint."""

    def __init__(
        self,
        api_key: str | None,
        endpoint: str = TAVILY_SEARCH_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.endpoint = endpoint
        self._transport = transport

    async def search(self, query: str, max_results: int) -> Any:
        if not self.api_key:
            raise ConfigurationError("Web search not initialized: TAVILY_API_KEY is not set")
        async with httpx.AsyncClient(timeout=httpx.Timeout(20.0), transport=self._transport) as client:
            resp = await client.post(
                self.endpoint,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"query": query, "max_results": max_results},
            )
            resp.raise_for_status()
            return resp.json()


__all__ = [
    "SearchHit",
    "SearchResultList",
    "SearchResultsEnvelope",
    "UnrecognizedSearchResponse",
    "SearchResponse",
    "classify_search_response",
    "render_search_response",
    "WebSearchClient",
    "TavilySearchClient",
    "NO_RESULTS_PLACEHOLDER",
]
