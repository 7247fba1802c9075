"""Tests for web search response handling."""

import asyncio
import json

import httpx
import pytest

from repo_chat.core.errors import ConfigurationError
from repo_chat.retrieval.web_search import (
    NO_RESULTS_PLACEHOLDER,
    SearchResultList,
    SearchResultsEnvelope,
    TavilySearchClient,
    UnrecognizedSearchResponse,
    classify_search_response,
    render_search_response,
)

HITS = [{"title": "FastAPI", "url": "https://fastapi.tiangolo.com"}, {"title": "Qdrant", "url": "https://qdrant.tech"}]
EXPECTED = "- FastAPI: https://fastapi.tiangolo.com\n- Qdrant: https://qdrant.tech"


def test_envelope_shape() -> None:
    response = classify_search_response({"results": HITS, "answer": "short"})
    assert isinstance(response, SearchResultsEnvelope)
    assert response.answer == "short"
    assert render_search_response(response) == EXPECTED


def test_bare_list_shape() -> None:
    response = classify_search_response(HITS)
    assert isinstance(response, SearchResultList)
    assert render_search_response(response) == EXPECTED


@pytest.mark.parametrize("payload", [{"unexpected": True}, None, "text", 42, {"results": "nope"}])
def test_unrecognized_shapes_fall_back(payload) -> None:
    response = classify_search_response(payload)
    assert isinstance(response, UnrecognizedSearchResponse)
    assert render_search_response(response) == NO_RESULTS_PLACEHOLDER


def test_empty_results_render_placeholder() -> None:
    assert render_search_response(classify_search_response([])) == NO_RESULTS_PLACEHOLDER


def test_tavily_client_posts_query() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"results": HITS})

    client = TavilySearchClient("secret", transport=httpx.MockTransport(handler))
    payload = asyncio.run(client.search("what is qdrant", max_results=3))
    assert payload == {"results": HITS}
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"query": "what is qdrant", "max_results": 3}


def test_tavily_client_requires_key() -> None:
    with pytest.raises(ConfigurationError):
        asyncio.run(TavilySearchClient(None).search("q", max_results=3))
