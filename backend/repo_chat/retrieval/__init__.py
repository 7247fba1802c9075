"""Retrieval and context gathering components."""

from .gatherers import RetrievalGatherer, SearchGatherer, StructureGatherer, gather_context
from .vector_index import VectorIndex, build_vector_index
from .web_search import TavilySearchClient, classify_search_response, render_search_response

__all__ = [
    "VectorIndex",
    "build_vector_index",
    "RetrievalGatherer",
    "SearchGatherer",
    "StructureGatherer",
    "gather_context",
    "TavilySearchClient",
    "classify_search_response",
    "render_search_response",
]
