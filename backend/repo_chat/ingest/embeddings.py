"""Embedding backends."""

from __future__ import annotations

import hashlib
import logging
import math
import re
from typing import Any, Protocol, Sequence

import google.generativeai as genai

from repo_chat.core.config import Settings
from repo_chat.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

# batchEmbedContents accepts at most 100 requests per call.
_GOOGLE_BATCH_LIMIT = 100


class Embedder(Protocol):
    dim: int

    async def embed(self, text: str) -> list[float]: ...

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]: ...


class HashedEmbedder:
    """Deterministic hashed bag-of-tokens embedder that needs no network access."""

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim
        self.model_name = "hashed"

    async def embed(self, text: str) -> list[float]:
        return self.encode(text)

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        return [self.encode(text) for text in texts]

    def encode(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        tokens = _tokenize(text)
        for token in tokens:
            vector[_hash_token(token, self.dim)] += 1.0
        if not tokens:
            # cosine distance is undefined for the zero vector
            vector[0] = 1.0
        _normalize(vector)
        return vector


class GoogleEmbedder:
    """Google Generative AI embeddings (``models/embedding-001`` by default)."""

    def __init__(self, api_key: str, model_name: str, dim: int) -> None:
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.dim = dim

    async def embed(self, text: str) -> list[float]:
        result = await genai.embed_content_async(
            model=self.model_name,
            content=text,
            task_type="retrieval_query",
        )
        return list(result["embedding"])

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for offset in range(0, len(texts), _GOOGLE_BATCH_LIMIT):
            batch = list(texts[offset : offset + _GOOGLE_BATCH_LIMIT])
            result: dict[str, Any] = await genai.embed_content_async(
                model=self.model_name,
                content=batch,
                task_type="retrieval_document",
            )
            vectors.extend(list(vector) for vector in result["embedding"])
            logger.debug("Embedded batch of %s texts", len(batch))
        return vectors


def build_embedder(settings: Settings) -> Embedder:
    if settings.embedding_backend == "hashed":
        return HashedEmbedder(dim=settings.embedding_dim)
    if not settings.google_api_key:
        raise ConfigurationError("Embeddings not initialized: GOOGLE_API_KEY is not set")
    return GoogleEmbedder(
        api_key=settings.google_api_key,
        model_name=settings.embedding_model,
        dim=settings.embedding_dim,
    )


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = ["Embedder", "HashedEmbedder", "GoogleEmbedder", "build_embedder"]
