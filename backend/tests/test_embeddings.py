"""Tests for embedding utilities."""

import asyncio

import pytest

from repo_chat.core.config import Settings
from repo_chat.core.errors import ConfigurationError
from repo_chat.ingest.embeddings import HashedEmbedder, build_embedder


def test_hashed_embedder_is_normalized_and_stable() -> None:
    model = HashedEmbedder(dim=64)
    vectors = asyncio.run(model.embed_batch(["hello world", "hello world", "other text"]))
    assert len(vectors) == 3
    assert all(len(vec) == model.dim for vec in vectors)
    assert abs(sum(value * value for value in vectors[0]) - 1.0) < 1e-6
    assert vectors[0] == vectors[1]
    assert vectors[0] != vectors[2]


def test_hashed_embedder_handles_empty_text() -> None:
    vector = HashedEmbedder(dim=16).encode("   ")
    assert vector[0] == 1.0
    assert sum(vector) == 1.0


def test_build_embedder_requires_google_key() -> None:
    with pytest.raises(ConfigurationError):
        build_embedder(Settings(embedding_backend="google"))
    embedder = build_embedder(Settings(embedding_backend="hashed", embedding_dim=32))
    assert embedder.dim == 32
