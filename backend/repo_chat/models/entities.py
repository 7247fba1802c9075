"""Internal dataclasses shared by the ingest and chat pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


def _freeze(metadata: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(metadata or {}))


@dataclass(frozen=True, slots=True)
class RepositoryReference:
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """A file loaded from a repository."""

    path: str
    content: str
    repo: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))


@dataclass(frozen=True, slots=True)
class Chunk:
    """Window of a document's text with read-only provenance metadata."""

    content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _freeze(self.metadata))

    @property
    def source(self) -> str:
        return str(self.metadata.get("source", "unknown"))


@dataclass(frozen=True, slots=True)
class IndexRecord:
    id: str
    vector: list[float]
    chunk: Chunk


@dataclass(frozen=True, slots=True)
class ScoredChunk:
    chunk: Chunk
    score: float


@dataclass(frozen=True, slots=True)
class IngestSummary:
    repo_name: str
    canonical_url: str
    documents_loaded: int
    documents_processed: int


__all__ = [
    "RepositoryReference",
    "SourceDocument",
    "Chunk",
    "IndexRecord",
    "ScoredChunk",
    "IngestSummary",
]
