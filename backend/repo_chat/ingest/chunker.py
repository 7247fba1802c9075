"""Chunking utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from repo_chat.models.entities import Chunk, SourceDocument

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200


@dataclass(frozen=True, slots=True)
class Window:
    start: int
    end: int
    text: str


@dataclass(frozen=True, slots=True)
class TextWindows:
    """Lazy, restartable sequence of overlapping fixed-size windows over ``text``.

    Windows advance by ``size - overlap`` characters. Iteration stops at the first
    window that reaches the end of the text, so the last window is the only one
    that may be shorter than ``size``.
    """

    text: str
    size: int
    overlap: int

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("size must be positive")
        if self.overlap < 0 or self.overlap >= self.size:
            raise ValueError("overlap must satisfy 0 <= overlap < size")

    @property
    def step(self) -> int:
        return self.size - self.overlap

    def windows(self) -> Iterator[Window]:
        length = len(self.text)
        start = 0
        while start < length:
            end = min(start + self.size, length)
            yield Window(start=start, end=end, text=self.text[start:end])
            if end == length:
                return
            start += self.step

    def __iter__(self) -> Iterator[str]:
        for window in self.windows():
            yield window.text

    def __len__(self) -> int:
        length = len(self.text)
        if length == 0:
            return 0
        if length <= self.size:
            return 1
        return 1 + -(-(length - self.size) // self.step)


def chunk_text(text: str, size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_CHUNK_OVERLAP) -> TextWindows:
    """Split text into overlapping character windows."""
    return TextWindows(text=text, size=size, overlap=overlap)


def split_documents(
    documents: Iterable[SourceDocument],
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
    repo: str | None = None,
) -> list[Chunk]:
    """Chunk every document, attaching loader metadata, source path and repo name."""
    chunks: list[Chunk] = []
    for document in documents:
        for window in chunk_text(document.content, size, overlap).windows():
            metadata = {
                **document.metadata,
                "source": document.path,
                "repo": repo or document.repo,
                "start": window.start,
            }
            chunks.append(Chunk(content=window.text, metadata=metadata))
    return chunks


__all__ = ["TextWindows", "Window", "chunk_text", "split_documents"]
