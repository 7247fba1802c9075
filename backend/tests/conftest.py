"""Test fixtures for Repo Chat."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import AsyncIterator

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

_SERVICE_ENV = (
    "REPOCHAT_CONFIG",
    "GOOGLE_API_KEY",
    "QDRANT_URL",
    "QDRANT_API_KEY",
    "TAVILY_API_KEY",
    "GITHUB_ACCESS_TOKEN",
)


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings, the shared context and service env between tests."""
    for name in _SERVICE_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REPOCHAT_CONFIG", str(tmp_path / "missing.yaml"))

    from repo_chat.api import dependencies as deps
    from repo_chat.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps.set_context(None)
    yield
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps.set_context(None)


class FakeLoader:
    """Serves a fixed file set for any reference; records what it was asked for."""

    def __init__(self, files: dict[str, str]) -> None:
        self.files = files
        self.requested: list[str] = []

    async def load(self, reference: str):
        from repo_chat.core.errors import NotFoundError
        from repo_chat.ingest.normalize import parse_repo_reference
        from repo_chat.models.entities import SourceDocument

        self.requested.append(reference)
        repo = parse_repo_reference(reference)
        if repo is None or repo.name == "missing":
            raise NotFoundError("Repository not found")
        return [
            SourceDocument(
                path=path,
                content=content,
                repo=repo.slug,
                metadata={"source": path, "repository": repo.url, "branch": "main"},
            )
            for path, content in self.files.items()
        ]


class FakeSearchClient:
    def __init__(self, payload=None, error: Exception | None = None) -> None:
        self.payload = payload if payload is not None else {"results": [{"title": "Docs", "url": "https://example.com"}]}
        self.error = error
        self.queries: list[str] = []

    async def search(self, query: str, max_results: int):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeGenerator:
    """Yields canned fragments and keeps the last prompt it saw."""

    def __init__(self, fragments: list[str] | None = None, error: Exception | None = None) -> None:
        self.fragments = fragments or ["## Main features\n\n", "- Repository ingestion\n", "- Streaming chat\n"]
        self.error = error
        self.prompts: list[str] = []

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        for fragment in self.fragments:
            yield fragment


SAMPLE_FILES = {
    "README.md": "# Demo\n\nA demo repository used for testing the chat flow.",
    "src/app.py": "def main():\n    return 'ZQXCODE42'\n",
    "src/util.py": "def helper(value):\n    return value * 2\n",
    "docs/guide.md": "Install the package and run the server.",
}


@pytest.fixture
def fake_loader() -> FakeLoader:
    return FakeLoader(dict(SAMPLE_FILES))


@pytest.fixture
def fake_search() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()
