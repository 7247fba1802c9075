"""Repository loaders."""

from __future__ import annotations

import asyncio
import fnmatch
from pathlib import PurePosixPath
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from repo_chat.core.errors import NotFoundError
from repo_chat.core.logging import get_logger
from repo_chat.ingest.normalize import parse_repo_reference
from repo_chat.models.entities import RepositoryReference, SourceDocument

logger = get_logger(__name__)

GITHUB_API = "https://api.github.com"

_BINARY_SUFFIXES = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".svgz", ".tiff",
        ".pdf", ".zip", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar", ".tar", ".jar",
        ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a", ".class", ".pyc", ".wasm",
        ".woff", ".woff2", ".ttf", ".otf", ".eot", ".mp3", ".mp4", ".mov", ".avi",
        ".wav", ".flac", ".ogg", ".webm", ".psd", ".sqlite", ".db",
    }
)


class RepositoryLoader(Protocol):
    async def load(self, reference: str) -> list[SourceDocument]: ...


class GithubRepoLoader:
    """Load every text file of a GitHub repository branch through the REST API.

    The whole tree is listed in one recursive call, then blobs are fetched with at
    most ``max_concurrency`` requests in flight. Binary or undecodable files are
    logged and skipped.
    """

    def __init__(
        self,
        branch: str = "main",
        access_token: str | None = None,
        max_concurrency: int = 5,
        exclude: str | None = None,
        base_url: str = GITHUB_API,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.branch = branch
        self.access_token = access_token
        self.max_concurrency = max_concurrency
        self.exclude_patterns = _expand_patterns(exclude) if exclude else []
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def load(self, reference: str) -> list[SourceDocument]:
        repo = parse_repo_reference(reference)
        if repo is None:
            raise NotFoundError("Repository not found")
        async with self._client() as client:
            await self._check_exists(client, repo)
            paths = await self._list_blobs(client, repo)
            logger.info("Found %s candidate files in %s@%s", len(paths), repo.slug, self.branch)
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def fetch(path: str) -> SourceDocument | None:
                async with semaphore:
                    return await self._fetch_document(client, repo, path)

            tasks = [asyncio.create_task(fetch(path)) for path in paths]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                # Outstanding fetches must not outlive the client they share.
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        documents = [document for document in results if document is not None]
        logger.info("Loaded %s documents from %s", len(documents), repo.slug, extra={"ctx_repo": repo.slug})
        return documents

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/vnd.github+json", "User-Agent": "repo-chat"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(30.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def _check_exists(self, client: httpx.AsyncClient, repo: RepositoryReference) -> None:
        resp = await client.get(f"/repos/{repo.owner}/{repo.name}")
        if resp.status_code == 404:
            raise NotFoundError("Repository not found")
        resp.raise_for_status()

    async def _list_blobs(self, client: httpx.AsyncClient, repo: RepositoryReference) -> list[str]:
        resp = await client.get(
            f"/repos/{repo.owner}/{repo.name}/git/trees/{quote(self.branch, safe='')}",
            params={"recursive": "1"},
        )
        if resp.status_code == 404:
            raise NotFoundError(f"Branch '{self.branch}' not found in {repo.slug}")
        resp.raise_for_status()
        payload: dict[str, Any] = resp.json()
        if payload.get("truncated"):
            logger.warning("Tree listing for %s was truncated by GitHub", repo.slug)
        paths: list[str] = []
        for entry in payload.get("tree", []):
            if entry.get("type") != "blob":
                continue
            path = entry.get("path", "")
            if self._is_excluded(path):
                logger.debug("Skipping excluded file %s", path)
                continue
            if PurePosixPath(path).suffix.lower() in _BINARY_SUFFIXES:
                logger.warning("Skipping unknown or binary file %s", path)
                continue
            paths.append(path)
        return paths

    async def _fetch_document(
        self,
        client: httpx.AsyncClient,
        repo: RepositoryReference,
        path: str,
    ) -> SourceDocument | None:
        resp = await client.get(
            f"/repos/{repo.owner}/{repo.name}/contents/{quote(path)}",
            params={"ref": self.branch},
            headers={"Accept": "application/vnd.github.raw"},
        )
        resp.raise_for_status()
        try:
            content = resp.content.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Skipping file with unknown encoding %s", path)
            return None
        if "\x00" in content:
            logger.warning("Skipping binary file %s", path)
            return None
        return SourceDocument(
            path=path,
            content=content,
            repo=repo.slug,
            metadata={"source": path, "repository": repo.url, "branch": self.branch},
        )

    def _is_excluded(self, path: str) -> bool:
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_patterns)


def _expand_patterns(pattern: str) -> list[str]:
    """Split a comma separated glob list, expanding one ``{a,b}`` group per entry."""
    patterns: list[str] = []
    for part in _split_top_level(pattern):
        part = part.strip()
        if not part:
            continue
        if "{" in part and "}" in part:
            prefix = part[: part.index("{")]
            suffix = part[part.index("}") + 1 :]
            options = part[part.index("{") + 1 : part.index("}")].split(",")
            for option in options:
                patterns.append(f"{prefix}{option.strip()}{suffix}")
        else:
            patterns.append(part)
    expanded: list[str] = []
    for item in patterns:
        expanded.append(item)
        # fnmatch's "**/" needs at least one directory; also match at the root.
        if item.startswith("**/"):
            expanded.append(item[3:])
    return expanded


def _split_top_level(pattern: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in pattern:
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(0, depth - 1)
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    parts.append(current)
    return parts


__all__ = ["RepositoryLoader", "GithubRepoLoader"]
