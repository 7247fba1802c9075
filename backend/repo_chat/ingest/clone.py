"""Clone a repository to local disk."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from git import GitCommandError, Repo
from git.cmd import Git

from repo_chat.core.errors import NotFoundError, UpstreamFailure, ValidationError
from repo_chat.core.logging import get_logger
from repo_chat.ingest.normalize import normalize_repo_url

logger = get_logger(__name__)


class CloneError(UpstreamFailure):
    summary = "Failed to download repository"


def remote_exists(url: str) -> bool:
    try:
        Git().ls_remote(url)
    except GitCommandError:
        return False
    return True


def clone_repo_name(url: str) -> str:
    name = url.rstrip("/").split("/")[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name or "repo"


def empty_directory(directory: Path) -> None:
    if not directory.exists():
        return
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def clone_to_disk(url: str | None, clone_root: Path) -> str:
    """Replace the contents of ``clone_root`` with a fresh clone of ``url``.

    Returns the repository name used as the target directory.
    """
    if not url or not url.strip():
        raise ValidationError("URL is required")
    remote = normalize_repo_url(url)
    if not remote_exists(remote):
        raise NotFoundError("Repository not found")

    empty_directory(clone_root)
    clone_root.mkdir(parents=True, exist_ok=True)
    repo_name = clone_repo_name(remote)
    target = clone_root / repo_name
    logger.info("Cloning %s into %s", remote, target, extra={"ctx_repo": repo_name})
    try:
        Repo.clone_from(remote, target)
    except GitCommandError as exc:
        logger.error("Clone of %s failed: %s", remote, exc, extra={"ctx_repo": repo_name})
        raise CloneError.from_exception(exc) from exc
    return repo_name


async def clone_to_disk_async(url: str | None, clone_root: Path) -> str:
    return await asyncio.to_thread(clone_to_disk, url, clone_root)


__all__ = ["CloneError", "clone_to_disk", "clone_to_disk_async", "clone_repo_name", "remote_exists"]
