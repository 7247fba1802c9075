"""Repository reference normalization."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from repo_chat.models.entities import RepositoryReference

_OWNER = r"[A-Za-z0-9_-]+"
_REPO = r"[A-Za-z0-9_.-]+"

_HOSTED_RE = re.compile(rf"(?:https?://)?(?:www\.)?github\.com/?({_OWNER})/({_REPO})", re.IGNORECASE)
_BARE_RE = re.compile(rf"({_OWNER})/({_REPO})")


def strip_reference(value: str) -> str:
    """Drop surrounding whitespace, trailing slashes and a ``.git`` suffix."""
    stripped = value.strip().rstrip("/")
    if stripped.lower().endswith(".git"):
        stripped = stripped[: -len(".git")].rstrip("/")
    return stripped


def parse_repo_reference(value: str) -> RepositoryReference | None:
    stripped = strip_reference(value)
    match = _HOSTED_RE.search(stripped) or _BARE_RE.fullmatch(stripped)
    if match is None:
        return None
    owner, name = match.groups()
    return RepositoryReference(owner=owner, name=name)


def normalize_repo_url(value: str) -> str:
    """Return ``https://github.com/<owner>/<repo>`` or the stripped input if unparseable."""
    reference = parse_repo_reference(value)
    if reference is None:
        return strip_reference(value)
    return reference.url


def derive_repo_name(raw: str) -> str:
    """Last path segment of the raw, non-normalized input."""
    candidate = raw.strip()
    parsed = urlparse(candidate)
    path = parsed.path if parsed.scheme and parsed.netloc else candidate
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return "unknown"
    name = segments[-1]
    if name.lower().endswith(".git"):
        name = name[: -len(".git")]
    return name or "unknown"


__all__ = ["strip_reference", "parse_repo_reference", "normalize_repo_url", "derive_repo_name"]
