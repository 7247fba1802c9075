"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

ENV_PREFIX = "REPOCHAT_"
DEFAULT_CONFIG_PATH = Path("~/.config/repo-chat/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("google", "api_key"): "google_api_key",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("qdrant", "url"): "qdrant_url",
    ("qdrant", "api_key"): "qdrant_api_key",
    ("qdrant", "collection"): "collection_name",
    ("qdrant", "deterministic_ids"): "deterministic_ids",
    ("chat", "model"): "chat_model",
    ("chat", "stream_buffer"): "stream_buffer",
    ("chat", "isolate_gatherers"): "isolate_gatherers",
    ("search", "api_key"): "tavily_api_key",
    ("search", "max_results"): "search_max_results",
    ("github", "token"): "github_token",
    ("github", "branch"): "github_branch",
    ("github", "max_concurrency"): "loader_max_concurrency",
    ("github", "exclude_glob"): "loader_exclude",
    ("chunking", "size"): "chunk_size",
    ("chunking", "overlap"): "chunk_overlap",
    ("retrieval", "top_k"): "retrieval_k",
    ("analysis", "root"): "analysis_root",
    ("analysis", "depth"): "analysis_depth",
    ("clone", "dir"): "clone_dir",
}

# Conventional variable names used by the hosted services.
_ENV_ALIASES: Mapping[str, str] = {
    "GOOGLE_API_KEY": "google_api_key",
    "QDRANT_URL": "qdrant_url",
    "QDRANT_API_KEY": "qdrant_api_key",
    "TAVILY_API_KEY": "tavily_api_key",
    "GITHUB_ACCESS_TOKEN": "github_token",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    google_api_key: str | None = None
    embedding_backend: Literal["google", "hashed"] = "google"
    embedding_model: str = "models/embedding-001"
    embedding_dim: int = 768
    qdrant_url: str | None = None
    qdrant_api_key: str | None = None
    collection_name: str = "github_files"
    deterministic_ids: bool = False
    chat_model: str = "gemini-1.5-flash"
    stream_buffer: int = Field(default=64, ge=1)
    isolate_gatherers: bool = True
    tavily_api_key: str | None = None
    search_max_results: int = Field(default=3, ge=1, le=20)
    github_token: str | None = None
    github_branch: str = "main"
    loader_max_concurrency: int = Field(default=5, ge=1)
    loader_exclude: str = ""
    chunk_size: int = Field(default=1000, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    retrieval_k: int = Field(default=5, ge=1)
    analysis_root: Path = Field(default=Path("."))
    analysis_depth: int = Field(default=2, ge=0)
    clone_dir: Path = Field(default=Path("public/repo"))
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("analysis_root", "clone_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("path settings must be a path or string")

    @model_validator(mode="after")
    def _check_overlap(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map conventional service variables, then REPOCHAT_* ones, into Settings fields."""
    overrides: dict[str, Any] = {}
    for env_name, field_name in _ENV_ALIASES.items():
        value = os.environ.get(env_name)
        if value:
            overrides[field_name] = value
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields and field_name != "cors_origins":
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
