"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RepoUrlRequest(BaseModel):
    url: str | None = Field(default=None, description="Repository URL or owner/repo reference")


class IngestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    repo_name: str = Field(alias="repoName")
    documents_processed: int = Field(alias="documentsProcessed")


class CloneResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    repo_name: str = Field(alias="repoName")


class ChatMessage(BaseModel):
    # Roles are checked by the orchestrator so a wrong role is a 400, not a 422.
    role: str
    content: str = ""


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)


class CollectionInfo(BaseModel):
    name: str


class CollectionsResponse(BaseModel):
    collections: list[CollectionInfo]


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    message: str | None = None
    details: dict[str, Any] | None = None


__all__ = [
    "RepoUrlRequest",
    "IngestResponse",
    "CloneResponse",
    "ChatMessage",
    "ChatRequest",
    "CollectionInfo",
    "CollectionsResponse",
    "MessageResponse",
    "ErrorResponse",
]
