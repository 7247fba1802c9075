"""Domain errors and their HTTP mapping."""

from __future__ import annotations

import traceback
from typing import Any


class RepoChatError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(RepoChatError):
    status_code = 400


class NotFoundError(RepoChatError):
    status_code = 404


class ConfigurationError(RepoChatError):
    """Required service configuration is missing at first use."""

    status_code = 500


class UpstreamFailure(RepoChatError):
    """An external call (embedding, search, index, generation) failed."""

    status_code = 500
    summary = "Upstream service failure"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}

    @classmethod
    def from_exception(cls, exc: BaseException, include_stack: bool = False) -> "UpstreamFailure":
        details: dict[str, Any] = {"name": type(exc).__name__}
        if include_stack:
            details["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(str(exc) or type(exc).__name__, details=details)

    def payload(self) -> dict[str, Any]:
        return {"error": self.summary, "message": self.message, "details": self.details}


class IngestionError(UpstreamFailure):
    summary = "Failed to process repository"


class ChatProcessingError(UpstreamFailure):
    summary = "Failed to process chat query"


__all__ = [
    "RepoChatError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "UpstreamFailure",
    "IngestionError",
    "ChatProcessingError",
]
