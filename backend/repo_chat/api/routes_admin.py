"""Administrative routes for Repo Chat."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from repo_chat.api.dependencies import AppContext, get_context
from repo_chat.core.errors import RepoChatError, UpstreamFailure
from repo_chat.core.logging import get_logger
from repo_chat.core.metrics import metrics_response
from repo_chat.models.dto import CollectionInfo, CollectionsResponse, MessageResponse

router = APIRouter()

logger = get_logger(__name__)


class IndexAdminError(UpstreamFailure):
    summary = "Failed to manage collections"


@router.get("/api/clear-db", response_model=CollectionsResponse, summary="List vector collections")
async def list_collections(context: AppContext = Depends(get_context)) -> CollectionsResponse:
    try:
        names = await context.vector_index.list_collections()
    except RepoChatError:
        raise
    except Exception as exc:
        logger.exception("Error fetching collections: %s", exc)
        raise IndexAdminError.from_exception(exc) from exc
    return CollectionsResponse(collections=[CollectionInfo(name=name) for name in names])


@router.delete("/api/clear-db", response_model=MessageResponse, summary="Delete every vector collection")
async def clear_collections(context: AppContext = Depends(get_context)) -> MessageResponse:
    try:
        await context.vector_index.clear()
    except RepoChatError:
        raise
    except Exception as exc:
        logger.exception("Error deleting collections: %s", exc)
        raise IndexAdminError.from_exception(exc) from exc
    return MessageResponse(message="All collections deleted successfully")


@router.options("/api/clear-db", summary="Options for /api/clear-db")
async def options_clear_db() -> Response:
    return Response(status_code=204, headers={"Allow": "GET, DELETE, OPTIONS"})


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics() -> Response:
    return metrics_response()


__all__ = ["router"]
