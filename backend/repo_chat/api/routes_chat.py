"""Chat API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from repo_chat.api.dependencies import AppContext, get_context
from repo_chat.chat.orchestrator import extract_question
from repo_chat.core.errors import ChatProcessingError, RepoChatError
from repo_chat.core.logging import get_logger
from repo_chat.models.dto import ChatRequest

router = APIRouter()

logger = get_logger(__name__)


@router.post("/chat", summary="Ask a question about the ingested repository")
async def chat(
    request: ChatRequest,
    context: AppContext = Depends(get_context),
) -> StreamingResponse:
    extract_question(request.messages)
    try:
        orchestrator = context.orchestrator()
        emitter = await orchestrator.answer(request.messages)
    except RepoChatError:
        raise
    except Exception as exc:
        logger.exception("Error processing chat query: %s", exc)
        raise ChatProcessingError.from_exception(exc, include_stack=True) from exc
    return StreamingResponse(
        emitter.relay(),
        media_type="text/plain; charset=utf-8",
        background=BackgroundTask(emitter.close),
    )
