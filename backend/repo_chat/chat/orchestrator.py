"""Chat query orchestration."""

from __future__ import annotations

from typing import Sequence

from repo_chat.chat.llm import TextGenerator
from repo_chat.chat.prompt import build_prompt
from repo_chat.chat.streaming import StreamEmitter
from repo_chat.core.errors import ValidationError
from repo_chat.core.logging import get_logger
from repo_chat.models.dto import ChatMessage
from repo_chat.retrieval.gatherers import ContextGatherer, gather_context

logger = get_logger(__name__)


def extract_question(messages: Sequence[ChatMessage]) -> str:
    """Return the last message's text after checking the conversation shape."""
    if not messages:
        raise ValidationError("Messages are required")
    last = messages[-1]
    if last.role != "user":
        raise ValidationError("Last message must be from user")
    return last.content


class ChatOrchestrator:
    """Merge gathered context into the prompt and start a streaming generation."""

    def __init__(
        self,
        gatherers: Sequence[ContextGatherer],
        generator: TextGenerator,
        isolate_gatherers: bool = True,
        stream_buffer: int = 64,
    ) -> None:
        self.gatherers = list(gatherers)
        self.generator = generator
        self.isolate_gatherers = isolate_gatherers
        self.stream_buffer = stream_buffer

    async def prepare_prompt(self, question: str) -> str:
        sections = await gather_context(self.gatherers, question, isolate=self.isolate_gatherers)
        return build_prompt(
            context=sections.get("context", ""),
            search_results=sections.get("search_results", ""),
            code_analysis=sections.get("code_analysis", ""),
            question=question,
        )

    async def answer(self, messages: Sequence[ChatMessage]) -> StreamEmitter:
        question = extract_question(messages)
        prompt = await self.prepare_prompt(question)
        logger.info("Prompt assembled (%s chars)", len(prompt))
        emitter = StreamEmitter(self.generator.stream(prompt), maxsize=self.stream_buffer)
        await emitter.start()
        return emitter


__all__ = ["ChatOrchestrator", "extract_question"]
