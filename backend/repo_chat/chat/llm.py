"""Streaming text generation."""

from __future__ import annotations

from typing import AsyncIterator, Protocol

import google.generativeai as genai

from repo_chat.core.config import Settings
from repo_chat.core.errors import ConfigurationError


class TextGenerator(Protocol):
    def stream(self, prompt: str) -> AsyncIterator[str]: ...


class GeminiGenerator:
    """Gemini chat model driven through ``generate_content_async(stream=True)``."""

    def __init__(self, api_key: str, model_name: str) -> None:
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self._model = genai.GenerativeModel(model_name=model_name)

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        response = await self._model.generate_content_async(prompt, stream=True)
        async for chunk in response:
            # Chunks blocked by safety filters carry no parts and raise on .text.
            if chunk.parts:
                yield chunk.text


def build_generator(settings: Settings) -> TextGenerator:
    if not settings.google_api_key:
        raise ConfigurationError("Language model not initialized: GOOGLE_API_KEY is not set")
    return GeminiGenerator(api_key=settings.google_api_key, model_name=settings.chat_model)


__all__ = ["TextGenerator", "GeminiGenerator", "build_generator"]
