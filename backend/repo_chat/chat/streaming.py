"""Relay generated text from a producer task to the HTTP response."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncGenerator, AsyncIterator

from repo_chat.core.errors import ChatProcessingError
from repo_chat.core.logging import get_logger
from repo_chat.core.metrics import STREAMED_FRAGMENTS

logger = get_logger(__name__)


class _End:
    pass


_END = _End()


@dataclass(frozen=True, slots=True)
class _Failure:
    error: Exception


class StreamEmitter:
    """Bounded channel between a fragment producer and the response body consumer.

    ``start()`` launches the producer and waits for the first fragment so that
    failures before any output can still be reported with a proper status code.
    ``relay()`` yields the remaining fragments in order; when the consumer stops
    early the producer task is cancelled.
    """

    def __init__(self, fragments: AsyncGenerator[str, None], maxsize: int = 64) -> None:
        self._source = fragments
        self._queue: asyncio.Queue[str | _End | _Failure] = asyncio.Queue(maxsize=maxsize)
        self._task: asyncio.Task[None] | None = None
        self._head: str | _End | _Failure | None = None

    async def _produce(self) -> None:
        try:
            async with aclosing(self._source) as source:
                async for fragment in source:
                    if fragment:
                        await self._queue.put(fragment)
        except Exception as exc:
            await self._queue.put(_Failure(exc))
            return
        await self._queue.put(_END)

    async def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("stream already started")
        self._task = asyncio.create_task(self._produce())
        try:
            head = await self._queue.get()
        except BaseException:
            self.close()
            raise
        if isinstance(head, _Failure):
            raise ChatProcessingError.from_exception(head.error, include_stack=True) from head.error
        self._head = head

    async def relay(self) -> AsyncIterator[str]:
        if self._task is None:
            await self.start()
        item = self._head
        self._head = None
        try:
            while not isinstance(item, _End):
                if isinstance(item, _Failure):
                    logger.error("Generation failed mid-stream: %s", item.error, exc_info=item.error)
                    return
                if item is not None:
                    STREAMED_FRAGMENTS.inc()
                    yield item
                item = await self._queue.get()
        finally:
            self.close()

    def close(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()


async def collect(emitter: StreamEmitter) -> str:
    """Drain an emitter into a single string."""
    parts = [fragment async for fragment in emitter.relay()]
    return "".join(parts)


__all__ = ["StreamEmitter", "collect"]
