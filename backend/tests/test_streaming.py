"""Tests for the streaming relay."""

import asyncio

import pytest

from repo_chat.chat.streaming import StreamEmitter, collect
from repo_chat.core.errors import ChatProcessingError


def test_fragments_arrive_in_order() -> None:
    async def fragments():
        for idx in range(50):
            await asyncio.sleep(0)
            yield f"{idx},"

    async def scenario():
        emitter = StreamEmitter(fragments(), maxsize=4)
        await emitter.start()
        return await collect(emitter)

    assert asyncio.run(scenario()) == "".join(f"{idx}," for idx in range(50))


def test_closing_consumer_cancels_producer() -> None:
    state = {"produced": 0, "closed": False}

    async def endless():
        try:
            while True:
                state["produced"] += 1
                yield "x"
        finally:
            state["closed"] = True

    async def scenario():
        emitter = StreamEmitter(endless(), maxsize=2)
        relay = emitter.relay()
        received = [await relay.__anext__() for _ in range(3)]
        await relay.aclose()
        await asyncio.sleep(0.01)
        return received, emitter

    received, emitter = asyncio.run(scenario())
    assert received == ["x", "x", "x"]
    assert state["closed"] is True
    assert emitter._task.done()


def test_failure_before_first_fragment_raises_on_start() -> None:
    async def broken():
        raise RuntimeError("model unavailable")
        yield ""  # pragma: no cover

    async def scenario():
        await StreamEmitter(broken()).start()

    with pytest.raises(ChatProcessingError) as excinfo:
        asyncio.run(scenario())
    payload = excinfo.value.payload()
    assert payload["error"] == "Failed to process chat query"
    assert payload["message"] == "model unavailable"
    assert payload["details"]["name"] == "RuntimeError"
    assert "stack" in payload["details"]


def test_failure_mid_stream_ends_body() -> None:
    async def flaky():
        yield "partial"
        raise RuntimeError("dropped")

    async def scenario():
        emitter = StreamEmitter(flaky())
        await emitter.start()
        return await collect(emitter)

    assert asyncio.run(scenario()) == "partial"


def test_cancelled_start_stops_producer() -> None:
    async def slow_then_endless():
        await asyncio.sleep(0.2)
        while True:
            yield "x"

    async def scenario():
        emitter = StreamEmitter(slow_then_endless(), maxsize=2)
        starting = asyncio.create_task(emitter.start())
        await asyncio.sleep(0.05)
        starting.cancel()
        with pytest.raises(asyncio.CancelledError):
            await starting
        await asyncio.sleep(0.3)
        return emitter

    emitter = asyncio.run(scenario())
    assert emitter._task.done()
