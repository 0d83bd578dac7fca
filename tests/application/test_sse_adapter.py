"""
Test suite for the SSE EventChannel.

Tests frame formatting, the terminal sentinel, heartbeats while the
producer is idle, and cancellation of every task when the client
disconnects mid-stream.

System role: Verification of the streaming transport adapter
"""

import asyncio
import json

import pytest

from rag_service.application.adapters.sse_adapter import DONE_FRAME, EventChannel, format_frame
from rag_service.models.streaming import StreamEvent, StreamEventType


def parse(frame: str) -> dict | str:
    payload = frame.removeprefix("data: ").strip()
    return payload if payload == "[DONE]" else json.loads(payload)


async def never_disconnected() -> bool:
    return False


class TestFormatFrame:
    def test_frame_is_data_line_with_blank_line(self):
        assert format_frame({"type": "search_start"}) == 'data: {"type": "search_start"}\n\n'

    def test_event_data_is_flattened(self):
        event = StreamEvent(type=StreamEventType.RESPONSE_CHUNK, data={"content": "Pa", "delta": "Pa"})

        assert event.to_dict() == {"type": "response_chunk", "content": "Pa", "delta": "Pa"}


class TestEventChannel:
    """Test queue-driven framing."""

    @pytest.mark.asyncio
    async def test_events_then_done(self):
        # Arrange
        async def events():
            yield StreamEvent(type=StreamEventType.SEARCH_START)
            yield StreamEvent(type=StreamEventType.RESPONSE_COMPLETE, data={"usage": {}})

        channel = EventChannel(events(), never_disconnected)

        # Act
        frames = [frame async for frame in channel.frames()]

        # Assert
        assert [parse(f) for f in frames] == [
            {"type": "search_start"},
            {"type": "response_complete", "usage": {}},
            "[DONE]",
        ]
        assert frames[-1] == DONE_FRAME
        assert channel.heartbeat_task.cancelled()

    @pytest.mark.asyncio
    async def test_heartbeat_while_producer_idle(self):
        async def slow_events():
            await asyncio.sleep(0.05)
            yield StreamEvent(type=StreamEventType.SEARCH_START)

        channel = EventChannel(slow_events(), never_disconnected, heartbeat_interval=0.01)

        frames = [parse(f) async for f in channel.frames()]

        assert any(f != "[DONE]" and f["type"] == "heartbeat" and f["ts"] > 0 for f in frames)
        assert frames[-1] == "[DONE]"

    @pytest.mark.asyncio
    async def test_disconnect_after_search_complete_stops_stream(self):
        # Arrange
        search_done = asyncio.Event()
        generation_cancelled = asyncio.Event()

        async def events():
            yield StreamEvent(type=StreamEventType.SEARCH_COMPLETE, data={"context": []})
            search_done.set()
            try:
                await asyncio.sleep(10)
                yield StreamEvent(type=StreamEventType.RESPONSE_COMPLETE)
            except asyncio.CancelledError:
                generation_cancelled.set()
                raise

        async def disconnected() -> bool:
            return search_done.is_set()

        channel = EventChannel(events(), disconnected, heartbeat_interval=10, poll_interval=0.01)

        # Act
        frames = [parse(f) async for f in channel.frames()]

        # Assert
        assert frames == [{"type": "search_complete", "context": []}]
        assert channel.disconnected is True
        assert channel.heartbeat_task.cancelled()
        assert channel.producer_task.done()
        assert generation_cancelled.is_set()

    @pytest.mark.asyncio
    async def test_unexpected_producer_error_becomes_error_frame(self):
        async def broken():
            yield StreamEvent(type=StreamEventType.SEARCH_START)
            raise RuntimeError("boom")

        channel = EventChannel(broken(), never_disconnected)

        frames = [parse(f) async for f in channel.frames()]

        assert frames[1] == {"type": "error", "error": {"kind": "internal_error", "message": "Streaming failed"}}
        assert frames[-1] == "[DONE]"
