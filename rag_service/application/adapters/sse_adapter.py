"""
Server-Sent Events adapter.

Turns a stream of chat events into ``data: <json>`` frames, interleaves
heartbeats on a fixed interval and watches for client disconnect. On
disconnect the heartbeat, the disconnect watcher and the event source
(including any in-flight provider call) are cancelled and nothing more
is written.

Dependencies: asyncio, rag_service.models.streaming
System role: Streaming transport adapter
"""

import asyncio
import json
import logging
import time
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from typing import Any

from rag_service.models.streaming import StreamEvent, StreamEventType

logger = logging.getLogger(__name__)

DONE_FRAME = "data: [DONE]\n\n"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

_END = object()
_DISCONNECTED = object()


def format_frame(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, default=str)}\n\n"


def heartbeat_payload() -> dict[str, Any]:
    return {"type": StreamEventType.HEARTBEAT.value, "ts": int(time.time() * 1000)}


class EventChannel:
    """
    One SSE response channel.

    Three tasks feed a single queue: the event producer, the heartbeat
    timer and the disconnect watcher. ``frames()`` drains the queue until
    the producer finishes (then writes the terminal sentinel) or the
    client goes away (then stops without further writes).
    """

    def __init__(
        self,
        events: AsyncGenerator[StreamEvent, None],
        is_disconnected: Callable[[], Awaitable[bool]],
        heartbeat_interval: float = 15.0,
        poll_interval: float = 0.5,
    ) -> None:
        """
        Initialize channel.

        Args:
            events: Source of stream events
            is_disconnected: Coroutine function reporting client disconnect
            heartbeat_interval: Seconds between heartbeat frames
            poll_interval: Seconds between disconnect checks
        """
        self._events = events
        self._is_disconnected = is_disconnected
        self.heartbeat_interval = heartbeat_interval
        self.poll_interval = poll_interval
        self.disconnected = False
        self.heartbeat_task: asyncio.Task | None = None
        self.producer_task: asyncio.Task | None = None
        self._watcher_task: asyncio.Task | None = None

    async def frames(self) -> AsyncIterator[str]:
        queue: asyncio.Queue = asyncio.Queue()
        self.producer_task = asyncio.create_task(self._produce(queue))
        self.heartbeat_task = asyncio.create_task(self._heartbeat(queue))
        self._watcher_task = asyncio.create_task(self._watch(queue))

        try:
            while True:
                item = await queue.get()
                if item is _DISCONNECTED:
                    self.disconnected = True
                    logger.info(f"{__name__}:frames - Client disconnected, closing stream")
                    break
                if item is _END:
                    yield DONE_FRAME
                    break
                yield format_frame(item)
        finally:
            await self._shutdown()

    async def _produce(self, queue: asyncio.Queue) -> None:
        try:
            async for event in self._events:
                await queue.put(event.to_dict())
        except Exception as e:
            logger.error(
                f"{__name__}:_produce - Event source failed",
                extra={"error_type": type(e).__name__},
            )
            await queue.put(
                {
                    "type": StreamEventType.ERROR.value,
                    "error": {"kind": "internal_error", "message": "Streaming failed"},
                }
            )
        finally:
            await self._events.aclose()
        await queue.put(_END)

    async def _heartbeat(self, queue: asyncio.Queue) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            await queue.put(heartbeat_payload())

    async def _watch(self, queue: asyncio.Queue) -> None:
        while True:
            if await self._is_disconnected():
                await queue.put(_DISCONNECTED)
                return
            await asyncio.sleep(self.poll_interval)

    async def _shutdown(self) -> None:
        tasks = [t for t in (self.producer_task, self.heartbeat_task, self._watcher_task) if t]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
