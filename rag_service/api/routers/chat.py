"""
Chat API endpoints.

Routes:
- POST /knowledge-bases/{kb_id}/chat - Grounded answer in one response
- POST /knowledge-bases/{kb_id}/chat/stream - Stream the answer using Server-Sent Events (SSE)

Dependencies: rag_service.application.services.chat_service, rag_service.application.adapters
System role: Chat messaging HTTP API with streaming support
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from rag_service.api.deps import get_chat_service, get_settings_dependency
from rag_service.application.adapters.sse_adapter import SSE_HEADERS, EventChannel
from rag_service.application.services.chat_service import ChatService
from rag_service.configs import Settings
from rag_service.models.chat import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/knowledge-bases", tags=["chat"])


@router.post("/{kb_id}/chat", response_model=ChatResponse)
async def chat(
    kb_id: UUID,
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """
    Answer a message with context from the knowledge base.

    Pass ``conversation_id`` to continue a conversation; a new one is
    returned otherwise.

    Raises:
        404: Knowledge base not found
        502: Generation failed (details.retryable tells whether to retry)
    """
    return await chat_service.process_chat(kb_id, request)


@router.post("/{kb_id}/chat/stream")
async def chat_stream(
    kb_id: UUID,
    request: ChatRequest,
    http_request: Request,
    chat_service: ChatService = Depends(get_chat_service),
    settings: Settings = Depends(get_settings_dependency),
) -> StreamingResponse:
    """
    Stream a chat answer using Server-Sent Events (SSE).

    The knowledge base is validated before the stream opens, so an unknown
    id is a plain 404. Once streaming, failures arrive as an ``error``
    event.

    SSE Format:
        data: {"type": "conversation_start", "conversation_id": "..."}
        data: {"type": "search_start"}
        data: {"type": "search_complete", "context": [...]}
        data: {"type": "response_start", "model": "..."}
        data: {"type": "response_chunk", "content": "...", "delta": "..."}
        data: {"type": "response_complete", "usage": {...}, "sources": [...]}
        data: {"type": "heartbeat", "ts": 1700000000000}
        data: {"type": "error", "error": {"kind": "...", "message": "..."}}
        data: [DONE]
    """
    await chat_service.ensure_knowledge_base(kb_id)
    logger.info(f"{__name__}:chat_stream - START knowledge_base_id={kb_id}")

    channel = EventChannel(
        chat_service.stream_chat(kb_id, request),
        is_disconnected=http_request.is_disconnected,
        heartbeat_interval=settings.chat.heartbeat_interval,
    )
    return StreamingResponse(
        channel.frames(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
