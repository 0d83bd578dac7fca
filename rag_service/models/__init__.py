"""
Pydantic models shared by services and the HTTP API.
"""

from rag_service.models.chat import (
    Answer,
    ChatRequest,
    ChatResponse,
    SessionHistoryResponse,
    SessionInfo,
    SourceRef,
    TokenUsage,
    Turn,
)
from rag_service.models.document import (
    Chunk,
    Document,
    DocumentCreateRequest,
    DocumentResponse,
    DocumentStatus,
)
from rag_service.models.knowledge_base import KnowledgeBaseCreate, KnowledgeBaseResponse
from rag_service.models.search import (
    SearchMode,
    SearchOptions,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from rag_service.models.streaming import StreamEvent, StreamEventType

__all__ = [
    "Answer",
    "ChatRequest",
    "ChatResponse",
    "Chunk",
    "Document",
    "DocumentCreateRequest",
    "DocumentResponse",
    "DocumentStatus",
    "KnowledgeBaseCreate",
    "KnowledgeBaseResponse",
    "SearchMode",
    "SearchOptions",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SessionHistoryResponse",
    "SessionInfo",
    "SourceRef",
    "StreamEvent",
    "StreamEventType",
    "TokenUsage",
    "Turn",
]
