"""
Chat and conversation schemas.

Dependencies: pydantic
System role: Chat API and conversation history contracts
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Turn(BaseModel):
    """
    One question/answer exchange.

    Attributes:
        question: User message
        answer: Assistant reply
        context_chunk_refs: "<document_id>_<chunk_id>" keys of the context used
        timestamp: When the exchange completed (UTC)
    """

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    context_chunk_refs: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)


class SessionInfo(BaseModel):
    """Summary of a stored conversation session."""

    session_id: str
    turn_count: int
    first_activity: datetime | None = None
    last_activity: datetime | None = None
    ttl_seconds: int | None = None


class SessionHistoryResponse(BaseModel):
    """Session history endpoint response."""

    session_id: str
    turns: list[Turn]


class SourceRef(BaseModel):
    """Citation for one context block."""

    document_id: str
    chunk_id: str
    filename: str
    score: float
    snippet: str


class TokenUsage(BaseModel):
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatRequest(BaseModel):
    """Request body for chat endpoints."""

    message: str = Field(..., min_length=1, max_length=4000)
    conversation_id: str | None = Field(
        default=None,
        max_length=128,
        description="Existing conversation to continue; a new one is minted when omitted",
    )
    document_ids: list[UUID] | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1, le=8000)


class Answer(BaseModel):
    """Result of a synchronous generation."""

    content: str
    finish_reason: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str
    sources: list[SourceRef] = Field(default_factory=list)
    cached: bool = False


class ChatResponse(BaseModel):
    """Synchronous chat endpoint response."""

    conversation_id: str
    knowledge_base_id: UUID
    answer: str
    sources: list[SourceRef]
    usage: TokenUsage
    finish_reason: str | None = None
    model: str
    context_used: int
