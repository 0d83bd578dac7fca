"""
Provider wire schemas.

Typed request/response models for the OpenAI-compatible
``/chat/completions`` and ``/embeddings`` endpoints.

Dependencies: pydantic
System role: Provider data contracts
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from rag_service.models.chat import TokenUsage


class ChatMessage(BaseModel):
    """One chat message in provider wire format."""

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionRequest(BaseModel):
    """Chat completion request."""

    model: str
    messages: list[ChatMessage]
    temperature: float = 0.7
    max_tokens: int = 1000

    def to_payload(self, stream: bool = False) -> dict[str, Any]:
        payload = self.model_dump()
        payload["stream"] = stream
        if stream:
            payload["stream_options"] = {"include_usage": True}
        return payload


class CompletionResponse(BaseModel):
    """Parsed non-streaming completion."""

    content: str
    finish_reason: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str


class CompletionDelta(BaseModel):
    """One increment of a streamed completion."""

    content: str = ""
    finish_reason: str | None = None
    usage: TokenUsage | None = None


class EmbeddingRequest(BaseModel):
    """Embedding request for one or more texts."""

    model: str
    input: list[str]


class EmbeddingResponse(BaseModel):
    """Embedding vectors in input order."""

    vectors: list[list[float]]
    model: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
