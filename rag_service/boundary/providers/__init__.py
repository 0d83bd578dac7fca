"""
Hosted model providers (chat completions and embeddings).
"""

from rag_service.boundary.providers.base import ModelProvider
from rag_service.boundary.providers.factory import create_provider
from rag_service.boundary.providers.openai_provider import OpenAIProvider
from rag_service.boundary.providers.openrouter_provider import OpenRouterProvider
from rag_service.boundary.providers.schemas import (
    ChatMessage,
    CompletionDelta,
    CompletionRequest,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
)

__all__ = [
    "ChatMessage",
    "CompletionDelta",
    "CompletionRequest",
    "CompletionResponse",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "ModelProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "create_provider",
]
