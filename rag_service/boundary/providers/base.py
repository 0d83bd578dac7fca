"""
Model provider interface.

Dependencies: abc
System role: Polymorphic seam between the pipeline and hosted model APIs
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from rag_service.boundary.providers.schemas import (
    CompletionDelta,
    CompletionRequest,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
)


class ModelProvider(ABC):
    """
    Hosted model API used for completions and embeddings.

    Implementations raise ProviderError for every failed exchange so that
    callers can apply one retry policy regardless of the backend.
    """

    name: str = "provider"

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Run a single non-streaming completion."""

    @abstractmethod
    def stream(self, request: CompletionRequest) -> AsyncIterator[CompletionDelta]:
        """Yield completion increments as the provider produces them."""

    @abstractmethod
    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        """Embed a batch of texts."""

    async def aclose(self) -> None:
        """Release pooled connections."""
