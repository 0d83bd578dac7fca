"""
Test doubles shared across the suite.

Provides: Deterministic bag-of-words embeddings and a scripted model provider
Dependencies: rag_service.boundary.providers
System role: Stand-in for hosted model APIs in tests
"""

import hashlib
import re

from rag_service.boundary.providers.base import ModelProvider
from rag_service.boundary.providers.schemas import (
    CompletionDelta,
    CompletionRequest,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
)
from rag_service.models.chat import TokenUsage

TEST_DIMENSION = 32
TEST_MODEL = "test-chat-model"
_TOKEN = re.compile(r"\w+")


def embed_text(text: str, dimension: int = TEST_DIMENSION) -> list[float]:
    """
    Deterministic bag-of-words vector.

    Each token lands in a hashed bucket, so texts sharing words have a
    positive cosine similarity and unrelated texts are close to zero.
    """
    vector = [0.0] * dimension
    for token in _TOKEN.findall(text.lower()):
        bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % dimension
        vector[bucket] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeProvider(ModelProvider):
    """
    Scripted model provider.

    Queue errors on ``complete_errors``, ``embed_errors`` or
    ``stream_failures`` to have the next calls fail; every other call
    succeeds with deterministic output.
    """

    name = "fake"

    def __init__(self, dimension: int = TEST_DIMENSION, answer_parts: list[str] | None = None) -> None:
        self.dimension = dimension
        self.answer_parts = answer_parts or ["Paris ", "is the ", "capital."]
        self.complete_calls: list[CompletionRequest] = []
        self.stream_calls: list[CompletionRequest] = []
        self.embed_calls: list[EmbeddingRequest] = []
        self.complete_errors: list[Exception] = []
        self.embed_errors: list[Exception] = []
        # (parts delivered before failing, error)
        self.stream_failures: list[tuple[list[str], Exception]] = []
        self.vector_overrides: dict[str, list[float]] = {}
        self.closed = False

    @property
    def answer(self) -> str:
        return "".join(self.answer_parts)

    @staticmethod
    def usage() -> TokenUsage:
        return TokenUsage(prompt_tokens=12, completion_tokens=5, total_tokens=17)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.complete_calls.append(request)
        if self.complete_errors:
            raise self.complete_errors.pop(0)
        return CompletionResponse(
            content=self.answer,
            finish_reason="stop",
            usage=self.usage(),
            model=request.model,
        )

    async def stream(self, request: CompletionRequest):
        self.stream_calls.append(request)
        if self.stream_failures:
            parts, error = self.stream_failures.pop(0)
            for part in parts:
                yield CompletionDelta(content=part)
            raise error
        for part in self.answer_parts:
            yield CompletionDelta(content=part)
        yield CompletionDelta(finish_reason="stop", usage=self.usage())

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        self.embed_calls.append(request)
        if self.embed_errors:
            raise self.embed_errors.pop(0)
        vectors = [self.vector_overrides.get(text) or embed_text(text, self.dimension) for text in request.input]
        return EmbeddingResponse(vectors=vectors, model=request.model)

    async def aclose(self) -> None:
        self.closed = True


