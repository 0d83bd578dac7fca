"""
Embedding gateway.

Turns text into vectors through the configured provider. Each text is
normalized, looked up in the result cache, and only the misses are sent
to the provider in sequential sub-batches with a pause between them.
Transient provider failures are retried with exponential backoff.

Dependencies: tenacity, rag_service.boundary.providers, rag_service.boundary.cache
System role: Vectorization for ingestion and query embedding
"""

import asyncio
import logging
import math
import re

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from rag_service.boundary.cache.keys import embedding_key, normalize_text
from rag_service.boundary.cache.result_cache import ResultCache
from rag_service.boundary.providers.base import ModelProvider
from rag_service.boundary.providers.schemas import EmbeddingRequest
from rag_service.core.exceptions import (
    EmbeddingError,
    InputTooLongError,
    ProviderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_LATIN_CHARS = re.compile(r"[a-zA-Z0-9\s.,!?;:'\"()\-]")

# Known embedding models and their output dimensions.
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


def estimate_tokens(text: str) -> int:
    """
    Rough token count without a tokenizer.

    Latin text averages about 4 characters per token; other scripts
    (CJK, Cyrillic, ...) tokenize far denser, about 1.5 characters per token.
    """
    latin = len(_LATIN_CHARS.findall(text))
    other = len(text) - latin
    return math.ceil(latin / 4 + other / 1.5)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.retryable


class EmbeddingGateway:
    """Cached, batched, retrying access to the embedding provider."""

    def __init__(
        self,
        provider: ModelProvider,
        cache: ResultCache | None = None,
        model: str = "text-embedding-3-small",
        dimensions: int | None = 1536,
        max_tokens: int = 8191,
        batch_size: int = 100,
        batch_delay: float = 0.1,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        cache_ttl: int = 7 * 24 * 3600,
    ) -> None:
        """
        Initialize embedding gateway.

        Args:
            provider: Model provider exposing embed()
            cache: Result cache; None disables caching
            model: Default embedding model
            dimensions: Expected vector length for the default model (None skips the check)
            max_tokens: Per-text token limit
            batch_size: Maximum texts per provider call
            batch_delay: Seconds to pause between sub-batches
            max_retries: Total attempts for transient failures
            retry_delay: Initial backoff in seconds, doubled each attempt
            cache_ttl: Cache lifetime for embeddings in seconds
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._provider = provider
        self._cache = cache
        self.model = model
        self.dimensions = dimensions
        self.max_tokens = max_tokens
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.cache_ttl = cache_ttl

    async def embed(self, text: str, model: str | None = None) -> list[float]:
        """
        Embed a single text.

        Raises:
            ValidationError: Text is empty after normalization
            InputTooLongError: Text exceeds the model's token limit
            EmbeddingError: Provider rejected the request or retries ran out
        """
        vectors = await self.embed_batch([text], model)
        return vectors[0]

    async def embed_batch(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """
        Embed many texts, preserving input order.

        Identical texts (after whitespace normalization) share one cache
        entry and one provider slot.

        Raises:
            ValidationError: A text is empty after normalization
            InputTooLongError: A text exceeds the model's token limit
            EmbeddingError: Provider rejected the request or retries ran out
        """
        if not texts:
            return []
        model = model or self.model

        normalized = [normalize_text(text) for text in texts]
        for position, text in enumerate(normalized):
            if not text:
                raise ValidationError(
                    "Cannot embed empty text",
                    field="text",
                    details={"position": position},
                )
            tokens = estimate_tokens(text)
            if tokens > self.max_tokens:
                raise InputTooLongError(tokens, self.max_tokens)

        keys = [embedding_key(model, text) for text in normalized]
        if self._cache is not None:
            cached = await self._cache.get_many(keys)
        else:
            cached = [None] * len(keys)

        pending: dict[str, str] = {}
        for key, text, hit in zip(keys, normalized, cached):
            if hit is None and key not in pending:
                pending[key] = text

        logger.info(
            f"{__name__}:embed_batch - Embedding texts",
            extra={
                "text_count": len(texts),
                "cache_hits": len(texts) - sum(1 for hit in cached if hit is None),
                "provider_texts": len(pending),
                "model": model,
            },
        )

        if not pending:
            return list(cached)

        miss_keys = list(pending)
        vectors = await self._embed_uncached([pending[key] for key in miss_keys], model)
        fresh = dict(zip(miss_keys, vectors))
        if self._cache is not None:
            await self._cache.set_many(fresh, ttl=self.cache_ttl)

        return [hit if hit is not None else fresh[key] for hit, key in zip(cached, keys)]

    async def _embed_uncached(self, texts: list[str], model: str) -> list[list[float]]:
        vectors: list[list[float]] = []
        for batch_number, start in enumerate(range(0, len(texts), self.batch_size)):
            if batch_number > 0 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)
            batch = texts[start : start + self.batch_size]
            vectors.extend(await self._request_with_retry(batch, model, batch_number))
        return vectors

    async def _request_with_retry(
        self, batch: list[str], model: str, batch_number: int
    ) -> list[list[float]]:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_delay, max=30),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:_request_with_retry - Retry "
                f"{retry_state.attempt_number}/{self.max_retries} for batch {batch_number}"
            ),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._provider.embed(
                        EmbeddingRequest(model=model, input=batch)
                    )
        except ProviderError as e:
            logger.error(
                f"{__name__}:_request_with_retry - Embedding failed",
                extra={
                    "batch_number": batch_number,
                    "batch_size": len(batch),
                    "status": e.status,
                    "retryable": e.retryable,
                },
            )
            raise EmbeddingError(
                f"Embedding provider failed: {e.message}",
                details={"status": e.status, "retryable": e.retryable, "batch_size": len(batch)},
            ) from e

        expected = self._expected_dimensions(model)
        if expected is not None:
            for vector in response.vectors:
                if len(vector) != expected:
                    raise EmbeddingError(
                        f"Embedding dimension mismatch: got {len(vector)}, expected {expected}",
                        details={"model": model},
                    )
        return response.vectors

    def _expected_dimensions(self, model: str) -> int | None:
        if model == self.model:
            return self.dimensions
        return MODEL_DIMENSIONS.get(model)
