"""
Answer generator.

Builds the grounded prompt from assembled context and conversation
history and drives the chat model, either to a complete answer or as a
stream of deltas. Each request runs through an explicit state machine:

    IDLE -> CONTEXT_GATHERED -> GENERATING -> STREAMING_CHUNK* -> COMPLETED
                                          \\-> FAILED (from any non-terminal state)

Retries with exponential backoff apply to transient provider failures.
A stream is only retried before its first delta is delivered.

Dependencies: tenacity, langchain_core, rag_service.boundary.providers
System role: Generation stage of the RAG pipeline
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from enum import Enum

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from rag_service.boundary.cache.keys import llm_key
from rag_service.boundary.cache.result_cache import ResultCache
from rag_service.boundary.providers.base import ModelProvider
from rag_service.boundary.providers.schemas import CompletionDelta, CompletionRequest
from rag_service.core.context_assembler import AssembledContext
from rag_service.core.exceptions import GenerationFailed, ProviderError
from rag_service.core.prompts import build_messages, to_wire
from rag_service.models.chat import Answer, SourceRef, TokenUsage, Turn

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 20.0


class GenerationState(str, Enum):
    IDLE = "idle"
    CONTEXT_GATHERED = "context_gathered"
    GENERATING = "generating"
    STREAMING_CHUNK = "streaming_chunk"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS: dict[GenerationState, set[GenerationState]] = {
    GenerationState.IDLE: {GenerationState.CONTEXT_GATHERED, GenerationState.FAILED},
    GenerationState.CONTEXT_GATHERED: {GenerationState.GENERATING, GenerationState.FAILED},
    GenerationState.GENERATING: {
        GenerationState.STREAMING_CHUNK,
        GenerationState.COMPLETED,
        GenerationState.FAILED,
    },
    GenerationState.STREAMING_CHUNK: {
        GenerationState.STREAMING_CHUNK,
        GenerationState.COMPLETED,
        GenerationState.FAILED,
    },
    GenerationState.COMPLETED: set(),
    GenerationState.FAILED: set(),
}


class Generation:
    """Mutable state of one generation request."""

    def __init__(self, question: str) -> None:
        self.question = question
        self.state = GenerationState.IDLE
        self.request: CompletionRequest | None = None
        self.sources: list[SourceRef] = []
        self.chunk_refs: list[str] = []
        self.usage = TokenUsage()
        self.finish_reason: str | None = None
        self.error: str | None = None
        self._parts: list[str] = []

    @property
    def content(self) -> str:
        return "".join(self._parts)

    @property
    def is_terminal(self) -> bool:
        return self.state in (GenerationState.COMPLETED, GenerationState.FAILED)

    def transition(self, new_state: GenerationState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid generation transition {self.state.value} -> {new_state.value}")
        self.state = new_state

    def fail(self, reason: str) -> None:
        if not self.is_terminal:
            self.state = GenerationState.FAILED
            self.error = reason

    def to_turn(self) -> Turn:
        return Turn(question=self.question, answer=self.content, context_chunk_refs=self.chunk_refs)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.retryable


class AnswerGenerator:
    """Prompt construction plus completion and streaming with retries."""

    def __init__(
        self,
        provider: ModelProvider,
        model: str,
        cache: ResultCache | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        cache_completions: bool = True,
        cache_ttl: int = 3600,
    ) -> None:
        """
        Initialize answer generator.

        Args:
            provider: Chat model provider
            model: Chat model identifier
            cache: Result cache for completions; None disables caching
            temperature: Default sampling temperature
            max_tokens: Default completion cap
            max_attempts: Total attempts for transient failures
            retry_delay: Initial backoff in seconds, doubled each attempt
            cache_completions: Reuse identical synchronous completions
            cache_ttl: Cache lifetime for completions in seconds
        """
        self._provider = provider
        self._cache = cache
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.cache_completions = cache_completions
        self.cache_ttl = cache_ttl

    def prepare(
        self,
        question: str,
        context: AssembledContext,
        history: list[Turn],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Generation:
        """Build the request for a question. Leaves the generation in CONTEXT_GATHERED."""
        generation = Generation(question)
        generation.request = CompletionRequest(
            model=self.model,
            messages=to_wire(build_messages(context, history, question)),
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=self.max_tokens if max_tokens is None else max_tokens,
        )
        generation.sources = context.source_refs()
        generation.chunk_refs = context.chunk_refs()
        generation.transition(GenerationState.CONTEXT_GATHERED)
        return generation

    async def complete(self, generation: Generation) -> Answer:
        """
        Produce the full answer.

        Raises:
            GenerationFailed: Provider failed; ``retryable`` tells whether
                the caller may try again later
        """
        generation.transition(GenerationState.GENERATING)
        payload = generation.request.to_payload()

        cache_key = llm_key(payload) if self._cache and self.cache_completions else None
        if cache_key:
            cached = await self._cache.get(cache_key)
            if cached:
                generation._parts = [cached["content"]]
                generation.finish_reason = cached.get("finish_reason")
                generation.usage = TokenUsage(**cached.get("usage", {}))
                generation.transition(GenerationState.COMPLETED)
                logger.info(f"{__name__}:complete - Served from cache")
                return self._answer(generation, cached=True)

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_retryable),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.retry_delay, max=MAX_BACKOFF_SECONDS),
                before_sleep=self._log_retry,
                reraise=True,
            ):
                with attempt:
                    response = await self._provider.complete(generation.request)
        except ProviderError as e:
            generation.fail(e.message)
            logger.error(
                f"{__name__}:complete - Generation failed",
                extra={"status": e.status, "retryable": e.retryable},
            )
            raise GenerationFailed(
                f"Answer generation failed: {e.message}",
                retryable=e.retryable,
                details={"status": e.status, "auth_failure": e.is_auth},
            ) from e

        generation._parts = [response.content]
        generation.finish_reason = response.finish_reason
        generation.usage = response.usage
        generation.transition(GenerationState.COMPLETED)

        if cache_key:
            await self._cache.set(
                cache_key,
                {
                    "content": response.content,
                    "finish_reason": response.finish_reason,
                    "usage": response.usage.model_dump(),
                },
                self.cache_ttl,
            )
        return self._answer(generation)

    async def stream(self, generation: Generation) -> AsyncIterator[CompletionDelta]:
        """
        Yield content deltas as the model produces them.

        Usage and finish reason are recorded on the generation rather than
        yielded. If the consumer stops early or is cancelled the generation
        ends in FAILED and the provider stream is closed.

        Raises:
            GenerationFailed: Provider failed before or during streaming
        """
        generation.transition(GenerationState.GENERATING)
        attempt = 0
        try:
            while True:
                attempt += 1
                emitted = False
                try:
                    async for delta in self._provider.stream(generation.request):
                        if delta.usage is not None:
                            generation.usage = delta.usage
                        if delta.finish_reason:
                            generation.finish_reason = delta.finish_reason
                        if delta.content:
                            emitted = True
                            generation.transition(GenerationState.STREAMING_CHUNK)
                            generation._parts.append(delta.content)
                            yield delta
                    break
                except ProviderError as e:
                    if emitted or not e.retryable or attempt >= self.max_attempts:
                        generation.fail(e.message)
                        logger.error(
                            f"{__name__}:stream - Streaming failed",
                            extra={"status": e.status, "attempt": attempt, "partial": emitted},
                        )
                        raise GenerationFailed(
                            f"Answer generation failed: {e.message}",
                            retryable=e.retryable and not emitted,
                            details={"status": e.status, "auth_failure": e.is_auth},
                        ) from e
                    delay = min(self.retry_delay * 2 ** (attempt - 1), MAX_BACKOFF_SECONDS)
                    logger.warning(
                        f"{__name__}:stream - Retrying stream",
                        extra={"status": e.status, "attempt": attempt, "delay": delay},
                    )
                    await asyncio.sleep(delay)
        except (asyncio.CancelledError, GeneratorExit):
            generation.fail("cancelled")
            raise

        generation.transition(GenerationState.COMPLETED)

    def _answer(self, generation: Generation, cached: bool = False) -> Answer:
        return Answer(
            content=generation.content,
            finish_reason=generation.finish_reason,
            usage=generation.usage,
            model=self.model,
            sources=generation.sources,
            cached=cached,
        )

    @staticmethod
    def _log_retry(retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{__name__}:complete - Retrying completion",
            extra={
                "attempt": retry_state.attempt_number,
                "status": getattr(exc, "status", None),
            },
        )
