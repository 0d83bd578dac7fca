"""
Test suite for AnswerGenerator.

Tests the generation state machine, completion caching, retry of
transient provider failures, and the streaming rule that a stream is only
retried before its first delta is delivered.

System role: Verification of the generation stage
"""

import pytest

from rag_service.boundary.cache import ResultCache
from rag_service.core.answer_generator import AnswerGenerator, Generation, GenerationState
from rag_service.core.context_assembler import ContextAssembler
from rag_service.core.exceptions import GenerationFailed, ProviderError
from rag_service.models.chat import Turn
from rag_service.models.search import SearchResult
from tests.helpers import TEST_MODEL, FakeProvider


@pytest.fixture
def generator(provider: FakeProvider, result_cache: ResultCache) -> AnswerGenerator:
    return AnswerGenerator(provider, model=TEST_MODEL, cache=result_cache, retry_delay=0.0)


@pytest.fixture
def context():
    return ContextAssembler().assemble(
        [
            SearchResult(
                document_id="doc-1",
                chunk_id="chunk_0",
                content="Paris is the capital of France.",
                score=0.92,
                metadata={"filename": "geo.txt"},
            )
        ]
    )


async def collect(generator: AnswerGenerator, generation: Generation) -> list[str]:
    return [delta.content async for delta in generator.stream(generation)]


class TestGenerationStateMachine:
    """Test allowed and rejected transitions."""

    def test_happy_path_transitions(self):
        generation = Generation("q")

        for state in (
            GenerationState.CONTEXT_GATHERED,
            GenerationState.GENERATING,
            GenerationState.STREAMING_CHUNK,
            GenerationState.STREAMING_CHUNK,
            GenerationState.COMPLETED,
        ):
            generation.transition(state)

        assert generation.is_terminal

    def test_skipping_context_is_rejected(self):
        with pytest.raises(RuntimeError):
            Generation("q").transition(GenerationState.GENERATING)

    def test_terminal_state_is_final(self):
        generation = Generation("q")
        generation.fail("boom")

        with pytest.raises(RuntimeError):
            generation.transition(GenerationState.CONTEXT_GATHERED)
        generation.fail("again")
        assert generation.error == "boom"


class TestPrepare:
    def test_request_built_from_context_and_overrides(self, generator: AnswerGenerator, context):
        generation = generator.prepare(
            "What is the capital?",
            context,
            [Turn(question="Hi", answer="Hello")],
            temperature=0.1,
        )

        assert generation.state == GenerationState.CONTEXT_GATHERED
        assert generation.request.model == TEST_MODEL
        assert generation.request.temperature == 0.1
        assert generation.request.max_tokens == generator.max_tokens
        assert [m.role for m in generation.request.messages] == ["system", "user", "assistant", "user"]
        assert generation.chunk_refs == ["doc-1_chunk_0"]
        assert generation.sources[0].filename == "geo.txt"


class TestComplete:
    """Test synchronous generation."""

    @pytest.mark.asyncio
    async def test_returns_answer_with_sources(self, generator: AnswerGenerator, provider: FakeProvider, context):
        # Arrange
        generation = generator.prepare("Capital?", context, [])

        # Act
        answer = await generator.complete(generation)

        # Assert
        assert answer.content == provider.answer
        assert answer.finish_reason == "stop"
        assert answer.usage.total_tokens == 17
        assert answer.sources[0].document_id == "doc-1"
        assert answer.cached is False
        assert generation.state == GenerationState.COMPLETED

    @pytest.mark.asyncio
    async def test_identical_request_served_from_cache(
        self, generator: AnswerGenerator, provider: FakeProvider, context
    ):
        await generator.complete(generator.prepare("Capital?", context, []))

        answer = await generator.complete(generator.prepare("Capital?", context, []))

        assert answer.cached is True
        assert answer.content == provider.answer
        assert len(provider.complete_calls) == 1

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, generator: AnswerGenerator, provider: FakeProvider, context):
        provider.complete_errors = [ProviderError("rate limited", status=429)]

        answer = await generator.complete(generator.prepare("Capital?", context, []))

        assert answer.content == provider.answer
        assert len(provider.complete_calls) == 2

    @pytest.mark.asyncio
    async def test_auth_failure_not_retried(self, generator: AnswerGenerator, provider: FakeProvider, context):
        # Arrange
        provider.complete_errors = [ProviderError("invalid key", status=401)]
        generation = generator.prepare("Capital?", context, [])

        # Act
        with pytest.raises(GenerationFailed) as exc_info:
            await generator.complete(generation)

        # Assert
        assert exc_info.value.retryable is False
        assert len(provider.complete_calls) == 1
        assert exc_info.value.details["auth_failure"] is True
        assert generation.state == GenerationState.FAILED

    @pytest.mark.asyncio
    async def test_exhausted_retries_marked_retryable(
        self, generator: AnswerGenerator, provider: FakeProvider, context
    ):
        provider.complete_errors = [ProviderError("unavailable", status=503) for _ in range(3)]

        with pytest.raises(GenerationFailed) as exc_info:
            await generator.complete(generator.prepare("Capital?", context, []))

        assert exc_info.value.retryable is True
        assert exc_info.value.details["status"] == 503
        assert len(provider.complete_calls) == 3


class TestStream:
    """Test streaming generation."""

    @pytest.mark.asyncio
    async def test_deltas_accumulate_into_content(self, generator: AnswerGenerator, provider: FakeProvider, context):
        # Arrange
        generation = generator.prepare("Capital?", context, [])

        # Act
        deltas = await collect(generator, generation)

        # Assert
        assert deltas == provider.answer_parts
        assert generation.content == provider.answer
        assert generation.finish_reason == "stop"
        assert generation.usage.total_tokens == 17
        assert generation.state == GenerationState.COMPLETED

    @pytest.mark.asyncio
    async def test_failure_before_first_delta_is_retried(
        self, generator: AnswerGenerator, provider: FakeProvider, context
    ):
        provider.stream_failures = [([], ProviderError("overloaded", status=503))]
        generation = generator.prepare("Capital?", context, [])

        deltas = await collect(generator, generation)

        assert "".join(deltas) == provider.answer
        assert len(provider.stream_calls) == 2

    @pytest.mark.asyncio
    async def test_failure_after_first_delta_is_not_retried(
        self, generator: AnswerGenerator, provider: FakeProvider, context
    ):
        # Arrange
        provider.stream_failures = [(["Par"], ProviderError("connection reset", status=None))]
        generation = generator.prepare("Capital?", context, [])
        received: list[str] = []

        # Act
        with pytest.raises(GenerationFailed) as exc_info:
            async for delta in generator.stream(generation):
                received.append(delta.content)

        # Assert
        assert received == ["Par"]
        assert exc_info.value.retryable is False
        assert len(provider.stream_calls) == 1
        assert generation.state == GenerationState.FAILED

    @pytest.mark.asyncio
    async def test_consumer_closing_early_marks_failed(self, generator: AnswerGenerator, context):
        generation = generator.prepare("Capital?", context, [])
        stream = generator.stream(generation)

        await stream.__anext__()
        await stream.aclose()

        assert generation.state == GenerationState.FAILED
        assert generation.error == "cancelled"
