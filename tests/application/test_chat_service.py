"""
Test suite for ChatService.

Tests synchronous chat, multi-turn history, and the ordered event stream
including the error event that replaces the remainder of a failed stream.
Runs on the in-process stack with a scripted provider.

System role: Verification of chat service orchestration layer
"""

import pytest

from rag_service.api.deps.dependencies import ServiceCache
from rag_service.application.services.chat_service import ChatService
from rag_service.core.exceptions import GenerationFailed, KnowledgeBaseNotFoundError, ProviderError
from rag_service.models.chat import ChatRequest
from rag_service.models.document import DocumentCreateRequest
from rag_service.models.streaming import StreamEventType
from tests.helpers import TEST_MODEL, FakeProvider


@pytest.fixture
def service(service_cache: ServiceCache) -> ChatService:
    return service_cache.chat_service


@pytest.fixture
async def indexed_kb(service_cache: ServiceCache, knowledge_base):
    await service_cache.ingestion_service.ingest(
        knowledge_base.id,
        DocumentCreateRequest(filename="france.txt", text="Paris is the capital of France."),
    )
    return knowledge_base


async def collect_events(service: ChatService, kb_id, request: ChatRequest):
    return [event async for event in service.stream_chat(kb_id, request)]


class TestProcessChat:
    """Test synchronous chat."""

    @pytest.mark.asyncio
    async def test_answer_grounded_in_context(self, service: ChatService, indexed_kb, provider: FakeProvider):
        # Act
        response = await service.process_chat(indexed_kb.id, ChatRequest(message="What is the capital of France?"))

        # Assert
        assert response.answer == provider.answer
        assert response.conversation_id.startswith("conv_")
        assert response.context_used == 1
        assert response.sources[0].filename == "france.txt"
        assert response.model == TEST_MODEL
        system_prompt = provider.complete_calls[0].messages[0].content
        assert "Paris is the capital of France." in system_prompt

    @pytest.mark.asyncio
    async def test_history_included_on_follow_up(self, service: ChatService, indexed_kb, provider: FakeProvider):
        # Arrange
        first = await service.process_chat(indexed_kb.id, ChatRequest(message="What is the capital of France?"))

        # Act
        await service.process_chat(
            indexed_kb.id,
            ChatRequest(message="And its river?", conversation_id=first.conversation_id),
        )

        # Assert
        messages = provider.complete_calls[-1].messages
        assert [m.role for m in messages] == ["system", "user", "assistant", "user"]
        assert messages[1].content == "What is the capital of France?"

    @pytest.mark.asyncio
    async def test_empty_knowledge_base_uses_no_context_prompt(
        self, service: ChatService, knowledge_base, provider: FakeProvider
    ):
        response = await service.process_chat(knowledge_base.id, ChatRequest(message="Anything known?"))

        assert response.context_used == 0
        assert response.sources == []
        assert "do not cite sources" in provider.complete_calls[0].messages[0].content

    @pytest.mark.asyncio
    async def test_unknown_knowledge_base(self, service: ChatService, missing_id):
        with pytest.raises(KnowledgeBaseNotFoundError):
            await service.process_chat(missing_id, ChatRequest(message="hi"))

    @pytest.mark.asyncio
    async def test_generation_failure_not_stored(
        self, service: ChatService, service_cache: ServiceCache, indexed_kb, provider: FakeProvider
    ):
        provider.complete_errors = [ProviderError("invalid key", status=401)]

        with pytest.raises(GenerationFailed):
            await service.process_chat(indexed_kb.id, ChatRequest(message="hi", conversation_id="conv_x"))

        assert await service_cache.conversation_store.exists("conv_x") is False


class TestStreamChat:
    """Test streamed event order."""

    @pytest.mark.asyncio
    async def test_events_arrive_in_order(self, service: ChatService, indexed_kb, provider: FakeProvider):
        # Act
        events = await collect_events(service, indexed_kb.id, ChatRequest(message="Capital of France?"))

        # Assert
        types = [e.type for e in events]
        assert types[:4] == [
            StreamEventType.CONVERSATION_START,
            StreamEventType.SEARCH_START,
            StreamEventType.SEARCH_COMPLETE,
            StreamEventType.RESPONSE_START,
        ]
        assert types[4:-1] == [StreamEventType.RESPONSE_CHUNK] * len(provider.answer_parts)
        assert types[-1] == StreamEventType.RESPONSE_COMPLETE

        chunks = [e.data for e in events if e.type == StreamEventType.RESPONSE_CHUNK]
        assert [c["delta"] for c in chunks] == provider.answer_parts
        assert chunks[-1]["content"] == provider.answer
        assert events[2].data["context"][0]["filename"] == "france.txt"
        assert events[-1].data["usage"]["total_tokens"] == 17
        assert events[-1].data["conversation_id"] == events[0].data["conversation_id"]

    @pytest.mark.asyncio
    async def test_completed_stream_stores_turn(
        self, service: ChatService, service_cache: ServiceCache, indexed_kb, provider: FakeProvider
    ):
        await collect_events(service, indexed_kb.id, ChatRequest(message="Capital?", conversation_id="conv_s"))

        history = await service_cache.conversation_store.get_history("conv_s", limit=10)

        assert len(history) == 1
        assert history[0].answer == provider.answer
        assert history[0].context_chunk_refs[0].endswith("_chunk_0")

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_error_event(
        self, service: ChatService, service_cache: ServiceCache, indexed_kb, provider: FakeProvider
    ):
        # Arrange
        provider.stream_failures = [(["Par"], ProviderError("connection reset"))]

        # Act
        events = await collect_events(
            service, indexed_kb.id, ChatRequest(message="Capital?", conversation_id="conv_e")
        )

        # Assert
        assert events[-1].type == StreamEventType.ERROR
        assert events[-1].data["error"]["kind"] == "generation_failed"
        assert StreamEventType.RESPONSE_COMPLETE not in [e.type for e in events]
        assert await service_cache.conversation_store.exists("conv_e") is False

    @pytest.mark.asyncio
    async def test_retrieval_failure_becomes_error_event(
        self, service: ChatService, indexed_kb, provider: FakeProvider
    ):
        provider.embed_errors = [ProviderError("invalid key", status=401)]

        events = await collect_events(service, indexed_kb.id, ChatRequest(message="Something new?"))

        assert [e.type for e in events] == [
            StreamEventType.CONVERSATION_START,
            StreamEventType.SEARCH_START,
            StreamEventType.ERROR,
        ]
        assert events[-1].data["error"]["kind"] == "embedding_error"
