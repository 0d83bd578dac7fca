"""
Chat service for conversational Q&A with RAG.

Orchestrates the full chat flow: retrieval, context assembly, history
lookup, answer generation and turn persistence. Supports streaming via
stream_chat() for Server-Sent Events delivery.

Dependencies: rag_service.core, rag_service.boundary.cache
System role: Chat service orchestration layer
"""

import logging
from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_service.application.services.knowledge_base_service import require_knowledge_base
from rag_service.boundary.cache.conversation_store import ConversationStore
from rag_service.configs.rag import ChatSettings, SearchSettings
from rag_service.core.answer_generator import AnswerGenerator
from rag_service.core.context_assembler import AssembledContext, ContextAssembler
from rag_service.core.exceptions import RAGServiceError
from rag_service.core.retriever import HybridRetriever
from rag_service.models.chat import ChatRequest, ChatResponse
from rag_service.models.search import SearchMode, SearchOptions
from rag_service.models.streaming import StreamEvent, StreamEventType
from rag_service.observability.log_utils import log_exception_with_context, truncate_query

logger = logging.getLogger(__name__)


def new_conversation_id() -> str:
    return f"conv_{uuid4().hex}"


class ChatService:
    """
    Chat service for conversational Q&A.

    Coordinates retrieval, context assembly, answer generation and
    conversation history for multi-turn conversations. The conversation
    id doubles as the history session id.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retriever: HybridRetriever,
        assembler: ContextAssembler,
        generator: AnswerGenerator,
        conversation_store: ConversationStore,
        search_settings: SearchSettings,
        chat_settings: ChatSettings,
    ) -> None:
        """
        Initialize chat service.

        Args:
            session_factory: Factory for database sessions
            retriever: Hybrid retriever for context
            assembler: Context block builder
            generator: Answer generator
            conversation_store: Turn history store
            search_settings: Default fusion weights
            chat_settings: Context and history limits
        """
        self._session_factory = session_factory
        self._retriever = retriever
        self._assembler = assembler
        self._generator = generator
        self._store = conversation_store
        self._search_settings = search_settings
        self._chat_settings = chat_settings

    async def ensure_knowledge_base(self, knowledge_base_id: UUID) -> None:
        """
        Raises:
            KnowledgeBaseNotFoundError: Unknown knowledge base
        """
        async with self._session_factory() as session:
            await require_knowledge_base(session, knowledge_base_id)

    async def retrieve_context(
        self, knowledge_base_id: UUID, request: ChatRequest
    ) -> AssembledContext:
        """Hybrid retrieval filtered by the relevance threshold, then assembly."""
        options = SearchOptions(
            limit=self._chat_settings.max_context_chunks,
            semantic_weight=self._search_settings.semantic_weight,
            keyword_weight=self._search_settings.keyword_weight,
            min_score=self._chat_settings.relevance_threshold,
            document_ids=[str(d) for d in request.document_ids] if request.document_ids else None,
        )
        results = await self._retriever.search(
            str(knowledge_base_id), request.message, options, SearchMode.HYBRID
        )
        return self._assembler.assemble(results)

    async def process_chat(self, knowledge_base_id: UUID, request: ChatRequest) -> ChatResponse:
        """
        Answer a message synchronously.

        Flow:
        1. Validate knowledge base exists
        2. Retrieve and assemble context
        3. Fetch recent turns for the conversation
        4. Generate the answer
        5. Store the turn and return the response

        Raises:
            KnowledgeBaseNotFoundError: Unknown knowledge base
            GenerationFailed: Provider failed after retries
        """
        await self.ensure_knowledge_base(knowledge_base_id)
        conversation_id = request.conversation_id or new_conversation_id()

        context = await self.retrieve_context(knowledge_base_id, request)
        history = await self._store.get_history(conversation_id, self._chat_settings.history_turns)

        generation = self._generator.prepare(
            request.message,
            context,
            history,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )
        answer = await self._generator.complete(generation)
        await self._store.append(conversation_id, generation.to_turn())

        logger.info(
            f"{__name__}:process_chat - Chat completed",
            extra={
                "knowledge_base_id": str(knowledge_base_id),
                "conversation_id": conversation_id,
                "context_used": len(context.sources),
                "history_turns": len(history),
                "cached": answer.cached,
            },
        )
        return ChatResponse(
            conversation_id=conversation_id,
            knowledge_base_id=knowledge_base_id,
            answer=answer.content,
            sources=answer.sources,
            usage=answer.usage,
            finish_reason=answer.finish_reason,
            model=answer.model,
            context_used=len(context.sources),
        )

    async def stream_chat(
        self, knowledge_base_id: UUID, request: ChatRequest
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream a chat answer as ordered events.

        Yields:
            StreamEvent: conversation_start, search_start, search_complete,
                response_start, response_chunk (one or more) and
                response_complete; an error event replaces the remainder
                if any stage fails

        The caller is expected to have validated the knowledge base
        before opening the stream.
        """
        conversation_id = request.conversation_id or new_conversation_id()
        logger.info(
            f"{__name__}:stream_chat - START",
            extra={"conversation_id": conversation_id, "knowledge_base_id": str(knowledge_base_id)},
        )

        yield StreamEvent(
            type=StreamEventType.CONVERSATION_START,
            data={"conversation_id": conversation_id},
        )

        try:
            yield StreamEvent(type=StreamEventType.SEARCH_START, data={})
            context = await self.retrieve_context(knowledge_base_id, request)
            sources = context.source_refs()
            yield StreamEvent(
                type=StreamEventType.SEARCH_COMPLETE,
                data={"context": [s.model_dump(mode="json") for s in sources]},
            )

            history = await self._store.get_history(conversation_id, self._chat_settings.history_turns)
            generation = self._generator.prepare(
                request.message,
                context,
                history,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )

            yield StreamEvent(type=StreamEventType.RESPONSE_START, data={"model": self._generator.model})
            async for delta in self._generator.stream(generation):
                yield StreamEvent(
                    type=StreamEventType.RESPONSE_CHUNK,
                    data={"content": generation.content, "delta": delta.content},
                )

            await self._store.append(conversation_id, generation.to_turn())
            yield StreamEvent(
                type=StreamEventType.RESPONSE_COMPLETE,
                data={
                    "conversation_id": conversation_id,
                    "usage": generation.usage.model_dump(),
                    "sources": [s.model_dump(mode="json") for s in sources],
                    "finish_reason": generation.finish_reason,
                },
            )
            logger.info(
                f"{__name__}:stream_chat - END",
                extra={"conversation_id": conversation_id, "answer_length": len(generation.content)},
            )

        except RAGServiceError as e:
            log_exception_with_context(
                logger,
                f"{__name__}:stream_chat - Streaming chat failed",
                e,
                conversation_id=conversation_id,
                knowledge_base_id=str(knowledge_base_id),
                query=truncate_query(request.message),
            )
            yield StreamEvent(
                type=StreamEventType.ERROR,
                data={"error": {"kind": e.kind, "message": e.message}},
            )
