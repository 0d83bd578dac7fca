"""
Dependency injection container.

ServiceCache builds clients, pipeline components and services lazily from
settings and keeps them for the application's lifetime. Factory functions
expose the services to FastAPI routes.

Dependencies: rag_service.configs, rag_service.application, rag_service.boundary
System role: DI container for service injection
"""

import logging

from fastapi import Depends, Request
from qdrant_client import AsyncQdrantClient
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from rag_service.application.services import (
    ChatService,
    IngestionService,
    KnowledgeBaseService,
    SearchService,
    SessionService,
)
from rag_service.boundary.cache import ConversationStore, ResultCache, get_redis_client
from rag_service.boundary.db import (
    KeywordIndex,
    get_async_engine,
    get_async_session_factory,
    init_models,
)
from rag_service.boundary.providers import ModelProvider, create_provider
from rag_service.boundary.vdb import VectorIndex, get_qdrant_client
from rag_service.configs import Settings, get_settings
from rag_service.core.answer_generator import AnswerGenerator
from rag_service.core.chunker import Chunker
from rag_service.core.context_assembler import ContextAssembler
from rag_service.core.embedding_gateway import EmbeddingGateway
from rag_service.core.retriever import HybridRetriever

logger = logging.getLogger(__name__)


class ServiceCache:
    """Container for cached clients, components and services."""

    def __init__(
        self,
        settings: Settings | None = None,
        engine: AsyncEngine | None = None,
        redis: Redis | None = None,
        qdrant_client: AsyncQdrantClient | None = None,
        provider: ModelProvider | None = None,
    ) -> None:
        """
        Initialize service cache.

        Any client passed in is used instead of one built from settings.
        """
        self.settings = settings or get_settings()
        self._engine = engine
        self._redis = redis
        self._qdrant_client = qdrant_client
        self._provider = provider
        self._instances: dict[str, object] = {}

    def _cached(self, name: str, factory):
        if name not in self._instances:
            self._instances[name] = factory()
        return self._instances[name]

    # Clients

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = get_async_engine(self.settings.database)
        return self._engine

    @property
    def session_factory(self):
        return self._cached("session_factory", lambda: get_async_session_factory(self.engine))

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_client(self.settings.cache)
        return self._redis

    @property
    def qdrant_client(self) -> AsyncQdrantClient:
        if self._qdrant_client is None:
            self._qdrant_client = get_qdrant_client(self.settings.vector_store)
        return self._qdrant_client

    @property
    def provider(self) -> ModelProvider:
        if self._provider is None:
            self._provider = create_provider(self.settings.provider)
        return self._provider

    # Components

    @property
    def result_cache(self) -> ResultCache:
        cache = self.settings.cache
        return self._cached(
            "result_cache",
            lambda: ResultCache(self.redis, key_prefix=cache.key_prefix, enabled=cache.enabled),
        )

    @property
    def conversation_store(self) -> ConversationStore:
        chat = self.settings.chat
        return self._cached(
            "conversation_store",
            lambda: ConversationStore(
                self.redis,
                max_history=chat.max_history,
                session_ttl=chat.session_ttl,
                key_prefix=self.settings.cache.key_prefix,
            ),
        )

    @property
    def vector_index(self) -> VectorIndex:
        vs = self.settings.vector_store
        return self._cached(
            "vector_index",
            lambda: VectorIndex(
                self.qdrant_client,
                dimension=vs.dimension,
                distance=vs.distance,
                collection_prefix=vs.collection_prefix,
            ),
        )

    @property
    def keyword_index(self) -> KeywordIndex:
        return self._cached("keyword_index", lambda: KeywordIndex(self.session_factory))

    @property
    def chunker(self) -> Chunker:
        c = self.settings.chunking
        return self._cached(
            "chunker",
            lambda: Chunker(
                chunk_size=c.size,
                overlap=c.overlap,
                min_chunk_size=c.min_size,
                background_threshold=c.background_threshold,
            ),
        )

    @property
    def embedder(self) -> EmbeddingGateway:
        e = self.settings.embedding
        return self._cached(
            "embedder",
            lambda: EmbeddingGateway(
                self.provider,
                cache=self.result_cache,
                model=e.model,
                dimensions=e.dimensions,
                max_tokens=e.max_tokens,
                batch_size=e.batch_size,
                batch_delay=e.batch_delay,
                max_retries=e.max_retries,
                retry_delay=e.retry_delay,
                cache_ttl=self.settings.cache.embedding_ttl,
            ),
        )

    @property
    def retriever(self) -> HybridRetriever:
        s = self.settings.search
        return self._cached(
            "retriever",
            lambda: HybridRetriever(
                self.embedder,
                self.vector_index,
                self.keyword_index,
                oversample_factor=s.oversample_factor,
                vector_score_threshold=s.vector_score_threshold,
                keyword_score_threshold=s.keyword_score_threshold,
            ),
        )

    @property
    def assembler(self) -> ContextAssembler:
        chat = self.settings.chat
        return self._cached(
            "assembler",
            lambda: ContextAssembler(
                max_context_chunks=chat.max_context_chunks,
                max_context_length=chat.max_context_length,
            ),
        )

    @property
    def generator(self) -> AnswerGenerator:
        m = self.settings.chat_model
        return self._cached(
            "generator",
            lambda: AnswerGenerator(
                self.provider,
                model=m.model,
                cache=self.result_cache,
                temperature=m.temperature,
                max_tokens=m.max_tokens,
                max_attempts=m.max_attempts,
                retry_delay=m.retry_delay,
                cache_completions=m.cache_completions,
                cache_ttl=self.settings.cache.llm_ttl,
            ),
        )

    # Services

    @property
    def knowledge_base_service(self) -> KnowledgeBaseService:
        return self._cached(
            "knowledge_base_service",
            lambda: KnowledgeBaseService(self.session_factory, self.vector_index, self.result_cache),
        )

    @property
    def ingestion_service(self) -> IngestionService:
        return self._cached(
            "ingestion_service",
            lambda: IngestionService(
                self.session_factory,
                self.chunker,
                self.embedder,
                self.vector_index,
                self.keyword_index,
                cache=self.result_cache,
            ),
        )

    @property
    def search_service(self) -> SearchService:
        return self._cached(
            "search_service",
            lambda: SearchService(
                self.session_factory,
                self.retriever,
                self.settings.search,
                cache=self.result_cache,
                cache_ttl=self.settings.cache.search_ttl,
            ),
        )

    @property
    def chat_service(self) -> ChatService:
        return self._cached(
            "chat_service",
            lambda: ChatService(
                self.session_factory,
                self.retriever,
                self.assembler,
                self.generator,
                self.conversation_store,
                self.settings.search,
                self.settings.chat,
            ),
        )

    @property
    def session_service(self) -> SessionService:
        return self._cached(
            "session_service",
            lambda: SessionService(self.conversation_store, default_limit=self.settings.chat.history_turns),
        )

    # Lifecycle

    async def startup(self) -> None:
        """Create database tables."""
        await init_models(self.engine)
        logger.info(f"{__name__}:startup - Database tables ready")

    async def shutdown(self) -> None:
        """Close every client that was opened."""
        if self._provider is not None:
            await self._provider.aclose()
        if self._qdrant_client is not None:
            await self._qdrant_client.close()
        if self._redis is not None:
            await self._redis.aclose()
        if self._engine is not None:
            await self._engine.dispose()
        self.clear()
        logger.info(f"{__name__}:shutdown - Clients closed")

    def clear(self) -> None:
        """Clear all cached instances."""
        self._instances.clear()
        self._engine = None
        self._redis = None
        self._qdrant_client = None
        self._provider = None


def get_service_cache(request: Request) -> ServiceCache:
    """Service cache attached to the running application."""
    return request.app.state.service_cache


def get_settings_dependency(cache: ServiceCache = Depends(get_service_cache)) -> Settings:
    return cache.settings


def get_knowledge_base_service(cache: ServiceCache = Depends(get_service_cache)) -> KnowledgeBaseService:
    return cache.knowledge_base_service


def get_ingestion_service(cache: ServiceCache = Depends(get_service_cache)) -> IngestionService:
    return cache.ingestion_service


def get_search_service(cache: ServiceCache = Depends(get_service_cache)) -> SearchService:
    return cache.search_service


def get_chat_service(cache: ServiceCache = Depends(get_service_cache)) -> ChatService:
    """
    Get chat service instance.

    Returns:
        ChatService: Chat service with retriever, generator and history store
    """
    return cache.chat_service


def get_session_service(cache: ServiceCache = Depends(get_service_cache)) -> SessionService:
    return cache.session_service
