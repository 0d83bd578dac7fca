"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory SQLite engine, fake Redis, local-mode Qdrant, a scripted
model provider and fully wired pipeline components.
Dependencies: pytest, sqlalchemy, aiosqlite, fakeredis, qdrant_client
System role: Test infrastructure and fixture management
"""

import uuid

import fakeredis.aioredis
import httpx
import pytest
from qdrant_client import AsyncQdrantClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from rag_service.api.deps.dependencies import ServiceCache
from rag_service.api.main import create_app
from rag_service.boundary.cache import ConversationStore, ResultCache
from rag_service.boundary.db import KeywordIndex, get_async_session_factory, init_models
from rag_service.boundary.vdb import VectorIndex
from rag_service.configs import Settings
from rag_service.configs.cache import CacheSettings
from rag_service.configs.database import DatabaseSettings
from rag_service.configs.providers import ChatModelSettings, EmbeddingSettings, ProviderSettings
from rag_service.configs.rag import ChatSettings, ChunkingSettings, SearchSettings
from rag_service.configs.vector_store import VectorStoreSettings
from rag_service.models.knowledge_base import KnowledgeBaseCreate
from tests.helpers import TEST_DIMENSION, TEST_MODEL, FakeProvider


@pytest.fixture
def settings() -> Settings:
    """Settings pointing every backend at an in-process fake."""
    return Settings(
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
        vector_store=VectorStoreSettings(location=":memory:", dimension=TEST_DIMENSION),
        cache=CacheSettings(url="redis://localhost:6379/15"),
        provider=ProviderSettings(api_key="test-key"),
        embedding=EmbeddingSettings(
            model="test-embedding",
            dimensions=TEST_DIMENSION,
            batch_delay=0.0,
            retry_delay=0.0,
        ),
        chat_model=ChatModelSettings(model=TEST_MODEL, retry_delay=0.0),
        chunking=ChunkingSettings(size=1000, overlap=200, min_size=100),
        search=SearchSettings(min_score=0.0),
        chat=ChatSettings(relevance_threshold=0.0, heartbeat_interval=15.0),
    )


@pytest.fixture
async def engine() -> AsyncEngine:
    """
    Create in-memory SQLite async engine for testing.

    Yields:
        AsyncEngine: Engine with all tables created
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return get_async_session_factory(engine)


@pytest.fixture
async def redis():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
async def qdrant_client():
    client = AsyncQdrantClient(location=":memory:")
    yield client
    await client.close()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def service_cache(settings, engine, redis, qdrant_client, provider) -> ServiceCache:
    """Container wired to the in-process fakes."""
    return ServiceCache(
        settings,
        engine=engine,
        redis=redis,
        qdrant_client=qdrant_client,
        provider=provider,
    )


@pytest.fixture
def result_cache(redis) -> ResultCache:
    return ResultCache(redis)


@pytest.fixture
def conversation_store(redis) -> ConversationStore:
    return ConversationStore(redis, max_history=5, session_ttl=3600)


@pytest.fixture
def vector_index(qdrant_client) -> VectorIndex:
    return VectorIndex(qdrant_client, dimension=TEST_DIMENSION)


@pytest.fixture
def keyword_index(session_factory) -> KeywordIndex:
    return KeywordIndex(session_factory)


@pytest.fixture
async def knowledge_base(service_cache: ServiceCache):
    """A freshly created knowledge base with its vector collection."""
    return await service_cache.knowledge_base_service.create(
        KnowledgeBaseCreate(name="Geography", description="Capitals and rivers")
    )


@pytest.fixture
def missing_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
async def api_client(service_cache: ServiceCache):
    """
    HTTP client bound to the app in-process.

    ASGITransport skips lifespan events, so tables are created here and
    the fixtures above own client shutdown.
    """
    await service_cache.startup()
    app = create_app(service_cache=service_cache)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
