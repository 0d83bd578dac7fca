"""
Knowledge base service orchestrator.

Coordinates knowledge base lifecycle: creation of the record and its
vector collection, listing with document counts, and deletion of all
documents, chunks, vectors and cached searches.

Dependencies: rag_service.boundary.db, rag_service.boundary.vdb, rag_service.boundary.cache
System role: Knowledge base use case orchestration
"""

import logging
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_service.boundary.cache.keys import search_pattern
from rag_service.boundary.cache.result_cache import ResultCache
from rag_service.boundary.db.CRUD.chunk_crud import chunk_crud
from rag_service.boundary.db.CRUD.document_crud import document_crud
from rag_service.boundary.db.CRUD.knowledge_base_crud import knowledge_base_crud
from rag_service.boundary.db.models.knowledge_base_model import KnowledgeBaseModel
from rag_service.boundary.vdb.vector_index import VectorIndex
from rag_service.core.exceptions import KnowledgeBaseNotFoundError
from rag_service.models.knowledge_base import KnowledgeBaseCreate, KnowledgeBaseResponse

logger = logging.getLogger(__name__)


async def require_knowledge_base(session: AsyncSession, knowledge_base_id: UUID) -> KnowledgeBaseModel:
    """
    Raises:
        KnowledgeBaseNotFoundError: No knowledge base with this id
    """
    knowledge_base = await knowledge_base_crud.get_by_id(session, knowledge_base_id)
    if knowledge_base is None:
        raise KnowledgeBaseNotFoundError(str(knowledge_base_id))
    return knowledge_base


def _to_response(model: KnowledgeBaseModel, document_count: int) -> KnowledgeBaseResponse:
    return KnowledgeBaseResponse(
        id=model.id,
        name=model.name,
        description=model.description,
        collection_name=model.collection_name,
        document_count=document_count,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class KnowledgeBaseService:
    """Knowledge base service orchestrator."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vector_index: VectorIndex,
        cache: ResultCache | None = None,
    ) -> None:
        """
        Initialize knowledge base service.

        Args:
            session_factory: Factory for database sessions
            vector_index: Vector collections backend
            cache: Result cache whose search entries are dropped on delete
        """
        self._session_factory = session_factory
        self._vector_index = vector_index
        self._cache = cache

    async def create(self, request: KnowledgeBaseCreate) -> KnowledgeBaseResponse:
        """
        Create a knowledge base and its vector collection.

        The collection is created first so a stored knowledge base always
        has one. Creation is idempotent on the collection side.
        """
        knowledge_base_id = uuid4()
        collection_name = self._vector_index.collection_name(str(knowledge_base_id))
        created = await self._vector_index.create_collection(str(knowledge_base_id))

        async with self._session_factory() as session:
            model = await knowledge_base_crud.create(
                session,
                id=knowledge_base_id,
                name=request.name,
                description=request.description,
                collection_name=collection_name,
            )
            await session.commit()

        logger.info(
            f"{__name__}:create - Knowledge base created",
            extra={
                "knowledge_base_id": str(knowledge_base_id),
                "collection": collection_name,
                "collection_created": created,
            },
        )
        return _to_response(model, 0)

    async def get(self, knowledge_base_id: UUID) -> KnowledgeBaseResponse:
        async with self._session_factory() as session:
            model = await require_knowledge_base(session, knowledge_base_id)
            counts = await knowledge_base_crud.document_counts(session, [model.id])
        return _to_response(model, counts[model.id])

    async def list_knowledge_bases(self, limit: int | None = None, offset: int = 0) -> list[KnowledgeBaseResponse]:
        async with self._session_factory() as session:
            models = await knowledge_base_crud.get_all(session, limit=limit, offset=offset)
            counts = await knowledge_base_crud.document_counts(session, [m.id for m in models])
        return [_to_response(m, counts[m.id]) for m in models]

    async def delete(self, knowledge_base_id: UUID) -> None:
        """
        Delete a knowledge base with its documents, chunks and collection.

        Raises:
            KnowledgeBaseNotFoundError: No knowledge base with this id
        """
        async with self._session_factory() as session:
            await require_knowledge_base(session, knowledge_base_id)
            chunks = await chunk_crud.delete_by_knowledge_base(session, knowledge_base_id)
            documents = await document_crud.delete_by_knowledge_base(session, knowledge_base_id)
            await knowledge_base_crud.delete_by_id(session, knowledge_base_id)
            await session.commit()

        await self._vector_index.delete_collection(str(knowledge_base_id))
        if self._cache is not None:
            await self._cache.invalidate(search_pattern(str(knowledge_base_id)))

        logger.info(
            f"{__name__}:delete - Knowledge base deleted",
            extra={
                "knowledge_base_id": str(knowledge_base_id),
                "documents": documents,
                "chunks": chunks,
            },
        )
