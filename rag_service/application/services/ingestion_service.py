"""
Document ingestion service.

Coordinates document registration, processing and deletion. Processing
runs chunking, embedding, vector upsert and keyword indexing, and tracks
the document through PENDING → PROCESSING → COMPLETED | FAILED.

Ingestion is idempotent per knowledge base and content checksum: a
completed duplicate is returned unchanged and vector point ids are derived
from the document and chunk ids, so a restarted ingestion overwrites the
same points instead of adding new ones.

Dependencies: rag_service.core, rag_service.boundary.db, rag_service.boundary.vdb
System role: Document management orchestration
"""

import hashlib
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_service.application.services.knowledge_base_service import require_knowledge_base
from rag_service.boundary.cache.keys import search_pattern
from rag_service.boundary.cache.result_cache import ResultCache
from rag_service.boundary.db.CRUD.document_crud import document_crud
from rag_service.boundary.db.keyword_index import KeywordIndex
from rag_service.boundary.vdb.vector_index import VectorIndex, point_id
from rag_service.boundary.vdb.vector_schemas import IndexedVector, VectorPayload
from rag_service.core.chunker import Chunker
from rag_service.core.embedding_gateway import EmbeddingGateway
from rag_service.core.exceptions import (
    DocumentNotFoundError,
    DocumentProcessingError,
    RAGServiceError,
)
from rag_service.models.document import Chunk, Document, DocumentCreateRequest, DocumentStatus

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 2048


def compute_checksum(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class IngestionService:
    """
    Document ingestion orchestrator.

    Owns the document lifecycle: registration, processing through the
    chunk/embed/index pipeline, listing and deletion.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        chunker: Chunker,
        embedder: EmbeddingGateway,
        vector_index: VectorIndex,
        keyword_index: KeywordIndex,
        cache: ResultCache | None = None,
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            session_factory: Factory for database sessions
            chunker: Text splitter
            embedder: Embedding gateway for chunk vectors
            vector_index: Vector store for chunk embeddings
            keyword_index: Keyword store for chunk text
            cache: Result cache whose search entries go stale on ingestion
        """
        self._session_factory = session_factory
        self._chunker = chunker
        self._embedder = embedder
        self._vector_index = vector_index
        self._keyword_index = keyword_index
        self._cache = cache

    async def register(
        self, knowledge_base_id: UUID, request: DocumentCreateRequest
    ) -> tuple[Document, bool]:
        """
        Record a document, reusing an existing one with identical content.

        Steps:
        1. Validate the knowledge base exists
        2. Look up a document with the same checksum
        3. Completed or in-flight match: return it unchanged
        4. Pending or failed match: reset it to PENDING for a re-run
        5. Otherwise create a new PENDING document

        Returns:
            tuple: (document, whether it needs processing)

        Raises:
            KnowledgeBaseNotFoundError: Unknown knowledge base
        """
        checksum = compute_checksum(request.text)

        async with self._session_factory() as session:
            await require_knowledge_base(session, knowledge_base_id)
            existing = await document_crud.find_by_checksum(session, knowledge_base_id, checksum)

            if existing is not None and existing.status in (
                DocumentStatus.COMPLETED,
                DocumentStatus.PROCESSING,
            ):
                logger.info(
                    f"{__name__}:register - Duplicate document, skipping ingestion",
                    extra={"document_id": str(existing.id), "status": existing.status.value},
                )
                return Document.model_validate(existing), False

            if existing is not None:
                document = await document_crud.set_status(
                    session, existing.id, DocumentStatus.PENDING, error_message=None
                )
            else:
                document = await document_crud.create(
                    session,
                    knowledge_base_id=knowledge_base_id,
                    filename=request.filename,
                    checksum=checksum,
                    status=DocumentStatus.PENDING,
                    text=request.text,
                    size=len(request.text),
                    doc_metadata=request.metadata,
                )
            await session.commit()

        return Document.model_validate(document), True

    async def ingest(self, knowledge_base_id: UUID, request: DocumentCreateRequest) -> Document:
        """Register and process a document in one call."""
        document, needs_processing = await self.register(knowledge_base_id, request)
        if not needs_processing:
            return document
        return await self.process(document.id)

    async def process(self, document_id: UUID) -> Document:
        """
        Run the ingestion pipeline for a registered document.

        Steps:
        1. Mark PROCESSING
        2. Chunk the text (in a worker thread for large texts)
        3. Embed all chunks in batches
        4. Upsert vectors under deterministic point ids
        5. Write keyword rows and mark COMPLETED with the chunk count
        6. Invalidate cached searches for the knowledge base

        Returns:
            Document: Final document state

        Raises:
            DocumentNotFoundError: Unknown document
            DocumentProcessingError: Pipeline failed; the document is marked FAILED
        """
        async with self._session_factory() as session:
            document = await document_crud.get_by_id(session, document_id)
            if document is None:
                raise DocumentNotFoundError(str(document_id))
            if document.status == DocumentStatus.COMPLETED:
                return Document.model_validate(document)
            await document_crud.set_status(session, document_id, DocumentStatus.PROCESSING)
            await session.commit()
            knowledge_base_id = document.knowledge_base_id
            filename = document.filename
            text = document.text

        logger.info(
            f"{__name__}:process - Ingestion started",
            extra={"document_id": str(document_id), "size": len(text)},
        )

        try:
            chunks = await self._chunker.achunk(text)
            if not chunks:
                raise DocumentProcessingError(
                    "Document contains no indexable text",
                    document_id=str(document_id),
                )
            chunks = [chunk.model_copy(update={"document_id": document_id}) for chunk in chunks]

            vectors = await self._embedder.embed_batch([chunk.content for chunk in chunks])
            await self._vector_index.delete_document(str(knowledge_base_id), str(document_id))
            await self._vector_index.upsert(
                str(knowledge_base_id),
                self._indexed_vectors(knowledge_base_id, document_id, filename, chunks, vectors),
            )

            async with self._session_factory() as session:
                completed = await document_crud.set_status(
                    session,
                    document_id,
                    DocumentStatus.COMPLETED,
                    chunk_count=len(chunks),
                )
                if completed is None:
                    # Deleted while embedding: drop the vectors just written
                    await session.rollback()
                    await self._vector_index.delete_document(str(knowledge_base_id), str(document_id))
                    raise DocumentNotFoundError(str(document_id))
                await self._keyword_index.index_chunks(session, knowledge_base_id, document_id, chunks)
                await session.commit()

        except Exception as e:
            await self._mark_failed(document_id, str(e))
            logger.error(
                f"{__name__}:process - Ingestion failed",
                extra={"document_id": str(document_id), "error_type": type(e).__name__},
            )
            if isinstance(e, RAGServiceError):
                raise
            raise DocumentProcessingError(
                f"Document processing failed: {e}",
                document_id=str(document_id),
            ) from e

        if self._cache is not None:
            await self._cache.invalidate(search_pattern(str(knowledge_base_id)))

        logger.info(
            f"{__name__}:process - Ingestion completed",
            extra={"document_id": str(document_id), "chunk_count": len(chunks)},
        )
        return Document.model_validate(completed)

    async def process_in_background(self, document_id: UUID) -> None:
        """Background task entrypoint; failures are already recorded on the document."""
        try:
            await self.process(document_id)
        except RAGServiceError as e:
            logger.warning(
                f"{__name__}:process_in_background - Document ingestion did not complete",
                extra={"document_id": str(document_id), "kind": e.kind},
            )
        except Exception as e:
            logger.exception(
                f"{__name__}:process_in_background - Unexpected ingestion failure",
                extra={"document_id": str(document_id), "error_type": type(e).__name__},
            )

    async def get_document(self, knowledge_base_id: UUID, document_id: UUID) -> Document:
        async with self._session_factory() as session:
            document = await document_crud.get_in_knowledge_base(session, knowledge_base_id, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return Document.model_validate(document)

    async def list_documents(
        self,
        knowledge_base_id: UUID,
        status: DocumentStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Document]:
        async with self._session_factory() as session:
            await require_knowledge_base(session, knowledge_base_id)
            documents = await document_crud.get_by_knowledge_base(
                session, knowledge_base_id, status=status, limit=limit, offset=offset
            )
        return [Document.model_validate(d) for d in documents]

    async def delete_document(self, knowledge_base_id: UUID, document_id: UUID) -> None:
        """
        Delete a document's vectors, keyword rows and record.

        Raises:
            DocumentNotFoundError: Document not in this knowledge base
        """
        async with self._session_factory() as session:
            document = await document_crud.get_in_knowledge_base(session, knowledge_base_id, document_id)
            if document is None:
                raise DocumentNotFoundError(str(document_id))

        await self._vector_index.delete_document(str(knowledge_base_id), str(document_id))

        async with self._session_factory() as session:
            removed = await self._keyword_index.remove_document(session, document_id)
            await document_crud.delete_by_id(session, document_id)
            await session.commit()

        if self._cache is not None:
            await self._cache.invalidate(search_pattern(str(knowledge_base_id)))

        logger.info(
            f"{__name__}:delete_document - Document deleted",
            extra={"document_id": str(document_id), "chunks": removed},
        )

    async def _mark_failed(self, document_id: UUID, error_message: str) -> None:
        async with self._session_factory() as session:
            await document_crud.set_status(
                session,
                document_id,
                DocumentStatus.FAILED,
                error_message=error_message[:MAX_ERROR_LENGTH],
            )
            await session.commit()

    @staticmethod
    def _indexed_vectors(
        knowledge_base_id: UUID,
        document_id: UUID,
        filename: str,
        chunks: list[Chunk],
        vectors: list[list[float]],
    ) -> list[IndexedVector]:
        return [
            IndexedVector(
                id=point_id(str(document_id), chunk.chunk_id),
                vector=vector,
                payload=VectorPayload(
                    document_id=str(document_id),
                    chunk_id=chunk.chunk_id,
                    content=chunk.content,
                    knowledge_base_id=str(knowledge_base_id),
                    filename=filename,
                    chunk_index=chunk.index,
                ),
            )
            for chunk, vector in zip(chunks, vectors)
        ]
