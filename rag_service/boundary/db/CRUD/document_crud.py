"""
Document CRUD operations.

Extends BaseCRUD with queries for knowledge base listing, checksum-based
duplicate detection and status transitions.

Dependencies: sqlalchemy, rag_service.boundary.db.models
System role: Document persistence operations
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rag_service.boundary.db.CRUD.base_crud import BaseCRUD
from rag_service.boundary.db.models.document_model import DocumentModel
from rag_service.models.document import DocumentStatus


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """CRUD operations for DocumentModel."""

    def __init__(self) -> None:
        super().__init__(DocumentModel)

    async def get_by_knowledge_base(
        self,
        session: AsyncSession,
        knowledge_base_id: UUID,
        status: DocumentStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        """
        Documents of one knowledge base, newest first.

        Args:
            session: Async database session
            knowledge_base_id: Parent knowledge base
            status: Optional status filter
            limit: Maximum number of documents to return
            offset: Number of documents to skip
        """
        stmt = select(DocumentModel).where(DocumentModel.knowledge_base_id == knowledge_base_id)
        if status is not None:
            stmt = stmt.where(DocumentModel.status == status)
        stmt = stmt.order_by(DocumentModel.created_at.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_in_knowledge_base(
        self, session: AsyncSession, knowledge_base_id: UUID, document_id: UUID
    ) -> DocumentModel | None:
        stmt = select(DocumentModel).where(
            DocumentModel.id == document_id,
            DocumentModel.knowledge_base_id == knowledge_base_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_checksum(
        self, session: AsyncSession, knowledge_base_id: UUID, checksum: str
    ) -> DocumentModel | None:
        """
        Existing document with the same content, preferring a completed one.

        Returns:
            The completed match if any, otherwise the oldest match, otherwise None
        """
        stmt = (
            select(DocumentModel)
            .where(
                DocumentModel.knowledge_base_id == knowledge_base_id,
                DocumentModel.checksum == checksum,
            )
            .order_by(DocumentModel.created_at.asc())
        )
        result = await session.execute(stmt)
        matches = result.scalars().all()
        for match in matches:
            if match.status == DocumentStatus.COMPLETED:
                return match
        return matches[0] if matches else None

    async def set_status(
        self,
        session: AsyncSession,
        document_id: UUID,
        status: DocumentStatus,
        error_message: str | None = None,
        chunk_count: int | None = None,
    ) -> DocumentModel | None:
        fields: dict = {"status": status, "error_message": error_message}
        if chunk_count is not None:
            fields["chunk_count"] = chunk_count
        return await self.update_by_id(session, document_id, **fields)

    async def delete_by_knowledge_base(self, session: AsyncSession, knowledge_base_id: UUID) -> int:
        stmt = delete(DocumentModel).where(DocumentModel.knowledge_base_id == knowledge_base_id)
        result = await session.execute(stmt)
        return result.rowcount


document_crud = DocumentCRUD()
