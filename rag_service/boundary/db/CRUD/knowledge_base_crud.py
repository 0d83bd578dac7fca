"""
Knowledge base CRUD operations.

Dependencies: sqlalchemy, rag_service.boundary.db.models
System role: Knowledge base persistence operations
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rag_service.boundary.db.CRUD.base_crud import BaseCRUD
from rag_service.boundary.db.models.document_model import DocumentModel
from rag_service.boundary.db.models.knowledge_base_model import KnowledgeBaseModel


class KnowledgeBaseCRUD(BaseCRUD[KnowledgeBaseModel]):
    """CRUD operations for KnowledgeBaseModel."""

    def __init__(self) -> None:
        super().__init__(KnowledgeBaseModel)

    async def document_counts(
        self, session: AsyncSession, knowledge_base_ids: list[UUID]
    ) -> dict[UUID, int]:
        """Number of documents per knowledge base (missing ids map to 0)."""
        if not knowledge_base_ids:
            return {}
        stmt = (
            select(DocumentModel.knowledge_base_id, func.count(DocumentModel.id))
            .where(DocumentModel.knowledge_base_id.in_(knowledge_base_ids))
            .group_by(DocumentModel.knowledge_base_id)
        )
        result = await session.execute(stmt)
        counts = {kb_id: count for kb_id, count in result.all()}
        return {kb_id: counts.get(kb_id, 0) for kb_id in knowledge_base_ids}


knowledge_base_crud = KnowledgeBaseCRUD()
