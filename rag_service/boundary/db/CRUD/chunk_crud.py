"""
Chunk CRUD operations.

Dependencies: sqlalchemy, rag_service.boundary.db.models
System role: Chunk row persistence for the keyword index
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from rag_service.boundary.db.CRUD.base_crud import BaseCRUD
from rag_service.boundary.db.models.chunk_model import ChunkModel
from rag_service.models.document import Chunk


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel."""

    def __init__(self) -> None:
        super().__init__(ChunkModel)

    async def replace_for_document(
        self,
        session: AsyncSession,
        knowledge_base_id: UUID,
        document_id: UUID,
        chunks: list[Chunk],
    ) -> int:
        """
        Replace a document's chunk rows with a new batch.

        Returns:
            int: Number of rows written
        """
        await self.delete_by_document(session, document_id)
        session.add_all(
            [
                ChunkModel(
                    document_id=document_id,
                    knowledge_base_id=knowledge_base_id,
                    chunk_index=chunk.index,
                    chunk_id=chunk.chunk_id,
                    content=chunk.content,
                    start_offset=chunk.start_offset,
                    end_offset=chunk.end_offset,
                )
                for chunk in chunks
            ]
        )
        await session.flush()
        return len(chunks)

    async def get_by_document(self, session: AsyncSession, document_id: UUID) -> Sequence[ChunkModel]:
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_by_document(self, session: AsyncSession, document_id: UUID) -> int:
        stmt = delete(ChunkModel).where(ChunkModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount

    async def delete_by_knowledge_base(self, session: AsyncSession, knowledge_base_id: UUID) -> int:
        stmt = delete(ChunkModel).where(ChunkModel.knowledge_base_id == knowledge_base_id)
        result = await session.execute(stmt)
        return result.rowcount


chunk_crud = ChunkCRUD()
