"""
Chunk ORM model.

Stores chunk text for keyword search. Rows are written in one batch per
document during ingestion and removed with the document.

Dependencies: sqlalchemy, rag_service.boundary.db.base
System role: Keyword index storage
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from rag_service.boundary.db.base import Base, UUIDMixin


class ChunkModel(Base, UUIDMixin):
    """
    One chunk of a document.

    Attributes:
        document_id: Owning document (cascade delete)
        knowledge_base_id: Denormalized owner for single-table keyword queries
        chunk_index: 0-based position within the document
        chunk_id: chunk_{chunk_index}
        content: Chunk text
        start_offset: Inclusive offset into the document text
        end_offset: Exclusive offset into the document text
    """

    __tablename__ = "chunks"
    __table_args__ = (UniqueConstraint("document_id", "chunk_index", name="uq_chunks_document_index"),)

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    knowledge_base_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    start_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    end_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
