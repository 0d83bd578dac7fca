"""
Document ORM model.

Represents registered documents with processing status and their
extracted text. Tracks the ingestion lifecycle from registration to
vector and keyword indexing.

Dependencies: sqlalchemy, rag_service.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import uuid

from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rag_service.boundary.db.base import Base, TimestampMixin, UUIDMixin
from rag_service.models.document import DocumentStatus


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model tracking ingestion pipeline state.

    Lifecycle: Registered (PENDING) → Chunking/embedding (PROCESSING) →
    Indexed (COMPLETED) or failure (FAILED). A completed document is never
    modified except by deletion.

    Attributes:
        knowledge_base_id: Owning knowledge base (cascade delete)
        filename: Original filename
        checksum: SHA-256 of the extracted text, used for duplicate detection
        status: Current processing state
        text: Extracted plain text
        size: Length of text in characters
        chunk_count: Chunks produced by the last successful ingestion
        error_message: Human-readable error if FAILED
        doc_metadata: Caller-supplied metadata
    """

    __tablename__ = "documents"
    __table_args__ = (Index("ix_documents_kb_checksum", "knowledge_base_id", "checksum"),)

    knowledge_base_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("knowledge_bases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    checksum: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, native_enum=False),
        nullable=False,
        default=DocumentStatus.PENDING,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    chunk_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_message: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    doc_metadata: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    knowledge_base = relationship("KnowledgeBaseModel", back_populates="documents")
