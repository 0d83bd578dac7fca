"""
Knowledge base ORM model.

Dependencies: sqlalchemy, rag_service.boundary.db.base
System role: Knowledge base persistence
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rag_service.boundary.db.base import Base, TimestampMixin, UUIDMixin


class KnowledgeBaseModel(Base, UUIDMixin, TimestampMixin):
    """
    A named collection of documents searched together.

    Attributes:
        id: UUID primary key (auto-generated)
        name: Display name
        description: Optional free text
        collection_name: Vector store collection holding this knowledge base's points

    Relationships:
        documents: Child DocumentModels
    """

    __tablename__ = "knowledge_bases"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    collection_name: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    documents = relationship(
        "DocumentModel",
        back_populates="knowledge_base",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
