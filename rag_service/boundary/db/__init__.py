"""
Database boundary layer: ORM models, CRUD operations, connection
management and the keyword index.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), init_models(): Connection management
  - KnowledgeBaseModel, DocumentModel, ChunkModel: Persistent entities
  - knowledge_base_crud, document_crud, chunk_crud: CRUD operation singletons
  - KeywordIndex: Lexical search over chunk rows

Dependencies: sqlalchemy, rag_service.configs
"""

from rag_service.boundary.db.base import Base, TimestampMixin, UUIDMixin
from rag_service.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
    init_models,
)
from rag_service.boundary.db.CRUD import (
    BaseCRUD,
    ChunkCRUD,
    DocumentCRUD,
    KnowledgeBaseCRUD,
    chunk_crud,
    document_crud,
    knowledge_base_crud,
)
from rag_service.boundary.db.keyword_index import KeywordIndex
from rag_service.boundary.db.models import ChunkModel, DocumentModel, KnowledgeBaseModel

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_async_engine",
    "get_async_session_factory",
    "init_models",
    "ChunkModel",
    "DocumentModel",
    "KnowledgeBaseModel",
    "BaseCRUD",
    "ChunkCRUD",
    "DocumentCRUD",
    "KnowledgeBaseCRUD",
    "chunk_crud",
    "document_crud",
    "knowledge_base_crud",
    "KeywordIndex",
]
