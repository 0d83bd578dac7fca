"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from rag_service.boundary.db.models.chunk_model import ChunkModel
from rag_service.boundary.db.models.document_model import DocumentModel
from rag_service.boundary.db.models.knowledge_base_model import KnowledgeBaseModel

__all__ = ["ChunkModel", "DocumentModel", "KnowledgeBaseModel"]
