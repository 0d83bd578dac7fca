"""
CRUD classes and their module-level singletons.
"""

from rag_service.boundary.db.CRUD.base_crud import BaseCRUD
from rag_service.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from rag_service.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from rag_service.boundary.db.CRUD.knowledge_base_crud import KnowledgeBaseCRUD, knowledge_base_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "DocumentCRUD",
    "KnowledgeBaseCRUD",
    "chunk_crud",
    "document_crud",
    "knowledge_base_crud",
]
