"""
Vector database boundary: Qdrant collections per knowledge base.
"""

from rag_service.boundary.vdb.client_factory import get_qdrant_client
from rag_service.boundary.vdb.vector_index import VectorIndex, point_id
from rag_service.boundary.vdb.vector_schemas import IndexedVector, VectorPayload

__all__ = ["IndexedVector", "VectorIndex", "VectorPayload", "get_qdrant_client", "point_id"]
