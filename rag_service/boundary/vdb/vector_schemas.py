"""
Vector database schemas.

Pydantic models for points stored in the vector service.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VectorPayload(BaseModel):
    """
    Payload attached to each vector.

    ``document_id`` is indexed for delete-by-document and search filtering.
    """

    document_id: str = Field(description="Owning document ID")
    chunk_id: str = Field(description="Chunk identifier within the document")
    content: str = Field(description="Chunk text")
    knowledge_base_id: str = Field(description="Owning knowledge base ID")
    filename: str = Field(default="unknown", description="Source filename for citations")
    chunk_index: int = Field(default=0, description="Position of the chunk in the document")
    created_at: datetime = Field(default_factory=_utcnow)


class IndexedVector(BaseModel):
    """A vector with its payload, ready for upsert."""

    id: str = Field(description="Deterministic point ID derived from document and chunk")
    vector: list[float]
    payload: VectorPayload
