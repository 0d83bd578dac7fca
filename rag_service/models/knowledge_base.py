"""
Knowledge base API schemas.

Dependencies: pydantic
System role: Knowledge base request/response contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeBaseCreate(BaseModel):
    """Request body for creating a knowledge base."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=2048)


class KnowledgeBaseResponse(BaseModel):
    """Knowledge base metadata returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    collection_name: str
    document_count: int = 0
    created_at: datetime
    updated_at: datetime
