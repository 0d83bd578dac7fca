"""
Document and chunk schemas.

Immutable records passed between the chunker, the ingestion service and
the indexes, plus request/response models for the documents API.

Dependencies: pydantic
System role: Document data contracts
"""

import enum
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DocumentStatus(str, enum.Enum):
    """
    Document processing lifecycle states.

    PENDING: Document registered, awaiting ingestion
    PROCESSING: Text is being chunked, embedded and indexed
    COMPLETED: Indexed in both vector and keyword stores, ready for retrieval
    FAILED: Processing error; error_message contains details
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Chunk(BaseModel):
    """
    A contiguous span of a document's text.

    Attributes:
        index: 0-based position within the document
        content: Exact text of source[start_offset:end_offset]
        start_offset: Inclusive start offset into the source text
        end_offset: Exclusive end offset into the source text
        document_id: Owning document (None before the document is persisted)
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    content: str
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    document_id: UUID | None = None

    @property
    def chunk_id(self) -> str:
        return f"chunk_{self.index}"

    @property
    def size(self) -> int:
        return self.end_offset - self.start_offset


class Document(BaseModel):
    """Document record as seen by services."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    knowledge_base_id: UUID
    filename: str
    checksum: str
    status: DocumentStatus
    chunk_count: int = 0
    size: int = 0
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class DocumentCreateRequest(BaseModel):
    """Request body for registering a document's extracted text."""

    filename: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1, description="Already-extracted plain text")
    metadata: dict[str, Any] = Field(default_factory=dict)


class DocumentResponse(BaseModel):
    """Document metadata returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    knowledge_base_id: UUID
    filename: str
    checksum: str
    status: DocumentStatus
    chunk_count: int
    size: int
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime
