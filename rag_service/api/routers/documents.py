"""
Document API endpoints.

Routes:
- POST /knowledge-bases/{kb_id}/documents - Register extracted text, ingest in background
- GET /knowledge-bases/{kb_id}/documents - List documents
- GET /knowledge-bases/{kb_id}/documents/{doc_id} - Get document status
- DELETE /knowledge-bases/{kb_id}/documents/{doc_id} - Delete document

Dependencies: rag_service.application.services, rag_service.models
System role: Document HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import JSONResponse

from rag_service.api.deps import get_ingestion_service
from rag_service.application.services.ingestion_service import IngestionService
from rag_service.models.document import DocumentCreateRequest, DocumentResponse, DocumentStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/knowledge-bases/{kb_id}/documents", tags=["documents"])


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={200: {"model": DocumentResponse, "description": "Identical document already indexed"}},
)
async def create_document(
    kb_id: UUID,
    request: DocumentCreateRequest,
    background_tasks: BackgroundTasks,
    service: IngestionService = Depends(get_ingestion_service),
):
    """
    Register a document's extracted text and schedule ingestion.

    Flow:
    1. Register the document (or find an identical one by checksum)
    2. If it needs processing, schedule the ingestion pipeline as a background task
    3. Return 202 with the PENDING document, or 200 when nothing needs doing

    Raises:
        404: Knowledge base not found
    """
    document, needs_processing = await service.register(kb_id, request)
    if not needs_processing:
        body = DocumentResponse.model_validate(document.model_dump())
        return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(mode="json"))

    background_tasks.add_task(service.process_in_background, document.id)
    logger.info(
        f"{__name__}:create_document - Ingestion scheduled",
        extra={"knowledge_base_id": str(kb_id), "document_id": str(document.id)},
    )
    return DocumentResponse.model_validate(document.model_dump())


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    kb_id: UUID,
    status_filter: DocumentStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: IngestionService = Depends(get_ingestion_service),
) -> list[DocumentResponse]:
    documents = await service.list_documents(kb_id, status=status_filter, limit=limit, offset=offset)
    return [DocumentResponse.model_validate(d.model_dump()) for d in documents]


@router.get("/{doc_id}", response_model=DocumentResponse)
async def get_document(
    kb_id: UUID,
    doc_id: UUID,
    service: IngestionService = Depends(get_ingestion_service),
) -> DocumentResponse:
    document = await service.get_document(kb_id, doc_id)
    return DocumentResponse.model_validate(document.model_dump())


@router.delete("/{doc_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    kb_id: UUID,
    doc_id: UUID,
    service: IngestionService = Depends(get_ingestion_service),
) -> None:
    """
    Delete a document's vectors, keyword rows and record.

    Raises:
        404: Document not found in this knowledge base
    """
    await service.delete_document(kb_id, doc_id)
