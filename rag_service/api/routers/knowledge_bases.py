"""
Knowledge base API endpoints.

Routes:
- POST /knowledge-bases - Create knowledge base and its vector collection
- GET /knowledge-bases - List knowledge bases
- GET /knowledge-bases/{kb_id} - Get knowledge base
- DELETE /knowledge-bases/{kb_id} - Delete knowledge base with all content

Dependencies: rag_service.application.services, rag_service.models
System role: Knowledge base HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from rag_service.api.deps import get_knowledge_base_service
from rag_service.application.services.knowledge_base_service import KnowledgeBaseService
from rag_service.models.knowledge_base import KnowledgeBaseCreate, KnowledgeBaseResponse

router = APIRouter(prefix="/knowledge-bases", tags=["knowledge-bases"])


@router.post("", response_model=KnowledgeBaseResponse, status_code=status.HTTP_201_CREATED)
async def create_knowledge_base(
    request: KnowledgeBaseCreate,
    service: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> KnowledgeBaseResponse:
    """Create a knowledge base."""
    return await service.create(request)


@router.get("", response_model=list[KnowledgeBaseResponse])
async def list_knowledge_bases(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> list[KnowledgeBaseResponse]:
    return await service.list_knowledge_bases(limit=limit, offset=offset)


@router.get("/{kb_id}", response_model=KnowledgeBaseResponse)
async def get_knowledge_base(
    kb_id: UUID,
    service: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> KnowledgeBaseResponse:
    return await service.get(kb_id)


@router.delete("/{kb_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_knowledge_base(
    kb_id: UUID,
    service: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> None:
    """
    Delete a knowledge base with its documents, chunks and vector collection.

    Raises:
        404: Knowledge base not found
    """
    await service.delete(kb_id)
