"""
Search API endpoint.

Routes: POST /knowledge-bases/{kb_id}/search

Dependencies: rag_service.application.services.search_service
System role: Search HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from rag_service.api.deps import get_search_service
from rag_service.application.services.search_service import SearchService
from rag_service.models.search import SearchRequest, SearchResponse

router = APIRouter(prefix="/knowledge-bases", tags=["search"])


@router.post("/{kb_id}/search", response_model=SearchResponse)
async def search(
    kb_id: UUID,
    request: SearchRequest,
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """
    Search a knowledge base in hybrid, semantic or keyword mode.

    Raises:
        400: Invalid weights or query
        404: Knowledge base not found
        502/503: Embedding provider or vector store failure
    """
    return await service.search(kb_id, request)
