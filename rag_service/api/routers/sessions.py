"""
Session API endpoints.

Routes:
- GET /sessions/{session_id} - Session info
- GET /sessions/{session_id}/history - Recent turns, oldest first
- DELETE /sessions/{session_id} - Delete session history

Dependencies: rag_service.application.services.session_service, rag_service.models
System role: Session management HTTP API
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from rag_service.api.deps import get_session_service
from rag_service.application.services.session_service import SessionService
from rag_service.models.chat import SessionHistoryResponse, SessionInfo

router = APIRouter(prefix="/sessions", tags=["sessions"])

SessionId = Annotated[str, Path(min_length=1, max_length=128)]


@router.get("/{session_id}", response_model=SessionInfo)
async def get_session(
    session_id: SessionId,
    session_service: SessionService = Depends(get_session_service),
) -> SessionInfo:
    """
    Turn count and first/last activity of a session.

    Raises:
        404: Session not found or expired
    """
    return await session_service.get_session(session_id)


@router.get("/{session_id}/history", response_model=SessionHistoryResponse)
async def get_history(
    session_id: SessionId,
    limit: int | None = Query(default=None, ge=1, le=100),
    session_service: SessionService = Depends(get_session_service),
) -> SessionHistoryResponse:
    return await session_service.get_history(session_id, limit)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: SessionId,
    session_service: SessionService = Depends(get_session_service),
) -> None:
    """
    Delete a session's history.

    Raises:
        404: Session not found
    """
    await session_service.delete_session(session_id)
