"""
Session service orchestrator.

Coordinates conversation session reads and deletion on top of the
conversation store.

Dependencies: rag_service.boundary.cache
System role: Session use case orchestration
"""

from rag_service.boundary.cache.conversation_store import ConversationStore
from rag_service.core.exceptions import SessionNotFoundError
from rag_service.models.chat import SessionHistoryResponse, SessionInfo


class SessionService:
    """Session service orchestrator."""

    def __init__(self, conversation_store: ConversationStore, default_limit: int = 10) -> None:
        """
        Initialize session service.

        Args:
            conversation_store: Turn history store
            default_limit: Turns returned when no limit is given
        """
        self._store = conversation_store
        self.default_limit = default_limit

    async def get_session(self, session_id: str) -> SessionInfo:
        """
        Raises:
            SessionNotFoundError: Session unknown or expired
        """
        return await self._store.get_info(session_id)

    async def get_history(self, session_id: str, limit: int | None = None) -> SessionHistoryResponse:
        """
        Last turns of a session, oldest first.

        Raises:
            SessionNotFoundError: Session unknown or expired
        """
        if not await self._store.exists(session_id):
            raise SessionNotFoundError(session_id)
        turns = await self._store.get_history(session_id, limit or self.default_limit)
        return SessionHistoryResponse(session_id=session_id, turns=turns)

    async def delete_session(self, session_id: str) -> None:
        """
        Raises:
            SessionNotFoundError: Session unknown or expired
        """
        if not await self._store.delete(session_id):
            raise SessionNotFoundError(session_id)
