"""Service orchestrators."""

from .chat_service import ChatService
from .ingestion_service import IngestionService
from .knowledge_base_service import KnowledgeBaseService
from .search_service import SearchService
from .session_service import SessionService

__all__ = [
    "ChatService",
    "IngestionService",
    "KnowledgeBaseService",
    "SearchService",
    "SessionService",
]
