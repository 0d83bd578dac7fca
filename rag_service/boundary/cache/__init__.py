"""
Redis-backed cache and conversation history.
"""

from rag_service.boundary.cache.conversation_store import ConversationStore
from rag_service.boundary.cache.redis_client import get_redis_client
from rag_service.boundary.cache.result_cache import ResultCache

__all__ = ["ConversationStore", "ResultCache", "get_redis_client"]
