"""
Conversation history store.

Keeps a capped, TTL-bound list of turns per session in a Redis list.
Append, trim and expiry refresh run in one MULTI/EXEC transaction, so the
list never holds more than ``max_history`` turns and oldest turns are
evicted first.

Dependencies: redis
System role: Multi-turn memory for chat generation
"""

import logging

from redis.asyncio import Redis

from rag_service.boundary.cache.keys import session_history_key
from rag_service.core.exceptions import SessionNotFoundError
from rag_service.models.chat import SessionInfo, Turn

logger = logging.getLogger(__name__)


class ConversationStore:
    """Sliding window of turns per session, chronological order."""

    def __init__(
        self,
        redis: Redis,
        max_history: int = 50,
        session_ttl: int = 24 * 3600,
        key_prefix: str = "",
    ) -> None:
        """
        Initialize conversation store.

        Args:
            redis: Async Redis client (decode_responses=True)
            max_history: Turns retained per session
            session_ttl: Seconds of inactivity before a session expires
            key_prefix: Namespace prepended to every key
        """
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self._redis = redis
        self.max_history = max_history
        self.session_ttl = session_ttl
        self._prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_history_key(session_id)}"

    async def append(self, session_id: str, turn: Turn) -> None:
        """
        Append a turn, evict the oldest beyond the cap, refresh expiry.

        Args:
            session_id: Conversation identifier
            turn: Completed question/answer exchange
        """
        key = self._key(session_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.rpush(key, turn.model_dump_json())
            pipe.ltrim(key, -self.max_history, -1)
            pipe.expire(key, self.session_ttl)
            await pipe.execute()

        logger.debug(
            f"{__name__}:append - Turn stored",
            extra={"session_id": session_id},
        )

    async def get_history(self, session_id: str, limit: int) -> list[Turn]:
        """
        Return at most the last ``limit`` turns, oldest first.

        Unknown or expired sessions yield an empty list.
        """
        if limit <= 0:
            return []
        raw_turns = await self._redis.lrange(self._key(session_id), -limit, -1)
        turns: list[Turn] = []
        for raw in raw_turns:
            try:
                turns.append(Turn.model_validate_json(raw))
            except ValueError:
                logger.warning(
                    f"{__name__}:get_history - Skipping corrupt turn",
                    extra={"session_id": session_id},
                )
        return turns

    async def delete(self, session_id: str) -> bool:
        """Delete a session. Returns False when it did not exist."""
        removed = await self._redis.delete(self._key(session_id))
        return removed > 0

    async def exists(self, session_id: str) -> bool:
        return await self._redis.exists(self._key(session_id)) > 0

    async def get_info(self, session_id: str) -> SessionInfo:
        """
        Summarize a session.

        Raises:
            SessionNotFoundError: Session is unknown or expired
        """
        key = self._key(session_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.llen(key)
            pipe.lindex(key, 0)
            pipe.lindex(key, -1)
            pipe.ttl(key)
            count, first_raw, last_raw, ttl = await pipe.execute()

        if not count:
            raise SessionNotFoundError(session_id)

        first = Turn.model_validate_json(first_raw) if first_raw else None
        last = Turn.model_validate_json(last_raw) if last_raw else None
        return SessionInfo(
            session_id=session_id,
            turn_count=count,
            first_activity=first.timestamp if first else None,
            last_activity=last.timestamp if last else None,
            ttl_seconds=ttl if ttl is not None and ttl >= 0 else None,
        )
