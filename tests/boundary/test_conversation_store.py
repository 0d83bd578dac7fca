"""
Test suite for ConversationStore.

Tests append order, the sliding-window cap, expiry refresh, session
summaries and deletion. Uses fakeredis.

System role: Verification of multi-turn conversation memory
"""

import pytest

from rag_service.boundary.cache import ConversationStore
from rag_service.core.exceptions import SessionNotFoundError
from rag_service.models.chat import Turn


def turn(n: int) -> Turn:
    return Turn(question=f"question {n}", answer=f"answer {n}", context_chunk_refs=[f"doc_chunk_{n}"])


class TestAppendAndHistory:
    """Test ordering and capping."""

    @pytest.mark.asyncio
    async def test_history_is_chronological(self, conversation_store: ConversationStore):
        for n in range(3):
            await conversation_store.append("conv_a", turn(n))

        history = await conversation_store.get_history("conv_a", limit=10)

        assert [t.question for t in history] == ["question 0", "question 1", "question 2"]
        assert history[0].context_chunk_refs == ["doc_chunk_0"]

    @pytest.mark.asyncio
    async def test_oldest_turns_evicted_beyond_cap(self, conversation_store: ConversationStore):
        # Arrange
        for n in range(8):
            await conversation_store.append("conv_a", turn(n))

        # Act
        history = await conversation_store.get_history("conv_a", limit=100)

        # Assert
        assert len(history) == conversation_store.max_history
        assert history[0].question == "question 3"
        assert history[-1].question == "question 7"

    @pytest.mark.asyncio
    async def test_limit_returns_most_recent(self, conversation_store: ConversationStore):
        for n in range(4):
            await conversation_store.append("conv_a", turn(n))

        history = await conversation_store.get_history("conv_a", limit=2)

        assert [t.question for t in history] == ["question 2", "question 3"]

    @pytest.mark.asyncio
    async def test_unknown_session_has_empty_history(self, conversation_store: ConversationStore):
        assert await conversation_store.get_history("nobody", limit=10) == []
        assert await conversation_store.get_history("nobody", limit=0) == []

    @pytest.mark.asyncio
    async def test_append_refreshes_expiry(self, redis, conversation_store: ConversationStore):
        await conversation_store.append("conv_a", turn(0))

        assert 0 < await redis.ttl("session:conv_a:history") <= 3600


class TestSessionInfo:
    @pytest.mark.asyncio
    async def test_summary_reports_count_and_activity(self, conversation_store: ConversationStore):
        await conversation_store.append("conv_a", turn(0))
        await conversation_store.append("conv_a", turn(1))

        info = await conversation_store.get_info("conv_a")

        assert info.turn_count == 2
        assert info.first_activity <= info.last_activity
        assert info.ttl_seconds is not None

    @pytest.mark.asyncio
    async def test_unknown_session_raises(self, conversation_store: ConversationStore):
        with pytest.raises(SessionNotFoundError):
            await conversation_store.get_info("nobody")


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, conversation_store: ConversationStore):
        await conversation_store.append("conv_a", turn(0))

        assert await conversation_store.delete("conv_a") is True
        assert await conversation_store.delete("conv_a") is False
        assert await conversation_store.exists("conv_a") is False
