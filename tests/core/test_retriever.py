"""
Test suite for HybridRetriever and score fusion.

Tests the weighted-sum fusion law, weight validation, oversampling and the
asymmetric failure policy: vector failures fail the query while keyword
failures degrade to semantic-only ranking. Index backends are mocked.

System role: Verification of the retrieval stage
"""

from unittest.mock import AsyncMock

import pytest

from rag_service.core.exceptions import (
    EmbeddingError,
    KeywordSearchError,
    ValidationError,
    VectorSearchError,
)
from rag_service.core.retriever import HybridRetriever, fuse_results, validate_weights
from rag_service.models.search import SearchMode, SearchOptions, SearchResult

KB_ID = "9a3c1f52-0000-4000-8000-000000000001"


def result(doc: str, chunk: int, score: float, **metadata) -> SearchResult:
    return SearchResult(
        document_id=doc,
        chunk_id=f"chunk_{chunk}",
        content=f"{doc} chunk {chunk}",
        score=score,
        metadata={"filename": f"{doc}.txt", **metadata},
    )


@pytest.fixture
def embedder() -> AsyncMock:
    mock = AsyncMock()
    mock.embed = AsyncMock(return_value=[0.1, 0.2, 0.3])
    return mock


@pytest.fixture
def vector_index() -> AsyncMock:
    mock = AsyncMock()
    mock.search = AsyncMock(return_value=[result("a", 0, 0.9), result("b", 0, 0.6)])
    return mock


@pytest.fixture
def keyword_index() -> AsyncMock:
    mock = AsyncMock()
    mock.search = AsyncMock(
        return_value=[result("b", 0, 0.8, highlights=["paris"]), result("c", 0, 0.5)]
    )
    return mock


@pytest.fixture
def retriever(embedder, vector_index, keyword_index) -> HybridRetriever:
    return HybridRetriever(embedder, vector_index, keyword_index)


class TestValidateWeights:
    def test_accepts_weights_summing_to_one(self):
        validate_weights(0.7, 0.3)
        validate_weights(1.0, 0.0)

    @pytest.mark.parametrize("semantic,keyword", [(0.5, 0.4), (0.6, 0.6), (1.2, -0.2)])
    def test_rejects_invalid_weights(self, semantic, keyword):
        with pytest.raises(ValidationError):
            validate_weights(semantic, keyword)


class TestFuseResults:
    """Test weighted-sum fusion."""

    def test_combined_score_is_weighted_sum(self):
        # Arrange
        semantic = [result("a", 0, 0.9), result("b", 0, 0.6)]
        keyword = [result("b", 0, 0.8, highlights=["paris"]), result("c", 0, 0.5)]

        # Act
        fused = fuse_results(semantic, keyword, 0.7, 0.3, min_score=0.0, limit=10)

        # Assert
        assert [r.document_id for r in fused] == ["b", "a", "c"]
        scores = {r.document_id: r for r in fused}
        assert scores["b"].score == pytest.approx(0.6 * 0.7 + 0.8 * 0.3)
        assert scores["a"].score == pytest.approx(0.9 * 0.7)
        assert scores["a"].keyword_score == 0.0
        assert scores["c"].score == pytest.approx(0.5 * 0.3)
        assert scores["c"].semantic_score == 0.0

    def test_keyword_highlights_carried_onto_fused_result(self):
        fused = fuse_results(
            [result("b", 0, 0.6)],
            [result("b", 0, 0.8, highlights=["paris"])],
            0.5,
            0.5,
            min_score=0.0,
            limit=5,
        )

        assert fused[0].metadata["highlights"] == ["paris"]
        assert fused[0].metadata["filename"] == "b.txt"

    def test_min_score_drops_and_limit_truncates(self):
        semantic = [result("a", i, 0.1 * (i + 1)) for i in range(9)]

        fused = fuse_results(semantic, [], 1.0, 0.0, min_score=0.5, limit=3)

        assert [r.score for r in fused] == pytest.approx([0.9, 0.8, 0.7])

    def test_duplicate_keys_keep_best_score(self):
        fused = fuse_results(
            [result("a", 0, 0.4), result("a", 0, 0.7)], [], 1.0, 0.0, min_score=0.0, limit=5
        )

        assert len(fused) == 1
        assert fused[0].score == pytest.approx(0.7)

    @pytest.mark.parametrize("semantic_weight", [0.0, 0.2, 0.5, 0.7, 1.0])
    @pytest.mark.parametrize("semantic_score,keyword_score", [(0.9, 0.4), (0.3, 0.8), (0.6, 0.6)])
    def test_shared_result_scores_between_its_sources(self, semantic_weight, semantic_score, keyword_score):
        keyword_weight = round(1.0 - semantic_weight, 6)

        fused = fuse_results(
            [result("a", 0, semantic_score)],
            [result("a", 0, keyword_score)],
            semantic_weight,
            keyword_weight,
            min_score=0.0,
            limit=5,
        )

        low, high = sorted((semantic_score, keyword_score))
        assert len(fused) == 1
        assert low - 1e-9 <= fused[0].score <= high + 1e-9


class TestHybridSearch:
    """Test concurrent retrieval and failure policy."""

    @pytest.mark.asyncio
    async def test_fuses_both_sources_with_oversampling(
        self, retriever: HybridRetriever, vector_index, keyword_index
    ):
        # Arrange
        options = SearchOptions(limit=5, semantic_weight=0.7, keyword_weight=0.3, min_score=0.0)

        # Act
        results = await retriever.search(KB_ID, "capital of france", options)

        # Assert
        assert [r.document_id for r in results] == ["b", "a", "c"]
        assert vector_index.search.await_args.kwargs["limit"] == 10
        assert keyword_index.search.await_args.args[2] == 10

    @pytest.mark.asyncio
    async def test_min_score_keeps_only_strong_candidates(
        self, retriever: HybridRetriever, vector_index, keyword_index
    ):
        # Arrange
        semantic = [result("d0", 0, 0.8), result("d1", 0, 0.6)]
        keyword = [result("d0", 0, 0.6), result("d1", 0, 0.5)]
        for i in range(2, 10):
            semantic.append(result(f"d{i}", 0, 0.3 + 0.01 * i))
            keyword.append(result(f"d{i}", 0, 0.2))
        vector_index.search.return_value = semantic
        keyword_index.search.return_value = keyword
        options = SearchOptions(limit=5, semantic_weight=0.7, keyword_weight=0.3, min_score=0.5)

        # Act
        results = await retriever.search(KB_ID, "capital of france", options)

        # Assert
        assert [r.document_id for r in results] == ["d0", "d1"]
        assert [r.score for r in results] == [pytest.approx(0.74), pytest.approx(0.57)]
        assert results[0].score > results[1].score

    @pytest.mark.asyncio
    async def test_keyword_failure_degrades_to_semantic(self, retriever: HybridRetriever, keyword_index):
        keyword_index.search.side_effect = KeywordSearchError("database unavailable")
        options = SearchOptions(limit=5, semantic_weight=0.7, keyword_weight=0.3, min_score=0.0)

        results = await retriever.search(KB_ID, "capital of france", options)

        assert [r.document_id for r in results] == ["a", "b"]
        assert results[0].score == pytest.approx(0.9 * 0.7)

    @pytest.mark.asyncio
    async def test_vector_failure_fails_query(self, retriever: HybridRetriever, vector_index):
        vector_index.search.side_effect = VectorSearchError("collection missing", operation="search")

        with pytest.raises(VectorSearchError):
            await retriever.search(KB_ID, "capital", SearchOptions(min_score=0.0))

    @pytest.mark.asyncio
    async def test_unexpected_vector_failure_is_wrapped(self, retriever: HybridRetriever, vector_index):
        vector_index.search.side_effect = RuntimeError("socket closed")

        with pytest.raises(VectorSearchError) as exc_info:
            await retriever.search(KB_ID, "capital", SearchOptions(min_score=0.0))

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self, retriever: HybridRetriever, embedder):
        embedder.embed.side_effect = EmbeddingError("provider down")

        with pytest.raises(EmbeddingError):
            await retriever.search(KB_ID, "capital", SearchOptions(min_score=0.0))

    @pytest.mark.asyncio
    async def test_invalid_weights_rejected_before_search(self, retriever: HybridRetriever, vector_index):
        options = SearchOptions(semantic_weight=0.5, keyword_weight=0.2)

        with pytest.raises(ValidationError):
            await retriever.search(KB_ID, "capital", options)

        vector_index.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_query_rejected(self, retriever: HybridRetriever):
        with pytest.raises(ValidationError):
            await retriever.search(KB_ID, "   ", SearchOptions())

    @pytest.mark.asyncio
    async def test_document_filter_passed_to_both_sources(
        self, retriever: HybridRetriever, vector_index, keyword_index
    ):
        options = SearchOptions(min_score=0.0, document_ids=["a"])

        await retriever.search(KB_ID, "capital", options)

        assert vector_index.search.await_args.kwargs["document_ids"] == ["a"]
        assert keyword_index.search.await_args.kwargs["document_ids"] == ["a"]


class TestSingleSourceModes:
    @pytest.mark.asyncio
    async def test_semantic_mode_skips_keyword_index(self, retriever: HybridRetriever, keyword_index):
        results = await retriever.search(
            KB_ID, "capital", SearchOptions(min_score=0.7), SearchMode.SEMANTIC
        )

        assert [r.document_id for r in results] == ["a"]
        assert results[0].semantic_score == pytest.approx(0.9)
        keyword_index.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_keyword_mode_skips_embedding(self, retriever: HybridRetriever, embedder, keyword_index):
        results = await retriever.search(
            KB_ID, "capital", SearchOptions(min_score=0.0), SearchMode.KEYWORD
        )

        assert [r.document_id for r in results] == ["b", "c"]
        assert results[0].keyword_score == pytest.approx(0.8)
        embedder.embed.assert_not_awaited()
