"""
Hybrid retriever.

Runs vector and keyword search concurrently and fuses the two ranked
lists with a weighted sum. The vector signal is required: its failure
fails the query. The keyword signal is best effort: its failure is logged
and the query degrades to semantic ranking.

Dependencies: asyncio, rag_service.core.embedding_gateway, rag_service.boundary
System role: Retrieval stage of the query pipeline
"""

import asyncio
import logging
from typing import Any

from rag_service.boundary.db.keyword_index import KeywordIndex
from rag_service.boundary.vdb.vector_index import VectorIndex
from rag_service.core.embedding_gateway import EmbeddingGateway
from rag_service.core.exceptions import (
    EmbeddingError,
    ValidationError,
    VectorSearchError,
)
from rag_service.models.search import SearchMode, SearchOptions, SearchResult
from rag_service.observability.log_utils import log_with_context, truncate_query

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6


def validate_weights(semantic_weight: float, keyword_weight: float) -> None:
    """
    Raises:
        ValidationError: Weights are outside [0, 1] or do not sum to 1
    """
    for name, weight in (("semantic_weight", semantic_weight), ("keyword_weight", keyword_weight)):
        if not 0.0 <= weight <= 1.0:
            raise ValidationError(f"{name} must be between 0 and 1", field=name)
    if abs(semantic_weight + keyword_weight - 1.0) > WEIGHT_TOLERANCE:
        raise ValidationError(
            "semantic_weight and keyword_weight must sum to 1",
            field="semantic_weight",
            details={"semantic_weight": semantic_weight, "keyword_weight": keyword_weight},
        )


def fuse_results(
    semantic: list[SearchResult],
    keyword: list[SearchResult],
    semantic_weight: float,
    keyword_weight: float,
    min_score: float,
    limit: int,
) -> list[SearchResult]:
    """
    Weighted-sum fusion keyed by (document_id, chunk_id).

    A result missing from one source scores 0 for that source. Results
    below ``min_score`` are dropped; the rest are sorted best first and
    truncated to ``limit``.
    """
    merged: dict[tuple[str, str], dict[str, Any]] = {}

    for result in semantic:
        entry = merged.setdefault(result.key, {"base": result, "semantic": 0.0, "keyword": 0.0})
        entry["semantic"] = max(entry["semantic"], result.score)

    for result in keyword:
        entry = merged.get(result.key)
        if entry is None:
            entry = merged[result.key] = {"base": result, "semantic": 0.0, "keyword": 0.0}
        else:
            highlights = result.metadata.get("highlights")
            if highlights:
                entry["highlights"] = highlights
        entry["keyword"] = max(entry["keyword"], result.score)

    fused: list[SearchResult] = []
    for entry in merged.values():
        combined = entry["semantic"] * semantic_weight + entry["keyword"] * keyword_weight
        combined = min(max(combined, 0.0), 1.0)
        if combined < min_score:
            continue
        base: SearchResult = entry["base"]
        metadata = dict(base.metadata)
        if "highlights" in entry:
            metadata["highlights"] = entry["highlights"]
        fused.append(
            base.model_copy(
                update={
                    "score": combined,
                    "semantic_score": entry["semantic"],
                    "keyword_score": entry["keyword"],
                    "metadata": metadata,
                }
            )
        )

    fused.sort(key=lambda r: r.score, reverse=True)
    return fused[:limit]


class HybridRetriever:
    """Concurrent vector + keyword retrieval with score fusion."""

    def __init__(
        self,
        embedder: EmbeddingGateway,
        vector_index: VectorIndex,
        keyword_index: KeywordIndex,
        oversample_factor: int = 2,
        vector_score_threshold: float | None = None,
        keyword_score_threshold: float = 0.0,
    ) -> None:
        """
        Initialize retriever.

        Args:
            embedder: Gateway used to embed the query
            vector_index: Semantic search backend
            keyword_index: Lexical search backend
            oversample_factor: Candidates fetched per source as a multiple of limit
            vector_score_threshold: Cosine floor passed to the vector service
            keyword_score_threshold: Relevance floor for keyword matches
        """
        if oversample_factor < 1:
            raise ValueError("oversample_factor must be at least 1")
        self._embedder = embedder
        self._vector_index = vector_index
        self._keyword_index = keyword_index
        self.oversample_factor = oversample_factor
        self.vector_score_threshold = vector_score_threshold or None
        self.keyword_score_threshold = keyword_score_threshold

    async def search(
        self,
        knowledge_base_id: str,
        query: str,
        options: SearchOptions,
        mode: SearchMode = SearchMode.HYBRID,
    ) -> list[SearchResult]:
        """
        Retrieve ranked chunks.

        Raises:
            ValidationError: Bad weights or query
            EmbeddingError: Query could not be embedded
            VectorSearchError: Vector backend failed
        """
        if not query.strip():
            raise ValidationError("Query must not be empty", field="query")

        if mode == SearchMode.SEMANTIC:
            return await self.semantic_search(knowledge_base_id, query, options)
        if mode == SearchMode.KEYWORD:
            return await self.keyword_search(knowledge_base_id, query, options)
        return await self.hybrid_search(knowledge_base_id, query, options)

    async def hybrid_search(
        self, knowledge_base_id: str, query: str, options: SearchOptions
    ) -> list[SearchResult]:
        validate_weights(options.semantic_weight, options.keyword_weight)
        candidates = options.limit * self.oversample_factor

        vector_outcome, keyword_outcome = await asyncio.gather(
            self._vector_candidates(knowledge_base_id, query, candidates, options.document_ids),
            self._keyword_index.search(
                knowledge_base_id,
                query,
                candidates,
                score_threshold=self.keyword_score_threshold,
                document_ids=options.document_ids,
            ),
            return_exceptions=True,
        )

        for outcome in (vector_outcome, keyword_outcome):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        if isinstance(vector_outcome, Exception):
            log_with_context(
                logger,
                logging.ERROR,
                f"{__name__}:hybrid_search - Vector search failed",
                knowledge_base_id=knowledge_base_id,
                query=truncate_query(query),
                error_type=type(vector_outcome).__name__,
            )
            if isinstance(vector_outcome, (VectorSearchError, EmbeddingError, ValidationError)):
                raise vector_outcome
            raise VectorSearchError(
                "Vector search failed",
                operation="search",
                details={"knowledge_base_id": knowledge_base_id},
            ) from vector_outcome

        keyword_results: list[SearchResult] = []
        if isinstance(keyword_outcome, Exception):
            log_with_context(
                logger,
                logging.WARNING,
                f"{__name__}:hybrid_search - Keyword search failed, using semantic results only",
                knowledge_base_id=knowledge_base_id,
                query=truncate_query(query),
                error_type=type(keyword_outcome).__name__,
            )
        else:
            keyword_results = keyword_outcome

        fused = fuse_results(
            vector_outcome,
            keyword_results,
            options.semantic_weight,
            options.keyword_weight,
            options.min_score,
            options.limit,
        )
        logger.info(
            f"{__name__}:hybrid_search - Fused results",
            extra={
                "knowledge_base_id": knowledge_base_id,
                "semantic_candidates": len(vector_outcome),
                "keyword_candidates": len(keyword_results),
                "returned": len(fused),
            },
        )
        return fused

    async def semantic_search(
        self, knowledge_base_id: str, query: str, options: SearchOptions
    ) -> list[SearchResult]:
        results = await self._vector_candidates(
            knowledge_base_id, query, options.limit, options.document_ids
        )
        return [
            r.model_copy(update={"semantic_score": r.score})
            for r in results
            if r.score >= options.min_score
        ][: options.limit]

    async def keyword_search(
        self, knowledge_base_id: str, query: str, options: SearchOptions
    ) -> list[SearchResult]:
        results = await self._keyword_index.search(
            knowledge_base_id,
            query,
            options.limit,
            score_threshold=max(self.keyword_score_threshold, options.min_score),
            document_ids=options.document_ids,
        )
        return [r.model_copy(update={"keyword_score": r.score}) for r in results][: options.limit]

    async def _vector_candidates(
        self,
        knowledge_base_id: str,
        query: str,
        limit: int,
        document_ids: list[str] | None,
    ) -> list[SearchResult]:
        vector = await self._embedder.embed(query)
        return await self._vector_index.search(
            knowledge_base_id,
            vector,
            limit=limit,
            score_threshold=self.vector_score_threshold,
            document_ids=document_ids,
        )
