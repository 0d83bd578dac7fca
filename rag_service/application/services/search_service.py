"""
Search service.

Resolves per-request search options against configured defaults, serves
repeated queries from the result cache and delegates to the hybrid
retriever otherwise.

Dependencies: rag_service.core.retriever, rag_service.boundary.cache
System role: Search use case orchestration
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_service.application.services.knowledge_base_service import require_knowledge_base
from rag_service.boundary.cache.keys import search_key
from rag_service.boundary.cache.result_cache import ResultCache
from rag_service.configs.rag import SearchSettings
from rag_service.core.exceptions import ValidationError
from rag_service.core.retriever import HybridRetriever
from rag_service.models.search import SearchOptions, SearchRequest, SearchResponse, SearchResult

logger = logging.getLogger(__name__)


def resolve_weights(
    semantic_weight: float | None,
    keyword_weight: float | None,
    defaults: SearchSettings,
) -> tuple[float, float]:
    """Fill in missing weights; a single supplied weight implies the other."""
    if semantic_weight is None and keyword_weight is None:
        return defaults.semantic_weight, defaults.keyword_weight
    if keyword_weight is None:
        return semantic_weight, round(1.0 - semantic_weight, 6)
    if semantic_weight is None:
        return round(1.0 - keyword_weight, 6), keyword_weight
    return semantic_weight, keyword_weight


class SearchService:
    """Cached search over one knowledge base."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retriever: HybridRetriever,
        settings: SearchSettings,
        cache: ResultCache | None = None,
        cache_ttl: int = 600,
    ) -> None:
        self._session_factory = session_factory
        self._retriever = retriever
        self._settings = settings
        self._cache = cache
        self.cache_ttl = cache_ttl

    def build_options(self, request: SearchRequest) -> SearchOptions:
        semantic_weight, keyword_weight = resolve_weights(
            request.semantic_weight, request.keyword_weight, self._settings
        )
        limit = request.limit or self._settings.default_limit
        return SearchOptions(
            limit=min(limit, self._settings.max_limit),
            semantic_weight=semantic_weight,
            keyword_weight=keyword_weight,
            min_score=self._settings.min_score if request.min_score is None else request.min_score,
            document_ids=[str(d) for d in request.document_ids] if request.document_ids else None,
        )

    async def search(self, knowledge_base_id: UUID, request: SearchRequest) -> SearchResponse:
        """
        Search a knowledge base.

        Raises:
            KnowledgeBaseNotFoundError: Unknown knowledge base
            ValidationError: Query too long or weights invalid
            EmbeddingError / VectorSearchError: Retrieval failed
        """
        query = request.query.strip()
        if not query:
            raise ValidationError("Query must not be empty", field="query")
        if len(query) > self._settings.max_query_length:
            raise ValidationError(
                f"Query must be at most {self._settings.max_query_length} characters",
                field="query",
            )

        async with self._session_factory() as session:
            await require_knowledge_base(session, knowledge_base_id)

        options = self.build_options(request)
        key = search_key(request.mode.value, str(knowledge_base_id), query, options.cache_params())

        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                results = [SearchResult.model_validate(item) for item in cached]
                logger.debug(
                    f"{__name__}:search - Cache hit",
                    extra={"knowledge_base_id": str(knowledge_base_id), "results": len(results)},
                )
                return self._response(knowledge_base_id, request, query, results, cached=True)

        results = await self._retriever.search(str(knowledge_base_id), query, options, request.mode)

        if self._cache is not None:
            await self._cache.set(key, [r.model_dump(mode="json") for r in results], self.cache_ttl)

        return self._response(knowledge_base_id, request, query, results)

    @staticmethod
    def _response(
        knowledge_base_id: UUID,
        request: SearchRequest,
        query: str,
        results: list[SearchResult],
        cached: bool = False,
    ) -> SearchResponse:
        return SearchResponse(
            knowledge_base_id=knowledge_base_id,
            query=query,
            mode=request.mode,
            results=results,
            total=len(results),
            cached=cached,
        )
