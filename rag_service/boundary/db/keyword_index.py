"""
Keyword index over stored chunk text.

Candidates are fetched with case-insensitive substring matching on the
query terms, pre-ranked in SQL by the number of terms they contain, then
scored in Python by term coverage and term frequency.
Scores fall in [0, 1) so they fuse directly with cosine similarity.

Dependencies: sqlalchemy, rag_service.boundary.db
System role: Lexical retrieval signal for hybrid search
"""

import logging
import re
from collections import Counter
from uuid import UUID

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rag_service.boundary.db.CRUD.chunk_crud import chunk_crud
from rag_service.boundary.db.models.chunk_model import ChunkModel
from rag_service.boundary.db.models.document_model import DocumentModel
from rag_service.core.exceptions import KeywordSearchError
from rag_service.models.document import Chunk, DocumentStatus
from rag_service.models.search import SearchResult

logger = logging.getLogger(__name__)

_TERM = re.compile(r"\w+")
MAX_TERMS = 16
COVERAGE_WEIGHT = 0.7
FREQUENCY_WEIGHT = 0.3


def extract_terms(query: str, max_terms: int = MAX_TERMS) -> list[str]:
    """Lowercased, de-duplicated word tokens of two or more characters."""
    seen: dict[str, None] = {}
    for token in _TERM.findall(query.lower()):
        if len(token) >= 2 and token not in seen:
            seen[token] = None
            if len(seen) >= max_terms:
                break
    return list(seen)


def score_content(content: str, terms: list[str]) -> tuple[float, list[str]]:
    """
    Relevance of content for the given terms.

    Returns:
        tuple: (score in [0, 1), terms found in content)
    """
    if not terms:
        return 0.0, []
    counts = Counter(_TERM.findall(content.lower()))
    matched = [term for term in terms if counts[term]]
    if not matched:
        return 0.0, []
    coverage = len(matched) / len(terms)
    frequency = sum(counts[term] for term in matched)
    score = COVERAGE_WEIGHT * coverage + FREQUENCY_WEIGHT * (frequency / (frequency + 2))
    return score, matched


class KeywordIndex:
    """Full-text style search over the chunks table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        candidate_multiplier: int = 25,
        min_candidates: int = 200,
    ) -> None:
        """
        Initialize keyword index.

        Args:
            session_factory: Factory for read sessions
            candidate_multiplier: Candidate rows fetched per requested result
            min_candidates: Lower bound on candidate rows fetched
        """
        self._session_factory = session_factory
        self.candidate_multiplier = candidate_multiplier
        self.min_candidates = min_candidates

    async def index_chunks(
        self,
        session: AsyncSession,
        knowledge_base_id: UUID,
        document_id: UUID,
        chunks: list[Chunk],
    ) -> int:
        """Write a document's chunks inside the caller's transaction."""
        return await chunk_crud.replace_for_document(session, knowledge_base_id, document_id, chunks)

    async def remove_document(self, session: AsyncSession, document_id: UUID) -> int:
        return await chunk_crud.delete_by_document(session, document_id)

    async def search(
        self,
        knowledge_base_id: UUID | str,
        query: str,
        limit: int,
        score_threshold: float = 0.0,
        document_ids: list[str] | None = None,
    ) -> list[SearchResult]:
        """
        Rank chunks of completed documents against the query.

        Args:
            knowledge_base_id: Knowledge base to search
            query: Free-text query
            limit: Maximum results
            score_threshold: Minimum relevance to keep a match
            document_ids: Restrict results to these documents

        Returns:
            list[SearchResult]: Best first

        Raises:
            KeywordSearchError: Database unavailable or query failed
        """
        terms = extract_terms(query)
        if not terms:
            return []

        kb_id = UUID(str(knowledge_base_id))
        content = func.lower(ChunkModel.content)
        contains = [content.contains(term, autoescape=True) for term in terms]
        matched_terms = sum(case((condition, 1), else_=0) for condition in contains)
        stmt = (
            select(ChunkModel, DocumentModel.filename)
            .join(DocumentModel, DocumentModel.id == ChunkModel.document_id)
            .where(
                ChunkModel.knowledge_base_id == kb_id,
                DocumentModel.status == DocumentStatus.COMPLETED,
                or_(*contains),
            )
            # Best candidates must survive the limit
            .order_by(matched_terms.desc(), ChunkModel.document_id, ChunkModel.chunk_index)
            .limit(max(limit * self.candidate_multiplier, self.min_candidates))
        )
        if document_ids:
            stmt = stmt.where(ChunkModel.document_id.in_([UUID(str(d)) for d in document_ids]))

        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).all()
        except SQLAlchemyError as e:
            raise KeywordSearchError(
                "Keyword search failed",
                details={"knowledge_base_id": str(kb_id), "error_type": type(e).__name__},
            ) from e

        scored: list[tuple[float, ChunkModel, str, list[str]]] = []
        for chunk, filename in rows:
            score, matched = score_content(chunk.content, terms)
            if score > 0 and score >= score_threshold:
                scored.append((score, chunk, filename, matched))

        scored.sort(key=lambda item: (-item[0], str(item[1].document_id), item[1].chunk_index))
        return [
            SearchResult(
                document_id=str(chunk.document_id),
                chunk_id=chunk.chunk_id,
                content=chunk.content,
                score=score,
                metadata={
                    "filename": filename,
                    "chunk_index": chunk.chunk_index,
                    "knowledge_base_id": str(kb_id),
                    "highlights": matched,
                },
            )
            for score, chunk, filename, matched in scored[:limit]
        ]
