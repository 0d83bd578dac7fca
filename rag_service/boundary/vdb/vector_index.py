"""
Qdrant vector index.

One collection per knowledge base. Point IDs are derived from
``{document_id}_{chunk_id}`` so re-ingesting a document overwrites its
points instead of duplicating them.

Dependencies: qdrant_client, rag_service.core.exceptions
System role: Vector store client for embedding storage and similarity search
"""

import logging
import re
import uuid
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchAny,
    MatchValue,
    PayloadSchemaType,
    PointIdsList,
    PointStruct,
    VectorParams,
)

from rag_service.boundary.vdb.vector_schemas import IndexedVector, VectorPayload
from rag_service.core.exceptions import ValidationError, VectorSearchError
from rag_service.models.search import SearchResult

logger = logging.getLogger(__name__)

_COLLECTION_NAME = re.compile(r"^[a-zA-Z0-9_-]+$")
_POINT_NAMESPACE = uuid.UUID("6f0d4c8e-2b1a-5d3e-9c47-1a2b3c4d5e6f")
_UPSERT_BATCH = 100


def point_id(document_id: str, chunk_id: str) -> str:
    """Deterministic UUID for a chunk's vector."""
    return str(uuid.uuid5(_POINT_NAMESPACE, f"{document_id}_{chunk_id}"))


class VectorIndex:
    """Per-knowledge-base collections in Qdrant."""

    def __init__(
        self,
        client: AsyncQdrantClient,
        dimension: int = 1536,
        distance: str = "Cosine",
        collection_prefix: str = "kb_",
    ) -> None:
        """
        Initialize vector index.

        Args:
            client: Async Qdrant client (remote or local mode)
            dimension: Vector length for new collections
            distance: Qdrant distance name (Cosine, Dot, Euclid)
            collection_prefix: Prefix for collection names
        """
        self._client = client
        self.dimension = dimension
        self.distance = Distance(distance)
        self.collection_prefix = collection_prefix

    def collection_name(self, knowledge_base_id: str) -> str:
        """
        Collection for a knowledge base.

        Raises:
            ValidationError: Resulting name contains characters Qdrant rejects
        """
        kb = str(knowledge_base_id).replace("-", "")
        name = f"{self.collection_prefix}{kb}"
        if not _COLLECTION_NAME.match(name):
            raise ValidationError(
                "Invalid collection name. Use only letters, numbers, underscores, and hyphens.",
                field="knowledge_base_id",
                details={"collection_name": name},
            )
        return name

    async def create_collection(self, knowledge_base_id: str) -> bool:
        """
        Create the collection if missing.

        Returns:
            bool: True if created, False if it already existed
        """
        name = self.collection_name(knowledge_base_id)
        try:
            if await self._client.collection_exists(name):
                return False
            await self._client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=self.dimension, distance=self.distance),
            )
            await self._client.create_payload_index(
                collection_name=name,
                field_name="document_id",
                field_schema=PayloadSchemaType.KEYWORD,
            )
        except UnexpectedResponse as e:
            if e.status_code == 409 or "already exists" in str(e).lower():
                return False
            raise VectorSearchError(
                f"Failed to create collection {name}",
                operation="create",
                details={"error": str(e)},
            ) from e
        except Exception as e:
            raise VectorSearchError(
                f"Failed to create collection {name}",
                operation="create",
                details={"error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:create_collection - Collection created",
            extra={"collection": name, "dimension": self.dimension},
        )
        return True

    async def delete_collection(self, knowledge_base_id: str) -> bool:
        name = self.collection_name(knowledge_base_id)
        try:
            if not await self._client.collection_exists(name):
                return False
            await self._client.delete_collection(name)
        except Exception as e:
            raise VectorSearchError(
                f"Failed to delete collection {name}",
                operation="delete_collection",
                details={"error": str(e)},
            ) from e
        return True

    async def upsert(self, knowledge_base_id: str, vectors: list[IndexedVector]) -> int:
        """
        Insert or overwrite vectors.

        Returns:
            int: Number of points written

        Raises:
            VectorSearchError: If the vector service rejects the write
        """
        if not vectors:
            return 0
        name = self.collection_name(knowledge_base_id)
        try:
            for start in range(0, len(vectors), _UPSERT_BATCH):
                batch = vectors[start : start + _UPSERT_BATCH]
                await self._client.upsert(
                    collection_name=name,
                    points=[
                        PointStruct(
                            id=item.id,
                            vector=item.vector,
                            payload=item.payload.model_dump(mode="json"),
                        )
                        for item in batch
                    ],
                    wait=True,
                )
        except Exception as e:
            raise VectorSearchError(
                "Failed to upsert vectors",
                operation="upsert",
                details={"collection": name, "vector_count": len(vectors), "error": str(e)},
            ) from e

        logger.info(
            f"{__name__}:upsert - Vectors upserted",
            extra={"collection": name, "vector_count": len(vectors)},
        )
        return len(vectors)

    async def search(
        self,
        knowledge_base_id: str,
        vector: list[float],
        limit: int,
        score_threshold: float | None = None,
        document_ids: list[str] | None = None,
    ) -> list[SearchResult]:
        """
        Cosine similarity search.

        Args:
            knowledge_base_id: Knowledge base to search
            vector: Query embedding
            limit: Maximum results
            score_threshold: Similarity floor applied by Qdrant
            document_ids: Restrict results to these documents

        Returns:
            list[SearchResult]: Best first, scores clamped to 0-1

        Raises:
            VectorSearchError: Backend unavailable, missing collection or bad filter
        """
        name = self.collection_name(knowledge_base_id)
        query_filter = None
        if document_ids:
            query_filter = Filter(
                must=[FieldCondition(key="document_id", match=MatchAny(any=list(document_ids)))]
            )

        try:
            response = await self._client.query_points(
                collection_name=name,
                query=vector,
                limit=limit,
                score_threshold=score_threshold,
                query_filter=query_filter,
                with_payload=True,
            )
        except Exception as e:
            raise VectorSearchError(
                "Vector search failed",
                operation="search",
                details={"collection": name, "error": str(e)},
            ) from e

        return [self._to_result(point.id, point.score, point.payload or {}) for point in response.points]

    async def delete_document(self, knowledge_base_id: str, document_id: str) -> None:
        """Delete every vector belonging to a document."""
        name = self.collection_name(knowledge_base_id)
        try:
            await self._client.delete(
                collection_name=name,
                points_selector=FilterSelector(
                    filter=Filter(
                        must=[FieldCondition(key="document_id", match=MatchValue(value=str(document_id)))]
                    )
                ),
                wait=True,
            )
        except Exception as e:
            raise VectorSearchError(
                "Failed to delete document vectors",
                operation="delete",
                details={"collection": name, "document_id": str(document_id), "error": str(e)},
            ) from e

    async def delete_points(self, knowledge_base_id: str, point_ids: list[str]) -> None:
        if not point_ids:
            return
        name = self.collection_name(knowledge_base_id)
        try:
            await self._client.delete(
                collection_name=name,
                points_selector=PointIdsList(points=list(point_ids)),
                wait=True,
            )
        except Exception as e:
            raise VectorSearchError(
                "Failed to delete vectors",
                operation="delete",
                details={"collection": name, "point_count": len(point_ids), "error": str(e)},
            ) from e

    async def count(self, knowledge_base_id: str, document_id: str | None = None) -> int:
        name = self.collection_name(knowledge_base_id)
        count_filter = None
        if document_id:
            count_filter = Filter(
                must=[FieldCondition(key="document_id", match=MatchValue(value=str(document_id)))]
            )
        try:
            result = await self._client.count(collection_name=name, count_filter=count_filter, exact=True)
        except Exception as e:
            raise VectorSearchError(
                "Failed to count vectors",
                operation="count",
                details={"collection": name, "error": str(e)},
            ) from e
        return result.count

    async def health(self) -> bool:
        try:
            await self._client.get_collections()
        except Exception as e:
            logger.warning(
                f"{__name__}:health - Vector store unreachable",
                extra={"error_type": type(e).__name__},
            )
            return False
        return True

    async def close(self) -> None:
        await self._client.close()

    @staticmethod
    def _to_result(pid: Any, score: float, payload: dict[str, Any]) -> SearchResult:
        data = VectorPayload.model_validate(payload)
        return SearchResult(
            document_id=data.document_id,
            chunk_id=data.chunk_id,
            content=data.content,
            score=min(max(float(score), 0.0), 1.0),
            metadata={
                "filename": data.filename,
                "chunk_index": data.chunk_index,
                "knowledge_base_id": data.knowledge_base_id,
                "created_at": data.created_at.isoformat(),
                "point_id": str(pid),
            },
        )
