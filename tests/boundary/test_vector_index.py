"""
Test suite for VectorIndex.

Tests collection lifecycle, deterministic point ids, filtered similarity
search and delete-by-document against Qdrant in local in-memory mode.

System role: Verification of the vector store boundary
"""

import uuid

import pytest

from rag_service.boundary.vdb import IndexedVector, VectorIndex, VectorPayload, point_id
from rag_service.core.exceptions import ValidationError, VectorSearchError
from tests.helpers import TEST_DIMENSION, embed_text

KB_ID = str(uuid.uuid4())


def indexed(document_id: str, index: int, content: str) -> IndexedVector:
    chunk_id = f"chunk_{index}"
    return IndexedVector(
        id=point_id(document_id, chunk_id),
        vector=embed_text(content),
        payload=VectorPayload(
            document_id=document_id,
            chunk_id=chunk_id,
            content=content,
            knowledge_base_id=KB_ID,
            filename=f"{document_id}.txt",
            chunk_index=index,
        ),
    )


@pytest.fixture
async def populated(vector_index: VectorIndex) -> VectorIndex:
    await vector_index.create_collection(KB_ID)
    await vector_index.upsert(
        KB_ID,
        [
            indexed("doc-a", 0, "paris is the capital of france"),
            indexed("doc-a", 1, "the seine flows through paris"),
            indexed("doc-b", 0, "berlin is the capital of germany"),
        ],
    )
    return vector_index


class TestCollections:
    """Test per-knowledge-base collections."""

    def test_collection_name_strips_dashes(self, vector_index: VectorIndex):
        kb = "12345678-1234-5678-1234-567812345678"

        assert vector_index.collection_name(kb) == "kb_12345678123456781234567812345678"

    def test_invalid_collection_name_rejected(self, vector_index: VectorIndex):
        with pytest.raises(ValidationError):
            vector_index.collection_name("bad name!")

    @pytest.mark.asyncio
    async def test_create_is_idempotent(self, vector_index: VectorIndex):
        assert await vector_index.create_collection(KB_ID) is True
        assert await vector_index.create_collection(KB_ID) is False

    @pytest.mark.asyncio
    async def test_delete_collection(self, vector_index: VectorIndex):
        await vector_index.create_collection(KB_ID)

        assert await vector_index.delete_collection(KB_ID) is True
        assert await vector_index.delete_collection(KB_ID) is False


class TestPointIds:
    def test_point_id_is_deterministic_uuid(self):
        first = point_id("doc-a", "chunk_0")

        assert first == point_id("doc-a", "chunk_0")
        assert first != point_id("doc-a", "chunk_1")
        uuid.UUID(first)

    @pytest.mark.asyncio
    async def test_reupsert_overwrites_instead_of_duplicating(self, populated: VectorIndex):
        await populated.upsert(KB_ID, [indexed("doc-a", 0, "paris is the capital of france")])

        assert await populated.count(KB_ID) == 3
        assert await populated.count(KB_ID, document_id="doc-a") == 2


class TestSearch:
    """Test similarity search."""

    @pytest.mark.asyncio
    async def test_best_match_first_with_payload(self, populated: VectorIndex):
        # Act
        results = await populated.search(KB_ID, embed_text("capital of france"), limit=3)

        # Assert
        assert results[0].document_id == "doc-a"
        assert results[0].chunk_id == "chunk_0"
        assert results[0].metadata["filename"] == "doc-a.txt"
        assert results[0].metadata["point_id"] == point_id("doc-a", "chunk_0")
        assert all(0.0 <= r.score <= 1.0 for r in results)
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    @pytest.mark.asyncio
    async def test_document_filter(self, populated: VectorIndex):
        results = await populated.search(
            KB_ID, embed_text("capital"), limit=5, document_ids=["doc-b"]
        )

        assert {r.document_id for r in results} == {"doc-b"}

    @pytest.mark.asyncio
    async def test_missing_collection_raises(self, vector_index: VectorIndex):
        with pytest.raises(VectorSearchError):
            await vector_index.search(str(uuid.uuid4()), [0.0] * TEST_DIMENSION, limit=5)


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_document_removes_its_points(self, populated: VectorIndex):
        await populated.delete_document(KB_ID, "doc-a")

        assert await populated.count(KB_ID) == 1
        assert await populated.count(KB_ID, document_id="doc-a") == 0

    @pytest.mark.asyncio
    async def test_delete_points(self, populated: VectorIndex):
        await populated.delete_points(KB_ID, [point_id("doc-b", "chunk_0")])

        assert await populated.count(KB_ID, document_id="doc-b") == 0

    @pytest.mark.asyncio
    async def test_health_reports_reachable(self, vector_index: VectorIndex):
        assert await vector_index.health() is True
