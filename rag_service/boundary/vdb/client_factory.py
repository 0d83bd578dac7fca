"""
Qdrant client factory.

Dependencies: qdrant_client
System role: Shared async Qdrant client for the vector index
"""

import logging

from qdrant_client import AsyncQdrantClient

from rag_service.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


def get_qdrant_client(settings: VectorStoreSettings) -> AsyncQdrantClient:
    """
    Create an async Qdrant client.

    ``location`` selects the in-process local mode (":memory:" or a path);
    otherwise ``url`` or ``host``/``port`` address a Qdrant server.
    """
    if settings.location:
        logger.info(f"{__name__}:get_qdrant_client - Using local Qdrant at {settings.location}")
        return AsyncQdrantClient(location=settings.location)
    if settings.url:
        return AsyncQdrantClient(url=settings.url, api_key=settings.api_key, timeout=settings.timeout)
    return AsyncQdrantClient(
        host=settings.host,
        port=settings.port,
        api_key=settings.api_key,
        timeout=settings.timeout,
    )
