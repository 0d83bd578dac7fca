"""
Core business logic module.

Contains the exception hierarchy and the retrieval-augmented generation
components: chunker, embedding gateway, hybrid retriever, context
assembler and answer generator. Components are imported from their
modules directly; only exceptions are re-exported here since every
boundary module depends on them.
"""

from rag_service.core.exceptions import (
    DocumentNotFoundError,
    DocumentProcessingError,
    EmbeddingError,
    GenerationFailed,
    InputTooLongError,
    KeywordSearchError,
    KnowledgeBaseNotFoundError,
    NotFoundError,
    ProviderError,
    RAGServiceError,
    SessionNotFoundError,
    ValidationError,
    VectorSearchError,
)

__all__ = [
    "DocumentNotFoundError",
    "DocumentProcessingError",
    "EmbeddingError",
    "GenerationFailed",
    "InputTooLongError",
    "KeywordSearchError",
    "KnowledgeBaseNotFoundError",
    "NotFoundError",
    "ProviderError",
    "RAGServiceError",
    "SessionNotFoundError",
    "ValidationError",
    "VectorSearchError",
]
