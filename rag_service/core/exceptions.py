"""
Exception hierarchy for the RAG service.

Provides layered exception structure for domain-specific errors.
Every exception carries a stable ``kind`` and an HTTP status so the API
layer can render a structured error body without inspecting types.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class RAGServiceError(Exception):
    """Base exception for all RAG service errors."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Structured error body used by HTTP handlers and stream error events."""
        return {"kind": self.kind, "message": self.message, "details": self.details}


class ValidationError(RAGServiceError):
    """Raised when input validation fails."""

    kind = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class InputTooLongError(ValidationError):
    """Raised when a text exceeds the embedding model's token limit."""

    kind = "input_too_long"

    def __init__(self, estimated_tokens: int, max_tokens: int) -> None:
        super().__init__(
            f"Text too long: ~{estimated_tokens} tokens exceeds limit of {max_tokens}",
            field="text",
            details={"estimated_tokens": estimated_tokens, "max_tokens": max_tokens},
        )


class NotFoundError(RAGServiceError):
    """Raised when a requested resource does not exist."""

    kind = "not_found"
    status_code = 404


class KnowledgeBaseNotFoundError(NotFoundError):
    """Raised when a knowledge base cannot be found."""

    def __init__(self, knowledge_base_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["knowledge_base_id"] = str(knowledge_base_id)
        super().__init__(f"Knowledge base not found: {knowledge_base_id}", details)


class DocumentNotFoundError(NotFoundError):
    """Raised when a document cannot be found."""

    def __init__(self, document_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = str(document_id)
        super().__init__(f"Document not found: {document_id}", details)


class SessionNotFoundError(NotFoundError):
    """Raised when a conversation session cannot be found."""

    def __init__(self, session_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize session not found error.

        Args:
            session_id: ID of the missing session
            details: Additional context
        """
        details = details or {}
        details["session_id"] = session_id
        super().__init__(f"Session not found: {session_id}", details)


class ProviderError(RAGServiceError):
    """
    Raised by model provider clients on a failed HTTP exchange.

    Carries the upstream status so callers can decide whether to retry.
    A ``status`` of None means the request never got a response (timeout
    or connection failure).
    """

    kind = "provider_error"
    status_code = 502

    RETRYABLE_STATUSES = frozenset({408, 429})

    def __init__(
        self,
        message: str,
        status: int | None = None,
        retryable: bool | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if status is not None:
            details["status"] = status
        self.status = status
        self._retryable = retryable
        super().__init__(message, details)

    @property
    def retryable(self) -> bool:
        if self._retryable is not None:
            return self._retryable
        return self.status is None or self.status >= 500 or self.status in self.RETRYABLE_STATUSES

    @property
    def is_auth(self) -> bool:
        return self.status in (401, 403)


class DocumentProcessingError(RAGServiceError):
    """Base exception for document ingestion errors."""

    kind = "document_processing_error"

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize document processing error.

        Args:
            message: Error message
            document_id: ID of the document that failed
            details: Additional context
        """
        details = details or {}
        if document_id:
            details["document_id"] = str(document_id)
        super().__init__(message, details)


class EmbeddingError(RAGServiceError):
    """Raised when the embedding provider rejects a request or retries run out."""

    kind = "embedding_error"
    status_code = 502


class VectorSearchError(RAGServiceError):
    """Raised when vector store operations fail."""

    kind = "vector_search_error"
    status_code = 503

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (create, upsert, search, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class KeywordSearchError(RAGServiceError):
    """Raised when the keyword index cannot be queried."""

    kind = "keyword_search_error"
    status_code = 503


class GenerationFailed(RAGServiceError):
    """Raised when the language model call fails or returns an unusable payload."""

    kind = "generation_failed"
    status_code = 502

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["retryable"] = retryable
        self.retryable = retryable
        super().__init__(message, details)
