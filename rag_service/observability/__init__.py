"""
Observability module.

Provides structured logging helpers, correlation ID tracking and
request logging middleware.
"""

from rag_service.observability.correlation import get_correlation_id, set_correlation_id
from rag_service.observability.logger import configure_logging

__all__ = ["configure_logging", "get_correlation_id", "set_correlation_id"]
