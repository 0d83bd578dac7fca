"""Supporting adapters."""

from .sse_adapter import SSE_HEADERS, EventChannel

__all__ = ["EventChannel", "SSE_HEADERS"]
