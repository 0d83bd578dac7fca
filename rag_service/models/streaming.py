"""
Streaming event schemas for SSE chat.

Defines event types and payloads for incremental answer delivery.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StreamEventType(str, Enum):
    """Server-to-client event types for streaming chat."""

    CONVERSATION_START = "conversation_start"
    SEARCH_START = "search_start"
    SEARCH_COMPLETE = "search_complete"
    RESPONSE_START = "response_start"
    RESPONSE_CHUNK = "response_chunk"
    RESPONSE_COMPLETE = "response_complete"
    HEARTBEAT = "heartbeat"
    ERROR = "error"


class StreamEvent(BaseModel):
    """
    Base streaming event model.

    Attributes:
        type: Event type identifier
        data: Event-specific payload, flattened into the wire frame
    """

    type: StreamEventType
    data: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {"type": self.type.value, **self.data}

    @property
    def is_terminal(self) -> bool:
        return self.type in (StreamEventType.RESPONSE_COMPLETE, StreamEventType.ERROR)
