"""
Cache key builders.

Embeddings:  embedding:{sha256(model:text)}
Search:      search:{mode}:{kb_id}:{base64(query)}:{params}
Completions: llm:{base64(json(request))}

Dependencies: hashlib, base64, json
System role: Single source of truth for cache key formats
"""

import base64
import hashlib
import json
from typing import Any


def normalize_text(text: str) -> str:
    """Collapse runs of whitespace and strip the ends."""
    return " ".join(text.split())


def embedding_key(model: str, text: str) -> str:
    """Key for one embedding; ``text`` must already be normalized."""
    digest = hashlib.sha256(f"{model}:{text}".encode("utf-8")).hexdigest()
    return f"embedding:{digest}"


def search_key(mode: str, knowledge_base_id: str, query: str, params: str) -> str:
    encoded = base64.urlsafe_b64encode(query.encode("utf-8")).decode("ascii")
    return f"search:{mode}:{knowledge_base_id}:{encoded}:{params}"


def search_pattern(knowledge_base_id: str) -> str:
    """Glob matching every cached search for one knowledge base."""
    return f"search:*:{knowledge_base_id}:*"


def llm_key(request: dict[str, Any]) -> str:
    body = json.dumps(request, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    encoded = base64.urlsafe_b64encode(body.encode("utf-8")).decode("ascii")
    return f"llm:{encoded}"


def session_history_key(session_id: str) -> str:
    return f"session:{session_id}:history"
