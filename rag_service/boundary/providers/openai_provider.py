"""
OpenAI-compatible HTTP provider.

Talks to ``/chat/completions`` and ``/embeddings`` over a pooled
httpx.AsyncClient and normalizes every failure into ProviderError.

Dependencies: httpx
System role: Boundary adapter for hosted LLM and embedding APIs
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from rag_service.boundary.providers.base import ModelProvider
from rag_service.boundary.providers.schemas import (
    CompletionDelta,
    CompletionRequest,
    CompletionResponse,
    EmbeddingRequest,
    EmbeddingResponse,
)
from rag_service.core.exceptions import ProviderError
from rag_service.models.chat import TokenUsage

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(ModelProvider):
    """Shared implementation for providers speaking the OpenAI wire format."""

    name = "openai-compatible"
    default_base_url = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            api_key: Bearer token for the provider
            base_url: API root; the provider default is used when None
            timeout: Request timeout in seconds
            transport: Custom transport (tests inject an httpx.MockTransport)
        """
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(api_key),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        body = await self._post_json("/chat/completions", request.to_payload(stream=False))
        try:
            choice = body["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                f"{self.name} returned a malformed completion",
                retryable=False,
            ) from e
        if content is None:
            content = ""
        return CompletionResponse(
            content=content,
            finish_reason=choice.get("finish_reason"),
            usage=_parse_usage(body.get("usage")),
            model=body.get("model") or request.model,
        )

    async def stream(self, request: CompletionRequest) -> AsyncIterator[CompletionDelta]:
        payload = request.to_payload(stream=True)
        try:
            async with self._client.stream("POST", "/chat/completions", json=payload) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise ProviderError(
                        _error_message(self.name, response),
                        status=response.status_code,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        chunk = json.loads(data)
                    except ValueError:
                        logger.warning(f"{__name__}:stream - Skipping unparseable frame")
                        continue
                    if not isinstance(chunk, dict):
                        logger.warning(f"{__name__}:stream - Skipping non-object frame")
                        continue
                    delta = _parse_delta(chunk)
                    if delta is not None:
                        yield delta
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.name} stream timed out", status=408) from e
        except httpx.TransportError as e:
            raise ProviderError(f"{self.name} stream connection failed: {e}") from e

    async def embed(self, request: EmbeddingRequest) -> EmbeddingResponse:
        body = await self._post_json("/embeddings", request.model_dump())
        try:
            items = sorted(body["data"], key=lambda item: item.get("index", 0))
            vectors = [item["embedding"] for item in items]
        except (KeyError, TypeError, AttributeError) as e:
            raise ProviderError(
                f"{self.name} returned a malformed embedding response",
                retryable=False,
            ) from e
        if len(vectors) != len(request.input):
            raise ProviderError(
                f"{self.name} returned {len(vectors)} embeddings for {len(request.input)} inputs",
                retryable=False,
            )
        return EmbeddingResponse(
            vectors=vectors,
            model=body.get("model") or request.model,
            usage=_parse_usage(body.get("usage")),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post_json(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise ProviderError(f"{self.name} request timed out", status=408) from e
        except httpx.TransportError as e:
            raise ProviderError(f"{self.name} connection failed: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(_error_message(self.name, response), status=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned invalid JSON",
                status=response.status_code,
                retryable=False,
            ) from e
        if not isinstance(body, dict):
            raise ProviderError(
                f"{self.name} returned a non-object JSON body",
                status=response.status_code,
                retryable=False,
            )
        return body


class OpenAIProvider(OpenAICompatibleProvider):
    """api.openai.com"""

    name = "openai"
    default_base_url = "https://api.openai.com/v1"


def _parse_usage(raw: dict[str, Any] | None) -> TokenUsage:
    if not raw:
        return TokenUsage()
    prompt = raw.get("prompt_tokens") or 0
    completion = raw.get("completion_tokens") or 0
    return TokenUsage(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=raw.get("total_tokens") or prompt + completion,
    )


def _parse_delta(chunk: dict[str, Any]) -> CompletionDelta | None:
    choices = chunk.get("choices") or []
    content = ""
    finish_reason = None
    if choices and isinstance(choices[0], dict):
        content = (choices[0].get("delta") or {}).get("content") or ""
        finish_reason = choices[0].get("finish_reason")
    usage = _parse_usage(chunk["usage"]) if chunk.get("usage") else None
    if not content and finish_reason is None and usage is None:
        return None
    return CompletionDelta(content=content, finish_reason=finish_reason, usage=usage)


def _error_message(name: str, response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"{name} error {response.status_code}: {error['message']}"
    return f"{name} error {response.status_code}: {response.text[:200]}"
