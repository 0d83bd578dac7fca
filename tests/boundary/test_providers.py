"""
Test suite for OpenAI-compatible providers.

Tests request shape, response parsing, SSE stream decoding and mapping of
HTTP failures to ProviderError, using httpx.MockTransport in place of the
network.

System role: Verification of the model provider boundary
"""

import json

import httpx
import pytest

from rag_service.boundary.providers import (
    ChatMessage,
    CompletionRequest,
    EmbeddingRequest,
    OpenAIProvider,
    OpenRouterProvider,
    create_provider,
)
from rag_service.configs.providers import ProviderSettings
from rag_service.core.exceptions import ProviderError


def completion_request() -> CompletionRequest:
    return CompletionRequest(
        model="gpt-4o-mini",
        messages=[ChatMessage(role="user", content="Capital of France?")],
    )


def sse_body(*chunks: dict) -> bytes:
    lines = [f"data: {json.dumps(chunk)}\n\n" for chunk in chunks]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


class TestComplete:
    """Test non-streaming completions."""

    @pytest.mark.asyncio
    async def test_parses_content_usage_and_sends_bearer_token(self):
        # Arrange
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "model": "gpt-4o-mini",
                    "choices": [{"message": {"content": "Paris."}, "finish_reason": "stop"}],
                    "usage": {"prompt_tokens": 9, "completion_tokens": 2, "total_tokens": 11},
                },
            )

        provider = OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(handler))

        # Act
        response = await provider.complete(completion_request())
        await provider.aclose()

        # Assert
        assert response.content == "Paris."
        assert response.finish_reason == "stop"
        assert response.usage.total_tokens == 11
        assert seen[0].url.path == "/v1/chat/completions"
        assert seen[0].headers["Authorization"] == "Bearer sk-test"
        assert json.loads(seen[0].content)["stream"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,retryable", [(429, True), (503, True), (520, True), (401, False), (400, False)])
    async def test_http_errors_carry_status(self, status, retryable):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(status, json={"error": {"message": "nope"}})
        )
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(completion_request())

        assert exc_info.value.status == status
        assert exc_info.value.retryable is retryable
        assert "nope" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_maps_to_retryable_408(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        provider = OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(completion_request())

        assert exc_info.value.status == 408
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_malformed_body_is_not_retryable(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(completion_request())

        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [["upstream", "busy"], "busy"])
    async def test_non_object_bodies_become_provider_errors(self, payload):
        ok = OpenAIProvider(
            api_key="sk-test", transport=httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        )
        failing = OpenAIProvider(
            api_key="sk-test", transport=httpx.MockTransport(lambda request: httpx.Response(520, json=payload))
        )

        with pytest.raises(ProviderError) as ok_info:
            await ok.complete(completion_request())
        with pytest.raises(ProviderError) as failing_info:
            await failing.complete(completion_request())

        assert ok_info.value.retryable is False
        assert failing_info.value.status == 520
        assert failing_info.value.retryable is True


class TestStream:
    """Test SSE stream decoding."""

    @pytest.mark.asyncio
    async def test_yields_content_then_usage(self):
        # Arrange
        body = sse_body(
            {"choices": [{"delta": {"role": "assistant"}, "finish_reason": None}]},
            {"choices": [{"delta": {"content": "Par"}, "finish_reason": None}]},
            {"choices": [{"delta": {"content": "is"}, "finish_reason": "stop"}]},
            {"choices": [], "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}},
        )
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})
        )
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        # Act
        deltas = [delta async for delta in provider.stream(completion_request())]

        # Assert
        assert [d.content for d in deltas] == ["Par", "is", ""]
        assert deltas[1].finish_reason == "stop"
        assert deltas[-1].usage.total_tokens == 7

    @pytest.mark.asyncio
    async def test_non_object_frames_skipped(self):
        body = (
            b"data: [\"keepalive\"]\n\n"
            b"data: {\"choices\": [\"odd\"]}\n\n"
            + sse_body({"choices": [{"delta": {"content": "Paris"}, "finish_reason": "stop"}]})
        )
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})
        )
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        deltas = [delta async for delta in provider.stream(completion_request())]

        assert [d.content for d in deltas] == ["Paris"]

    @pytest.mark.asyncio
    async def test_error_status_raises_before_any_delta(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        with pytest.raises(ProviderError) as exc_info:
            async for _ in provider.stream(completion_request()):
                pass

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test_stream_request_asks_for_usage(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, content=sse_body())

        provider = OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(handler))
        assert [d async for d in provider.stream(completion_request())] == []

        assert seen[0]["stream"] is True
        assert seen[0]["stream_options"] == {"include_usage": True}


class TestEmbed:
    @pytest.mark.asyncio
    async def test_vectors_sorted_by_index(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(
                200,
                json={
                    "model": "text-embedding-3-small",
                    "data": [
                        {"index": 1, "embedding": [0.0, 1.0]},
                        {"index": 0, "embedding": [1.0, 0.0]},
                    ],
                },
            )
        )
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        response = await provider.embed(EmbeddingRequest(model="text-embedding-3-small", input=["a", "b"]))

        assert response.vectors == [[1.0, 0.0], [0.0, 1.0]]

    @pytest.mark.asyncio
    async def test_count_mismatch_rejected(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0]}]})
        )
        provider = OpenAIProvider(api_key="sk-test", transport=transport)

        with pytest.raises(ProviderError):
            await provider.embed(EmbeddingRequest(model="m", input=["a", "b"]))


class TestOpenRouter:
    @pytest.mark.asyncio
    async def test_attribution_headers_and_base_url(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        provider = OpenRouterProvider(
            api_key="or-key",
            referer="https://example.test",
            title="Docs Bot",
            transport=httpx.MockTransport(handler),
        )

        await provider.complete(completion_request())

        assert seen[0].url.host == "openrouter.ai"
        assert seen[0].url.path == "/api/v1/chat/completions"
        assert seen[0].headers["HTTP-Referer"] == "https://example.test"
        assert seen[0].headers["X-Title"] == "Docs Bot"


class TestCreateProvider:
    def test_selects_implementation_by_name(self):
        assert isinstance(create_provider(ProviderSettings(name="openrouter")), OpenRouterProvider)
        assert isinstance(create_provider(ProviderSettings(name="OpenAI")), OpenAIProvider)

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError):
            create_provider(ProviderSettings(name="mystery"))
