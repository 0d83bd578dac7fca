"""
OpenRouter provider.

Same wire format as OpenAI plus the attribution headers OpenRouter expects.

Dependencies: httpx
System role: Boundary adapter for OpenRouter-hosted models
"""

import httpx

from rag_service.boundary.providers.openai_provider import OpenAICompatibleProvider


class OpenRouterProvider(OpenAICompatibleProvider):
    """openrouter.ai"""

    name = "openrouter"
    default_base_url = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 30.0,
        referer: str = "http://localhost:8000",
        title: str = "RAG Service",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.referer = referer
        self.title = title
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, transport=transport)

    def _headers(self, api_key: str) -> dict[str, str]:
        headers = super()._headers(api_key)
        headers["HTTP-Referer"] = self.referer
        headers["X-Title"] = self.title
        return headers
