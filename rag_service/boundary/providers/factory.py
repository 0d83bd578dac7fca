"""
Provider factory.

Dependencies: rag_service.configs
System role: Select the provider implementation at startup
"""

import logging

from rag_service.boundary.providers.base import ModelProvider
from rag_service.boundary.providers.openai_provider import OpenAIProvider
from rag_service.boundary.providers.openrouter_provider import OpenRouterProvider
from rag_service.configs.providers import ProviderSettings

logger = logging.getLogger(__name__)


def create_provider(settings: ProviderSettings) -> ModelProvider:
    """
    Build the configured provider.

    Args:
        settings: Provider connection settings

    Returns:
        ModelProvider: OpenAI or OpenRouter implementation

    Raises:
        ValueError: Unknown provider name
    """
    name = settings.name.lower()
    logger.info(f"{__name__}:create_provider - Using provider={name}")

    if name == "openai":
        return OpenAIProvider(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )
    if name == "openrouter":
        return OpenRouterProvider(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
            referer=settings.referer,
            title=settings.title,
        )
    raise ValueError(f"Unknown LLM provider: {settings.name}. Use 'openai' or 'openrouter'")
