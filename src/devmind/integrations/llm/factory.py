"""
devmind.integrations.llm.factory - LLM Provider Factory
=========================================================

Maps ``LLMConfig.provider`` to a concrete provider class.

Usage:
    >>> provider = create_llm_provider(LLMConfig(provider="mock"))
    >>> type(provider).__name__
    'MockLLMProvider'
"""

from __future__ import annotations

from devmind.core.config import LLMConfig
from devmind.integrations.llm.base import BaseLLMProvider

AVAILABLE_PROVIDERS = ("mock", "openai", "openai-compatible")


def create_llm_provider(config: LLMConfig) -> BaseLLMProvider:
    """Create the provider named by ``config.provider``.

    - "mock" → MockLLMProvider (offline, no API key)
    - "openai" / "openai-compatible" → OpenAICompatibleProvider

    Raises:
        ValueError: If the provider name is not recognized.
        ConfigurationError: If the OpenAI-compatible provider has no API key.
    """
    provider_name = config.provider.lower()

    if provider_name == "mock":
        from devmind.integrations.llm.mock import MockLLMProvider
        return MockLLMProvider(config)

    if provider_name in ("openai", "openai-compatible"):
        from devmind.integrations.llm.openai_compatible import OpenAICompatibleProvider
        return OpenAICompatibleProvider(config)

    raise ValueError(
        f"Unknown LLM provider: '{provider_name}'. "
        f"Available providers: {', '.join(AVAILABLE_PROVIDERS)}."
    )
