"""
devmind.integrations.llm - Large Language Model Providers
=========================================================

Agents call LLMs through the BaseLLMProvider interface, so the backend can
be swapped without touching agent code.

Available Providers:
    - MockLLMProvider:          Offline answers for tests and demos.
    - OpenAICompatibleProvider: Any OpenAI-style chat-completions endpoint.

Usage:
    >>> from devmind.integrations.llm import create_llm_provider
    >>> provider = create_llm_provider(config.llm)
    >>> response = await provider.generate("Describe the architecture...")
"""

from devmind.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage
from devmind.integrations.llm.factory import create_llm_provider
from devmind.integrations.llm.mock import MockLLMProvider
from devmind.integrations.llm.openai_compatible import OpenAICompatibleProvider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "LLMUsage",
    "MockLLMProvider",
    "OpenAICompatibleProvider",
    "create_llm_provider",
]
