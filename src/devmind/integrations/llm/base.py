"""
devmind.integrations.llm.base - Abstract LLM Provider Interface
=================================================================

The contract every LLM backend implements. Agents never talk to an HTTP API
directly: they hand a prompt to a ``BaseLLMProvider`` and get an
``LLMResponse`` back.

    ┌────────────────┐     generate()      ┌──────────────────┐
    │ ComponentAgent │ ──────────────────→ │  BaseLLMProvider  │
    │                │ ←── LLMResponse ─── │    (abstract)     │
    └────────────────┘                     └─────────┬────────┘
                                                     │
                                        ┌────────────┴────────────┐
                                   ┌────▼───┐            ┌────────▼─────────┐
                                   │  Mock  │            │ OpenAICompatible │
                                   └────────┘            └──────────────────┘

Usage:
    >>> class EchoProvider(BaseLLMProvider):
    ...     async def generate(self, prompt, **kwargs):
    ...         return LLMResponse(content=prompt, model=self.model)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from devmind.core.config import LLMConfig


# =============================================================================
# LLM Response Model
# =============================================================================
class LLMUsage(BaseModel):
    """Token counts of one completion.

    Attributes:
        prompt_tokens: Tokens in the request messages.
        completion_tokens: Tokens in the generated answer.
        total_tokens: Sum of both, as reported by the API.
    """

    prompt_tokens: int = Field(default=0, ge=0, description="Tokens in the input prompt")
    completion_tokens: int = Field(default=0, ge=0, description="Tokens in the output")
    total_tokens: int = Field(default=0, ge=0, description="Total tokens consumed")


class LLMResponse(BaseModel):
    """What every provider returns.

    Attributes:
        content: Generated text. Agents parse fenced code blocks out of it.
        model: Model that produced the answer.
        usage: Token counts, fed into the shared-context metrics.
        finish_reason: "stop", "length" or "error".
        metadata: Provider extras (request id, latency, ...).
        created_at: Response time (UTC).
    """

    content: str = Field(description="The generated text content from the LLM")
    model: str = Field(description="Model identifier that produced this response")
    usage: LLMUsage = Field(
        default_factory=LLMUsage,
        description="Token usage for cost tracking",
    )
    finish_reason: str = Field(
        default="stop",
        description="Why generation stopped: 'stop', 'length', or 'error'",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (request_id, latency, etc.)",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Response creation timestamp (UTC)",
    )


# =============================================================================
# Abstract Base LLM Provider
# =============================================================================
class BaseLLMProvider(ABC):
    """Abstract base class for all LLM providers.

    Subclasses implement ``generate()`` and ``generate_with_system()``;
    ``validate()``, ``get_available_models()`` and ``aclose()`` have
    sensible defaults.

    Attributes:
        _config: The LLM configuration (provider, model, api_key, ...).
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def provider_name(self) -> str:
        """Provider identifier ("openai", "mock")."""
        return self._config.provider

    @property
    def model(self) -> str:
        """Model identifier sent with each request."""
        return self._config.model

    @property
    def temperature(self) -> float:
        return self._config.temperature

    @property
    def max_tokens(self) -> int:
        return self._config.max_tokens

    @property
    def config(self) -> LLMConfig:
        return self._config

    # =========================================================================
    # Abstract Methods
    # =========================================================================

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop_sequences: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate text for a single user prompt.

        Args:
            prompt: The user prompt.
            temperature: Per-call override; None uses the config value.
            max_tokens: Per-call override; None uses the config value.
            stop_sequences: Strings that end generation.
            **kwargs: Provider-specific options.

        Returns:
            LLMResponse with the generated content and usage.

        Raises:
            LLMProviderError: If the backend call fails.
        """
        ...

    @abstractmethod
    async def generate_with_system(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop_sequences: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate text with a system prompt setting the agent's role.

        Example:
            system: "You are a DevOps engineer. Answer with config files."
            user:   "Create a GitHub Actions pipeline for a Node app."
        """
        ...

    # =========================================================================
    # Optional Methods
    # =========================================================================

    async def validate(self) -> bool:
        """Whether the provider is usable. Override in concrete providers."""
        return True

    def get_available_models(self) -> list[str]:
        return [self.model]

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider={self.provider_name!r}, "
            f"model={self.model!r})"
        )
