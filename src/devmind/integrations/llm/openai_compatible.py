"""
devmind.integrations.llm.openai_compatible - Chat Completions over HTTP
=========================================================================

Talks to any endpoint that implements the OpenAI chat-completions protocol
(OpenAI itself, OpenRouter, Azure-style proxies, local servers).

Request:
    POST {api_base_url}/chat/completions
    Authorization: Bearer <api_key>
    {"model": ..., "messages": [...], "temperature": ..., "max_tokens": ...}

Response mapping:
    choices[0].message.content → LLMResponse.content
    choices[0].finish_reason   → LLMResponse.finish_reason
    usage.*_tokens             → LLMResponse.usage

Errors:
    401 → LLM_AUTH_FAILED, 429 → LLM_RATE_LIMITED, other >= 400 →
    LLM_HTTP_ERROR, network failures → LLM_TRANSPORT_ERROR, unexpected
    bodies → LLM_INVALID_RESPONSE. All raised as LLMProviderError.

Usage:
    >>> provider = OpenAICompatibleProvider(
    ...     LLMConfig(provider="openai", model="gpt-4o-mini", api_key="sk-...")
    ... )
    >>> response = await provider.generate("Say hi")
    >>> await provider.aclose()
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx
import structlog

from devmind.core.config import LLMConfig
from devmind.core.exceptions import ConfigurationError, LLMProviderError
from devmind.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage


logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatibleProvider(BaseLLMProvider):
    """Async chat-completions client built on ``httpx.AsyncClient``.

    Args:
        config: LLM settings. ``api_key`` is required.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).

    Raises:
        ConfigurationError: MISSING_API_KEY when no key is configured.
    """

    def __init__(
        self,
        config: LLMConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not config.api_key:
            raise ConfigurationError(
                message=(
                    "An API key is required for the OpenAI-compatible provider. "
                    "Set DEVMIND_LLM__API_KEY or llm.api_key in devmind.yaml."
                ),
                error_code="MISSING_API_KEY",
                details={"provider": config.provider},
            )
        super().__init__(config)
        self._base_url = (config.api_base_url or DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._logger = logger.bind(component="openai_provider", model=config.model)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self.headers,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(
        self,
        prompt: str,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        stop_sequences: Optional[list[str]] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        messages = [{"role": "user", "content": prompt}]
        return await self._complete(messages, temperature, max_tokens, stop_sequences, kwargs)

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
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return await self._complete(messages, temperature, max_tokens, stop_sequences, kwargs)

    async def _complete(
        self,
        messages: list[dict[str, str]],
        temperature: Optional[float],
        max_tokens: Optional[int],
        stop_sequences: Optional[list[str]],
        extra: dict[str, Any],
    ) -> LLMResponse:
        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }
        if stop_sequences:
            body["stop"] = stop_sequences
        body.update(extra)

        started = time.perf_counter()
        try:
            response = await self._get_client().post("/chat/completions", json=body)
        except httpx.HTTPError as exc:
            self._logger.error("llm_request_failed", error=str(exc), error_type=type(exc).__name__)
            raise LLMProviderError(
                message=f"Request to {self._base_url} failed: {exc}",
                provider=self.provider_name,
                error_code="LLM_TRANSPORT_ERROR",
            ) from exc
        latency_ms = round((time.perf_counter() - started) * 1000, 1)

        if response.status_code >= 400:
            self._raise_for_status(response)

        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMProviderError(
                message="Unexpected chat completion response body",
                provider=self.provider_name,
                error_code="LLM_INVALID_RESPONSE",
                details={"body": response.text[:500]},
            ) from exc

        usage_data = data.get("usage") or {}
        usage = LLMUsage(
            prompt_tokens=usage_data.get("prompt_tokens", 0),
            completion_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0),
        )
        self._logger.info(
            "llm_completion_received",
            latency_ms=latency_ms,
            total_tokens=usage.total_tokens,
            finish_reason=choice.get("finish_reason"),
        )
        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            usage=usage,
            finish_reason=choice.get("finish_reason") or "stop",
            metadata={"request_id": data.get("id"), "latency_ms": latency_ms},
        )

    def _raise_for_status(self, response: httpx.Response) -> None:
        try:
            payload = response.json()
            message = payload.get("error", {}).get("message") or str(payload)
        except ValueError:
            message = response.text[:500] or f"HTTP {response.status_code}"

        error_code = {
            401: "LLM_AUTH_FAILED",
            429: "LLM_RATE_LIMITED",
        }.get(response.status_code, "LLM_HTTP_ERROR")

        self._logger.error(
            "llm_http_error", status_code=response.status_code, error=message
        )
        raise LLMProviderError(
            message=f"API error ({response.status_code}): {message}",
            provider=self.provider_name,
            error_code=error_code,
            details={"status_code": response.status_code},
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def validate(self) -> bool:
        return bool(self._config.api_key) and bool(self.model)

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
