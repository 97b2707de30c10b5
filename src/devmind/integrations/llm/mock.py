"""
devmind.integrations.llm.mock - Mock LLM Provider for Testing
===============================================================

A provider that answers without any network call. It is the default
provider, so a fresh checkout can run every agent offline.

How It Works:
    1. If a failure is configured → raise RuntimeError.
    2. If responses are queued → return the next one (FIFO).
    3. Otherwise → build a smart default. Every agent's system prompt starts
       with "You are DevMind's <role> agent", and the mock answers with the
       fenced blocks that role expects (architecture markdown, a React
       component with stories/tests/docs, a workflow plus deploy script, ...).

Usage:
    >>> provider = MockLLMProvider()
    >>> provider.queue_response("```tsx\\nexport const Button = () => null;\\n```")
    >>> response = await provider.generate("Create a button")
    >>> provider.call_count
    1
"""

from __future__ import annotations

import re
from collections import deque
from typing import Any, Optional

import structlog

from devmind.core.config import LLMConfig
from devmind.integrations.llm.base import BaseLLMProvider, LLMResponse, LLMUsage


logger = structlog.get_logger()

_ROLE_RE = re.compile(r"you are devmind's ([a-z ]+?) agent")
_DESCRIBED_AS_RE = re.compile(r"described as:\s*(.+)", re.IGNORECASE)
_OPTION_RE = re.compile(r"\b\w+:\s*\S+")
_FRAMEWORK_RE = re.compile(r"create the (react|vue|angular|svelte) component")
FENCE = "```"


class MockLLMProvider(BaseLLMProvider):
    """Mock LLM provider for testing and development.

    Attributes:
        _response_queue: FIFO queue of pre-configured responses.
        _call_history: Every prompt received, in call order.
        _default_response: Answer when no smart default applies.
        _should_fail: If True, every call raises RuntimeError.

    Example:
        >>> provider = MockLLMProvider()
        >>> provider.set_should_fail(True, "rate limited")
        >>> await provider.generate("hello")
        Traceback (most recent call last):
        RuntimeError: rate limited
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        default_response: str = "Mock LLM response",
    ) -> None:
        if config is None:
            config = LLMConfig(provider="mock", model="mock-model")
        super().__init__(config)
        self._response_queue: deque[LLMResponse] = deque()
        self._call_history: list[dict[str, Any]] = []
        self._default_response = default_response
        self._should_fail: bool = False
        self._failure_message: str = "Mock LLM API error"
        self._logger = logger.bind(component="mock_llm_provider")

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Recorded calls: {"prompt", "system_prompt", "temperature", "max_tokens", "kwargs"}."""
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def queue_size(self) -> int:
        return len(self._response_queue)

    @property
    def last_prompt(self) -> Optional[str]:
        """User prompt of the most recent call, if any."""
        if not self._call_history:
            return None
        return self._call_history[-1]["prompt"]

    # =========================================================================
    # Configuration
    # =========================================================================

    def queue_response(
        self,
        content: str,
        *,
        model: Optional[str] = None,
        finish_reason: str = "stop",
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Queue the text returned by the next call (FIFO).

        Example:
            >>> provider.queue_response("LoginForm")          # name suggestion
            >>> provider.queue_response("```tsx\\n...\\n```")  # component code
        """
        response = LLMResponse(
            content=content,
            model=model or self.model,
            usage=self._estimate_usage(content),
            finish_reason=finish_reason,
            metadata=metadata or {},
        )
        self._response_queue.append(response)

    def queue_llm_response(self, response: LLMResponse) -> None:
        """Queue a fully built response (custom usage, metadata, ...)."""
        self._response_queue.append(response)

    def clear_queue(self) -> None:
        self._response_queue.clear()

    def clear_history(self) -> None:
        self._call_history.clear()

    def set_should_fail(self, should_fail: bool, message: str = "Mock LLM API error") -> None:
        """Make every following call raise ``RuntimeError(message)``."""
        self._should_fail = should_fail
        self._failure_message = message

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
        return self._respond(None, prompt, temperature, max_tokens, kwargs)

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
        return self._respond(system_prompt, user_prompt, temperature, max_tokens, kwargs)

    def _respond(
        self,
        system_prompt: Optional[str],
        prompt: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
        kwargs: dict[str, Any],
    ) -> LLMResponse:
        self._call_history.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "kwargs": kwargs,
        })
        self._logger.debug(
            "mock_generate_called",
            prompt_length=len(prompt),
            has_system_prompt=system_prompt is not None,
            queue_size=len(self._response_queue),
        )

        if self._should_fail:
            raise RuntimeError(self._failure_message)

        if self._response_queue:
            return self._response_queue.popleft()

        return self._generate_smart_default(system_prompt or "", prompt)

    async def validate(self) -> bool:
        return True

    def get_available_models(self) -> list[str]:
        return ["mock-model", "mock-fast"]

    # =========================================================================
    # Smart Default Generation
    # =========================================================================

    def _generate_smart_default(self, system_prompt: str, prompt: str) -> LLMResponse:
        """Pick an answer template from the agent role and the prompt."""
        combined = f"{system_prompt}\n\n{prompt}".lower()

        if "pascalcase name" in combined:
            content = self._mock_component_name(prompt)
        else:
            role_match = _ROLE_RE.search(combined)
            role = role_match.group(1) if role_match else ""
            builder = {
                "architect": self._mock_architecture,
                "component": lambda: self._mock_component(combined),
                "dashboard": self._mock_dashboard,
                "devops": self._mock_devops,
                "integration": self._mock_integration,
                "frontend sync": self._mock_frontend_sync,
                "testing": self._mock_tests,
            }.get(role)
            content = builder() if builder else self._default_response

        return LLMResponse(
            content=content,
            model=self.model,
            usage=self._estimate_usage(content),
            finish_reason="stop",
            metadata={"source": "smart_default"},
        )

    @staticmethod
    def _estimate_usage(content: str) -> LLMUsage:
        """Roughly 4 characters per token; the prompt is assumed as long."""
        completion_tokens = max(1, len(content) // 4)
        return LLMUsage(
            prompt_tokens=completion_tokens,
            completion_tokens=completion_tokens,
            total_tokens=completion_tokens * 2,
        )

    # =========================================================================
    # Mock Response Templates
    # =========================================================================

    @staticmethod
    def _mock_component_name(prompt: str) -> str:
        """First two meaningful words of the description, PascalCased."""
        found = _DESCRIBED_AS_RE.search(prompt)
        description = found.group(1) if found else prompt
        description = _OPTION_RE.sub(" ", description)
        words = [w for w in re.findall(r"[A-Za-z]+", description) if len(w) > 2]
        name = "".join(w.capitalize() for w in words[:2])
        return name or "GeneratedComponent"

    @staticmethod
    def _mock_architecture() -> str:
        return (
            "# Architecture Blueprint\n\n"
            "## Folder Structure\n\n"
            "- `src/components/`: reusable UI components\n"
            "- `src/pages/`: routed pages\n"
            "- `src/services/`: API clients\n"
            "- `src/store/`: application state\n\n"
            "## Main Components\n\n"
            "1. **AppShell**: layout and navigation\n"
            "2. **AuthService**: session handling\n"
            "3. **ApiClient**: typed HTTP access to the backend\n\n"
            "## Module Relations\n\n"
            "Pages compose components; components call services; services use ApiClient.\n\n"
            "## Key Decisions\n\n"
            "- TypeScript everywhere\n"
            "- REST backend behind a single API client\n\n"
            f"{FENCE}markdown docs/adr/0001-typescript.md\n"
            "# ADR 0001: TypeScript\n\n"
            "Status: accepted\n"
            f"{FENCE}\n"
        )

    def _mock_component(self, prompt: str) -> str:
        """A component for the framework the prompt asks for (React by default)."""
        found = _FRAMEWORK_RE.search(prompt)
        framework = found.group(1) if found else "react"
        if framework == "vue":
            return self._mock_vue_component()
        if framework == "angular":
            return self._mock_angular_component()
        if framework == "svelte":
            return self._mock_svelte_component()
        return self._mock_react_component()

    @staticmethod
    def _mock_react_component() -> str:
        return (
            f"{FENCE}tsx\n"
            "import React, { useState } from 'react';\n\n"
            "export interface GeneratedProps {\n"
            "  label?: string;\n"
            "  onSubmit?: (value: string) => void;\n"
            "}\n\n"
            "export function Generated({ label = 'Submit', onSubmit }: GeneratedProps) {\n"
            "  const [value, setValue] = useState('');\n"
            "  return (\n"
            "    <form onSubmit={(e) => { e.preventDefault(); onSubmit?.(value); }}>\n"
            "      <input aria-label=\"value\" value={value} onChange={(e) => setValue(e.target.value)} />\n"
            "      <button type=\"submit\">{label}</button>\n"
            "    </form>\n"
            "  );\n"
            "}\n\n"
            "export default Generated;\n"
            f"{FENCE}\n\n"
            f"{FENCE}tsx\n"
            "import type { Meta, StoryObj } from '@storybook/react';\n"
            "import Generated from './Generated';\n\n"
            "const meta: Meta<typeof Generated> = { title: 'Components/Generated', component: Generated };\n"
            "export default meta;\n\n"
            "export const Default: StoryObj<typeof Generated> = { args: { label: 'Send' } };\n"
            f"{FENCE}\n\n"
            f"{FENCE}tsx\n"
            "import { render, screen } from '@testing-library/react';\n"
            "import Generated from './Generated';\n\n"
            "describe('Generated', () => {\n"
            "  it('renders the label', () => {\n"
            "    render(<Generated label=\"Send\" />);\n"
            "    expect(screen.getByText('Send')).toBeInTheDocument();\n"
            "  });\n"
            "});\n"
            f"{FENCE}\n\n"
            f"{FENCE}markdown\n"
            "# Generated\n\n"
            "## Props\n\n"
            "| Name | Type | Default |\n"
            "|------|------|---------|\n"
            "| label | string | 'Submit' |\n"
            f"{FENCE}\n\n"
            f"{FENCE}css\n"
            ".generated { display: flex; gap: 0.5rem; }\n"
            "@media (max-width: 640px) { .generated { flex-direction: column; } }\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_vue_component() -> str:
        return (
            f"{FENCE}vue\n"
            "<template>\n"
            "  <form class=\"generated\" @submit.prevent=\"$emit('submit', value)\">\n"
            "    <input v-model=\"value\" aria-label=\"value\" />\n"
            "    <button type=\"submit\">{{ label }}</button>\n"
            "  </form>\n"
            "</template>\n\n"
            "<script setup lang=\"ts\">\n"
            "import { ref } from 'vue';\n\n"
            "defineProps<{ label?: string }>();\n"
            "defineEmits<{ (e: 'submit', value: string): void }>();\n"
            "const value = ref('');\n"
            "</script>\n"
            f"{FENCE}\n\n"
            f"{FENCE}ts\n"
            "import { mount } from '@vue/test-utils';\n"
            "import Generated from './Generated.vue';\n\n"
            "describe('Generated', () => {\n"
            "  it('renders the label', () => {\n"
            "    const wrapper = mount(Generated, { props: { label: 'Send' } });\n"
            "    expect(wrapper.text()).toContain('Send');\n"
            "  });\n"
            "});\n"
            f"{FENCE}\n\n"
            f"{FENCE}markdown\n"
            "# Generated\n\n"
            "Single-file Vue 3 component with a `label` prop and a `submit` event.\n"
            f"{FENCE}\n\n"
            f"{FENCE}css\n"
            ".generated { display: flex; gap: 0.5rem; }\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_angular_component() -> str:
        return (
            f"{FENCE}ts\n"
            "import { Component, EventEmitter, Input, Output } from '@angular/core';\n\n"
            "@Component({\n"
            "  selector: 'app-generated',\n"
            "  template: `<form (ngSubmit)=\"submitted.emit(value)\">\n"
            "    <input [(ngModel)]=\"value\" name=\"value\" aria-label=\"value\" />\n"
            "    <button type=\"submit\">{{ label }}</button>\n"
            "  </form>`,\n"
            "})\n"
            "export class GeneratedComponent {\n"
            "  @Input() label = 'Submit';\n"
            "  @Output() submitted = new EventEmitter<string>();\n"
            "  value = '';\n"
            "}\n"
            f"{FENCE}\n\n"
            f"{FENCE}ts\n"
            "import { TestBed } from '@angular/core/testing';\n"
            "import { GeneratedComponent } from './Generated';\n\n"
            "describe('GeneratedComponent', () => {\n"
            "  it('creates', () => {\n"
            "    const fixture = TestBed.createComponent(GeneratedComponent);\n"
            "    expect(fixture.componentInstance).toBeTruthy();\n"
            "  });\n"
            "});\n"
            f"{FENCE}\n\n"
            f"{FENCE}markdown\n"
            "# GeneratedComponent\n\n"
            "Angular form with a `label` input and a `submitted` output.\n"
            f"{FENCE}\n\n"
            f"{FENCE}scss\n"
            ":host { display: block; }\n"
            "form { display: flex; gap: 0.5rem; }\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_svelte_component() -> str:
        return (
            f"{FENCE}svelte\n"
            "<script>\n"
            "  import { createEventDispatcher } from 'svelte';\n"
            "  export let label = 'Submit';\n"
            "  let value = '';\n"
            "  const dispatch = createEventDispatcher();\n"
            "</script>\n\n"
            "<form class=\"generated\" on:submit|preventDefault={() => dispatch('submit', value)}>\n"
            "  <input bind:value aria-label=\"value\" />\n"
            "  <button type=\"submit\">{label}</button>\n"
            "</form>\n"
            f"{FENCE}\n\n"
            f"{FENCE}js\n"
            "import { render, screen } from '@testing-library/svelte';\n"
            "import Generated from './Generated.svelte';\n\n"
            "describe('Generated', () => {\n"
            "  it('renders the label', () => {\n"
            "    render(Generated, { label: 'Send' });\n"
            "    expect(screen.getByText('Send')).toBeTruthy();\n"
            "  });\n"
            "});\n"
            f"{FENCE}\n\n"
            f"{FENCE}markdown\n"
            "# Generated\n\n"
            "Svelte form with a `label` prop that dispatches `submit`.\n"
            f"{FENCE}\n\n"
            f"{FENCE}css\n"
            ".generated { display: flex; gap: 0.5rem; }\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_dashboard() -> str:
        return (
            "The widget below renders the agent status table.\n\n"
            f"{FENCE}jsx\n"
            "// components/AgentStatusWidget.jsx\n"
            "export default function AgentStatusWidget({ agents }) {\n"
            "  return (\n"
            "    <ul>{agents.map((a) => <li key={a.name}>{a.name}: {a.status}</li>)}</ul>\n"
            "  );\n"
            "}\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_devops() -> str:
        return (
            "## Configuration\n\n"
            f"{FENCE}yaml Archivo: .github/workflows/ci.yml\n"
            "name: ci\n"
            "on: [push, pull_request]\n"
            "jobs:\n"
            "  build:\n"
            "    runs-on: ubuntu-latest\n"
            "    steps:\n"
            "      - uses: actions/checkout@v4\n"
            "      - run: npm ci\n"
            "      - run: npm test\n"
            f"{FENCE}\n\n"
            f"{FENCE}bash Script: deploy.sh\n"
            "#!/usr/bin/env bash\n"
            "set -euo pipefail\n"
            "npm run build\n"
            f"{FENCE}\n\n"
            "## Documentation\n\n"
            "The pipeline installs dependencies, runs the test suite and builds on every push.\n\n"
            "## Next Steps\n\n"
            "- Add deployment environments\n"
        )

    @staticmethod
    def _mock_integration() -> str:
        return (
            f"{FENCE}typescript\n"
            "// client.ts\n"
            "export interface ServiceClientOptions { apiKey: string; baseUrl?: string; }\n\n"
            "export class ServiceClient {\n"
            "  constructor(private readonly options: ServiceClientOptions) {}\n\n"
            "  async ping(): Promise<boolean> {\n"
            "    const res = await fetch(`${this.options.baseUrl ?? ''}/ping`, {\n"
            "      headers: { Authorization: `Bearer ${this.options.apiKey}` },\n"
            "    });\n"
            "    return res.ok;\n"
            "  }\n"
            "}\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_frontend_sync() -> str:
        return (
            f"{FENCE}typescript\n"
            "// src/api/client.ts\n"
            "export async function request<T>(path: string, init?: RequestInit): Promise<T> {\n"
            "  const res = await fetch(`/api${path}`, init);\n"
            "  if (!res.ok) throw new Error(`HTTP ${res.status}`);\n"
            "  return res.json() as Promise<T>;\n"
            "}\n"
            f"{FENCE}\n\n"
            f"{FENCE}typescript\n"
            "// src/hooks/useResource.ts\n"
            "import { useEffect, useState } from 'react';\n"
            "import { request } from '../api/client';\n\n"
            "export function useResource<T>(path: string) {\n"
            "  const [data, setData] = useState<T | null>(null);\n"
            "  useEffect(() => { request<T>(path).then(setData); }, [path]);\n"
            "  return data;\n"
            "}\n"
            f"{FENCE}\n"
        )

    @staticmethod
    def _mock_tests() -> str:
        return (
            f"{FENCE}javascript\n"
            "// jest config\n"
            "module.exports = {\n"
            "  testEnvironment: 'node',\n"
            "  roots: ['<rootDir>/__tests__'],\n"
            "};\n"
            f"{FENCE}\n\n"
            f"{FENCE}javascript\n"
            "const { sum } = require('../src/sum');\n\n"
            "describe('sum', () => {\n"
            "  test('adds numbers', () => {\n"
            "    expect(sum(1, 2)).toBe(3);\n"
            "  });\n"
            "});\n"
            f"{FENCE}\n\n"
            f"{FENCE}javascript\n"
            "// mock data\n"
            "module.exports = { fetchUser: jest.fn(() => Promise.resolve({ id: 1 })) };\n"
            f"{FENCE}\n"
        )
