"""
devmind.agents.integration.frontend_sync - Frontend Sync Agent
================================================================

Wires the frontend to the backend: HTTP client, data hooks, state
management, authentication, caching, error and loading states.

The agent reads ``core.md``, ``frontend.md`` and ``backend.md`` from the
context directory and expects each generated file in a TypeScript or
JavaScript fence whose first line names it:

    ```typescript
    // src/api/client.ts
    export async function request<T>(...) { ... }
    ```

Files are written at those paths, the frontend files are linked to the API
client in the dependency graph, and ``sync_completed`` is broadcast.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from devmind.agents.base import BaseAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType, TaskStatus
from devmind.core.models import TaskDefinition, TaskResult
from devmind.infrastructure.code_blocks import extract_code_blocks


logger = structlog.get_logger()

SYNC_LANGUAGES = ("typescript", "ts", "javascript", "js", "tsx", "jsx")

SYNC_CONCERNS = (
    "HTTP client configuration (fetch or axios)",
    "Custom hooks to consume the APIs",
    "State management (Redux, Context API, ...)",
    "Authentication handling in the frontend",
    "Caching and request optimisation strategies",
    "Error and loading state handling",
)

FRONTEND_SYNC_SYSTEM_PROMPT = (
    "You are DevMind's frontend sync agent, an expert in connecting frontends "
    "to backend APIs. Start every code block with a comment holding the file "
    "path, e.g. // src/api/client.ts"
)


class FrontendSyncAgent(BaseAgent):
    """Generates the frontend ↔ backend integration layer.

    Input Requirements (task.input_data):
        - "spec" (str): What to connect ("users and orders endpoints").

    Output Format (result.output_data):
        - "files" (list[str]): Written paths.
        - "skipped" (int): Code blocks without a file path.
    """

    SYSTEM_PROMPT = FRONTEND_SYNC_SYSTEM_PROMPT

    def __init__(
        self,
        config: DevMindConfig,
        *,
        agent_id: str = AgentType.FRONTEND_SYNC.value,
        name: Optional[str] = None,
        **collaborators: Any,
    ) -> None:
        super().__init__(
            agent_id=agent_id,
            agent_type=AgentType.FRONTEND_SYNC,
            config=config,
            name=name or "FrontendSyncAgent",
            description="Connects frontend components with backend APIs",
            **collaborators,
        )
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=AgentType.FRONTEND_SYNC.value,
            component="frontend_sync_agent",
        )

    async def _execute(self, task: TaskDefinition) -> TaskResult:
        spec = task.input_data["spec"].strip()
        contexts = {
            "Project Context": await self.read_context("core.md"),
            "Frontend Context": await self.read_context("frontend.md"),
            "Backend Context": await self.read_context("backend.md"),
        }

        answer = await self.query_llm(self._build_prompt(spec, contexts))

        files: list[str] = []
        skipped = 0
        for block in extract_code_blocks(answer, SYNC_LANGUAGES):
            if not block.path:
                skipped += 1
                continue
            written = await self.write_generated_file(
                block.path,
                block.code,
                resource_type="frontend_sync",
                language=block.canonical_language,
                metadata={"spec": spec},
            )
            files.append(written.path)

        if not files:
            raise ValueError("The LLM answer contained no code blocks with a file path")
        if skipped:
            self._logger.warning("sync_blocks_without_path", skipped=skipped)

        # Everything else talks to the backend through the client module.
        client = next((path for path in files if "client" in path.lower()), None)
        if client is not None:
            store = self._require_context_store()
            for path in files:
                if path != client:
                    await store.add_dependency(path, client)

        await self.record_decision(
            "Frontend-backend integration generated",
            {"spec": spec, "files": files, "used_context": sorted(k for k, v in contexts.items() if v)},
        )
        await self.send_event(EventType.SYNC_COMPLETED, {"spec": spec, "files": files})

        return self._create_result(
            task_id=task.task_id,
            status=TaskStatus.COMPLETED,
            output={"files": files, "skipped": skipped},
            files=files,
        )

    @staticmethod
    def _build_prompt(spec: str, contexts: dict[str, str]) -> str:
        parts = [f"# {title}\n{body.strip()}" for title, body in contexts.items() if body]
        concerns = "\n".join(f"{i}. {c}" for i, c in enumerate(SYNC_CONCERNS, start=1))
        parts.append(
            f'# Task\nIntegrate the frontend with the backend for: "{spec}"\n\n'
            f"Generate:\n{concerns}\n\n"
            "Keep the integration consistent with the project architecture."
        )
        return "\n\n".join(parts)
