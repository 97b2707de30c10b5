"""
Tests for devmind.agents.integration.frontend_sync - FrontendSyncAgent
========================================================================

These tests verify that the FrontendSyncAgent:
    - Sends core.md, frontend.md and backend.md with the request
    - Writes each path-named code block at its path
    - Links the generated files to the API client in the dependency graph
    - Fails when no block names a file
    - Broadcasts sync_completed

All tests are async (pytest-asyncio with asyncio_mode=auto).
"""

from __future__ import annotations

from devmind.agents.integration.frontend_sync import FrontendSyncAgent
from devmind.core.enums import EventType, TaskStatus
from devmind.infrastructure.workspace import InMemoryWorkspace


FENCE = "```"


class TestFrontendSyncAgent:
    """Tests for FrontendSyncAgent."""

    async def test_writes_named_files(self, frontend_sync_agent: FrontendSyncAgent, workspace) -> None:
        result = await frontend_sync_agent.run("users and orders endpoints")

        assert result.status == TaskStatus.COMPLETED
        assert result.files == ["src/api/client.ts", "src/hooks/useResource.ts"]
        assert result.output_data["skipped"] == 0
        assert workspace.files["src/api/client.ts"].startswith("export async function request")

    async def test_files_depend_on_client(
        self, frontend_sync_agent: FrontendSyncAgent, context_store
    ) -> None:
        await frontend_sync_agent.run("users endpoint")

        snapshot = await context_store.get_shared_context()
        assert snapshot.dependencies == {"src/hooks/useResource.ts": ["src/api/client.ts"]}
        assert {r.resource_type for r in snapshot.resources} == {"frontend_sync"}

    async def test_context_files_in_prompt(self, config, event_bus, context_store, mock_llm_provider) -> None:
        workspace = InMemoryWorkspace({
            "context/frontend.md": "React 18 with Vite",
            "context/backend.md": "FastAPI under /api",
        })
        agent = FrontendSyncAgent(
            config, llm_provider=mock_llm_provider, event_bus=event_bus,
            context_store=context_store, workspace=workspace,
        )

        await agent.run("users endpoint")

        prompt = mock_llm_provider.last_prompt
        assert "# Frontend Context\nReact 18 with Vite" in prompt
        assert "# Backend Context\nFastAPI under /api" in prompt
        assert "# Project Context" not in prompt
        decision = (await context_store.get_decisions("FrontendSyncAgent"))[0]
        assert decision.details["used_context"] == ["Backend Context", "Frontend Context"]

    async def test_blocks_without_path_are_skipped(
        self, frontend_sync_agent: FrontendSyncAgent, mock_llm_provider
    ) -> None:
        mock_llm_provider.queue_response(
            f"{FENCE}ts\n// src/store/index.ts\nexport const store = {{}};\n{FENCE}\n"
            f"{FENCE}ts\nconst unnamed = 1;\n{FENCE}\n"
        )

        result = await frontend_sync_agent.run("state management")

        assert result.files == ["src/store/index.ts"]
        assert result.output_data["skipped"] == 1

    async def test_no_named_blocks_fails(
        self, frontend_sync_agent: FrontendSyncAgent, mock_llm_provider, workspace
    ) -> None:
        mock_llm_provider.queue_response(f"{FENCE}ts\nconst unnamed = 1;\n{FENCE}\n")

        result = await frontend_sync_agent.run("users endpoint")

        assert result.status == TaskStatus.FAILED
        assert "no code blocks with a file path" in result.error_message
        assert workspace.files == {}

    async def test_store_file_in_answer_fails(
        self, frontend_sync_agent: FrontendSyncAgent, mock_llm_provider, workspace
    ) -> None:
        """A block naming the shared context file is refused, not written."""
        mock_llm_provider.queue_response(
            f"{FENCE}ts\n// data/shared-context.json\nexport default {{ decisions: [] }};\n{FENCE}\n"
        )

        result = await frontend_sync_agent.run("users endpoint")

        assert result.status == TaskStatus.FAILED
        assert "store file" in result.error_message
        assert "data/shared-context.json" not in workspace.files

    async def test_broadcasts_sync_completed(self, frontend_sync_agent: FrontendSyncAgent, event_bus) -> None:
        await frontend_sync_agent.run("users endpoint")

        events = event_bus.get_history(EventType.SYNC_COMPLETED)
        assert len(events) == 1
        assert events[0].payload == {
            "spec": "users endpoint",
            "files": ["src/api/client.ts", "src/hooks/useResource.ts"],
        }
