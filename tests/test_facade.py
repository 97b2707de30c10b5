"""
Tests for devmind.facade - CJ.DevMind Top-Level Facade
========================================================

These tests verify the DevMind facade, the main entry point that builds
the shared facilities and wires the agents together.

What's Being Tested:
    - Initialization and shutdown lifecycle
    - Async context manager (async with)
    - Agent creation, registration and lookup
    - Running agents through the facade
    - Shared context access and user-sent events
    - Error handling (uninitialized access, duplicate names)

The facade defaults (JSON-file store, local workspace) are exercised under
pytest's tmp_path; everything else uses in-memory implementations.
"""

import json

import pytest

from devmind.agents.quality.testing import TestingAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentStatus, AgentType, EventType, TaskStatus
from devmind.core.exceptions import AgentError
from devmind.facade import AGENT_CLASSES, DevMind
from devmind.infrastructure.workspace import InMemoryWorkspace, LocalWorkspace
from devmind.integrations.llm.mock import MockLLMProvider
from devmind.orchestration.event_bus import InMemoryEventBus
from devmind.orchestration.shared_context import (
    InMemorySharedContextStore,
    JsonFileSharedContextStore,
)


# =============================================================================
# Helpers
# =============================================================================
def _devmind(config: DevMindConfig, **overrides) -> DevMind:
    """DevMind on in-memory facilities unless overridden."""
    facilities = {
        "llm_provider": MockLLMProvider(),
        "context_store": InMemorySharedContextStore("facade-test"),
        "workspace": InMemoryWorkspace(),
    }
    facilities.update(overrides)
    return DevMind(config, **facilities)


# =============================================================================
# Tests: Initialization
# =============================================================================
class TestDevMindInit:
    """Tests for DevMind construction and lifecycle."""

    def test_defaults_follow_config(self, config: DevMindConfig) -> None:
        devmind = DevMind(config)

        assert devmind.config is config
        assert devmind.is_initialized is False
        assert isinstance(devmind.workspace, LocalWorkspace)
        assert isinstance(devmind.context_store, JsonFileSharedContextStore)
        assert isinstance(devmind.event_bus, InMemoryEventBus)
        assert isinstance(devmind.llm_provider, MockLLMProvider)

    def test_custom_facilities(self, config: DevMindConfig) -> None:
        provider = MockLLMProvider()
        devmind = _devmind(config, llm_provider=provider)
        assert devmind.llm_provider is provider

    async def test_initialize_connects_bus(self, config: DevMindConfig) -> None:
        devmind = _devmind(config)
        await devmind.initialize()
        await devmind.initialize()

        assert devmind.is_initialized
        assert devmind.event_bus.is_connected
        await devmind.shutdown()
        assert devmind.is_initialized is False
        assert devmind.event_bus.is_connected is False

    async def test_shutdown_without_initialize_is_a_no_op(self, config: DevMindConfig) -> None:
        await _devmind(config).shutdown()

    async def test_context_manager(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            assert devmind.is_initialized
        assert devmind.is_initialized is False

    def test_repr(self, config: DevMindConfig) -> None:
        assert repr(_devmind(config)) == "DevMind(initialized=False, agents=0)"


# =============================================================================
# Tests: Agent management
# =============================================================================
class TestAgentManagement:
    """Tests for creating, registering and finding agents."""

    @pytest.mark.parametrize("agent_type", list(AGENT_CLASSES))
    def test_create_agent(self, config: DevMindConfig, agent_type: AgentType) -> None:
        devmind = _devmind(config)
        agent = devmind.create_agent(agent_type)

        assert isinstance(agent, AGENT_CLASSES[agent_type])
        assert agent.llm_provider is devmind.llm_provider
        assert agent.workspace is devmind.workspace

    def test_create_unknown_agent(self, config: DevMindConfig) -> None:
        with pytest.raises(ValueError):
            _devmind(config).create_agent("wizard")

    async def test_register_default_agents(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            registered = await devmind.register_default_agents()
            again = await devmind.register_default_agents()

            assert len(registered) == 7
            assert again == []
            statuses = await devmind.get_agent_statuses()
            assert sorted(statuses) == sorted(a.name for a in registered)
            assert all(s.status == AgentStatus.IDLE for s in statuses.values())

    async def test_register_requires_initialize(self, config: DevMindConfig) -> None:
        devmind = _devmind(config)
        with pytest.raises(RuntimeError, match="not been initialized"):
            await devmind.register_agent(devmind.create_agent(AgentType.TESTING))

    async def test_register_wires_missing_collaborators(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            agent = TestingAgent(config)
            await devmind.register_agent(agent)

            assert agent.event_bus is devmind.event_bus
            assert agent.context_store is devmind.context_store

    async def test_duplicate_name_rejected(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            await devmind.register_agent(devmind.create_agent(AgentType.COMPONENT))
            with pytest.raises(AgentError) as exc_info:
                await devmind.register_agent(devmind.create_agent(AgentType.COMPONENT))
            assert exc_info.value.error_code == "AGENT_ALREADY_REGISTERED"

    async def test_get_agent_by_name_id_or_type(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            await devmind.register_default_agents()

            by_name = devmind.get_agent("FrontendSyncAgent")
            assert by_name is devmind.get_agent("frontend_sync")
            assert by_name is devmind.get_agent(AgentType.FRONTEND_SYNC)
            assert devmind.get_agent("nobody") is None

    async def test_unregister_stops_agent(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            await devmind.register_default_agents()

            await devmind.unregister_agent("testing")
            await devmind.unregister_agent("testing")

            assert devmind.get_agent("testing") is None
            assert len(devmind.list_agents()) == 6
            statuses = await devmind.get_agent_statuses()
            assert statuses["TestingAgent"].status == AgentStatus.STOPPED


# =============================================================================
# Tests: Execution
# =============================================================================
class TestExecution:
    """Tests for running agents through the facade."""

    async def test_run_agent_registers_on_demand(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            result = await devmind.run_agent("architect", "Online bookstore")

            assert result.status == TaskStatus.COMPLETED
            assert devmind.get_agent("architect") is not None
            assert "docs/architecture.md" in devmind.workspace.files

    async def test_run_agent_requires_initialize(self, config: DevMindConfig) -> None:
        with pytest.raises(RuntimeError):
            await _devmind(config).run_agent("architect", "Online bookstore")

    async def test_run_unknown_agent(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            with pytest.raises(ValueError):
                await devmind.run_agent("wizard", "anything")

    async def test_send_event_reaches_agents(self, config: DevMindConfig) -> None:
        """A user-sent component_requested is answered to the sender.

        Scenario:
            1. Register the ComponentAgent
            2. devmind.send_event(component_requested, target=ComponentAgent)
            3. component_created comes back to "devmind"
        """
        async with _devmind(config) as devmind:
            await devmind.register_agent(devmind.create_agent(AgentType.COMPONENT))

            await devmind.send_event(
                EventType.COMPONENT_REQUESTED, {"spec": "Login form"}, target="ComponentAgent",
            )

            replies = devmind.event_bus.get_history(EventType.COMPONENT_CREATED)
            assert replies[0].target == "devmind"

    async def test_user_events_are_sourced_as_devmind(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            event = await devmind.send_event(EventType.AGENT_MESSAGE, {"note": "hello"})

        assert event.source == "devmind"

    async def test_json_store_persists_under_project_dir(self, config: DevMindConfig, tmp_path) -> None:
        """With the default store the shared context lands in data/shared-context.json."""
        async with DevMind(config, llm_provider=MockLLMProvider()) as devmind:
            await devmind.run_agent(AgentType.DEVOPS, "CI pipeline")

        document = json.loads((tmp_path / "data" / "shared-context.json").read_text(encoding="utf-8"))
        assert document["decisions"][0]["agent"] == "DevOpsAgent"
        assert (tmp_path / "devops" / "deploy.sh").exists()

    async def test_shared_context_snapshot(self, config: DevMindConfig) -> None:
        async with _devmind(config) as devmind:
            await devmind.run_agent(AgentType.COMPONENT, "Login form", request_tests=False)
            snapshot = await devmind.get_shared_context()

        assert snapshot.project_name == "facade-test"
        assert "LoginForm" in snapshot.data["components"]
        assert devmind.get_agent("component") is None, "Agents are released on shutdown"
