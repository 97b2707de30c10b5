"""
devmind.facade - CJ.DevMind Top-Level Facade
==============================================

The single entry point that builds the shared facilities, creates agents,
wires them together and runs them.

Architecture Context:
    ┌──────────────────────────────────────────────────┐
    │                DevMind (Facade)                   │
    │                                                   │
    │  ┌─────────────────────────────────────────────┐ │
    │  │            Agent Layer                        │ │
    │  │  Architect, Component, Dashboard, DevOps,    │ │
    │  │  Integration, FrontendSync, Testing          │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │         Orchestration Layer                   │ │
    │  │  EventBus, SharedContextStore                 │ │
    │  └─────────────────────┬───────────────────────┘ │
    │                        │                          │
    │  ┌─────────────────────▼───────────────────────┐ │
    │  │   Infrastructure / Integration Layers         │ │
    │  │  Workspace, LLM Provider                      │ │
    │  └─────────────────────────────────────────────┘ │
    └──────────────────────────────────────────────────┘

Usage:
    >>> async with DevMind(config) as devmind:
    ...     await devmind.register_default_agents()
    ...     result = await devmind.run_agent("component", "Login form framework: vue")
    ...     statuses = await devmind.get_agent_statuses()
"""

from __future__ import annotations

from typing import Any, Optional, Union

import structlog

from devmind.agents.base import BaseAgent
from devmind.agents.design.architect import ArchitectAgent
from devmind.agents.design.component import ComponentAgent
from devmind.agents.devops.devops import DevOpsAgent
from devmind.agents.integration.frontend_sync import FrontendSyncAgent
from devmind.agents.integration.integration import IntegrationAgent
from devmind.agents.monitoring.dashboard import DashboardAgent
from devmind.agents.quality.testing import TestingAgent
from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentType, EventType
from devmind.core.events import BROADCAST, AgentEvent
from devmind.core.exceptions import AgentError
from devmind.core.models import TaskResult
from devmind.core.state import AgentStatusRecord, SharedContextSnapshot
from devmind.infrastructure.workspace import LocalWorkspace, Workspace
from devmind.integrations.llm.base import BaseLLMProvider
from devmind.integrations.llm.factory import create_llm_provider
from devmind.orchestration.event_bus import EventBus, InMemoryEventBus
from devmind.orchestration.shared_context import (
    JsonFileSharedContextStore,
    SharedContextStore,
)


# =============================================================================
# Logger
# =============================================================================
logger = structlog.get_logger()

# One built-in agent class per agent type, in registration order.
AGENT_CLASSES: dict[AgentType, type[BaseAgent]] = {
    AgentType.ARCHITECT: ArchitectAgent,
    AgentType.COMPONENT: ComponentAgent,
    AgentType.DASHBOARD: DashboardAgent,
    AgentType.DEVOPS: DevOpsAgent,
    AgentType.INTEGRATION: IntegrationAgent,
    AgentType.FRONTEND_SYNC: FrontendSyncAgent,
    AgentType.TESTING: TestingAgent,
}


class DevMind:
    """Top-level facade for CJ.DevMind.

    Lifecycle:
        1. ``DevMind(config)`` builds the bus, store, workspace and LLM
        2. ``await initialize()`` connects the bus and loads the shared context
        3. ``await register_default_agents()`` (or register_agent()) starts agents
        4. ``await run_agent(type, spec)`` runs one agent
        5. ``await shutdown()`` stops agents and releases resources

    Attributes:
        _config: DevMind configuration.
        _event_bus: Bus shared by every agent.
        _context_store: Shared context (JSON file under the project dir).
        _workspace: Where agents read context and write files.
        _llm_provider: LLM used by every agent.
        _agents: Registered agents by name.
        _initialized: Whether initialize() has been called.
    """

    def __init__(
        self,
        config: Optional[DevMindConfig] = None,
        *,
        llm_provider: Optional[BaseLLMProvider] = None,
        event_bus: Optional[EventBus] = None,
        context_store: Optional[SharedContextStore] = None,
        workspace: Optional[Workspace] = None,
    ) -> None:
        """Initialize the facade.

        Args:
            config: DevMind configuration. Defaults to DevMindConfig().
            llm_provider: Custom LLM. Defaults to create_llm_provider(config.llm).
            event_bus: Custom bus. Defaults to InMemoryEventBus.
            context_store: Custom store. Defaults to JsonFileSharedContextStore
                at config.workspace.shared_context_path.
            workspace: Custom workspace. Defaults to LocalWorkspace at
                config.workspace.project_dir.
        """
        self._config = config or DevMindConfig()
        self._workspace = workspace or LocalWorkspace(self._config.workspace.project_dir)
        self._context_store = context_store or JsonFileSharedContextStore(
            self._config.workspace.shared_context_path,
            project_name=self._config.project_name,
        )
        self._event_bus = event_bus or InMemoryEventBus()
        self._llm_provider = llm_provider or create_llm_provider(self._config.llm)

        self._agents: dict[str, BaseAgent] = {}
        self._initialized = False
        self._logger = logger.bind(component="devmind")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> DevMindConfig:
        return self._config

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def context_store(self) -> SharedContextStore:
        return self._context_store

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def llm_provider(self) -> BaseLLMProvider:
        return self._llm_provider

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def initialize(self) -> None:
        """Connect the event bus and load the shared context.

        Idempotent: Safe to call multiple times.
        """
        if self._initialized:
            self._logger.debug("devmind_already_initialized")
            return

        self._logger.info("devmind_initializing", project_name=self._config.project_name)
        await self._event_bus.connect()
        snapshot = await self._context_store.load()

        self._initialized = True
        self._logger.info(
            "devmind_initialized",
            decisions=len(snapshot.decisions),
            resources=len(snapshot.resources),
        )

    async def shutdown(self) -> None:
        """Stop every agent, close the LLM client and disconnect the bus.

        Idempotent: Safe to call multiple times.
        """
        if not self._initialized:
            self._logger.debug("devmind_not_initialized_skipping_shutdown")
            return

        self._logger.info("devmind_shutting_down", agents=len(self._agents))
        for agent in list(self._agents.values()):
            await agent.stop()
        self._agents.clear()

        await self._llm_provider.aclose()
        await self._event_bus.disconnect()

        self._initialized = False
        self._logger.info("devmind_shutdown_complete")

    async def __aenter__(self) -> DevMind:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()

    # =========================================================================
    # Agent Management
    # =========================================================================

    def create_agent(self, agent_type: Union[AgentType, str], **kwargs: Any) -> BaseAgent:
        """Build a built-in agent wired to this facade's collaborators.

        Raises:
            ValueError: If ``agent_type`` is not a known agent type.
        """
        resolved = AgentType(agent_type)
        agent_class = AGENT_CLASSES[resolved]
        return agent_class(
            self._config,
            llm_provider=self._llm_provider,
            event_bus=self._event_bus,
            context_store=self._context_store,
            workspace=self._workspace,
            **kwargs,
        )

    async def register_agent(self, agent: BaseAgent) -> None:
        """Wire missing collaborators into ``agent``, start it and keep it.

        Raises:
            RuntimeError: If DevMind has not been initialized.
            AgentError: AGENT_ALREADY_REGISTERED if the name is taken.
        """
        self._ensure_initialized()
        if agent.name in self._agents:
            raise AgentError(
                message=f"An agent named {agent.name} is already registered",
                agent_id=agent.agent_id,
                error_code="AGENT_ALREADY_REGISTERED",
            )
        agent.wire(
            llm_provider=self._llm_provider,
            event_bus=self._event_bus,
            context_store=self._context_store,
            workspace=self._workspace,
        )
        await agent.start()
        self._agents[agent.name] = agent
        self._logger.info(
            "agent_registered",
            agent_id=agent.agent_id,
            agent_name=agent.name,
            agent_type=agent.agent_type.value,
        )

    async def unregister_agent(self, name_or_type: str) -> None:
        """Stop an agent and forget it. Unknown names are ignored."""
        agent = self.get_agent(name_or_type)
        if agent is None:
            return
        await agent.stop()
        del self._agents[agent.name]
        self._logger.info("agent_unregistered", agent_name=agent.name)

    async def register_default_agents(self) -> list[BaseAgent]:
        """Create and register every built-in agent not registered yet."""
        self._ensure_initialized()
        registered: list[BaseAgent] = []
        for agent_type in AGENT_CLASSES:
            if self.get_agent(agent_type.value) is not None:
                continue
            agent = self.create_agent(agent_type)
            await self.register_agent(agent)
            registered.append(agent)
        return registered

    def get_agent(self, name_or_type: Union[AgentType, str]) -> Optional[BaseAgent]:
        """Agent by name, then agent_id, then agent type value."""
        key = name_or_type.value if isinstance(name_or_type, AgentType) else name_or_type
        if key in self._agents:
            return self._agents[key]
        for agent in self._agents.values():
            if agent.agent_id == key:
                return agent
        for agent in self._agents.values():
            if agent.agent_type.value == key:
                return agent
        return None

    def list_agents(self) -> list[BaseAgent]:
        return list(self._agents.values())

    # =========================================================================
    # Execution
    # =========================================================================

    async def run_agent(
        self,
        agent_type: Union[AgentType, str],
        spec: str,
        **options: Any,
    ) -> TaskResult:
        """Run an agent on ``spec``, registering the built-in one if needed.

        Raises:
            RuntimeError: If DevMind has not been initialized.
            AgentError: If the agent rejects the task.
        """
        self._ensure_initialized()
        agent = self.get_agent(agent_type)
        if agent is None:
            agent = self.create_agent(agent_type)
            await self.register_agent(agent)

        self._logger.info("agent_run_starting", agent_name=agent.name)
        result = await agent.run(spec, **options)
        self._logger.info(
            "agent_run_finished",
            agent_name=agent.name,
            status=result.status.value,
            files=len(result.files),
        )
        return result

    async def get_agent_statuses(self) -> dict[str, AgentStatusRecord]:
        return await self._context_store.get_agent_statuses()

    async def get_shared_context(self) -> SharedContextSnapshot:
        return await self._context_store.get_shared_context()

    async def send_event(
        self,
        event_type: Union[EventType, str],
        payload: Optional[dict[str, Any]] = None,
        target: str = BROADCAST,
        *,
        source: str = "devmind",
    ) -> AgentEvent:
        """Publish an event on behalf of the user (e.g. component_requested)."""
        self._ensure_initialized()
        event = AgentEvent(
            event_type=event_type,
            source=source,
            target=target,
            payload=payload or {},
        )
        await self._event_bus.publish(event)
        return event

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "DevMind has not been initialized. "
                "Call await devmind.initialize() or use 'async with DevMind() as devmind:'"
            )

    def __repr__(self) -> str:
        return f"DevMind(initialized={self._initialized}, agents={len(self._agents)})"
