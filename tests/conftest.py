"""
Shared Test Fixtures for CJ.DevMind
=====================================

This module provides reusable pytest fixtures used across the entire
test suite. Fixtures are organized by layer:

    1. Configuration fixtures
    2. Infrastructure fixtures (Workspace)
    3. Orchestration fixtures (EventBus, SharedContextStore)
    4. Integration fixtures (LLM providers)
    5. Agent fixtures (all 7 agent types, wired but not started)
"""

from __future__ import annotations

import pytest

from devmind.agents.design.architect import ArchitectAgent
from devmind.agents.design.component import ComponentAgent
from devmind.agents.devops.devops import DevOpsAgent
from devmind.agents.integration.frontend_sync import FrontendSyncAgent
from devmind.agents.integration.integration import IntegrationAgent
from devmind.agents.monitoring.dashboard import DashboardAgent
from devmind.agents.quality.testing import TestingAgent
from devmind.core.config import DevMindConfig, LLMConfig, WorkspaceConfig
from devmind.infrastructure.workspace import InMemoryWorkspace
from devmind.integrations.llm.mock import MockLLMProvider
from devmind.orchestration.event_bus import InMemoryEventBus
from devmind.orchestration.shared_context import InMemorySharedContextStore


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def config(tmp_path):
    """DevMind configuration with the mock LLM, rooted at a temp dir."""
    return DevMindConfig(
        llm=LLMConfig(provider="mock", model="mock-model"),
        workspace=WorkspaceConfig(project_dir=tmp_path),
    )


# =============================================================================
# Infrastructure
# =============================================================================

@pytest.fixture
def workspace():
    """Fresh InMemoryWorkspace."""
    return InMemoryWorkspace()


# =============================================================================
# Orchestration
# =============================================================================

@pytest.fixture
async def event_bus():
    """InMemoryEventBus, already connected."""
    bus = InMemoryEventBus()
    await bus.connect()
    yield bus
    await bus.disconnect()


@pytest.fixture
def context_store():
    """Fresh InMemorySharedContextStore."""
    return InMemorySharedContextStore(project_name="test-project")


# =============================================================================
# LLM Provider
# =============================================================================

@pytest.fixture
def mock_llm_provider():
    """Fresh MockLLMProvider with no queued responses."""
    return MockLLMProvider()


# =============================================================================
# Agents
# =============================================================================

@pytest.fixture
def collaborators(mock_llm_provider, event_bus, context_store, workspace):
    """Keyword arguments wiring an agent to every shared facility."""
    return {
        "llm_provider": mock_llm_provider,
        "event_bus": event_bus,
        "context_store": context_store,
        "workspace": workspace,
    }


@pytest.fixture
def architect_agent(config, collaborators):
    """ArchitectAgent wired to the in-memory facilities."""
    return ArchitectAgent(config, **collaborators)


@pytest.fixture
def component_agent(config, collaborators):
    """ComponentAgent wired to the in-memory facilities."""
    return ComponentAgent(config, **collaborators)


@pytest.fixture
def dashboard_agent(config, collaborators):
    """DashboardAgent wired to the in-memory facilities."""
    return DashboardAgent(config, **collaborators)


@pytest.fixture
def devops_agent(config, collaborators):
    """DevOpsAgent wired to the in-memory facilities."""
    return DevOpsAgent(config, **collaborators)


@pytest.fixture
def integration_agent(config, collaborators):
    """IntegrationAgent wired to the in-memory facilities."""
    return IntegrationAgent(config, **collaborators)


@pytest.fixture
def frontend_sync_agent(config, collaborators):
    """FrontendSyncAgent wired to the in-memory facilities."""
    return FrontendSyncAgent(config, **collaborators)


@pytest.fixture
def testing_agent(config, collaborators):
    """TestingAgent wired to the in-memory facilities."""
    return TestingAgent(config, **collaborators)
