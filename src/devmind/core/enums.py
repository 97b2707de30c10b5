"""
devmind.core.enums - Type-Safe Enumerations
=============================================

This module defines all enumeration types used throughout CJ.DevMind.

All enums inherit from both `str` and `Enum`, which means:
    - They serialize to strings in JSON (Pydantic-friendly)
    - They can be compared with plain strings: AgentType.COMPONENT == "component"
    - They round-trip cleanly through the shared-context JSON file

Architecture Mapping:

    ┌─────────────────────────────────────────────────────────────────┐
    │  EVENT BUS                                                      │
    │    EventType: What agents announce to each other                │
    ├─────────────────────────────────────────────────────────────────┤
    │  AGENT LAYER                                                    │
    │    AgentType: The 7 specialized agent roles                     │
    │    AgentStatus: Agent lifecycle states (IDLE → RUNNING → ...)   │
    │    TaskStatus: Outcome of a single agent run                    │
    ├─────────────────────────────────────────────────────────────────┤
    │  GENERATION TARGETS                                             │
    │    Framework, DevOpsKind, TestKind                              │
    └─────────────────────────────────────────────────────────────────┘
"""

from enum import Enum


# =============================================================================
# Agent Type Enumeration
# =============================================================================
# One value per concrete agent class:
#
#   ARCHITECT     → agents/design/architect.py
#   COMPONENT     → agents/design/component.py
#   DASHBOARD     → agents/monitoring/dashboard.py
#   DEVOPS        → agents/devops/devops.py
#   INTEGRATION   → agents/integration/integration.py
#   FRONTEND_SYNC → agents/integration/frontend_sync.py
#   TESTING       → agents/quality/testing.py
# =============================================================================
class AgentType(str, Enum):
    """Enumeration of all specialized agent types in CJ.DevMind.

    Usage:
        >>> agent_type = AgentType.COMPONENT
        >>> agent_type.value  # "component"
        >>> agent_type == "component"  # True
    """

    ARCHITECT = "architect"           # Blueprints and architecture docs
    COMPONENT = "component"           # UI components (React/Vue/Angular/Svelte)
    DASHBOARD = "dashboard"           # Project dashboard data and pages
    DEVOPS = "devops"                 # CI/CD, Docker, IaC, monitoring configs
    INTEGRATION = "integration"       # Third-party service glue
    FRONTEND_SYNC = "frontend_sync"   # Frontend ↔ backend wiring
    TESTING = "testing"               # Test suites, mocks and runner config


# =============================================================================
# Agent Status Enumeration
# =============================================================================
#   Created → IDLE → RUNNING → IDLE (next task)
#                  ↘ WAITING (blocked on another agent's reply)
#   Any → STOPPED (agent shut down, handlers removed)
#
# FAILED is reported while an agent is recovering from an unexpected error
# and is visible in the shared context until the next successful run.
# =============================================================================
class AgentStatus(str, Enum):
    """Lifecycle states for an agent instance."""

    IDLE = "idle"           # Ready for work
    RUNNING = "running"     # Executing a task
    WAITING = "waiting"     # Blocked on another agent
    FAILED = "failed"       # Last task ended with an unexpected error
    STOPPED = "stopped"     # Shut down, no longer listening


class TaskStatus(str, Enum):
    """Lifecycle states for a single agent task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Event Type Enumeration
# =============================================================================
# Every announcement that travels over the event bus. Agents subscribe to
# the types they care about with listen_for_event(). Custom event types are
# allowed on the bus as plain strings; these are the ones the built-in
# agents produce or consume.
# =============================================================================
class EventType(str, Enum):
    """Types of events exchanged between agents on the event bus.

    Event Flow Examples:
        ComponentAgent → all:        COMPONENT_CREATED
        ComponentAgent → Testing:    TEST_REQUESTED
        any agent → all:             RESOURCE_CREATED (Dashboard refreshes graph)
        BaseAgent → all:             TASK_STARTED / TASK_COMPLETED / TASK_FAILED
    """

    # --- Agent lifecycle ---
    TASK_STARTED = "task_started"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    AGENT_STATUS_CHANGED = "agent_status_changed"
    AGENT_MESSAGE = "agent_message"

    # --- Shared context ---
    RESOURCE_CREATED = "resource_created"
    CONTEXT_UPDATED = "context_updated"

    # --- Architecture ---
    ARCHITECTURE_DEFINED = "architecture_defined"

    # --- Components & design system ---
    COMPONENT_REQUESTED = "component_requested"
    COMPONENT_CREATED = "component_created"
    COMPONENT_UPDATED = "component_updated"
    COMPONENT_ERROR = "component_error"
    DESIGN_SYSTEM_UPDATED = "design_system_updated"
    STYLE_APPLIED = "style_applied"
    CODE_REVIEW_REQUESTED = "code_review_requested"

    # --- Testing ---
    TEST_REQUESTED = "test_requested"
    TEST_CREATED = "test_created"
    TEST_ERROR = "test_error"

    # --- DevOps ---
    DEPLOYMENT_REQUESTED = "deployment_requested"
    DEPLOYMENT_COMPLETED = "deployment_completed"
    DEPLOYMENT_ERROR = "deployment_error"

    # --- Dashboard ---
    DASHBOARD_UPDATED = "dashboard_updated"

    # --- Integrations ---
    INTEGRATION_REQUESTED = "integration_requested"
    INTEGRATION_COMPLETED = "integration_completed"
    INTEGRATION_ERROR = "integration_error"
    SYNC_COMPLETED = "sync_completed"


# =============================================================================
# Generation Targets
# =============================================================================
class Framework(str, Enum):
    """UI frameworks the ComponentAgent can target."""

    REACT = "react"
    VUE = "vue"
    ANGULAR = "angular"
    SVELTE = "svelte"


class DevOpsKind(str, Enum):
    """Kinds of DevOps configuration the DevOpsAgent produces."""

    CI = "ci"                   # Continuous integration pipelines
    CD = "cd"                   # Continuous deployment / delivery
    DOCKER = "docker"           # Dockerfile, docker-compose
    IAC = "iac"                 # Terraform and friends
    MONITORING = "monitoring"   # Prometheus, Grafana, alerts


class TestKind(str, Enum):
    """Kinds of test suites the TestingAgent produces."""

    __test__ = False  # keep pytest from collecting this class

    UNIT = "unit"
    INTEGRATION = "integration"
    E2E = "e2e"
