"""
devmind.core.state - Agent State and Shared Context Models
============================================================

Dynamic state models: what agents are DOING, and what the project has
accumulated so far. These are distinct from the static models in models.py.

State Architecture:
    Every agent keeps an in-memory ``AgentState``. Each status transition is
    also mirrored into the shared context as an ``AgentStatusRecord`` so that
    other agents (and the dashboard) can see it.

    ┌─────────────────┐          ┌──────────────────────────────┐
    │   AgentState    │  mirror  │    SharedContextSnapshot      │
    │ (per agent)     │ ───────→ │  agent_statuses: {...}        │
    │ status: RUNNING │          │  decisions: [#1, #2, ...]     │ append-only
    └─────────────────┘          │  resources: [#1, #2, ...]     │ append-only
                                 │  dependencies: {src: [dst]}   │
                                 │  data: {...} free-form        │
                                 │  metrics: tokens, files, ...  │
                                 └──────────────────────────────┘

Ordering:
    Decisions and resources carry a ``sequence`` number assigned by the
    store under its write lock. Sequence order is the order in which the
    records were accepted, which is the causal order within one process.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from devmind.core.enums import AgentStatus, AgentType


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


# =============================================================================
# Agent State
# =============================================================================
class AgentState(BaseModel):
    """Dynamic runtime state of a single agent instance.

    Updated by BaseAgent on every lifecycle transition:
    - Task started   → status RUNNING, current_task_id set
    - Task completed → status IDLE, task added to completed_tasks
    - Task failed    → status FAILED, error_count incremented
    - Agent stopped  → status STOPPED

    Attributes:
        agent_id: Unique agent identifier (matches AgentIdentity.agent_id).
        agent_type: The agent's role.
        status: Current lifecycle state.
        current_task_id: ID of the task currently being executed.
        completed_tasks: Task IDs completed successfully.
        failed_tasks: Task IDs that failed.
        error_count: Running count of errors encountered.
        last_activity: Last time the agent did something observable.
        metadata: Arbitrary agent-specific data.
        created_at: When this state was first created.
        updated_at: When this state was last modified.

    Example:
        >>> state = AgentState(agent_id="devops", agent_type=AgentType.DEVOPS)
        >>> state = state.model_copy(update={"status": AgentStatus.RUNNING})
    """

    agent_id: str = Field(
        description="Unique agent identifier (matches AgentIdentity.agent_id)",
    )
    agent_type: AgentType = Field(
        description="Agent role type",
    )
    status: AgentStatus = Field(
        default=AgentStatus.IDLE,
        description="Current agent lifecycle state",
    )
    current_task_id: Optional[str] = Field(
        default=None,
        description="ID of the task currently being executed (None if idle)",
    )
    completed_tasks: list[str] = Field(
        default_factory=list,
        description="List of successfully completed task IDs",
    )
    failed_tasks: list[str] = Field(
        default_factory=list,
        description="List of failed task IDs",
    )
    error_count: int = Field(
        default=0,
        ge=0,
        description="Running count of errors encountered",
    )
    last_activity: Optional[datetime] = Field(
        default=None,
        description="Last activity timestamp (None if never active)",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Arbitrary agent-specific metadata",
    )
    created_at: datetime = Field(
        default_factory=_now,
        description="State creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=_now,
        description="Last state modification timestamp (UTC)",
    )

    @property
    def is_available(self) -> bool:
        """An agent is available when it is not busy and not stopped."""
        return self.status in (AgentStatus.IDLE, AgentStatus.FAILED)

    @property
    def total_tasks(self) -> int:
        """Sum of completed and failed tasks."""
        return len(self.completed_tasks) + len(self.failed_tasks)

    @property
    def success_rate(self) -> float:
        """Task success rate between 0.0 and 1.0 (1.0 when nothing ran yet)."""
        total = self.total_tasks
        if total == 0:
            return 1.0
        return len(self.completed_tasks) / total


# =============================================================================
# Shared Context Records
# =============================================================================
class DecisionRecord(BaseModel):
    """One entry of the append-only decision log.

    Attributes:
        sequence: Position in the log (1-based, assigned by the store).
        agent: Name of the agent that took the decision.
        decision: Short statement of what was decided.
        details: Supporting data (spec, chosen framework, file list, ...).
        timestamp: When the decision was recorded (UTC).
    """

    sequence: int = Field(ge=1, description="Position in the decision log")
    agent: str = Field(description="Deciding agent")
    decision: str = Field(description="What was decided")
    details: dict[str, Any] = Field(default_factory=dict, description="Supporting data")
    timestamp: datetime = Field(default_factory=_now, description="Record time (UTC)")


class ResourceRecord(BaseModel):
    """One entry of the append-only resource log.

    A resource is anything an agent produced that others may build on: a
    generated file, a component, an integration config, a dashboard page.

    Attributes:
        sequence: Position in the log (1-based, assigned by the store).
        agent: Name of the producing agent.
        resource_type: Category ("component", "devops", "dashboard", ...).
        path: Workspace-relative path or logical identifier.
        metadata: Extra data (framework, service, ...).
        timestamp: When the resource was recorded (UTC).
    """

    sequence: int = Field(ge=1, description="Position in the resource log")
    agent: str = Field(description="Producing agent")
    resource_type: str = Field(description="Resource category")
    path: str = Field(description="Workspace-relative path or identifier")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extra data")
    timestamp: datetime = Field(default_factory=_now, description="Record time (UTC)")


class AgentStatusRecord(BaseModel):
    """Last known status of an agent, as seen by other agents."""

    agent: str = Field(description="Agent name")
    agent_type: Optional[AgentType] = Field(default=None, description="Agent role")
    status: AgentStatus = Field(description="Last reported status")
    current_task: Optional[str] = Field(default=None, description="Task in progress")
    last_activity: datetime = Field(default_factory=_now, description="Report time (UTC)")


class ProjectMetrics(BaseModel):
    """Running counters accumulated across agent runs."""

    llm_calls: int = Field(default=0, ge=0, description="LLM requests made")
    total_tokens: int = Field(default=0, ge=0, description="Tokens consumed")
    files_generated: int = Field(default=0, ge=0, description="Files written")


class SharedContextSnapshot(BaseModel):
    """Whole shared context as persisted to shared-context.json.

    Attributes:
        project_name: Name of the project the agents work on.
        version: Monotonic counter incremented on every mutation.
        data: Free-form project state (update_shared_context merges here).
        decisions: Append-only decision log.
        resources: Append-only resource log.
        dependencies: Resource/agent dependency edges (source → targets).
        agent_statuses: Last reported status per agent name.
        metrics: Usage counters.
        updated_at: Time of the last mutation (UTC).
    """

    project_name: str = Field(default="CJ.DevMind", description="Project name")
    version: int = Field(default=0, ge=0, description="Mutation counter")
    data: dict[str, Any] = Field(default_factory=dict, description="Free-form state")
    decisions: list[DecisionRecord] = Field(default_factory=list)
    resources: list[ResourceRecord] = Field(default_factory=list)
    dependencies: dict[str, list[str]] = Field(default_factory=dict)
    agent_statuses: dict[str, AgentStatusRecord] = Field(default_factory=dict)
    metrics: ProjectMetrics = Field(default_factory=ProjectMetrics)
    updated_at: datetime = Field(default_factory=_now)
