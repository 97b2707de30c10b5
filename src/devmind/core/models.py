"""
devmind.core.models - Core Data Models
========================================

The Pydantic models that flow through every layer of CJ.DevMind.

Model Hierarchy:
    AgentIdentity   → Who is this agent? (identity card)
    TaskDefinition  → What should the agent generate? (job ticket)
    TaskResult      → What did the run produce? (job report)
    GeneratedFile   → One file written to the project workspace

Data Flow:
    ┌──────────────┐     TaskDefinition      ┌──────────────┐
    │  DevMind      │ ─────────────────────→  │    Agent      │
    │  facade / CLI │                         │  (prompts LLM)│
    │              │  ←─────────────────────  │              │
    └──────────────┘     TaskResult           └──────┬───────┘
                                                     │ GeneratedFile
                                                     ↓
                                              ┌──────────────┐
                                              │  Workspace    │
                                              └──────────────┘
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from devmind.core.enums import AgentType, TaskStatus


def _generate_id() -> str:
    """Generate a unique identifier using UUID4."""
    return str(uuid4())


def _now() -> datetime:
    """Get the current UTC timestamp.

    Every timestamp in CJ.DevMind is UTC.
    """
    return datetime.now(timezone.utc)


# =============================================================================
# Agent Identity Model
# =============================================================================
# WHO the agent is. Separate from AgentState (state.py), which tracks what
# the agent is DOING.
# =============================================================================
class AgentIdentity(BaseModel):
    """Identity information for an agent.

    Attributes:
        agent_id: Unique identifier for this agent instance. The built-in
            agents use their type value ("component", "devops", ...).
        agent_type: The role this agent plays.
        name: Human-readable name. Event targets address agents by this
            name or by agent_id.
        version: Semantic version of the agent implementation.
        description: Optional longer description of what this agent does.

    Example:
        >>> identity = AgentIdentity(
        ...     agent_id="component",
        ...     agent_type=AgentType.COMPONENT,
        ...     name="ComponentAgent",
        ... )
    """

    agent_id: str = Field(
        default_factory=_generate_id,
        description="Unique identifier for this agent instance",
    )
    agent_type: AgentType = Field(
        description="The specialized role this agent fulfills",
    )
    name: str = Field(
        description="Human-readable agent name for logging and event targeting",
    )
    version: str = Field(
        default="0.1.0",
        description="Semantic version of the agent implementation",
    )
    description: Optional[str] = Field(
        default=None,
        description="Optional description of the agent's purpose",
    )


# =============================================================================
# Task Definition Model
# =============================================================================
# input_data is a flexible dict because each agent takes different inputs:
#   - ArchitectAgent:   {"spec": "E-commerce platform with ..."}
#   - ComponentAgent:   {"spec": "Login form framework: vue"}
#   - IntegrationAgent: {"service": "stripe", "config": {...}, "action": "setup"}
# =============================================================================
class TaskDefinition(BaseModel):
    """A unit of generation work for one agent.

    Attributes:
        task_id: Unique identifier for tracking this task.
        name: Short descriptive name. Example: "component: login form"
        description: Longer description (free text).
        agent_type: Which agent type should handle this task.
        input_data: Task-specific input; schema depends on the agent.
        correlation_id: Links the task to the event that triggered it
            (e.g., the COMPONENT_REQUESTED event that asked for it).
        created_at: When the task was created (UTC).
        metadata: Arbitrary key-value pairs.

    Example:
        >>> task = TaskDefinition(
        ...     name="Generate login form",
        ...     agent_type=AgentType.COMPONENT,
        ...     input_data={"spec": "Login form with email and password"},
        ... )
    """

    task_id: str = Field(
        default_factory=_generate_id,
        description="Unique task identifier (UUID4)",
    )
    name: str = Field(
        description="Short descriptive task name",
    )
    description: str = Field(
        default="",
        description="Detailed description of the work to be done",
    )
    agent_type: Optional[AgentType] = Field(
        default=None,
        description="Target agent type",
    )
    input_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Task-specific input data (schema varies by agent type)",
    )
    correlation_id: Optional[str] = Field(
        default=None,
        description="ID of the event or request that triggered this task",
    )
    created_at: datetime = Field(
        default_factory=_now,
        description="Task creation timestamp (UTC)",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Arbitrary metadata for tracking and tagging",
    )


# =============================================================================
# Task Result Model
# =============================================================================
#   - ArchitectAgent produces:  {"blueprint": "...", "files": ["docs/architecture.md"]}
#   - ComponentAgent produces:  {"component_name": "LoginForm", "framework": "react", ...}
#   - TestingAgent produces:    {"test_kind": "unit", "files": [...]}
# =============================================================================
class TaskResult(BaseModel):
    """Result of one agent run.

    Attributes:
        task_id: References the TaskDefinition that was executed.
        agent_id: Which agent instance performed the work.
        status: Final status of the task (COMPLETED or FAILED).
        output_data: Agent-specific output.
        files: Workspace-relative paths written during the run.
        error_message: Error description if status is FAILED.
        started_at: When the agent began executing this task (UTC).
        completed_at: When the agent finished (UTC).
        duration_seconds: Wall-clock execution time.
        metadata: Additional context (LLM model, token usage, ...).
    """

    task_id: str = Field(
        description="ID of the TaskDefinition that was executed",
    )
    agent_id: str = Field(
        description="ID of the agent that performed the execution",
    )
    status: TaskStatus = Field(
        description="Final task status: COMPLETED or FAILED",
    )
    output_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Task-specific output data (schema varies by agent type)",
    )
    files: list[str] = Field(
        default_factory=list,
        description="Workspace-relative paths of files written by this run",
    )
    error_message: Optional[str] = Field(
        default=None,
        description="Error description if task failed (None on success)",
    )
    started_at: datetime = Field(
        default_factory=_now,
        description="Execution start timestamp (UTC)",
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="Execution end timestamp (UTC, None if still running)",
    )
    duration_seconds: Optional[float] = Field(
        default=None,
        ge=0,
        description="Wall-clock execution time in seconds",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional execution context",
    )

    @property
    def succeeded(self) -> bool:
        """True when the task completed successfully."""
        return self.status == TaskStatus.COMPLETED


class GeneratedFile(BaseModel):
    """A file written to the project workspace by an agent.

    Attributes:
        path: Workspace-relative POSIX path ("components/Button/Button.tsx").
        content: Full text content written.
        language: Code fence language the content came from, if known.
        agent: Name of the agent that produced the file.
        created_at: When the file was written (UTC).
    """

    path: str = Field(description="Workspace-relative path")
    content: str = Field(description="File text content")
    language: Optional[str] = Field(default=None, description="Source language")
    agent: Optional[str] = Field(default=None, description="Producing agent name")
    created_at: datetime = Field(default_factory=_now, description="Write time (UTC)")

    @property
    def size(self) -> int:
        """Content length in characters."""
        return len(self.content)
