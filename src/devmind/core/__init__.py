"""
devmind.core - Foundation Layer
===============================

The building blocks every other module in CJ.DevMind depends on:

    - config:      Configuration management (DevMindConfig, LLMConfig, WorkspaceConfig)
    - enums:       Type-safe enumerations (AgentType, EventType, AgentStatus, ...)
    - models:      Core Pydantic data models (TaskDefinition, TaskResult, GeneratedFile)
    - events:      The AgentEvent envelope carried by the event bus
    - state:       Agent state and shared-context records
    - exceptions:  Custom exception hierarchy for structured error handling
    - logging:     structlog configuration

Dependency Rule:
    core/ depends on NOTHING else in the devmind package.
"""

from devmind.core.config import DevMindConfig, LLMConfig, WorkspaceConfig
from devmind.core.enums import (
    AgentStatus,
    AgentType,
    DevOpsKind,
    EventType,
    Framework,
    TaskStatus,
    TestKind,
)
from devmind.core.events import BROADCAST, AgentEvent
from devmind.core.exceptions import (
    AgentError,
    ConfigurationError,
    ContextStoreError,
    DevMindError,
    EventBusError,
    LLMProviderError,
    WorkspaceError,
)
from devmind.core.models import AgentIdentity, GeneratedFile, TaskDefinition, TaskResult
from devmind.core.state import (
    AgentState,
    AgentStatusRecord,
    DecisionRecord,
    ProjectMetrics,
    ResourceRecord,
    SharedContextSnapshot,
)

__all__ = [
    # Config
    "DevMindConfig",
    "LLMConfig",
    "WorkspaceConfig",
    # Enums
    "AgentStatus",
    "AgentType",
    "DevOpsKind",
    "EventType",
    "Framework",
    "TaskStatus",
    "TestKind",
    # Events
    "AgentEvent",
    "BROADCAST",
    # Exceptions
    "AgentError",
    "ConfigurationError",
    "ContextStoreError",
    "DevMindError",
    "EventBusError",
    "LLMProviderError",
    "WorkspaceError",
    # Models
    "AgentIdentity",
    "GeneratedFile",
    "TaskDefinition",
    "TaskResult",
    # State
    "AgentState",
    "AgentStatusRecord",
    "DecisionRecord",
    "ProjectMetrics",
    "ResourceRecord",
    "SharedContextSnapshot",
]
