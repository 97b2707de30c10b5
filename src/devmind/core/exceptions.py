"""
devmind.core.exceptions - Custom Exception Hierarchy
======================================================

Structured exceptions for CJ.DevMind. Components raise and catch specific
exception types that carry an error code and a details dict instead of
bare strings.

Exception Hierarchy:
    DevMindError (base)
        ├── ConfigurationError     - Invalid config, missing required values
        ├── AgentError             - Agent execution failures
        ├── EventBusError          - Event publishing/subscribing failures
        ├── ContextStoreError      - Shared context read/write failures
        ├── LLMProviderError       - LLM API call failures
        └── WorkspaceError         - Generated file write/read failures

Error Handling Flow:
    LLM call fails          → LLMProviderError
        → BaseAgent.execute_task() turns it into a FAILED TaskResult
        → TASK_FAILED is broadcast, agent status recorded in shared context
    Task input is invalid   → AgentError("TASK_VALIDATION_FAILED") propagates
    Event handler raises    → logged by the bus, never reaches the sender

Usage:
    >>> from devmind.core.exceptions import AgentError
    >>> raise AgentError(
    ...     message="Unsupported framework: ember",
    ...     agent_id="component",
    ...     error_code="UNSUPPORTED_FRAMEWORK",
    ...     details={"framework": "ember"},
    ... )
"""

from __future__ import annotations

from typing import Any, Optional


# =============================================================================
# Base Exception
# =============================================================================
# All CJ.DevMind exceptions inherit from this base class, so callers can
# catch everything framework-specific with a single except clause:
#
#   try:
#       await agent.run("a login form")
#   except DevMindError as e:
#       logger.error(e.message, error_code=e.error_code, details=e.details)
# =============================================================================
class DevMindError(Exception):
    """Base exception for all CJ.DevMind errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code, UPPER_SNAKE_CASE
            (e.g., "BUS_NOT_CONNECTED", "LLM_HTTP_ERROR").
        details: Arbitrary dict with additional debugging context.

    Example:
        >>> try:
        ...     do_something()
        ... except DevMindError as e:
        ...     print(f"[{e.error_code}] {e.message}")
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize this exception to a dictionary.

        Used for structured logging and for the error payloads that agents
        broadcast on the event bus (COMPONENT_ERROR, TEST_ERROR, ...).

        Returns:
            Dictionary with error_type, message, error_code, and details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ConfigurationError(DevMindError):
    """Raised when CJ.DevMind configuration is invalid or missing.

    Common Causes:
        - Malformed devmind.yaml
        - "openai" provider selected without an API key
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


# =============================================================================
# Agent Error
# =============================================================================
# Carries the agent_id (and optionally the task_id) so log lines and error
# events can be traced back to the agent that failed.
# =============================================================================
class AgentError(DevMindError):
    """Raised when an agent cannot accept or complete a task.

    Attributes:
        agent_id: ID of the agent that encountered the error.
        task_id: Optional ID of the task that failed.

    Example:
        >>> raise AgentError(
        ...     message="Task validation failed for agent component",
        ...     agent_id="component",
        ...     task_id="task-abc-123",
        ...     error_code="TASK_VALIDATION_FAILED",
        ... )
    """

    def __init__(
        self,
        message: str,
        agent_id: str,
        task_id: Optional[str] = None,
        error_code: str = "AGENT_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["agent_id"] = agent_id
        if task_id:
            enriched_details["task_id"] = task_id

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.agent_id = agent_id
        self.task_id = task_id


class EventBusError(DevMindError):
    """Raised when the event bus is misused or fails to deliver.

    Handler exceptions are NOT reported through this class: the bus logs
    them and keeps going. This error covers bus-level problems such as
    publishing before connect().

    Example:
        >>> raise EventBusError(
        ...     message="Event bus is not connected. Call connect() first.",
        ...     error_code="BUS_NOT_CONNECTED",
        ... )
    """

    def __init__(
        self,
        message: str,
        error_code: str = "EVENT_BUS_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class ContextStoreError(DevMindError):
    """Raised when the shared context cannot be loaded or persisted.

    Common Causes:
        - shared-context.json is not valid JSON / does not match the schema
        - The data directory is not writable
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONTEXT_STORE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class LLMProviderError(DevMindError):
    """Raised when an LLM provider call fails.

    Attributes:
        provider: Name of the provider that failed ("openai", "mock", ...).

    Example:
        >>> raise LLMProviderError(
        ...     message="LLM API returned HTTP 429",
        ...     provider="openai",
        ...     error_code="LLM_HTTP_ERROR",
        ...     details={"status_code": 429},
        ... )
    """

    def __init__(
        self,
        message: str,
        provider: str,
        error_code: str = "LLM_PROVIDER_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["provider"] = provider

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.provider = provider


class WorkspaceError(DevMindError):
    """Raised when a generated file cannot be written or read.

    Attributes:
        path: The workspace-relative path involved.
    """

    def __init__(
        self,
        message: str,
        path: str,
        error_code: str = "WORKSPACE_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        enriched_details = details or {}
        enriched_details["path"] = path

        super().__init__(message=message, error_code=error_code, details=enriched_details)

        self.path = path
