"""
devmind.agents.base - Abstract Base Agent
===========================================

The foundation every CJ.DevMind agent inherits from. It implements the
Template Method pattern for running a task and gives each agent the three
shared facilities of the system:

    1. The event bus:      listen_for_event / send_event / send_message
    2. The shared context: record_decision / record_resource /
                           get_shared_context / update_shared_context
    3. Status tracking:    AgentState locally, AgentStatusRecord shared

Template Method:
    ┌─────────────────────────────────────────────────────────┐
    │  BaseAgent.execute_task(task)   ← Public API             │
    │  ┌──────────────────────────────────────────────────┐   │
    │  │ 1. _validate_task(task)          ← Override this │   │
    │  │ 2. status → RUNNING, broadcast task_started       │   │
    │  │ 3. _execute(task)                ← Override this │   │
    │  │ 4. status → IDLE   (task_completed)               │   │
    │  │    status → FAILED (task_failed, FAILED result)   │   │
    │  └──────────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────────┘

Collaborators:
    Agents are wired with an LLM provider, an event bus, a shared-context
    store and a workspace. Each is optional so that an agent can be unit
    tested with only what it uses; an operation that needs a missing
    collaborator raises AgentError("AGENT_NOT_WIRED").

Subclass Contract:
    - _execute(task) → TaskResult        Required: the agent's work
    - _validate_task(task) → bool        Optional: default requires "spec"
    - _on_start() / _on_stop()           Optional: subscribe / clean up

Usage:
    class EchoAgent(BaseAgent):
        async def _execute(self, task):
            answer = await self.query_llm(task.input_data["spec"])
            await self.write_generated_file("echo.md", answer, resource_type="doc")
            return self._create_result(task.task_id, TaskStatus.COMPLETED, {"answer": answer})
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional, Union

import structlog

from devmind.core.config import DevMindConfig
from devmind.core.enums import AgentStatus, AgentType, EventType, TaskStatus
from devmind.core.events import BROADCAST, AgentEvent
from devmind.core.exceptions import AgentError, WorkspaceError
from devmind.core.models import AgentIdentity, GeneratedFile, TaskDefinition, TaskResult
from devmind.core.state import (
    AgentState,
    AgentStatusRecord,
    DecisionRecord,
    ResourceRecord,
    SharedContextSnapshot,
)
from devmind.infrastructure.workspace import Workspace, normalize_relative_path
from devmind.integrations.llm.base import BaseLLMProvider, LLMResponse
from devmind.orchestration.event_bus import EventBus, EventHandler
from devmind.orchestration.shared_context import SharedContextStore


logger = structlog.get_logger()

DEFAULT_SYSTEM_PROMPT = (
    "You are DevMind's assistant agent. Answer precisely and put every "
    "generated file in its own fenced code block."
)


class BaseAgent(ABC):
    """Abstract base class for all CJ.DevMind agents.

    What BaseAgent Handles:
        - Identity (agent_id, type, display name) and AgentState
        - The run lifecycle with status transitions and lifecycle events
        - Event bus subscriptions owned by the agent (removed on stop())
        - Shared-context bookkeeping (decisions, resources, metrics)
        - LLM calls and confined file writes

    Attributes:
        SYSTEM_PROMPT: Role prompt sent with every LLM call of the agent.
        _identity: Static identity.
        _state: Dynamic state.
        _config: DevMind configuration.
        _subscriptions: Subscription ids registered through listen_for_event.

    Example:
        >>> agent = ArchitectAgent(config, llm_provider=llm, event_bus=bus,
        ...                        context_store=store, workspace=workspace)
        >>> await agent.start()
        >>> result = await agent.run("Online bookstore with a REST API")
    """

    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT

    def __init__(
        self,
        agent_id: str,
        agent_type: AgentType,
        config: DevMindConfig,
        *,
        llm_provider: Optional[BaseLLMProvider] = None,
        event_bus: Optional[EventBus] = None,
        context_store: Optional[SharedContextStore] = None,
        workspace: Optional[Workspace] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """Initialize the base agent.

        Args:
            agent_id: Unique identifier. Built-in agents use their type value.
            agent_type: The role this agent plays.
            config: DevMind configuration.
            llm_provider: LLM used by query_llm().
            event_bus: Bus used by the event API.
            context_store: Store used by the shared-context API.
            workspace: Where generated files are written.
            name: Display name, also accepted as an event target.
            description: Optional description of the agent's purpose.
        """
        self._identity = AgentIdentity(
            agent_id=agent_id,
            agent_type=agent_type,
            name=name or agent_id,
            description=description,
        )
        self._state = AgentState(
            agent_id=agent_id,
            agent_type=agent_type,
            status=AgentStatus.IDLE,
        )
        self._config = config
        self._llm_provider = llm_provider
        self._event_bus = event_bus
        self._context_store = context_store
        self._workspace = workspace
        self._subscriptions: list[str] = []
        self._logger = logger.bind(
            agent_id=agent_id,
            agent_type=agent_type.value,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def identity(self) -> AgentIdentity:
        return self._identity

    @property
    def agent_id(self) -> str:
        return self._identity.agent_id

    @property
    def agent_type(self) -> AgentType:
        return self._identity.agent_type

    @property
    def name(self) -> str:
        """Display name; events may target the agent by this or agent_id."""
        return self._identity.name

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def status(self) -> AgentStatus:
        return self._state.status

    @property
    def config(self) -> DevMindConfig:
        return self._config

    @property
    def llm_provider(self) -> Optional[BaseLLMProvider]:
        return self._llm_provider

    @property
    def event_bus(self) -> Optional[EventBus]:
        return self._event_bus

    @property
    def context_store(self) -> Optional[SharedContextStore]:
        return self._context_store

    @property
    def workspace(self) -> Optional[Workspace]:
        return self._workspace

    def wire(
        self,
        *,
        llm_provider: Optional[BaseLLMProvider] = None,
        event_bus: Optional[EventBus] = None,
        context_store: Optional[SharedContextStore] = None,
        workspace: Optional[Workspace] = None,
    ) -> None:
        """Attach collaborators that were not given to the constructor."""
        self._llm_provider = llm_provider or self._llm_provider
        self._event_bus = event_bus or self._event_bus
        self._context_store = context_store or self._context_store
        self._workspace = workspace or self._workspace

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Set the agent IDLE and let the subclass subscribe to events."""
        self._logger.info("agent_starting")
        await self._set_status(AgentStatus.IDLE)
        await self._on_start()
        self._logger.info("agent_started", subscriptions=len(self._subscriptions))

    async def stop(self) -> None:
        """Unsubscribe every handler of this agent and mark it STOPPED."""
        self._logger.info("agent_stopping")
        await self._on_stop()
        if self._event_bus is not None and self._subscriptions:
            await self._event_bus.unsubscribe_all(self.name)
        self._subscriptions.clear()
        await self._set_status(AgentStatus.STOPPED)
        self._logger.info("agent_stopped")

    # =========================================================================
    # Task Execution (Template Method)
    # =========================================================================

    async def run(self, spec: str, **options: Any) -> TaskResult:
        """Run the agent on a free-text specification.

        Builds a TaskDefinition with ``input_data={"spec": spec, **options}``
        and executes it.
        """
        summary = " ".join((spec or "").split())[:60]
        task = TaskDefinition(
            name=f"{self.agent_type.value}: {summary}",
            agent_type=self.agent_type,
            input_data={"spec": spec, **options},
        )
        return await self.execute_task(task)

    async def execute_task(self, task: TaskDefinition) -> TaskResult:
        """Execute a task through the template method.

        Raises:
            AgentError: TASK_VALIDATION_FAILED if the task is not valid for
                this agent, or any AgentError raised by ``_execute``.
        """
        self._logger.info(
            "task_execution_starting",
            task_id=task.task_id,
            task_name=task.name,
        )

        is_valid = await self._validate_task(task)
        if not is_valid:
            self._logger.warning(
                "task_validation_failed",
                task_id=task.task_id,
                task_name=task.name,
            )
            raise AgentError(
                message=f"Task validation failed for agent {self.agent_id}",
                agent_id=self.agent_id,
                task_id=task.task_id,
                error_code="TASK_VALIDATION_FAILED",
                details={
                    "task_name": task.name,
                    "agent_type": self.agent_type.value,
                    "input_keys": sorted(task.input_data),
                },
            )

        started_at = datetime.now(timezone.utc)
        await self._set_status(AgentStatus.RUNNING, current_task_id=task.task_id)
        await self._emit_lifecycle(
            EventType.TASK_STARTED,
            {"task_id": task.task_id, "task_name": task.name},
        )

        try:
            result = await self._execute(task)

        except AgentError:
            await self._set_status(
                AgentStatus.FAILED,
                current_task_id=None,
                failed_tasks=list(self._state.failed_tasks) + [task.task_id],
                error_count=self._state.error_count + 1,
            )
            raise

        except Exception as e:
            completed_at = datetime.now(timezone.utc)
            duration = (completed_at - started_at).total_seconds()
            await self._set_status(
                AgentStatus.FAILED,
                current_task_id=None,
                failed_tasks=list(self._state.failed_tasks) + [task.task_id],
                error_count=self._state.error_count + 1,
            )
            self._logger.error(
                "task_execution_failed",
                task_id=task.task_id,
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 3),
            )
            await self._emit_lifecycle(
                EventType.TASK_FAILED,
                {"task_id": task.task_id, "task_name": task.name, "error": str(e)},
            )
            return self._create_result(
                task_id=task.task_id,
                status=TaskStatus.FAILED,
                output={},
                error=str(e),
                started_at=started_at,
                completed_at=completed_at,
                duration=duration,
            )

        completed_at = datetime.now(timezone.utc)
        duration = (completed_at - started_at).total_seconds()
        result.started_at = started_at
        result.completed_at = completed_at
        result.duration_seconds = duration

        await self._set_status(
            AgentStatus.IDLE,
            current_task_id=None,
            completed_tasks=list(self._state.completed_tasks) + [task.task_id],
        )
        self._logger.info(
            "task_execution_completed",
            task_id=task.task_id,
            duration_seconds=round(duration, 3),
            files=len(result.files),
        )
        await self._emit_lifecycle(
            EventType.TASK_COMPLETED,
            {"task_id": task.task_id, "task_name": task.name, "files": result.files},
        )
        return result

    @abstractmethod
    async def _execute(self, task: TaskDefinition) -> TaskResult:
        """Do the agent's work for a validated task.

        Called after the status is RUNNING. Must not handle status
        transitions; BaseAgent does that.
        """
        ...

    async def _validate_task(self, task: TaskDefinition) -> bool:
        """Default validation: ``input_data["spec"]`` is a non-blank string."""
        spec = task.input_data.get("spec")
        if not isinstance(spec, str) or not spec.strip():
            self._logger.warning(
                "task_missing_spec",
                task_id=task.task_id,
                available_keys=list(task.input_data.keys()),
            )
            return False
        return True

    async def _on_start(self) -> None:
        """Hook called by start(). Subscribe to events here."""
        pass

    async def _on_stop(self) -> None:
        """Hook called by stop() before the agent's handlers are removed."""
        pass

    # =========================================================================
    # Event API
    # =========================================================================

    async def listen_for_event(
        self,
        event_type: Union[EventType, str],
        handler: EventHandler,
    ) -> str:
        """Register ``handler`` for ``event_type`` on behalf of this agent.

        The handler receives broadcasts of that type and events addressed
        to this agent by name or agent_id.

        Returns:
            The subscription id.
        """
        bus = self._require_event_bus()
        subscription_id = await bus.subscribe(
            event_type,
            handler,
            subscriber=self.name,
            aliases=(self.agent_id,),
        )
        self._subscriptions.append(subscription_id)
        return subscription_id

    async def send_event(
        self,
        event_type: Union[EventType, str],
        payload: Optional[dict[str, Any]] = None,
        target: str = BROADCAST,
        *,
        correlation_id: Optional[str] = None,
    ) -> AgentEvent:
        """Publish an event from this agent.

        Args:
            event_type: What happened.
            payload: JSON-compatible event data.
            target: Agent name or agent_id, or "all" to broadcast.
            correlation_id: Ties a reply to the request it answers.

        Returns:
            The published event.
        """
        bus = self._require_event_bus()
        event = AgentEvent(
            event_type=event_type,
            source=self.name,
            target=target,
            payload=payload or {},
            correlation_id=correlation_id,
        )
        delivered = await bus.publish(event)
        self._logger.debug(
            "event_sent",
            event_type=event.type_value,
            target=event.target,
            delivered=delivered,
        )
        return event

    async def send_message(
        self,
        target: str,
        event_type: Union[EventType, str],
        content: Any,
    ) -> AgentEvent:
        """Send ``content`` wrapped as ``{"from": <name>, "content": ...}``."""
        return await self.send_event(
            event_type,
            {"from": self.name, "content": content},
            target=target,
        )

    async def reply(
        self,
        request: AgentEvent,
        event_type: Union[EventType, str],
        payload: dict[str, Any],
    ) -> AgentEvent:
        """Answer ``request`` by unicast to its sender."""
        return await self.send_event(
            event_type,
            payload,
            target=request.source,
            correlation_id=request.correlation_id or request.event_id,
        )

    # =========================================================================
    # Shared Context API
    # =========================================================================

    async def record_decision(
        self,
        decision: str,
        details: Optional[dict[str, Any]] = None,
    ) -> DecisionRecord:
        """Append a decision taken by this agent to the shared log."""
        store = self._require_context_store()
        return await store.record_decision(self.name, decision, details)

    async def record_resource(
        self,
        resource_type: str,
        path: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ResourceRecord:
        """Append a resource to the shared log and broadcast resource_created."""
        store = self._require_context_store()
        record = await store.record_resource(self.name, resource_type, path, metadata)
        if self._event_bus is not None:
            await self.send_event(
                EventType.RESOURCE_CREATED,
                {
                    "resource_type": resource_type,
                    "path": path,
                    "sequence": record.sequence,
                    "metadata": record.metadata,
                },
            )
        return record

    async def get_shared_context(self) -> SharedContextSnapshot:
        return await self._require_context_store().get_shared_context()

    async def update_shared_context(self, updates: dict[str, Any]) -> SharedContextSnapshot:
        """Deep-merge ``updates`` into the shared free-form data."""
        store = self._require_context_store()
        snapshot = await store.update_shared_context(updates)
        if self._event_bus is not None:
            await self.send_event(EventType.CONTEXT_UPDATED, {"keys": sorted(updates)})
        return snapshot

    async def get_decisions(self, agent: Optional[str] = None) -> list[DecisionRecord]:
        return await self._require_context_store().get_decisions(agent)

    # =========================================================================
    # Helpers for Subclasses
    # =========================================================================

    async def read_context(self, filename: str) -> str:
        """Markdown context file (core.md, rules.md, ...) or "" when missing."""
        workspace = self._require_workspace()
        relative = f"{self._config.workspace.context_dir.rstrip('/')}/{filename}"
        content = await workspace.read_file(relative)
        if content is None:
            self._logger.debug("context_file_missing", path=relative)
            return ""
        return content

    async def query_llm(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> str:
        """Send ``prompt`` with the agent's role prompt and return the text."""
        response = await self.query_llm_response(prompt, system_prompt, **kwargs)
        return response.content

    async def query_llm_response(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Like query_llm() but returns the full LLMResponse."""
        provider = self._require_llm()
        response = await provider.generate_with_system(
            system_prompt=system_prompt or self.SYSTEM_PROMPT,
            user_prompt=prompt,
            temperature=self._config.llm.temperature,
            max_tokens=self._config.llm.max_tokens,
            **kwargs,
        )
        self._logger.info(
            "llm_response_received",
            response_length=len(response.content),
            model=response.model,
            tokens_used=response.usage.total_tokens,
        )
        if self._context_store is not None:
            await self._context_store.record_llm_usage(response.usage.total_tokens)
        self._update_state(last_activity=datetime.now(timezone.utc))
        return response

    async def write_generated_file(
        self,
        path: str,
        content: str,
        *,
        resource_type: str,
        language: Optional[str] = None,
        executable: bool = False,
        metadata: Optional[dict[str, Any]] = None,
    ) -> GeneratedFile:
        """Write a file, record it as a resource and count it.

        Raises:
            WorkspaceError: RESERVED_PATH if ``path`` is the shared context or
                integrations file; those are only written by their stores.
        """
        workspace = self._require_workspace()
        target = normalize_relative_path(path)
        reserved = {normalize_relative_path(name) for name in self._config.workspace.store_files}
        if target in reserved:
            raise WorkspaceError(
                message=f"Refusing to overwrite a store file: {target}",
                path=target,
                error_code="RESERVED_PATH",
            )
        generated = await workspace.write_file(
            path,
            content,
            agent=self.name,
            language=language,
            executable=executable,
        )
        if self._context_store is not None:
            await self.record_resource(resource_type, generated.path, metadata)
            await self._context_store.record_files_generated(1)
        self._logger.info("file_generated", path=generated.path, resource_type=resource_type)
        return generated

    async def read_spec_source(self, spec: str) -> Optional[str]:
        """Content of ``spec`` when it names an existing workspace file."""
        candidate = spec.strip()
        if not candidate or "\n" in candidate or len(candidate) > 255:
            return None
        if self._workspace is None or " " in candidate:
            return None
        try:
            return await self._workspace.read_file(candidate)
        except WorkspaceError as exc:
            # Not a usable path ("../x", absolute paths): treat as prose.
            self._logger.debug("spec_not_a_file", spec=candidate, reason=str(exc))
            return None

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _update_state(self, **kwargs: Any) -> None:
        """Replace the state with updated fields and a fresh updated_at."""
        kwargs["updated_at"] = datetime.now(timezone.utc)
        self._state = self._state.model_copy(update=kwargs)

    async def _set_status(self, status: AgentStatus, **kwargs: Any) -> None:
        """Update the local state and mirror it into the shared context."""
        now = datetime.now(timezone.utc)
        self._update_state(status=status, last_activity=now, **kwargs)
        if self._context_store is not None:
            await self._context_store.set_agent_status(
                AgentStatusRecord(
                    agent=self.name,
                    agent_type=self.agent_type,
                    status=status,
                    current_task=self._state.current_task_id,
                    last_activity=now,
                )
            )

    async def _emit_lifecycle(
        self, event_type: EventType, payload: dict[str, Any]
    ) -> None:
        """Broadcast a lifecycle event when a bus is wired."""
        if self._event_bus is None:
            return
        payload = {"agent": self.name, "agent_type": self.agent_type.value, **payload}
        await self.send_event(event_type, payload)

    def _require_llm(self) -> BaseLLMProvider:
        if self._llm_provider is None:
            raise self._not_wired("llm_provider")
        return self._llm_provider

    def _require_event_bus(self) -> EventBus:
        if self._event_bus is None:
            raise self._not_wired("event_bus")
        return self._event_bus

    def _require_context_store(self) -> SharedContextStore:
        if self._context_store is None:
            raise self._not_wired("context_store")
        return self._context_store

    def _require_workspace(self) -> Workspace:
        if self._workspace is None:
            raise self._not_wired("workspace")
        return self._workspace

    def _not_wired(self, collaborator: str) -> AgentError:
        return AgentError(
            message=f"Agent {self.agent_id} has no {collaborator}",
            agent_id=self.agent_id,
            error_code="AGENT_NOT_WIRED",
            details={"collaborator": collaborator},
        )

    def _create_result(
        self,
        task_id: str,
        status: TaskStatus,
        output: dict[str, Any],
        error: Optional[str] = None,
        files: Optional[list[str]] = None,
        started_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
        duration: Optional[float] = None,
    ) -> TaskResult:
        """Build a TaskResult stamped with this agent's id."""
        return TaskResult(
            task_id=task_id,
            agent_id=self.agent_id,
            status=status,
            output_data=output,
            files=files or [],
            error_message=error,
            started_at=started_at or datetime.now(timezone.utc),
            completed_at=completed_at,
            duration_seconds=duration,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"agent_id={self.agent_id!r}, "
            f"type={self.agent_type.value!r}, "
            f"status={self.status.value!r})"
        )
