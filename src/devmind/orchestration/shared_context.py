"""
devmind.orchestration.shared_context - Shared Project Context Store
=====================================================================

The memory the agents share: free-form project data, the decision log, the
resource log, dependency edges between resources, last known agent statuses,
and usage counters.

Architecture:
    ┌──────────────┐  record_decision   ┌───────────────────────┐
    │  Agent A      │ ────────────────→ │                        │
    └──────────────┘                    │  SharedContextStore    │──→ shared-context.json
    ┌──────────────┐  get_shared_context│  (single writer lock)  │    (atomic replace)
    │  Dashboard    │ ←──────────────── │                        │
    └──────────────┘                    └───────────────────────┘

Write Discipline:
    Every mutation runs under one ``asyncio.Lock``: the store is the only
    writer of its snapshot and, for the JSON implementation, of its file.
    The file is replaced atomically (temp file + ``os.replace``) so readers
    never observe a half-written document.

Append-Only Logs:
    Decisions and resources are never edited or removed. Each record gets a
    ``sequence`` one higher than the previous record of its log.

Implementations:
    - SharedContextStore (ABC):      Abstract interface
    - InMemorySharedContextStore:    Dict-based for dev/testing
    - JsonFileSharedContextStore:    Persists to a JSON file after every write
"""

from __future__ import annotations

import asyncio
import copy
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from devmind.core.exceptions import ContextStoreError
from devmind.core.state import (
    AgentStatusRecord,
    DecisionRecord,
    ResourceRecord,
    SharedContextSnapshot,
)

logger = logging.getLogger(__name__)


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``updates`` into a copy of ``base``.

    Nested dicts are merged key by key; any other value in ``updates``
    replaces the one in ``base``.
    """
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


# =============================================================================
# Abstract Base Class: SharedContextStore
# =============================================================================
class SharedContextStore(ABC):
    """Abstract base class for shared context persistence.

    Agents type-hint against this ABC so tests can swap in the in-memory
    store.

    Example:
        >>> async def remember(store: SharedContextStore) -> None:
        ...     await store.record_decision("architect", "Use a monorepo")
        ...     ctx = await store.get_shared_context()
        ...     assert ctx.decisions[-1].decision == "Use a monorepo"
    """

    @abstractmethod
    async def load(self) -> SharedContextSnapshot:
        """Load persisted state (if any) and return the current snapshot.

        Raises:
            ContextStoreError: If persisted state exists but is unreadable.
        """

    @abstractmethod
    async def get_shared_context(self) -> SharedContextSnapshot:
        """Return a deep copy of the current snapshot."""

    @abstractmethod
    async def update_shared_context(
        self, updates: dict[str, Any]
    ) -> SharedContextSnapshot:
        """Deep-merge ``updates`` into the free-form ``data`` section."""

    @abstractmethod
    async def record_decision(
        self,
        agent: str,
        decision: str,
        details: Optional[dict[str, Any]] = None,
    ) -> DecisionRecord:
        """Append a decision to the decision log."""

    @abstractmethod
    async def record_resource(
        self,
        agent: str,
        resource_type: str,
        path: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ResourceRecord:
        """Append a resource to the resource log."""

    @abstractmethod
    async def get_decisions(self, agent: Optional[str] = None) -> list[DecisionRecord]:
        """Decisions in sequence order, optionally only one agent's."""

    @abstractmethod
    async def get_resources(
        self,
        resource_type: Optional[str] = None,
        agent: Optional[str] = None,
    ) -> list[ResourceRecord]:
        """Resources in sequence order, optionally filtered."""

    @abstractmethod
    async def add_dependency(self, source: str, target: str) -> None:
        """Record that ``source`` depends on ``target`` (idempotent)."""

    @abstractmethod
    async def set_agent_status(self, record: AgentStatusRecord) -> None:
        """Store the last known status of an agent."""

    @abstractmethod
    async def get_agent_statuses(self) -> dict[str, AgentStatusRecord]:
        """Last known status per agent name."""

    @abstractmethod
    async def record_llm_usage(self, tokens: int) -> None:
        """Count one LLM call consuming ``tokens`` tokens."""

    @abstractmethod
    async def record_files_generated(self, count: int = 1) -> None:
        """Count ``count`` newly written files."""


# =============================================================================
# InMemorySharedContextStore Implementation
# =============================================================================
class InMemorySharedContextStore(SharedContextStore):
    """Shared context kept in process memory.

    Data is lost when the process ends. Subclasses add persistence by
    overriding ``_persist`` (called under the write lock after every
    mutation) and ``load``.

    Example:
        >>> store = InMemorySharedContextStore(project_name="shop")
        >>> await store.load()
        >>> await store.record_resource("component", "component", "components/Cart")
    """

    def __init__(self, project_name: str = "CJ.DevMind") -> None:
        self._snapshot = SharedContextSnapshot(project_name=project_name)
        self._lock: asyncio.Lock = asyncio.Lock()

    async def load(self) -> SharedContextSnapshot:
        return await self.get_shared_context()

    async def get_shared_context(self) -> SharedContextSnapshot:
        return self._snapshot.model_copy(deep=True)

    async def update_shared_context(
        self, updates: dict[str, Any]
    ) -> SharedContextSnapshot:
        async with self._lock:
            draft = self._draft()
            draft.data = deep_merge(draft.data, updates)
            await self._commit(draft)
            logger.debug("Updated shared context keys: %s", sorted(updates))
            return draft.model_copy(deep=True)

    async def record_decision(
        self,
        agent: str,
        decision: str,
        details: Optional[dict[str, Any]] = None,
    ) -> DecisionRecord:
        async with self._lock:
            record = DecisionRecord(
                sequence=len(self._snapshot.decisions) + 1,
                agent=agent,
                decision=decision,
                details=copy.deepcopy(details or {}),
            )
            draft = self._draft()
            draft.decisions.append(record)
            await self._commit(draft)
        logger.info("Recorded decision #%d by %s: %s", record.sequence, agent, decision)
        return record.model_copy(deep=True)

    async def record_resource(
        self,
        agent: str,
        resource_type: str,
        path: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ResourceRecord:
        async with self._lock:
            record = ResourceRecord(
                sequence=len(self._snapshot.resources) + 1,
                agent=agent,
                resource_type=resource_type,
                path=path,
                metadata=copy.deepcopy(metadata or {}),
            )
            draft = self._draft()
            draft.resources.append(record)
            await self._commit(draft)
        logger.info(
            "Recorded resource #%d by %s: %s (%s)",
            record.sequence, agent, path, resource_type,
        )
        return record.model_copy(deep=True)

    async def get_decisions(self, agent: Optional[str] = None) -> list[DecisionRecord]:
        return [
            d.model_copy(deep=True)
            for d in self._snapshot.decisions
            if agent is None or d.agent == agent
        ]

    async def get_resources(
        self,
        resource_type: Optional[str] = None,
        agent: Optional[str] = None,
    ) -> list[ResourceRecord]:
        return [
            r.model_copy(deep=True)
            for r in self._snapshot.resources
            if (resource_type is None or r.resource_type == resource_type)
            and (agent is None or r.agent == agent)
        ]

    async def add_dependency(self, source: str, target: str) -> None:
        async with self._lock:
            if target in self._snapshot.dependencies.get(source, []):
                return
            draft = self._draft()
            draft.dependencies.setdefault(source, []).append(target)
            await self._commit(draft)
        logger.debug("Added dependency %s -> %s", source, target)

    async def set_agent_status(self, record: AgentStatusRecord) -> None:
        async with self._lock:
            draft = self._draft()
            draft.agent_statuses[record.agent] = record.model_copy(deep=True)
            await self._commit(draft)
        logger.debug("Agent %s is now %s", record.agent, record.status.value)

    async def get_agent_statuses(self) -> dict[str, AgentStatusRecord]:
        return {
            name: record.model_copy(deep=True)
            for name, record in self._snapshot.agent_statuses.items()
        }

    async def record_llm_usage(self, tokens: int) -> None:
        async with self._lock:
            draft = self._draft()
            draft.metrics.llm_calls += 1
            draft.metrics.total_tokens += max(tokens, 0)
            await self._commit(draft)

    async def record_files_generated(self, count: int = 1) -> None:
        if count <= 0:
            return
        async with self._lock:
            draft = self._draft()
            draft.metrics.files_generated += count
            await self._commit(draft)

    # -------------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------------
    def _draft(self) -> SharedContextSnapshot:
        return self._snapshot.model_copy(deep=True)

    async def _commit(self, draft: SharedContextSnapshot) -> None:
        """Bump the version, persist, then publish ``draft``. Caller holds the lock.

        The current snapshot is only replaced once ``_persist`` succeeds, so a
        failed write leaves no trace in memory.
        """
        draft.version = self._snapshot.version + 1
        draft.updated_at = datetime.now(timezone.utc)
        await self._persist(draft)
        self._snapshot = draft

    async def _persist(self, snapshot: SharedContextSnapshot) -> None:
        """Nothing to persist in memory."""


# =============================================================================
# JsonFileSharedContextStore Implementation
# =============================================================================
class JsonFileSharedContextStore(InMemorySharedContextStore):
    """Shared context persisted to a single JSON document.

    The file is rewritten after every mutation: the new document goes to a
    temp file in the same directory, which then replaces the old one with
    ``os.replace``.

    Example:
        >>> store = JsonFileSharedContextStore("data/shared-context.json")
        >>> await store.load()          # picks up previous runs' history
        >>> await store.record_decision("devops", "GitHub Actions for CI")
    """

    def __init__(
        self,
        path: Union[str, Path],
        project_name: str = "CJ.DevMind",
    ) -> None:
        super().__init__(project_name=project_name)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> SharedContextSnapshot:
        """Read the JSON file if it exists.

        A missing or empty file leaves the fresh snapshot in place.

        Raises:
            ContextStoreError: CONTEXT_CORRUPTED if the file is not a valid
                shared context document.
        """
        async with self._lock:
            if self._path.exists():
                try:
                    raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
                except UnicodeDecodeError as exc:
                    raise self._corrupted(exc) from exc
                if raw.strip():
                    try:
                        self._snapshot = SharedContextSnapshot.model_validate_json(raw)
                    except ValidationError as exc:
                        raise self._corrupted(exc) from exc
                    logger.info(
                        "Loaded shared context from %s (version=%d, decisions=%d, resources=%d)",
                        self._path,
                        self._snapshot.version,
                        len(self._snapshot.decisions),
                        len(self._snapshot.resources),
                    )
            return self._snapshot.model_copy(deep=True)

    def _corrupted(self, exc: Exception) -> ContextStoreError:
        return ContextStoreError(
            message=f"Shared context file is corrupted: {self._path}",
            error_code="CONTEXT_CORRUPTED",
            details={"path": str(self._path), "error": str(exc)},
        )

    async def _persist(self, snapshot: SharedContextSnapshot) -> None:
        document = snapshot.model_dump_json(indent=2)
        try:
            await asyncio.to_thread(self._write_atomic, document)
        except OSError as exc:
            raise ContextStoreError(
                message=f"Failed to write shared context: {exc}",
                error_code="CONTEXT_WRITE_FAILED",
                details={"path": str(self._path)},
            ) from exc

    def _write_atomic(self, document: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(document)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
