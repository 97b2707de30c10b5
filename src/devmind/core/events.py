"""
devmind.core.events - Agent Event Envelope
============================================

Every announcement between agents travels in an ``AgentEvent``. The envelope
carries the event type, the sending agent, an optional target, and a JSON
payload.

Addressing:
    - target=None (or "all")  → broadcast: every handler registered for the
                                event type receives it.
    - target="TestingAgent"    → unicast: only handlers owned by the agent
                                with that name (or agent_id) receive it.

    ┌────────────────┐  send_event(COMPONENT_CREATED)   ┌────────────────┐
    │ ComponentAgent │ ───────────── target=None ─────→ │ every listener │
    └────────────────┘                                  └────────────────┘
    ┌────────────────┐  send_event(TEST_REQUESTED)      ┌────────────────┐
    │ ComponentAgent │ ──────── target="testing" ─────→ │  TestingAgent  │
    └────────────────┘                                  └────────────────┘

Usage:
    >>> event = AgentEvent(
    ...     event_type=EventType.COMPONENT_CREATED,
    ...     source="component",
    ...     payload={"component_name": "LoginForm"},
    ... )
    >>> event.is_broadcast
    True
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from devmind.core.enums import EventType

# Target value meaning "every listener".
BROADCAST = "all"


def _generate_event_id() -> str:
    """Generate a unique event identifier using UUID4."""
    return str(uuid4())


def _now() -> datetime:
    """Get the current UTC timestamp."""
    return datetime.now(timezone.utc)


def event_type_value(event_type: Union[EventType, str]) -> str:
    """Normalize an event type to its plain string value.

    Agents may use the built-in EventType members or free-form strings for
    custom events; the bus keys its channels on the string value.
    """
    if isinstance(event_type, EventType):
        return event_type.value
    return str(event_type)


class AgentEvent(BaseModel):
    """Envelope for one event on the agent event bus.

    Attributes:
        event_id: Unique identifier for tracking.
        event_type: What happened. A built-in EventType or a custom string.
        source: Name of the sending agent ("devmind" for the facade/CLI).
        target: Receiving agent name or agent_id. None means broadcast.
        payload: Event data. Always a JSON-compatible dict.
        correlation_id: Links a reply to the event it answers
            (e.g., COMPONENT_CREATED answering COMPONENT_REQUESTED).
        timestamp: When the event was created (UTC).
        metadata: Arbitrary key-value pairs.
    """

    event_id: str = Field(
        default_factory=_generate_event_id,
        description="Unique event identifier",
    )
    event_type: Union[EventType, str] = Field(
        description="Event type (built-in EventType or custom string)",
    )
    source: str = Field(
        description="Name of the sending agent",
    )
    target: Optional[str] = Field(
        default=None,
        description="Target agent name or ID (None = broadcast to all)",
    )
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Event data",
    )
    correlation_id: Optional[str] = Field(
        default=None,
        description="Links a reply to the event it answers",
    )
    timestamp: datetime = Field(
        default_factory=_now,
        description="Event creation timestamp (UTC)",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Arbitrary metadata",
    )

    @field_validator("target")
    @classmethod
    def _normalize_target(cls, value: Optional[str]) -> Optional[str]:
        # "all" and "" are spellings of broadcast.
        if value is None or value == "" or value.lower() == BROADCAST:
            return None
        return value

    @property
    def type_value(self) -> str:
        """The event type as a plain string."""
        return event_type_value(self.event_type)

    @property
    def is_broadcast(self) -> bool:
        """True when the event is addressed to every listener."""
        return self.target is None

    def is_for(self, *names: Optional[str]) -> bool:
        """Check whether the event should reach an agent known by ``names``.

        Args:
            names: The agent's identifiers (agent_id, display name). None
                entries are ignored.

        Returns:
            True for broadcasts, or when the target matches any name
            (case-insensitive).
        """
        if self.target is None:
            return True
        target = self.target.lower()
        return any(name is not None and name.lower() == target for name in names)

    def create_reply(
        self,
        source: str,
        event_type: Union[EventType, str],
        payload: dict[str, Any],
    ) -> "AgentEvent":
        """Create a reply addressed to this event's source.

        The reply inherits the correlation_id (or uses this event's id) so
        the requester can match it to its request.
        """
        return AgentEvent(
            event_type=event_type,
            source=source,
            target=self.source,
            payload=payload,
            correlation_id=self.correlation_id or self.event_id,
        )
