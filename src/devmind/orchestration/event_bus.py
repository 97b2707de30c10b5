"""
devmind.orchestration.event_bus - Inter-Agent Event Bus
=========================================================

The communication backbone of CJ.DevMind. Agents never call each other
directly: they publish ``AgentEvent`` envelopes and the bus invokes every
handler registered for the event type.

Architecture Context:
    ┌────────────────┐  publish(COMPONENT_CREATED)  ┌──────────────────┐
    │ ComponentAgent │ ───────────────────────────→ │                  │
    └────────────────┘                              │    EVENT BUS     │
    ┌────────────────┐  subscribe(TEST_REQUESTED)   │                  │
    │  TestingAgent  │ ←─────────────────────────── │  devmind:event:* │
    └────────────────┘                              └──────────────────┘

Channel Naming Convention:
    - ``devmind:event:{event_type}``   Handlers for one event type.
                                       Example: "devmind:event:component_created"
    - ``devmind:event:*``              Wildcard observers (dashboard, CLI,
                                       tests). They see every event.

Addressing:
    - Broadcast (target None / "all"): every handler on the type channel.
    - Unicast (target "TestingAgent"): only handlers whose subscriber name
      matches the target. Wildcard observers see unicast events as well.

Delivery Semantics:
    No queue, no retry, no cancellation. ``publish()`` invokes the matching
    handlers concurrently and returns once all of them finished. A failing
    handler is logged and counted; the publisher never sees the exception.

Usage:
    >>> bus = InMemoryEventBus()
    >>> await bus.connect()
    >>> async def on_created(event: AgentEvent) -> None:
    ...     print(event.payload["component_name"])
    >>> await bus.subscribe(EventType.COMPONENT_CREATED, on_created)
    >>> await bus.publish(AgentEvent(
    ...     event_type=EventType.COMPONENT_CREATED,
    ...     source="component",
    ...     payload={"component_name": "LoginForm"},
    ... ))
    1
    >>> await bus.disconnect()
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Optional, Union
from uuid import uuid4

import structlog

from devmind.core.enums import EventType
from devmind.core.events import AgentEvent, event_type_value
from devmind.core.exceptions import EventBusError


logger = structlog.get_logger()


# =============================================================================
# Type Aliases
# =============================================================================
# Handlers take the event and return nothing. Both plain functions and
# coroutine functions are accepted; the bus awaits whatever is awaitable.
# =============================================================================
EventHandler = Callable[[AgentEvent], Union[Awaitable[None], None]]

CHANNEL_PREFIX = "devmind:event:"
WILDCARD = "*"
DEFAULT_HISTORY_LIMIT = 500


def channel_for(event_type: Union[EventType, str]) -> str:
    """Build the channel name for an event type ("*" for the wildcard)."""
    return f"{CHANNEL_PREFIX}{event_type_value(event_type)}"


@dataclass
class Subscription:
    """A registered handler.

    Attributes:
        subscription_id: Handle returned by ``subscribe()``.
        channel: Channel the handler listens on.
        handler: The callable to invoke.
        subscriber: Owning agent name. None for anonymous observers, which
            only receive broadcasts (or everything, on the wildcard channel).
        aliases: Other names the owner answers to (e.g. its agent_id).
    """

    subscription_id: str
    channel: str
    handler: EventHandler
    subscriber: Optional[str] = None
    aliases: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_wildcard(self) -> bool:
        return self.channel == channel_for(WILDCARD)

    def accepts(self, event: AgentEvent) -> bool:
        """Whether this subscription should see ``event``."""
        if self.is_wildcard or event.is_broadcast:
            return True
        return event.is_for(self.subscriber, *self.aliases)


# =============================================================================
# Abstract Base Class: EventBus
# =============================================================================
class EventBus(ABC):
    """Abstract interface for agent-to-agent events.

    Lifecycle:
        bus = InMemoryEventBus()
        await bus.connect()       # Initialize resources
        # ... use the bus ...
        await bus.disconnect()    # Drop every subscription
    """

    @abstractmethod
    async def connect(self) -> None:
        """Prepare the bus for use."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear the bus down and drop every subscription."""

    @abstractmethod
    async def subscribe(
        self,
        event_type: Union[EventType, str],
        handler: EventHandler,
        *,
        subscriber: Optional[str] = None,
        aliases: Sequence[str] = (),
    ) -> str:
        """Register ``handler`` for ``event_type`` ("*" for every event).

        Args:
            event_type: The event type to listen for, or "*".
            handler: Sync or async callable taking the AgentEvent.
            subscriber: Name of the owning agent; required to receive
                unicast events addressed to that agent.
            aliases: Additional names the owner answers to.

        Returns:
            A subscription id usable with ``unsubscribe()``.

        Raises:
            EventBusError: If the bus is not connected.
        """

    @abstractmethod
    async def unsubscribe(self, subscription_id: str) -> bool:
        """Remove one subscription. Returns False if it was unknown."""

    @abstractmethod
    async def unsubscribe_all(self, subscriber: str) -> int:
        """Remove every subscription owned by ``subscriber``.

        Returns:
            The number of subscriptions removed.
        """

    @abstractmethod
    async def publish(self, event: AgentEvent) -> int:
        """Deliver ``event`` to the matching handlers.

        Returns:
            The number of handlers the event was delivered to.

        Raises:
            EventBusError: If the bus is not connected.
        """


# =============================================================================
# InMemoryEventBus Implementation
# =============================================================================
class InMemoryEventBus(EventBus):
    """In-process event bus backed by dicts.

    All mutable state is protected by an ``asyncio.Lock``. The lock is
    released before handlers run, so a handler may itself publish or
    subscribe without deadlocking.

    Attributes:
        _subscriptions: Channel name → subscriptions in registration order.
        _history: The most recent events, newest last.
        _published_count: Events published since connect().
        _failed_deliveries: Handler invocations that raised.

    Example:
        >>> bus = InMemoryEventBus(history_limit=100)
        >>> await bus.connect()
        >>> sub_id = await bus.subscribe("*", print)
        >>> await bus.unsubscribe(sub_id)
        True
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit < 0:
            raise ValueError("history_limit must be >= 0")
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._history: deque[AgentEvent] = deque(maxlen=history_limit)
        self._lock: asyncio.Lock = asyncio.Lock()
        self._connected: bool = False
        self._published_count: int = 0
        self._failed_deliveries: int = 0
        self._logger = logger.bind(component="event_bus", impl="in_memory")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def published_count(self) -> int:
        """Number of events published since connect()."""
        return self._published_count

    @property
    def failed_deliveries(self) -> int:
        """Number of handler invocations that raised since connect()."""
        return self._failed_deliveries

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def history(self) -> list[AgentEvent]:
        """Recently published events, oldest first."""
        return list(self._history)

    def get_history(
        self, event_type: Optional[Union[EventType, str]] = None
    ) -> list[AgentEvent]:
        """Recently published events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        wanted = event_type_value(event_type)
        return [e for e in self._history if e.type_value == wanted]

    def subscriber_count(self, event_type: Union[EventType, str]) -> int:
        """Number of handlers registered on one event type channel."""
        return len(self._subscriptions.get(channel_for(event_type), []))

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Mark the bus as connected and reset its state.

        Reconnecting a connected bus drops existing subscriptions and
        counters, like a fresh bus.
        """
        async with self._lock:
            self._subscriptions.clear()
            self._history.clear()
            self._published_count = 0
            self._failed_deliveries = 0
            self._connected = True

        self._logger.info("event_bus_connected")

    async def disconnect(self) -> None:
        """Drop all subscriptions. Safe to call twice."""
        async with self._lock:
            self._subscriptions.clear()
            self._connected = False

        self._logger.info("event_bus_disconnected")

    # =========================================================================
    # Core Operations
    # =========================================================================

    async def subscribe(
        self,
        event_type: Union[EventType, str],
        handler: EventHandler,
        *,
        subscriber: Optional[str] = None,
        aliases: Sequence[str] = (),
    ) -> str:
        self._ensure_connected()
        if not callable(handler):
            raise EventBusError(
                message="Event handler must be callable",
                error_code="INVALID_HANDLER",
                details={"event_type": event_type_value(event_type)},
            )

        channel = channel_for(event_type)
        subscription = Subscription(
            subscription_id=f"sub-{uuid4()}",
            channel=channel,
            handler=handler,
            subscriber=subscriber,
            aliases=tuple(aliases),
        )

        async with self._lock:
            if channel not in self._subscriptions:
                self._subscriptions[channel] = []
            self._subscriptions[channel].append(subscription)
            total = len(self._subscriptions[channel])

        self._logger.debug(
            "handler_subscribed",
            channel=channel,
            subscriber=subscriber,
            total_subscribers=total,
        )
        return subscription.subscription_id

    async def unsubscribe(self, subscription_id: str) -> bool:
        self._ensure_connected()

        async with self._lock:
            for channel, subscriptions in self._subscriptions.items():
                for index, subscription in enumerate(subscriptions):
                    if subscription.subscription_id == subscription_id:
                        del subscriptions[index]
                        if not subscriptions:
                            del self._subscriptions[channel]
                        self._logger.debug(
                            "handler_unsubscribed",
                            channel=channel,
                            subscription_id=subscription_id,
                        )
                        return True
        return False

    async def unsubscribe_all(self, subscriber: str) -> int:
        self._ensure_connected()

        removed = 0
        async with self._lock:
            for channel in list(self._subscriptions):
                kept = [
                    s for s in self._subscriptions[channel]
                    if s.subscriber != subscriber
                ]
                removed += len(self._subscriptions[channel]) - len(kept)
                if kept:
                    self._subscriptions[channel] = kept
                else:
                    del self._subscriptions[channel]

        self._logger.debug(
            "subscriber_removed", subscriber=subscriber, removed=removed
        )
        return removed

    async def publish(self, event: AgentEvent) -> int:
        """Invoke every matching handler concurrently.

        Steps:
        1. Check that the bus is connected.
        2. Under the lock: collect the type-channel handlers that accept the
           event (all of them for a broadcast, the target's for a unicast)
           plus the wildcard observers; record history and count.
        3. Outside the lock: run the handlers with ``asyncio.gather``.
           Handler errors are logged and counted, never raised.
        """
        self._ensure_connected()

        self._logger.debug(
            "event_publishing",
            event_id=event.event_id,
            event_type=event.type_value,
            source=event.source,
            target=event.target,
        )

        async with self._lock:
            candidates = list(self._subscriptions.get(channel_for(event.event_type), []))
            if event.type_value != WILDCARD:
                candidates.extend(self._subscriptions.get(channel_for(WILDCARD), []))
            subscriptions = [s for s in candidates if s.accepts(event)]
            self._history.append(event)
            self._published_count += 1

        if subscriptions:
            results = await asyncio.gather(
                *(self._invoke_handler(s, event) for s in subscriptions),
                return_exceptions=True,
            )
            for subscription, result in zip(subscriptions, results):
                if isinstance(result, Exception):
                    self._failed_deliveries += 1
                    self._logger.error(
                        "subscriber_handler_error",
                        channel=subscription.channel,
                        subscriber=subscription.subscriber,
                        event_id=event.event_id,
                        error=str(result),
                    )
        elif not event.is_broadcast:
            self._logger.warning(
                "unicast_event_undelivered",
                event_type=event.type_value,
                target=event.target,
            )

        self._logger.debug(
            "event_published",
            event_id=event.event_id,
            subscriber_count=len(subscriptions),
        )
        return len(subscriptions)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise EventBusError(
                message="Event bus is not connected. Call connect() first.",
                error_code="BUS_NOT_CONNECTED",
            )

    async def _invoke_handler(
        self, subscription: Subscription, event: AgentEvent
    ) -> None:
        """Invoke one handler, awaiting its result when it is awaitable.

        Errors are logged here with the event context and re-raised so that
        ``asyncio.gather(return_exceptions=True)`` collects them.
        """
        try:
            result = subscription.handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            self._logger.error(
                "handler_invocation_error",
                event_id=event.event_id,
                event_type=event.type_value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise
