"""
Tests for devmind.orchestration.event_bus - InMemoryEventBus
==============================================================

These tests verify the InMemoryEventBus implementation, the bus every
CJ.DevMind agent announces and requests work on.

What's Being Tested:
    - Pub/Sub pattern:        publish → handlers of that type receive it
    - Targeting:              unicast by agent name or alias, broadcast to all
    - Wildcard observers:     "*" handlers see every event
    - Subscription lifecycle: subscribe, unsubscribe, unsubscribe_all
    - Error handling:         failing handlers are isolated, disconnected guards
    - History and metrics:    published_count, failed_deliveries, get_history

All tests are async (pytest-asyncio with asyncio_mode=auto).
No external dependencies required (pure in-memory).

Architecture Context:
    ComponentAgent ──component_created──→ [Event Bus] ──→ DashboardAgent
                   ──test_requested (target="testing")──→ TestingAgent only
"""

import asyncio

import pytest

from devmind.core.enums import EventType
from devmind.core.events import AgentEvent
from devmind.core.exceptions import EventBusError
from devmind.orchestration.event_bus import (
    EventBus,
    InMemoryEventBus,
    channel_for,
)


# =============================================================================
# Helper: Create Test Events
# =============================================================================
def _make_event(
    event_type=EventType.COMPONENT_CREATED,
    source: str = "ComponentAgent",
    **kwargs,
) -> AgentEvent:
    """Create a minimal AgentEvent for testing."""
    return AgentEvent(event_type=event_type, source=source, **kwargs)


async def _connected_bus(**kwargs) -> InMemoryEventBus:
    bus = InMemoryEventBus(**kwargs)
    await bus.connect()
    return bus


# =============================================================================
# Test Class: InMemoryEventBus
# =============================================================================
class TestInMemoryEventBus:
    """Tests for the InMemoryEventBus implementation.

    Each test creates a fresh bus instance to ensure isolation.
    """

    # -------------------------------------------------------------------------
    # Test: ABC conformance and construction
    # -------------------------------------------------------------------------

    def test_is_event_bus(self) -> None:
        bus = InMemoryEventBus()
        assert isinstance(bus, EventBus), "InMemoryEventBus must implement EventBus"

    def test_negative_history_limit_rejected(self) -> None:
        with pytest.raises(ValueError):
            InMemoryEventBus(history_limit=-1)

    def test_channel_naming(self) -> None:
        assert channel_for(EventType.TEST_REQUESTED) == "devmind:event:test_requested"
        assert channel_for("*") == "devmind:event:*"

    # -------------------------------------------------------------------------
    # Test: Basic Pub/Sub
    # -------------------------------------------------------------------------

    async def test_publish_subscribe(self) -> None:
        """A handler subscribed to a type receives events of that type.

        Scenario:
            1. Subscribe a collecting handler to component_created
            2. Publish one component_created broadcast
            3. Verify the handler got exactly that event
        """
        bus = await _connected_bus()
        received: list[AgentEvent] = []

        async def handler(event: AgentEvent) -> None:
            received.append(event)

        await bus.subscribe(EventType.COMPONENT_CREATED, handler, subscriber="DashboardAgent")
        event = _make_event(payload={"component_name": "LoginForm"})
        delivered = await bus.publish(event)

        assert delivered == 1
        assert len(received) == 1, f"Expected 1 event, got {len(received)}"
        assert received[0].event_id == event.event_id
        assert received[0].payload["component_name"] == "LoginForm"

    async def test_other_types_not_delivered(self) -> None:
        bus = await _connected_bus()
        received: list[AgentEvent] = []
        await bus.subscribe(EventType.TEST_CREATED, received.append)

        delivered = await bus.publish(_make_event(EventType.COMPONENT_CREATED))

        assert delivered == 0
        assert received == []

    async def test_sync_handlers_are_supported(self) -> None:
        """Plain functions work as handlers alongside coroutines."""
        bus = await _connected_bus()
        received: list[str] = []
        await bus.subscribe("custom_event", lambda e: received.append(e.type_value))

        await bus.publish(_make_event("custom_event"))

        assert received == ["custom_event"]

    async def test_all_broadcast_subscribers_receive(self) -> None:
        bus = await _connected_bus()
        seen: list[str] = []
        for name in ("DashboardAgent", "TestingAgent", None):
            await bus.subscribe(
                EventType.RESOURCE_CREATED,
                lambda e, name=name: seen.append(name or "observer"),
                subscriber=name,
            )

        delivered = await bus.publish(_make_event(EventType.RESOURCE_CREATED))

        assert delivered == 3
        assert sorted(seen) == ["DashboardAgent", "TestingAgent", "observer"]

    # -------------------------------------------------------------------------
    # Test: Targeting
    # -------------------------------------------------------------------------

    async def test_unicast_reaches_only_target(self) -> None:
        """An event with a target only reaches that subscriber.

        Scenario:
            1. TestingAgent and DevOpsAgent both listen for test_requested
            2. ComponentAgent sends test_requested to "TestingAgent"
            3. Only TestingAgent's handler runs
        """
        bus = await _connected_bus()
        testing: list[AgentEvent] = []
        devops: list[AgentEvent] = []
        await bus.subscribe(EventType.TEST_REQUESTED, testing.append, subscriber="TestingAgent")
        await bus.subscribe(EventType.TEST_REQUESTED, devops.append, subscriber="DevOpsAgent")

        delivered = await bus.publish(_make_event(EventType.TEST_REQUESTED, target="TestingAgent"))

        assert delivered == 1
        assert len(testing) == 1
        assert devops == [], "Unicast events must not reach other agents"

    async def test_unicast_matches_alias(self) -> None:
        """Agents are addressable by agent_id as well as by name."""
        bus = await _connected_bus()
        received: list[AgentEvent] = []
        await bus.subscribe(
            EventType.TEST_REQUESTED,
            received.append,
            subscriber="TestingAgent",
            aliases=("testing",),
        )

        await bus.publish(_make_event(EventType.TEST_REQUESTED, target="testing"))

        assert len(received) == 1

    async def test_anonymous_handlers_skip_unicast(self) -> None:
        bus = await _connected_bus()
        received: list[AgentEvent] = []
        await bus.subscribe(EventType.TEST_REQUESTED, received.append)

        delivered = await bus.publish(_make_event(EventType.TEST_REQUESTED, target="TestingAgent"))

        assert delivered == 0
        assert received == []

    async def test_wildcard_observer_sees_everything(self) -> None:
        """A "*" handler sees broadcasts and unicasts of every type."""
        bus = await _connected_bus()
        seen: list[str] = []
        await bus.subscribe("*", lambda e: seen.append(e.type_value))

        await bus.publish(_make_event(EventType.COMPONENT_CREATED))
        await bus.publish(_make_event(EventType.TEST_REQUESTED, target="TestingAgent"))
        await bus.publish(_make_event("custom"))

        assert seen == ["component_created", "test_requested", "custom"]

    # -------------------------------------------------------------------------
    # Test: Error isolation
    # -------------------------------------------------------------------------

    async def test_failing_handler_does_not_block_others(self) -> None:
        """One handler raising must not stop delivery to the rest.

        Scenario:
            1. Subscribe a handler that raises and one that records
            2. Publish
            3. The recording handler still ran; the failure is counted
        """
        bus = await _connected_bus()
        received: list[AgentEvent] = []

        async def broken(event: AgentEvent) -> None:
            raise RuntimeError("handler exploded")

        await bus.subscribe(EventType.COMPONENT_CREATED, broken, subscriber="Broken")
        await bus.subscribe(EventType.COMPONENT_CREATED, received.append, subscriber="Healthy")

        delivered = await bus.publish(_make_event())

        assert delivered == 2
        assert len(received) == 1
        assert bus.failed_deliveries == 1

    async def test_handlers_run_concurrently(self) -> None:
        """Slow handlers do not serialize delivery."""
        bus = await _connected_bus()
        started: list[str] = []
        release = asyncio.Event()

        async def slow(event: AgentEvent) -> None:
            started.append("slow")
            await release.wait()

        async def fast(event: AgentEvent) -> None:
            started.append("fast")
            release.set()

        await bus.subscribe("ping", slow, subscriber="a")
        await bus.subscribe("ping", fast, subscriber="b")

        await asyncio.wait_for(bus.publish(_make_event("ping")), timeout=1.0)

        assert sorted(started) == ["fast", "slow"]

    async def test_handler_may_publish(self) -> None:
        """Handlers can publish follow-up events without deadlocking."""
        bus = await _connected_bus()
        replies: list[AgentEvent] = []

        async def responder(event: AgentEvent) -> None:
            await bus.publish(event.create_reply("TestingAgent", EventType.TEST_CREATED, {}))

        await bus.subscribe(EventType.TEST_REQUESTED, responder, subscriber="TestingAgent")
        await bus.subscribe(EventType.TEST_CREATED, replies.append, subscriber="ComponentAgent")

        await asyncio.wait_for(
            bus.publish(_make_event(EventType.TEST_REQUESTED, target="TestingAgent")),
            timeout=1.0,
        )

        assert len(replies) == 1
        assert replies[0].target == "ComponentAgent"

    async def test_non_callable_handler_rejected(self) -> None:
        bus = await _connected_bus()
        with pytest.raises(EventBusError) as exc_info:
            await bus.subscribe("x", "not a function")  # type: ignore[arg-type]
        assert exc_info.value.error_code == "INVALID_HANDLER"

    # -------------------------------------------------------------------------
    # Test: Connection guards
    # -------------------------------------------------------------------------

    async def test_publish_before_connect_raises(self) -> None:
        bus = InMemoryEventBus()
        with pytest.raises(EventBusError) as exc_info:
            await bus.publish(_make_event())
        assert exc_info.value.error_code == "BUS_NOT_CONNECTED"

    async def test_subscribe_after_disconnect_raises(self) -> None:
        bus = await _connected_bus()
        await bus.disconnect()
        assert not bus.is_connected
        with pytest.raises(EventBusError):
            await bus.subscribe("x", print)

    async def test_disconnect_twice_is_safe(self) -> None:
        bus = await _connected_bus()
        await bus.disconnect()
        await bus.disconnect()
        assert not bus.is_connected

    # -------------------------------------------------------------------------
    # Test: Subscription lifecycle
    # -------------------------------------------------------------------------

    async def test_unsubscribe(self) -> None:
        bus = await _connected_bus()
        received: list[AgentEvent] = []
        sub_id = await bus.subscribe(EventType.COMPONENT_CREATED, received.append)

        assert await bus.unsubscribe(sub_id) is True
        assert await bus.unsubscribe(sub_id) is False, "Second unsubscribe should be a no-op"
        await bus.publish(_make_event())

        assert received == []
        assert bus.subscriber_count(EventType.COMPONENT_CREATED) == 0

    async def test_unsubscribe_all_removes_only_that_subscriber(self) -> None:
        bus = await _connected_bus()
        await bus.subscribe(EventType.COMPONENT_REQUESTED, print, subscriber="ComponentAgent")
        await bus.subscribe(EventType.STYLE_APPLIED, print, subscriber="ComponentAgent")
        await bus.subscribe(EventType.COMPONENT_REQUESTED, print, subscriber="DashboardAgent")

        removed = await bus.unsubscribe_all("ComponentAgent")

        assert removed == 2
        assert bus.subscriber_count(EventType.COMPONENT_REQUESTED) == 1
        assert bus.subscriber_count(EventType.STYLE_APPLIED) == 0

    # -------------------------------------------------------------------------
    # Test: History and metrics
    # -------------------------------------------------------------------------

    async def test_history_and_published_count(self) -> None:
        bus = await _connected_bus()
        await bus.publish(_make_event(EventType.COMPONENT_CREATED))
        await bus.publish(_make_event(EventType.TEST_CREATED))
        await bus.publish(_make_event(EventType.COMPONENT_CREATED))

        assert bus.published_count == 3
        assert len(bus.history) == 3
        assert len(bus.get_history(EventType.COMPONENT_CREATED)) == 2
        assert len(bus.get_history("test_created")) == 1

    async def test_history_is_bounded(self) -> None:
        bus = await _connected_bus(history_limit=2)
        for index in range(5):
            await bus.publish(_make_event(payload={"n": index}))

        assert [e.payload["n"] for e in bus.history] == [3, 4]
        assert bus.published_count == 5

    async def test_reconnect_resets_state(self) -> None:
        bus = await _connected_bus()
        await bus.subscribe("x", print)
        await bus.publish(_make_event("x"))

        await bus.connect()

        assert bus.published_count == 0
        assert bus.history == []
        assert bus.subscriber_count("x") == 0
