"""
devmind.orchestration - Coordination Layer
==========================================

The shared plumbing every agent plugs into:

    - event_bus:       Typed pub/sub between agents (broadcast or unicast)
    - shared_context:  Append-only decisions/resources plus free-form project
                       data, persisted to a JSON file under a single writer
"""

from devmind.orchestration.event_bus import (
    EventBus,
    EventHandler,
    InMemoryEventBus,
    Subscription,
    channel_for,
)
from devmind.orchestration.shared_context import (
    InMemorySharedContextStore,
    JsonFileSharedContextStore,
    SharedContextStore,
    deep_merge,
)

__all__ = [
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
    "Subscription",
    "channel_for",
    "InMemorySharedContextStore",
    "JsonFileSharedContextStore",
    "SharedContextStore",
    "deep_merge",
]
