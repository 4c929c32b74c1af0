"""Reader interaction events and the event log.

The event log is append-only; events are removed only when the reader
explicitly un-likes or un-bookmarks, or by retention pruning.
"""

from swipefeed.events.errors import (
    EventStoreError,
    MigrationError,
    StoreConnectionError,
)
from swipefeed.events.factory import comment_event, story_event
from swipefeed.events.guarded import GuardedEventStore
from swipefeed.events.memory import InMemoryEventStore
from swipefeed.events.metrics import EventStoreMetrics
from swipefeed.events.models import EventType, UserEvent
from swipefeed.events.store import EventStore, SqliteEventStore


__all__ = [
    "EventStore",
    "EventStoreError",
    "EventStoreMetrics",
    "EventType",
    "GuardedEventStore",
    "InMemoryEventStore",
    "MigrationError",
    "SqliteEventStore",
    "StoreConnectionError",
    "UserEvent",
    "comment_event",
    "story_event",
]
