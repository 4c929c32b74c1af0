"""In-process event store."""

import threading

from swipefeed.events.models import EventType, UserEvent
from swipefeed.events.store import match_column


class InMemoryEventStore:
    """List-backed event log for embedded use and tests."""

    def __init__(self, events: list[UserEvent] | None = None) -> None:
        """Initialize the store.

        Args:
            events: Optional initial events, stored in order.
        """
        self._events: list[UserEvent] = []
        self._next_id = 1
        self._lock = threading.Lock()
        for event in events or []:
            self.append(event)

    def append(self, event: UserEvent) -> UserEvent:
        """Store an event and return it with its assigned id."""
        with self._lock:
            stored = event.with_id(self._next_id)
            self._next_id += 1
            self._events.append(stored)
            return stored

    def all(self) -> list[UserEvent]:
        """Return every event in insertion order."""
        with self._lock:
            return list(self._events)

    def of_type(self, event_type: EventType) -> list[UserEvent]:
        """Return events of one type, newest first."""
        with self._lock:
            matching = [e for e in self._events if e.type == event_type]
        return sorted(matching, key=lambda e: (e.timestamp, e.id or 0), reverse=True)

    def unique_post_ids(self) -> set[int]:
        """Return ids of every post with at least one event."""
        with self._lock:
            return {e.post_id for e in self._events}

    def delete_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> int:
        """Delete all events matching type and post or comment id."""
        column, value = match_column(post_id, comment_id)
        with self._lock:
            kept = [
                e
                for e in self._events
                if not (e.type == event_type and getattr(e, column) == value)
            ]
            removed = len(self._events) - len(kept)
            self._events = kept
            return removed

    def exists_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> bool:
        """Check for an event matching type and post or comment id."""
        column, value = match_column(post_id, comment_id)
        with self._lock:
            return any(
                e.type == event_type and getattr(e, column) == value
                for e in self._events
            )

    def is_available(self) -> bool:
        """An in-process list is always available."""
        return True
