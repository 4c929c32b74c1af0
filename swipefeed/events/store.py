"""Event store contract and SQLite implementation."""

import json
import sqlite3
import threading
import time
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

import structlog

from swipefeed.data_model import now_ms
from swipefeed.events.errors import StoreConnectionError
from swipefeed.events.metrics import EventStoreMetrics
from swipefeed.events.migrations import CURRENT_VERSION, MigrationManager
from swipefeed.events.models import EventType, UserEvent


logger = structlog.get_logger()

MS_PER_DAY = 24 * 60 * 60 * 1000


class EventStore(Protocol):
    """Append-only interaction log with typed queries."""

    def append(self, event: UserEvent) -> UserEvent:
        """Store an event and return it with its assigned id."""
        ...

    def all(self) -> list[UserEvent]:
        """Return every event in insertion order."""
        ...

    def of_type(self, event_type: EventType) -> list[UserEvent]:
        """Return events of one type, newest first."""
        ...

    def unique_post_ids(self) -> set[int]:
        """Return ids of every post with at least one event."""
        ...

    def delete_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> int:
        """Delete all events matching type and post or comment id."""
        ...

    def exists_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> bool:
        """Check for an event matching type and post or comment id."""
        ...

    def is_available(self) -> bool:
        """Probe whether the store can serve requests."""
        ...


def match_column(post_id: int | None, comment_id: int | None) -> tuple[str, int]:
    """Resolve which id a delete/exists query matches on.

    Args:
        post_id: Post id to match.
        comment_id: Comment id to match.

    Returns:
        Tuple of (column name, value).

    Raises:
        ValueError: If not exactly one id is given.
    """
    if (post_id is None) == (comment_id is None):
        msg = "Exactly one of post_id or comment_id must be given"
        raise ValueError(msg)
    if post_id is not None:
        return "post_id", post_id
    return "comment_id", comment_id  # type: ignore[return-value]


_COLUMNS = (
    "type",
    "post_id",
    "timestamp",
    "score",
    "dwell_ms",
    "author",
    "domain",
    "title",
    "topics_json",
    "url",
    "comment_count",
    "comment_id",
    "comment_author",
    "comment_text",
    "comment_time",
)


def _event_to_row(event: UserEvent) -> tuple[object, ...]:
    topics_json = json.dumps(list(event.topics)) if event.topics is not None else None
    return (
        event.type.value,
        event.post_id,
        event.timestamp,
        event.score,
        event.dwell_ms,
        event.author,
        event.domain,
        event.title,
        topics_json,
        event.url,
        event.comment_count,
        event.comment_id,
        event.comment_author,
        event.comment_text,
        event.comment_time,
    )


def _row_to_event(row: sqlite3.Row) -> UserEvent:
    topics = tuple(json.loads(row["topics_json"])) if row["topics_json"] else None
    return UserEvent(
        id=row["id"],
        type=EventType(row["type"]),
        post_id=row["post_id"],
        timestamp=row["timestamp"],
        score=row["score"],
        dwell_ms=row["dwell_ms"],
        author=row["author"],
        domain=row["domain"],
        title=row["title"],
        topics=topics,
        url=row["url"],
        comment_count=row["comment_count"],
        comment_id=row["comment_id"],
        comment_author=row["comment_author"],
        comment_text=row["comment_text"],
        comment_time=row["comment_time"],
    )


class SqliteEventStore:
    """SQLite-backed event log.

    Uses WAL mode and versioned migrations. A single connection is shared
    across threads behind a lock, since ranking sessions read from worker
    threads while the interaction path writes.
    """

    def __init__(
        self,
        db_path: Path | str,
        max_events: int | None = None,
        retention_days: int | None = None,
    ) -> None:
        """Initialize the event store.

        Args:
            db_path: Path to SQLite database file.
            max_events: Keep at most this many newest events when pruning.
            retention_days: Drop events older than this when pruning.
        """
        self._db_path = Path(db_path) if isinstance(db_path, str) else db_path
        self._max_events = max_events
        self._retention_days = retention_days
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._log = logger.bind(component="event_store", db_path=str(self._db_path))

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._conn is not None

    def connect(self) -> None:
        """Open the database, apply migrations and prune old events.

        Creates the database file and parent directories if they don't exist.
        """
        if self._conn is not None:
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._log.info("connecting_to_database")

        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")

        migration_mgr = MigrationManager(conn)
        old_version = migration_mgr.get_current_version()
        applied = migration_mgr.apply_migrations()
        self._conn = conn

        self._log.info(
            "database_connected",
            old_version=old_version,
            new_version=CURRENT_VERSION,
            migrations_applied=applied,
        )

        if self._max_events is not None or self._retention_days is not None:
            self.prune(now_ms())

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self._log.info("database_closed")

    def __enter__(self) -> "SqliteEventStore":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Context manager exit."""
        self.close()

    def _ensure_connected(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreConnectionError("Database not connected. Call connect() first.")
        return self._conn

    @contextmanager
    def _transaction(self, operation: str) -> Generator[sqlite3.Connection]:
        """Run a write under the lock, committing or rolling back.

        Args:
            operation: Name of the operation for logging.

        Yields:
            The database connection.
        """
        with self._lock:
            conn = self._ensure_connected()
            tx_id = str(uuid.uuid4())[:8]
            start_ns = time.perf_counter_ns()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                self._log.error("transaction_failed", tx_id=tx_id, op=operation)
                raise
            duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
            self._log.debug(
                "transaction_complete",
                tx_id=tx_id,
                op=operation,
                duration_ms=round(duration_ms, 2),
            )

    def _query(self, sql: str, params: tuple[object, ...] = ()) -> list[sqlite3.Row]:
        with self._lock:
            conn = self._ensure_connected()
            return conn.execute(sql, params).fetchall()

    def append(self, event: UserEvent) -> UserEvent:
        """Store an event.

        Args:
            event: Event to store; any id it carries is ignored.

        Returns:
            The event with its assigned row id.
        """
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._transaction("append") as conn:
            cursor = conn.execute(
                f"INSERT INTO events ({', '.join(_COLUMNS)}) VALUES ({placeholders})",  # noqa: S608
                _event_to_row(event),
            )
            event_id = cursor.lastrowid
        return event.with_id(int(event_id or 0))

    def all(self) -> list[UserEvent]:
        """Return every event in insertion order."""
        return [_row_to_event(r) for r in self._query("SELECT * FROM events ORDER BY id")]

    def of_type(self, event_type: EventType) -> list[UserEvent]:
        """Return events of one type, newest first.

        Args:
            event_type: Event type to select.

        Returns:
            Events sorted by timestamp descending.
        """
        rows = self._query(
            "SELECT * FROM events WHERE type = ? ORDER BY timestamp DESC, id DESC",
            (event_type.value,),
        )
        return [_row_to_event(r) for r in rows]

    def unique_post_ids(self) -> set[int]:
        """Return ids of every post with at least one event."""
        return {r[0] for r in self._query("SELECT DISTINCT post_id FROM events")}

    def delete_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> int:
        """Delete all events matching type and post or comment id.

        Args:
            event_type: Event type to match.
            post_id: Post id to match.
            comment_id: Comment id to match.

        Returns:
            Number of events deleted.
        """
        column, value = match_column(post_id, comment_id)
        with self._transaction("delete_where") as conn:
            cursor = conn.execute(
                f"DELETE FROM events WHERE type = ? AND {column} = ?",  # noqa: S608
                (event_type.value, value),
            )
            return cursor.rowcount

    def exists_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> bool:
        """Check for an event matching type and post or comment id.

        Args:
            event_type: Event type to match.
            post_id: Post id to match.
            comment_id: Comment id to match.

        Returns:
            True if at least one event matches.
        """
        column, value = match_column(post_id, comment_id)
        rows = self._query(
            f"SELECT 1 FROM events WHERE type = ? AND {column} = ? LIMIT 1",  # noqa: S608
            (event_type.value, value),
        )
        return bool(rows)

    def is_available(self) -> bool:
        """Probe the database with a trivial count query."""
        try:
            self._query("SELECT COUNT(*) FROM events")
        except (sqlite3.Error, StoreConnectionError):
            return False
        return True

    def prune(
        self,
        now_ms: int,
        max_events: int | None = None,
        retention_days: int | None = None,
    ) -> int:
        """Apply the retention window and count ceiling.

        Args:
            now_ms: Current time in milliseconds.
            max_events: Count ceiling; defaults to the store setting.
            retention_days: Retention window; defaults to the store setting.

        Returns:
            Number of events removed.
        """
        max_events = max_events if max_events is not None else self._max_events
        if retention_days is None:
            retention_days = self._retention_days

        removed = 0
        with self._transaction("prune") as conn:
            if retention_days is not None:
                cutoff = now_ms - retention_days * MS_PER_DAY
                cursor = conn.execute(
                    "DELETE FROM events WHERE timestamp < ?", (cutoff,)
                )
                removed += cursor.rowcount
            if max_events is not None:
                cursor = conn.execute(
                    """
                    DELETE FROM events WHERE id NOT IN (
                        SELECT id FROM events
                        ORDER BY timestamp DESC, id DESC
                        LIMIT ?
                    )
                    """,
                    (max_events,),
                )
                removed += cursor.rowcount

        if removed:
            EventStoreMetrics.get_instance().record_pruned(removed)
            self._log.info("events_pruned", removed=removed)
        return removed
