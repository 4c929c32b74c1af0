"""Timeout-guarded access to an event store.

The ranking engine must keep working when the event log is slow or
unavailable: reads that fail or time out fall back to empty results and
writes are dropped. Every fallback is logged and counted.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

import structlog

from swipefeed.config.schemas.ranking import StoreConfig
from swipefeed.events.metrics import EventStoreMetrics
from swipefeed.events.models import EventType, UserEvent
from swipefeed.events.store import EventStore, match_column


logger = structlog.get_logger()

T = TypeVar("T")


class GuardedEventStore:
    """Wraps an EventStore with timeouts and safe fallbacks.

    Calls run on a small worker pool so a hung store cannot block the
    caller beyond the configured timeout. The availability probe runs once
    and its result is kept for the lifetime of the wrapper; an unavailable
    store answers every read with the fallback and drops every write.
    """

    def __init__(
        self,
        store: EventStore,
        config: StoreConfig | None = None,
        metrics: EventStoreMetrics | None = None,
    ) -> None:
        """Initialize the guard.

        Args:
            store: Underlying event store.
            config: Timeout configuration.
            metrics: Optional metrics instance.
        """
        self._store = store
        self._config = config or StoreConfig()
        self._metrics = metrics or EventStoreMetrics.get_instance()
        self._executor = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="event-store"
        )
        self._available: bool | None = None
        self._log = logger.bind(component="event_store", subcomponent="guard")

    @property
    def inner(self) -> EventStore:
        """Get the wrapped store."""
        return self._store

    def close(self) -> None:
        """Stop the worker pool without waiting for hung calls."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _call(
        self,
        operation: str,
        fn: Callable[[], T],
        timeout_s: float,
    ) -> tuple[T | None, bool]:
        """Run fn on the worker pool.

        Returns:
            Tuple of (result, ok). ok is False on timeout or error.
        """
        future = self._executor.submit(fn)
        try:
            return future.result(timeout=timeout_s), True
        except FutureTimeoutError:
            future.cancel()
            self._log.warning(
                "event_store_timeout", op=operation, timeout_s=timeout_s
            )
        except Exception:  # noqa: BLE001
            self._log.warning("event_store_call_failed", op=operation, exc_info=True)
        return None, False

    def is_available(self) -> bool:
        """Probe the store once and cache the answer."""
        if self._available is None:
            result, ok = self._call(
                "probe", self._store.is_available, self._config.probe_timeout_s
            )
            self._available = bool(ok and result)
            if not self._available:
                self._metrics.record_probe_failure()
                self._log.warning("event_store_unavailable")
        return self._available

    def _read(self, operation: str, fn: Callable[[], T], fallback: T) -> T:
        if not self.is_available():
            self._metrics.record_read(fell_back=True)
            return fallback
        result, ok = self._call(operation, fn, self._config.read_timeout_s)
        self._metrics.record_read(fell_back=not ok)
        return result if ok else fallback  # type: ignore[return-value]

    def _write(self, operation: str, fn: Callable[[], T]) -> T | None:
        if not self.is_available():
            self._metrics.record_write(dropped=True)
            self._log.warning("event_write_dropped", op=operation, reason="unavailable")
            return None
        result, ok = self._call(operation, fn, self._config.write_timeout_s)
        self._metrics.record_write(dropped=not ok)
        if not ok:
            self._log.warning("event_write_dropped", op=operation, reason="failed")
        return result

    def append(self, event: UserEvent) -> UserEvent | None:
        """Store an event; None when the write was dropped."""
        return self._write("append", lambda: self._store.append(event))

    def all(self) -> list[UserEvent]:
        """Return every event, or [] on failure."""
        return self._read("all", self._store.all, [])

    def of_type(self, event_type: EventType) -> list[UserEvent]:
        """Return events of one type newest first, or [] on failure."""
        return self._read("of_type", lambda: self._store.of_type(event_type), [])

    def unique_post_ids(self) -> set[int]:
        """Return seen post ids, or an empty set on failure."""
        return self._read("unique_post_ids", self._store.unique_post_ids, set())

    def delete_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> int:
        """Delete matching events; 0 when the write was dropped."""
        match_column(post_id, comment_id)
        removed = self._write(
            "delete_where",
            lambda: self._store.delete_where(
                event_type, post_id=post_id, comment_id=comment_id
            ),
        )
        return removed or 0

    def exists_where(
        self,
        event_type: EventType,
        *,
        post_id: int | None = None,
        comment_id: int | None = None,
    ) -> bool:
        """Check for a matching event; False on failure."""
        match_column(post_id, comment_id)
        return self._read(
            "exists_where",
            lambda: self._store.exists_where(
                event_type, post_id=post_id, comment_id=comment_id
            ),
            False,
        )
