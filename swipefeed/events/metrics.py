"""Metrics collection for event store access."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass
class EventStoreMetrics:
    """Metrics for guarded event store access.

    Attributes:
        reads_total: Read calls issued.
        writes_total: Write calls issued.
        read_fallbacks_total: Reads answered with the empty fallback.
        writes_dropped_total: Writes dropped on timeout or error.
        probe_failures_total: Availability probes that failed.
        events_pruned_total: Events removed by retention pruning.
    """

    reads_total: int = 0
    writes_total: int = 0
    read_fallbacks_total: int = 0
    writes_dropped_total: int = 0
    probe_failures_total: int = 0
    events_pruned_total: int = 0

    _instance: ClassVar["EventStoreMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "EventStoreMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_read(self, fell_back: bool) -> None:
        """Record a read call.

        Args:
            fell_back: Whether the fallback value was returned.
        """
        self.reads_total += 1
        if fell_back:
            self.read_fallbacks_total += 1

    def record_write(self, dropped: bool) -> None:
        """Record a write call.

        Args:
            dropped: Whether the write was dropped.
        """
        self.writes_total += 1
        if dropped:
            self.writes_dropped_total += 1

    def record_probe_failure(self) -> None:
        """Record a failed availability probe."""
        self.probe_failures_total += 1

    def record_pruned(self, count: int) -> None:
        """Record events removed by pruning.

        Args:
            count: Number of events removed.
        """
        self.events_pruned_total += count

    def to_dict(self) -> dict[str, int]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "reads_total": self.reads_total,
            "writes_total": self.writes_total,
            "read_fallbacks_total": self.read_fallbacks_total,
            "writes_dropped_total": self.writes_dropped_total,
            "probe_failures_total": self.probe_failures_total,
            "events_pruned_total": self.events_pruned_total,
        }
