"""Metrics collection for the ranker module."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass
class RankerMetrics:
    """Metrics for ranking passes.

    Attributes:
        passes_total: Number of ranking passes.
        cold_start_passes: Passes that ran without any events.
        candidates_ranked_total: Candidates ranked across all passes.
        events_folded_total: Events aggregated across all passes.
        diversity_injections_total: Candidates pulled forward for diversity.
        last_pass_duration_ms: Duration of the most recent pass.
    """

    passes_total: int = 0
    cold_start_passes: int = 0
    candidates_ranked_total: int = 0
    events_folded_total: int = 0
    diversity_injections_total: int = 0
    last_pass_duration_ms: float = 0.0

    _instance: ClassVar["RankerMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RankerMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_pass(
        self,
        candidates: int,
        events: int,
        injections: int,
        duration_ms: float,
    ) -> None:
        """Record one ranking pass.

        Args:
            candidates: Number of candidates ranked.
            events: Number of events aggregated.
            injections: Candidates pulled forward by diversity injection.
            duration_ms: Pass duration in milliseconds.
        """
        self.passes_total += 1
        if events == 0:
            self.cold_start_passes += 1
        self.candidates_ranked_total += candidates
        self.events_folded_total += events
        self.diversity_injections_total += injections
        self.last_pass_duration_ms = duration_ms

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "passes_total": self.passes_total,
            "cold_start_passes": self.cold_start_passes,
            "candidates_ranked_total": self.candidates_ranked_total,
            "events_folded_total": self.events_folded_total,
            "diversity_injections_total": self.diversity_injections_total,
            "last_pass_duration_ms": self.last_pass_duration_ms,
        }
