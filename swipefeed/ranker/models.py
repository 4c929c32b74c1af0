"""Data models for the candidate ranker."""

from dataclasses import dataclass, field

from swipefeed.feed.models import CandidateStory


@dataclass
class RankingSignals:
    """Snapshot of reader preferences folded from the event history.

    Rebuilt from scratch on every ranking pass and never persisted.

    Attributes:
        event_count: Number of events folded into this snapshot.
        avg_liked_score: Decay-weighted mean score of positively engaged stories.
        author_weights: Decay-weighted affinity per author.
        domain_weights: Decay-weighted affinity per domain.
        skipped_ids: Post ids the reader skipped.
        keyword_weights: Decay-weighted weight per title keyword; may be negative.
        topic_weights: Decay-weighted weight per topic label.
        short_dwell_authors: Authors with at least one short dwell.
        short_dwell_domains: Domains with at least one short dwell.
        high_dwell_authors: Authors read longer than the global mean dwell.
        high_dwell_domains: Domains read longer than the global mean dwell.
    """

    event_count: int = 0
    avg_liked_score: float = 0.0
    author_weights: dict[str, float] = field(default_factory=dict)
    domain_weights: dict[str, float] = field(default_factory=dict)
    skipped_ids: set[int] = field(default_factory=set)
    keyword_weights: dict[str, float] = field(default_factory=dict)
    topic_weights: dict[str, float] = field(default_factory=dict)
    short_dwell_authors: set[str] = field(default_factory=set)
    short_dwell_domains: set[str] = field(default_factory=set)
    high_dwell_authors: set[str] = field(default_factory=set)
    high_dwell_domains: set[str] = field(default_factory=set)

    @property
    def is_cold_start(self) -> bool:
        """True when no events were available."""
        return self.event_count == 0


@dataclass(frozen=True)
class ScoreComponents:
    """Breakdown of a candidate's ranking weight.

    Every adjustment is already scaled by the candidate's own score, so
    total_score is base_score plus the sum of the adjustments.

    Attributes:
        base_score: Provider score of the candidate.
        proximity: Boost for a score near the average liked score.
        author_affinity: Boost for a favoured author.
        domain_affinity: Boost for a favoured domain.
        high_dwell_author: Boost for an author read longer than average.
        high_dwell_domain: Boost for a domain read longer than average.
        short_dwell_author: Penalty for an author left quickly (negative).
        short_dwell_domain: Penalty for a domain left quickly (negative).
        keyword: Boost from title keyword overlap.
        topic: Boost from topic affinity.
        skip: Penalty for a skipped candidate (negative).
        total_score: Final ranking weight.
    """

    base_score: float
    proximity: float = 0.0
    author_affinity: float = 0.0
    domain_affinity: float = 0.0
    high_dwell_author: float = 0.0
    high_dwell_domain: float = 0.0
    short_dwell_author: float = 0.0
    short_dwell_domain: float = 0.0
    keyword: float = 0.0
    topic: float = 0.0
    skip: float = 0.0
    total_score: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary of component name to value.
        """
        return {
            "base_score": self.base_score,
            "proximity": self.proximity,
            "author_affinity": self.author_affinity,
            "domain_affinity": self.domain_affinity,
            "high_dwell_author": self.high_dwell_author,
            "high_dwell_domain": self.high_dwell_domain,
            "short_dwell_author": self.short_dwell_author,
            "short_dwell_domain": self.short_dwell_domain,
            "keyword": self.keyword,
            "topic": self.topic,
            "skip": self.skip,
            "total_score": self.total_score,
        }


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate with its computed weight breakdown."""

    candidate: CandidateStory
    components: ScoreComponents

    @property
    def weight(self) -> float:
        """Get the final ranking weight."""
        return self.components.total_score
