"""Ranking configuration schema."""

from typing import Annotated

from pydantic import Field

from swipefeed.config.schemas.topics import TopicRule, default_topic_rules
from swipefeed.data_model import StrictBaseModel


class DecayConfig(StrictBaseModel):
    """Recency decay configuration.

    Attributes:
        half_life_ms: Age at which an event's weight halves.
        session_multiplier: Extra multiplier for events from the current session.
    """

    half_life_ms: Annotated[int, Field(gt=0)] = 10 * 60 * 1000
    session_multiplier: Annotated[float, Field(ge=1.0, le=10.0)] = 2.0


class SignalConfig(StrictBaseModel):
    """Per-event-type weights used by the signal aggregator.

    Attributes:
        like_weight: Multiplier for like events.
        click_weight: Multiplier for link click events.
        bookmark_weight: Multiplier for bookmark events.
        short_dwell_ms: Dwell below this counts as a negative signal.
        dwell_saturation_ms: Dwell beyond this carries no extra weight.
        short_dwell_keyword_weight: Keyword contribution of a short dwell.
        long_dwell_keyword_weight: Keyword contribution of a saturated dwell.
    """

    like_weight: Annotated[float, Field(ge=0.0, le=10.0)] = 1.0
    click_weight: Annotated[float, Field(ge=0.0, le=10.0)] = 1.2
    bookmark_weight: Annotated[float, Field(ge=0.0, le=10.0)] = 1.5
    short_dwell_ms: Annotated[int, Field(ge=0)] = 2000
    dwell_saturation_ms: Annotated[int, Field(gt=0)] = 10000
    short_dwell_keyword_weight: Annotated[float, Field(ge=-10.0, le=0.0)] = -0.3
    long_dwell_keyword_weight: Annotated[float, Field(ge=0.0, le=10.0)] = 0.5


class ScoringConfig(StrictBaseModel):
    """Candidate scoring adjustments.

    Every boost and penalty is a fraction of the candidate's own score.

    Attributes:
        proximity_band: Relative band around the average liked score.
        proximity_boost: Boost for candidates inside the band.
        author_affinity_threshold: Minimum author weight for the author boost.
        author_affinity_boost: Boost for favoured authors.
        domain_affinity_threshold: Minimum domain weight for the domain boost.
        domain_affinity_boost: Boost for favoured domains.
        high_dwell_author_boost: Boost for authors read longer than average.
        high_dwell_domain_boost: Boost for domains read longer than average.
        short_dwell_author_penalty: Penalty for authors with a short dwell.
        short_dwell_domain_penalty: Penalty for domains with a short dwell.
        keyword_divisor: Keyword overlap is divided by this before capping.
        keyword_cap: Maximum keyword boost.
        topic_threshold: Minimum topic weight sum for the topic boost.
        topic_divisor: Topic sum is divided by this before capping.
        topic_cap: Maximum topic boost.
        skip_penalty: Penalty for a candidate the reader skipped.
    """

    proximity_band: Annotated[float, Field(ge=0.0, le=1.0)] = 0.5
    proximity_boost: Annotated[float, Field(ge=0.0, le=5.0)] = 0.30
    author_affinity_threshold: Annotated[float, Field(ge=0.0)] = 0.3
    author_affinity_boost: Annotated[float, Field(ge=0.0, le=5.0)] = 0.50
    domain_affinity_threshold: Annotated[float, Field(ge=0.0)] = 0.3
    domain_affinity_boost: Annotated[float, Field(ge=0.0, le=5.0)] = 0.25
    high_dwell_author_boost: Annotated[float, Field(ge=0.0, le=5.0)] = 0.20
    high_dwell_domain_boost: Annotated[float, Field(ge=0.0, le=5.0)] = 0.15
    short_dwell_author_penalty: Annotated[float, Field(ge=0.0, le=1.0)] = 0.10
    short_dwell_domain_penalty: Annotated[float, Field(ge=0.0, le=1.0)] = 0.10
    keyword_divisor: Annotated[float, Field(gt=0.0)] = 3.0
    keyword_cap: Annotated[float, Field(ge=0.0, le=5.0)] = 0.4
    topic_threshold: Annotated[float, Field(ge=0.0)] = 0.3
    topic_divisor: Annotated[float, Field(gt=0.0)] = 3.0
    topic_cap: Annotated[float, Field(ge=0.0, le=5.0)] = 0.35
    skip_penalty: Annotated[float, Field(ge=0.0, le=1.0)] = 0.30


class DiversityConfig(StrictBaseModel):
    """Diversity injection configuration.

    Attributes:
        interval: Every interval-th position tries a different author/domain.
    """

    interval: Annotated[int, Field(ge=2)] = 5


class FeedConfig(StrictBaseModel):
    """Viewing session configuration.

    Attributes:
        refill_threshold: Fetch more when this close to the end of the list.
        max_background_pages: Last page prefetched right after start.
        skip_dwell_ms: Leaving an item sooner than this records a skip.
        min_dwell_record_ms: Shorter visits record no dwell event.
        max_consecutive_fetch_failures: Give up paging after this many errors.
    """

    refill_threshold: Annotated[int, Field(ge=0)] = 10
    max_background_pages: Annotated[int, Field(ge=1)] = 4
    skip_dwell_ms: Annotated[int, Field(ge=0)] = 2000
    min_dwell_record_ms: Annotated[int, Field(ge=0)] = 500
    max_consecutive_fetch_failures: Annotated[int, Field(ge=1)] = 3


class StoreConfig(StrictBaseModel):
    """Event store access configuration.

    Attributes:
        read_timeout_s: Reads slower than this fall back to empty results.
        write_timeout_s: Writes slower than this are dropped.
        probe_timeout_s: Availability probe timeout.
        max_events: Retention cap on stored events.
        retention_days: Events older than this are pruned.
    """

    read_timeout_s: Annotated[float, Field(gt=0.0, le=60.0)] = 3.0
    write_timeout_s: Annotated[float, Field(gt=0.0, le=60.0)] = 5.0
    probe_timeout_s: Annotated[float, Field(gt=0.0, le=60.0)] = 2.0
    max_events: Annotated[int, Field(ge=1)] = 5000
    retention_days: Annotated[int, Field(ge=1)] = 90


class RankingConfig(StrictBaseModel):
    """Root configuration for ranking.yaml.

    Attributes:
        version: Schema version.
        decay: Recency decay configuration.
        signals: Event weight configuration.
        scoring: Candidate scoring configuration.
        diversity: Diversity injection configuration.
        feed: Viewing session configuration.
        store: Event store access configuration.
        topics: Topic classification rules.
    """

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    decay: DecayConfig = Field(default_factory=DecayConfig)
    signals: SignalConfig = Field(default_factory=SignalConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    diversity: DiversityConfig = Field(default_factory=DiversityConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    topics: list[TopicRule] = Field(default_factory=default_topic_rules)
