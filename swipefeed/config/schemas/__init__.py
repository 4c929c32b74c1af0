"""Configuration schemas."""

from swipefeed.config.schemas.ranking import (
    DecayConfig,
    DiversityConfig,
    FeedConfig,
    RankingConfig,
    ScoringConfig,
    SignalConfig,
    StoreConfig,
)
from swipefeed.config.schemas.topics import TopicRule, default_topic_rules


__all__ = [
    "DecayConfig",
    "DiversityConfig",
    "FeedConfig",
    "RankingConfig",
    "ScoringConfig",
    "SignalConfig",
    "StoreConfig",
    "TopicRule",
    "default_topic_rules",
]
