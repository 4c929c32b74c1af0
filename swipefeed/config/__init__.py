"""Configuration loading and validation module."""

from swipefeed.config.loader import (
    ConfigLoader,
    ConfigValidationError,
    load_ranking_config,
)
from swipefeed.config.schemas import RankingConfig, TopicRule


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "RankingConfig",
    "TopicRule",
    "load_ranking_config",
]
