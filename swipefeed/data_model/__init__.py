"""Shared data model primitives."""

from swipefeed.data_model.base import StrictBaseModel, TimestampMs
from swipefeed.data_model.time import now_ms


__all__ = ["StrictBaseModel", "TimestampMs", "now_ms"]
