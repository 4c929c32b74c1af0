"""Data models for reader interaction events."""

from enum import Enum
from typing import Annotated

from pydantic import Field

from swipefeed.data_model import StrictBaseModel, TimestampMs


class EventType(str, Enum):
    """Kind of reader interaction."""

    LIKE = "like"
    BOOKMARK = "bookmark"
    COMMENT_LIKE = "comment_like"
    COMMENT_BOOKMARK = "comment_bookmark"
    SKIP = "skip"
    DWELL = "dwell"
    CLICK = "click"
    NAVIGATE = "navigate"


class UserEvent(StrictBaseModel):
    """Immutable record of one interaction.

    Author, domain, title and topics are copied from the story when the
    event is built, so aggregation never depends on the story still being
    a candidate. Every denormalized field is optional and an absent field
    simply contributes nothing.
    """

    id: int | None = Field(default=None, description="Store-assigned row id")
    type: EventType
    post_id: int
    timestamp: TimestampMs
    score: Annotated[int, Field(ge=0, description="Story score at event time")] = 0
    dwell_ms: Annotated[int, Field(ge=0)] | None = None
    author: str | None = None
    domain: str | None = None
    title: str | None = None
    topics: tuple[str, ...] | None = None
    url: str | None = None
    comment_count: Annotated[int, Field(ge=0)] | None = None
    comment_id: int | None = None
    comment_author: str | None = None
    comment_text: str | None = None
    comment_time: Annotated[int, Field(ge=0)] | None = None

    def with_id(self, event_id: int) -> "UserEvent":
        """Return a copy carrying the store-assigned id."""
        return self.model_copy(update={"id": event_id})
