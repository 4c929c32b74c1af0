"""Data models for feed candidates."""

from enum import Enum
from typing import Annotated

from pydantic import Field, field_validator

from swipefeed.data_model import StrictBaseModel
from swipefeed.feed.urls import extract_domain, is_http_url


class FeedKind(str, Enum):
    """Listing a candidate page can be fetched from."""

    NEWS = "news"
    NEWEST = "newest"
    SHOW = "show"
    ASK = "ask"
    JOBS = "jobs"


class SearchSort(str, Enum):
    """Ordering of search results."""

    RELEVANCE = "relevance"
    DATE = "date"


class CandidateStory(StrictBaseModel):
    """A story eligible for ranking.

    Immutable once fetched. Non-http(s) URLs are normalized to None so
    downstream code only ever sees an absolute URL or a text-only post.
    """

    id: Annotated[int, Field(description="Stable unique story id")]
    title: str = ""
    url: str | None = Field(default=None, description="Absolute http(s) URL")
    author: str = ""
    time: Annotated[int, Field(ge=0, description="Seconds since epoch")] = 0
    score: Annotated[int, Field(ge=0, description="Provider popularity")] = 0
    comment_count: Annotated[int, Field(ge=0)] = 0

    @field_validator("url", mode="before")
    @classmethod
    def normalize_url(cls, value: object) -> object:
        """Drop URLs that are not absolute http(s)."""
        if isinstance(value, str) and not is_http_url(value):
            return None
        return value

    @property
    def domain(self) -> str | None:
        """Get the story's domain without "www."."""
        return extract_domain(self.url)


class CommentRef(StrictBaseModel):
    """Snapshot of a comment the reader liked or bookmarked."""

    id: int
    author: str = ""
    text: str = ""
    time: Annotated[int, Field(ge=0)] = 0
