"""Feed candidates and the supplier contract."""

from swipefeed.feed.models import CandidateStory, CommentRef, FeedKind, SearchSort
from swipefeed.feed.supplier import (
    CandidateSource,
    CandidateSupplier,
    FeedSource,
    SearchSource,
    SupplierError,
    deduplicate_candidates,
)
from swipefeed.feed.urls import extract_domain, is_http_url


__all__ = [
    "CandidateSource",
    "CandidateStory",
    "CandidateSupplier",
    "CommentRef",
    "FeedKind",
    "FeedSource",
    "SearchSort",
    "SearchSource",
    "SupplierError",
    "deduplicate_candidates",
    "extract_domain",
    "is_http_url",
]
