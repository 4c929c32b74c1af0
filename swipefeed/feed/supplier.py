"""Candidate supplier contract and paging sources."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from swipefeed.feed.models import CandidateStory, FeedKind, SearchSort


class SupplierError(Exception):
    """Raised by a supplier when a page could not be fetched.

    An empty page means the listing is exhausted; this error means the
    fetch failed and may succeed on a later attempt.
    """

    def __init__(self, source: str, page: int, message: str) -> None:
        """Initialize the supplier error.

        Args:
            source: Description of the listing being paged.
            page: Page number that failed.
            message: Human-readable error message.
        """
        self.source = source
        self.page = page
        self.message = message
        super().__init__(f"Fetch failed for {source} page {page}: {message}")


class CandidateSupplier(Protocol):
    """Opaque supplier of candidate pages."""

    def fetch(self, kind: FeedKind, page: int) -> list[CandidateStory]:
        """Fetch one page of a feed listing.

        Args:
            kind: Feed listing.
            page: 1-based page number.

        Returns:
            Candidates in provider order; empty when exhausted.

        Raises:
            SupplierError: If the fetch failed.
        """
        ...

    def search(self, query: str, sort: SearchSort, page: int) -> list[CandidateStory]:
        """Fetch one page of search results.

        Args:
            query: Search query.
            sort: Result ordering.
            page: 0-based page number.

        Returns:
            Candidates in provider order; empty when exhausted.

        Raises:
            SupplierError: If the fetch failed.
        """
        ...


@dataclass(frozen=True)
class FeedSource:
    """Pages through a feed listing."""

    kind: FeedKind = FeedKind.NEWS

    @property
    def first_page(self) -> int:
        """Feed pages are 1-based."""
        return 1

    def fetch_page(self, supplier: CandidateSupplier, page: int) -> list[CandidateStory]:
        """Fetch a page from the supplier."""
        return supplier.fetch(self.kind, page)

    def describe(self) -> str:
        """Describe the source for logs and errors."""
        return f"feed:{self.kind.value}"


@dataclass(frozen=True)
class SearchSource:
    """Pages through search results."""

    query: str
    sort: SearchSort = SearchSort.RELEVANCE

    @property
    def first_page(self) -> int:
        """Search pages are 0-based."""
        return 0

    def fetch_page(self, supplier: CandidateSupplier, page: int) -> list[CandidateStory]:
        """Fetch a page from the supplier."""
        return supplier.search(self.query, self.sort, page)

    def describe(self) -> str:
        """Describe the source for logs and errors."""
        return f"search:{self.sort.value}:{self.query}"


CandidateSource = FeedSource | SearchSource


def deduplicate_candidates(
    candidates: Iterable[CandidateStory],
    known_ids: Iterable[int] = (),
) -> list[CandidateStory]:
    """Drop candidates whose id was already seen, keeping first occurrences.

    Args:
        candidates: Candidates in order.
        known_ids: Ids to treat as already present.

    Returns:
        Candidates with unique ids not in known_ids, in input order.
    """
    seen = set(known_ids)
    unique: list[CandidateStory] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        unique.append(candidate)
    return unique
