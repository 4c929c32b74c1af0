"""Diversity injection to break up runs of one author or domain."""

from collections.abc import Sequence

from swipefeed.feed.models import CandidateStory


class DiversityInjector:
    """Reorders a ranked list so long same-source runs get interrupted.

    At every interval-th position (never the first) the first remaining
    candidate whose author and domain were not seen since the last break is
    pulled forward. When no such candidate exists the ranked order is kept.
    The output is always a permutation of the input.
    """

    def __init__(self, interval: int = 5) -> None:
        """Initialize the injector.

        Args:
            interval: Distance between diversity breaks.

        Raises:
            ValueError: If interval is less than 2.
        """
        if interval < 2:
            msg = f"Diversity interval must be at least 2, got {interval}"
            raise ValueError(msg)
        self._interval = interval

    @property
    def interval(self) -> int:
        """Get the distance between diversity breaks."""
        return self._interval

    def diversify(self, ranked: Sequence[CandidateStory]) -> list[CandidateStory]:
        """Reorder a ranked sequence.

        Args:
            ranked: Candidates sorted by descending weight.

        Returns:
            Reordered list with the same elements.
        """
        return self.diversify_counted(ranked)[0]

    def diversify_counted(
        self,
        ranked: Sequence[CandidateStory],
    ) -> tuple[list[CandidateStory], int]:
        """Reorder a ranked sequence and count the injections.

        Args:
            ranked: Candidates sorted by descending weight.

        Returns:
            Tuple of (reordered list, number of candidates pulled forward).
        """
        pool = list(ranked)
        output: list[CandidateStory] = []
        recent_authors: set[str] = set()
        recent_domains: set[str] = set()
        injected = 0

        while pool:
            position = len(output)
            if position > 0 and position % self._interval == 0:
                pick = self._find_fresh(pool, recent_authors, recent_domains)
                if pick is not None:
                    item = pool.pop(pick)
                    output.append(item)
                    if pick > 0:
                        injected += 1
                    recent_authors = {item.author}
                    domain = item.domain
                    recent_domains = {domain} if domain else set()
                    continue

            item = pool.pop(0)
            output.append(item)
            recent_authors.add(item.author)
            domain = item.domain
            if domain:
                recent_domains.add(domain)

        return output, injected

    @staticmethod
    def _find_fresh(
        pool: list[CandidateStory],
        recent_authors: set[str],
        recent_domains: set[str],
    ) -> int | None:
        for i, candidate in enumerate(pool):
            domain = candidate.domain
            if candidate.author in recent_authors:
                continue
            if domain and domain in recent_domains:
                continue
            return i
        return None
