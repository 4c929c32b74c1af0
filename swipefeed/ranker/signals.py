"""Signal aggregation over the reader's event history.

Every positive interaction (like, click, bookmark) adds a decay-weighted
vote to the story's author, domain, title keywords and topics. Skips mark
only the post itself. Dwell events feed per-author and per-domain dwell
averages and push title keywords up or down depending on how long the
reader stayed.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping

import structlog

from swipefeed.config.schemas.ranking import DecayConfig, SignalConfig
from swipefeed.events.models import EventType, UserEvent
from swipefeed.feed.models import CandidateStory
from swipefeed.ranker.constants import POSITIVE_EVENT_TYPES
from swipefeed.ranker.keywords import extract_keywords
from swipefeed.ranker.models import RankingSignals


logger = structlog.get_logger()


def _mean(values: list[int]) -> float:
    return sum(values) / len(values)


class SignalAggregator:
    """Folds an event history into a RankingSignals snapshot."""

    def __init__(
        self,
        decay: DecayConfig | None = None,
        signals: SignalConfig | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            decay: Recency decay configuration.
            signals: Event weight configuration.
        """
        self._decay = decay or DecayConfig()
        self._signals = signals or SignalConfig()
        self._type_weights: dict[EventType, float] = {
            EventType.LIKE: self._signals.like_weight,
            EventType.CLICK: self._signals.click_weight,
            EventType.BOOKMARK: self._signals.bookmark_weight,
        }
        self._log = logger.bind(component="ranker", subcomponent="signals")

    def decay_weight(
        self,
        timestamp: int,
        now_ms: int,
        session_start_ms: int | None = None,
    ) -> float:
        """Compute the recency multiplier for an event.

        Events stamped in the future count as brand new.

        Args:
            timestamp: Event time in milliseconds.
            now_ms: Current time in milliseconds.
            session_start_ms: Start of the current viewing session, if any.

        Returns:
            Multiplier in (0, session_multiplier].
        """
        age_ms = max(0, now_ms - timestamp)
        weight = 0.5 ** (age_ms / self._decay.half_life_ms)
        if session_start_ms is not None and timestamp >= session_start_ms:
            weight *= self._decay.session_multiplier
        return weight

    def aggregate(
        self,
        events: Iterable[UserEvent],
        candidate_index: Mapping[int, CandidateStory] | None,
        now_ms: int,
        session_start_ms: int | None = None,
    ) -> RankingSignals:
        """Fold events into ranking signals.

        Author, domain and title come from the event's own snapshot and
        fall back to the candidate index only when the event lacks them.
        Missing optional fields contribute nothing.

        Args:
            events: Event history in any order.
            candidate_index: Current candidates keyed by id.
            now_ms: Current time in milliseconds.
            session_start_ms: Start of the current viewing session, if any.

        Returns:
            A fresh RankingSignals snapshot.
        """
        index = candidate_index or {}
        result = RankingSignals()

        author_weights: dict[str, float] = defaultdict(float)
        domain_weights: dict[str, float] = defaultdict(float)
        keyword_weights: dict[str, float] = defaultdict(float)
        topic_weights: dict[str, float] = defaultdict(float)
        author_dwells: dict[str, list[int]] = defaultdict(list)
        domain_dwells: dict[str, list[int]] = defaultdict(list)
        all_dwells: list[int] = []
        liked_score_sum = 0.0
        liked_weight_sum = 0.0

        for event in events:
            result.event_count += 1
            decay = self.decay_weight(event.timestamp, now_ms, session_start_ms)
            author, domain, title = self._resolve(event, index)

            if event.type in POSITIVE_EVENT_TYPES:
                weight = decay * self._type_weights[event.type]
                if author:
                    author_weights[author] += weight
                if domain:
                    domain_weights[domain] += weight
                for keyword in extract_keywords(title):
                    keyword_weights[keyword] += weight
                for topic in event.topics or ():
                    topic_weights[topic] += weight
                liked_score_sum += event.score * weight
                liked_weight_sum += weight

            elif event.type == EventType.SKIP:
                result.skipped_ids.add(event.post_id)

            elif event.type == EventType.DWELL and event.dwell_ms is not None:
                dwell_ms = event.dwell_ms
                all_dwells.append(dwell_ms)
                if author:
                    author_dwells[author].append(dwell_ms)
                if domain:
                    domain_dwells[domain].append(dwell_ms)

                if dwell_ms < self._signals.short_dwell_ms:
                    keyword_delta = decay * self._signals.short_dwell_keyword_weight
                    if author:
                        result.short_dwell_authors.add(author)
                    if domain:
                        result.short_dwell_domains.add(domain)
                else:
                    saturation = min(dwell_ms / self._signals.dwell_saturation_ms, 1.0)
                    keyword_delta = (
                        decay * saturation * self._signals.long_dwell_keyword_weight
                    )
                for keyword in extract_keywords(title):
                    keyword_weights[keyword] += keyword_delta

        if all_dwells:
            global_mean = _mean(all_dwells)
            result.high_dwell_authors = {
                a for a, dwells in author_dwells.items() if _mean(dwells) > global_mean
            }
            result.high_dwell_domains = {
                d for d, dwells in domain_dwells.items() if _mean(dwells) > global_mean
            }

        if liked_weight_sum > 0:
            result.avg_liked_score = liked_score_sum / liked_weight_sum

        result.author_weights = dict(author_weights)
        result.domain_weights = dict(domain_weights)
        result.keyword_weights = dict(keyword_weights)
        result.topic_weights = dict(topic_weights)

        self._log.debug(
            "signals_aggregated",
            event_count=result.event_count,
            authors=len(result.author_weights),
            domains=len(result.domain_weights),
            keywords=len(result.keyword_weights),
            skipped=len(result.skipped_ids),
        )
        return result

    @staticmethod
    def _resolve(
        event: UserEvent,
        index: Mapping[int, CandidateStory],
    ) -> tuple[str | None, str | None, str | None]:
        """Resolve author, domain and title for an event."""
        candidate = index.get(event.post_id)
        author = event.author
        domain = event.domain
        title = event.title
        if candidate is not None:
            author = author or candidate.author or None
            domain = domain or candidate.domain
            title = title or candidate.title or None
        return author, domain, title
