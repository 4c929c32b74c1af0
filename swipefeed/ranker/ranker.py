"""Candidate ranking pipeline: aggregate, score, sort, diversify."""

import time
from collections.abc import Mapping, Sequence

import structlog

from swipefeed.config.schemas.ranking import RankingConfig
from swipefeed.data_model import now_ms as current_time_ms
from swipefeed.events.models import UserEvent
from swipefeed.feed.models import CandidateStory
from swipefeed.ranker.diversity import DiversityInjector
from swipefeed.ranker.metrics import RankerMetrics
from swipefeed.ranker.models import RankingSignals, ScoredCandidate
from swipefeed.ranker.scorer import CandidateScorer
from swipefeed.ranker.signals import SignalAggregator
from swipefeed.topics import TopicClassifier


logger = structlog.get_logger()


class CandidateRanker:
    """Orders candidates for a reader from their event history.

    The output is a pure function of the candidates, the events and the
    clock: signals are rebuilt from the whole history on every call,
    candidates are stably sorted by descending weight and the sorted list
    goes through diversity injection.
    """

    def __init__(
        self,
        config: RankingConfig | None = None,
        metrics: RankerMetrics | None = None,
        classifier: TopicClassifier | None = None,
    ) -> None:
        """Initialize the ranker.

        Args:
            config: Ranking configuration.
            metrics: Optional metrics instance.
            classifier: Topic classifier; built from config.topics if omitted.
        """
        self._config = config or RankingConfig()
        self._metrics = metrics or RankerMetrics.get_instance()
        self._classifier = classifier or TopicClassifier(self._config.topics)
        self._aggregator = SignalAggregator(self._config.decay, self._config.signals)
        self._scorer = CandidateScorer(self._config.scoring, self._classifier)
        self._injector = DiversityInjector(self._config.diversity.interval)
        self._log = logger.bind(component="ranker")

    @property
    def config(self) -> RankingConfig:
        """Get the ranking configuration."""
        return self._config

    @property
    def classifier(self) -> TopicClassifier:
        """Get the topic classifier."""
        return self._classifier

    def signals(
        self,
        candidates: Sequence[CandidateStory],
        events: Sequence[UserEvent],
        now_ms: int | None = None,
        session_start_ms: int | None = None,
        candidate_index: Mapping[int, CandidateStory] | None = None,
    ) -> RankingSignals:
        """Aggregate events into a signals snapshot.

        Args:
            candidates: Candidates used for field fallback when no index is given.
            events: Full event history.
            now_ms: Current time; defaults to the wall clock.
            session_start_ms: Start of the current viewing session.
            candidate_index: Explicit id to candidate lookup.

        Returns:
            RankingSignals snapshot.
        """
        index = candidate_index if candidate_index is not None else _index(candidates)
        now = now_ms if now_ms is not None else current_time_ms()
        return self._aggregator.aggregate(events, index, now, session_start_ms)

    def explain(
        self,
        candidates: Sequence[CandidateStory],
        events: Sequence[UserEvent],
        now_ms: int | None = None,
        session_start_ms: int | None = None,
        candidate_index: Mapping[int, CandidateStory] | None = None,
    ) -> list[ScoredCandidate]:
        """Score candidates and sort them, keeping the breakdown.

        The result is in weight order, before diversity injection.

        Args:
            candidates: Candidates to score.
            events: Full event history.
            now_ms: Current time; defaults to the wall clock.
            session_start_ms: Start of the current viewing session.
            candidate_index: Explicit id to candidate lookup.

        Returns:
            Scored candidates sorted by descending weight, ties in input order.
        """
        signals = self.signals(
            candidates, events, now_ms, session_start_ms, candidate_index
        )
        scored = [self._scorer.score_candidate(c, signals) for c in candidates]
        # sorted() is stable, so equal weights keep input order
        return sorted(scored, key=lambda s: s.weight, reverse=True)

    def rank(
        self,
        candidates: Sequence[CandidateStory],
        events: Sequence[UserEvent],
        now_ms: int | None = None,
        session_start_ms: int | None = None,
        candidate_index: Mapping[int, CandidateStory] | None = None,
    ) -> list[CandidateStory]:
        """Rank candidates.

        Args:
            candidates: Candidates to order.
            events: Full event history.
            now_ms: Current time; defaults to the wall clock.
            session_start_ms: Start of the current viewing session.
            candidate_index: Explicit id to candidate lookup for event fallback.

        Returns:
            Candidates in display order.
        """
        if not candidates:
            return []

        start = time.perf_counter()
        scored = self.explain(
            candidates, events, now_ms, session_start_ms, candidate_index
        )
        ordered, injections = self._injector.diversify_counted(
            [s.candidate for s in scored]
        )
        duration_ms = (time.perf_counter() - start) * 1000

        self._metrics.record_pass(len(candidates), len(events), injections, duration_ms)
        self._log.debug(
            "rank_pass_complete",
            candidates=len(candidates),
            events=len(events),
            cold_start=not events,
            diversity_injections=injections,
            duration_ms=round(duration_ms, 3),
        )
        return ordered

    def rank_partitioned(
        self,
        candidates: Sequence[CandidateStory],
        events: Sequence[UserEvent],
        seen_ids: set[int],
        now_ms: int | None = None,
        session_start_ms: int | None = None,
        candidate_index: Mapping[int, CandidateStory] | None = None,
    ) -> list[CandidateStory]:
        """Rank unseen candidates first, then seen ones.

        Each group is ranked on its own against the full history.

        Args:
            candidates: Candidates to order.
            events: Full event history.
            seen_ids: Post ids with at least one recorded event.
            now_ms: Current time; defaults to the wall clock.
            session_start_ms: Start of the current viewing session.
            candidate_index: Explicit id to candidate lookup for event fallback.

        Returns:
            Unseen candidates in display order followed by seen ones.
        """
        now = now_ms if now_ms is not None else current_time_ms()
        index = candidate_index if candidate_index is not None else _index(candidates)
        unseen = [c for c in candidates if c.id not in seen_ids]
        seen = [c for c in candidates if c.id in seen_ids]
        return self.rank(unseen, events, now, session_start_ms, index) + self.rank(
            seen, events, now, session_start_ms, index
        )


def _index(candidates: Sequence[CandidateStory]) -> dict[int, CandidateStory]:
    return {c.id: c for c in candidates}


def rank_candidates_pure(
    candidates: Sequence[CandidateStory],
    events: Sequence[UserEvent],
    config: RankingConfig | None = None,
    now_ms: int | None = None,
    session_start_ms: int | None = None,
) -> list[CandidateStory]:
    """Rank candidates with a throwaway ranker.

    Args:
        candidates: Candidates to order.
        events: Full event history.
        config: Ranking configuration; defaults apply when omitted.
        now_ms: Current time; defaults to the wall clock.
        session_start_ms: Start of the current viewing session.

    Returns:
        Candidates in display order.
    """
    ranker = CandidateRanker(config, metrics=RankerMetrics())
    return ranker.rank(candidates, events, now_ms, session_start_ms)
