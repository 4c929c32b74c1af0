"""Scoring engine for candidate stories."""

import structlog

from swipefeed.config.schemas.ranking import ScoringConfig
from swipefeed.feed.models import CandidateStory
from swipefeed.ranker.keywords import extract_keywords
from swipefeed.ranker.models import RankingSignals, ScoreComponents, ScoredCandidate
from swipefeed.topics import TopicClassifier


logger = structlog.get_logger()


class CandidateScorer:
    """Turns a candidate and a signals snapshot into a ranking weight.

    Scoring formula:
        weight = score + proximity + author_affinity + domain_affinity
               + high_dwell_author + high_dwell_domain
               + short_dwell_author + short_dwell_domain
               + keyword + topic + skip

    Every adjustment is a fraction of the candidate's own score, so a
    zero-score candidate stays at zero. All applicable adjustments stack.
    With no events at all the weight is the raw score.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        classifier: TopicClassifier | None = None,
    ) -> None:
        """Initialize the scorer.

        Args:
            config: Scoring adjustments.
            classifier: Topic classifier for candidate titles.
        """
        self._config = config or ScoringConfig()
        self._classifier = classifier or TopicClassifier()

    def score(self, candidate: CandidateStory, signals: RankingSignals) -> float:
        """Compute the ranking weight for a candidate."""
        return self.components(candidate, signals).total_score

    def score_candidate(
        self,
        candidate: CandidateStory,
        signals: RankingSignals,
    ) -> ScoredCandidate:
        """Score a candidate and keep the breakdown.

        Args:
            candidate: Candidate to score.
            signals: Aggregated reader signals.

        Returns:
            ScoredCandidate with computed components.
        """
        return ScoredCandidate(
            candidate=candidate,
            components=self.components(candidate, signals),
        )

    def components(
        self,
        candidate: CandidateStory,
        signals: RankingSignals,
    ) -> ScoreComponents:
        """Compute the per-signal breakdown for a candidate.

        Args:
            candidate: Candidate to score.
            signals: Aggregated reader signals.

        Returns:
            ScoreComponents whose total_score is the ranking weight.
        """
        score = float(candidate.score)
        if signals.is_cold_start:
            return ScoreComponents(base_score=score, total_score=score)

        cfg = self._config
        author = candidate.author or None
        domain = candidate.domain

        proximity = 0.0
        avg = signals.avg_liked_score
        if avg * (1 - cfg.proximity_band) <= score <= avg * (1 + cfg.proximity_band):
            proximity = cfg.proximity_boost * score

        author_affinity = 0.0
        high_dwell_author = 0.0
        short_dwell_author = 0.0
        if author:
            if signals.author_weights.get(author, 0.0) > cfg.author_affinity_threshold:
                author_affinity = cfg.author_affinity_boost * score
            if author in signals.high_dwell_authors:
                high_dwell_author = cfg.high_dwell_author_boost * score
            if author in signals.short_dwell_authors:
                short_dwell_author = -cfg.short_dwell_author_penalty * score

        domain_affinity = 0.0
        high_dwell_domain = 0.0
        short_dwell_domain = 0.0
        if domain:
            if signals.domain_weights.get(domain, 0.0) > cfg.domain_affinity_threshold:
                domain_affinity = cfg.domain_affinity_boost * score
            if domain in signals.high_dwell_domains:
                high_dwell_domain = cfg.high_dwell_domain_boost * score
            if domain in signals.short_dwell_domains:
                short_dwell_domain = -cfg.short_dwell_domain_penalty * score

        keyword = 0.0
        keywords = extract_keywords(candidate.title)
        overlap = sum(signals.keyword_weights.get(k, 0.0) for k in keywords)
        if overlap > 0:
            keyword = score * min(overlap / cfg.keyword_divisor, cfg.keyword_cap)

        topic = 0.0
        if signals.topic_weights:
            topic_sum = sum(
                signals.topic_weights.get(t, 0.0)
                for t in self._classifier.classify(candidate.title, domain)
            )
            if topic_sum > cfg.topic_threshold:
                topic = score * min(topic_sum / cfg.topic_divisor, cfg.topic_cap)

        skip = -cfg.skip_penalty * score if candidate.id in signals.skipped_ids else 0.0

        total = (
            score
            + proximity
            + author_affinity
            + domain_affinity
            + high_dwell_author
            + high_dwell_domain
            + short_dwell_author
            + short_dwell_domain
            + keyword
            + topic
            + skip
        )

        return ScoreComponents(
            base_score=score,
            proximity=proximity,
            author_affinity=author_affinity,
            domain_affinity=domain_affinity,
            high_dwell_author=high_dwell_author,
            high_dwell_domain=high_dwell_domain,
            short_dwell_author=short_dwell_author,
            short_dwell_domain=short_dwell_domain,
            keyword=keyword,
            topic=topic,
            skip=skip,
            total_score=total,
        )
