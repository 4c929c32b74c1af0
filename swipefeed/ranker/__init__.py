"""Candidate ranking: signal aggregation, scoring and diversity injection."""

from swipefeed.feed.urls import extract_domain
from swipefeed.ranker.diversity import DiversityInjector
from swipefeed.ranker.keywords import extract_keywords
from swipefeed.ranker.metrics import RankerMetrics
from swipefeed.ranker.models import RankingSignals, ScoreComponents, ScoredCandidate
from swipefeed.ranker.ranker import CandidateRanker, rank_candidates_pure
from swipefeed.ranker.scorer import CandidateScorer
from swipefeed.ranker.signals import SignalAggregator


__all__ = [
    "CandidateRanker",
    "CandidateScorer",
    "DiversityInjector",
    "RankerMetrics",
    "RankingSignals",
    "ScoreComponents",
    "ScoredCandidate",
    "SignalAggregator",
    "extract_domain",
    "extract_keywords",
    "rank_candidates_pure",
]
