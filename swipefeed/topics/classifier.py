"""Rule-based multi-label topic classifier.

Titles vote for topics through keyword hits and the story's domain votes
through a domain table. Both lookup maps are built once per classifier, so
classification is a dictionary walk over the title's words.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Sequence
from functools import lru_cache
from typing import TYPE_CHECKING

from swipefeed.feed.urls import strip_www
from swipefeed.topics.constants import (
    DEFAULT_TOPIC_RULES,
    DOMAIN_MATCH_WEIGHT,
    KEYWORD_MATCH_WEIGHT,
    OTHER_TOPIC,
    TOPIC_SCORE_THRESHOLD,
)


if TYPE_CHECKING:
    from swipefeed.config.schemas.topics import TopicRule


# Hyphens stay inside words so rules like "zero-day" can match
_WORD_SPLIT = re.compile(r"[^a-z0-9-]+")


class TopicClassifier:
    """Classifies a title and optional domain into topic labels."""

    def __init__(self, rules: Sequence[TopicRule] | None = None) -> None:
        """Initialize the classifier.

        Args:
            rules: Topic rules; None uses the built-in table.
        """
        if rules is None:
            table = [(name, kws, doms) for name, kws, doms in DEFAULT_TOPIC_RULES]
        else:
            table = [(r.name, r.keywords, r.domains) for r in rules]

        self._keyword_map: dict[str, list[str]] = defaultdict(list)
        self._domain_map: dict[str, list[str]] = defaultdict(list)
        for name, keywords, domains in table:
            for keyword in keywords:
                self._keyword_map[keyword].append(name)
            for domain in domains:
                self._domain_map[domain].append(name)

    @property
    def keyword_count(self) -> int:
        """Get number of distinct keywords."""
        return len(self._keyword_map)

    def scores(self, title: str, domain: str | None = None) -> dict[str, int]:
        """Compute raw topic votes.

        Args:
            title: Story title.
            domain: Story domain, with or without "www.".

        Returns:
            Topic name to accumulated vote, in first-hit order.
        """
        votes: dict[str, int] = {}

        for word in _WORD_SPLIT.split(title.lower()):
            for topic in self._keyword_map.get(word, ()):
                votes[topic] = votes.get(topic, 0) + KEYWORD_MATCH_WEIGHT

        if domain:
            for topic in self._domain_map.get(strip_www(domain.lower()), ()):
                votes[topic] = votes.get(topic, 0) + DOMAIN_MATCH_WEIGHT

        return votes

    def classify(self, title: str, domain: str | None = None) -> frozenset[str]:
        """Classify a story into topics.

        A topic needs at least TOPIC_SCORE_THRESHOLD votes so a single
        incidental keyword (e.g. "web") does not label the story.

        Args:
            title: Story title.
            domain: Story domain, with or without "www.".

        Returns:
            Non-empty set of topic labels; {"other"} when nothing qualifies.
        """
        matched = frozenset(
            topic
            for topic, score in self.scores(title, domain).items()
            if score >= TOPIC_SCORE_THRESHOLD
        )
        return matched or frozenset({OTHER_TOPIC})


@lru_cache(maxsize=1)
def _default_classifier() -> TopicClassifier:
    return TopicClassifier()


def classify_topics(title: str, domain: str | None = None) -> frozenset[str]:
    """Classify with the built-in rule table.

    Args:
        title: Story title.
        domain: Story domain.

    Returns:
        Non-empty set of topic labels.
    """
    return _default_classifier().classify(title, domain)
