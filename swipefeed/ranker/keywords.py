"""Keyword extraction for title overlap signals."""

import re

from swipefeed.ranker.constants import MIN_KEYWORD_LENGTH, STOP_WORDS


_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def extract_keywords(text: str | None) -> list[str]:
    """Extract match keywords from a title.

    Lowercases, splits on runs of non-alphanumeric characters and drops
    short tokens and stop words. No stemming. Each keyword appears once,
    in first-occurrence order.

    Args:
        text: Title text; None yields no keywords.

    Returns:
        Ordered list of unique keywords.
    """
    if not text:
        return []
    tokens = (
        token
        for token in _NON_ALNUM.split(text.lower())
        if len(token) >= MIN_KEYWORD_LENGTH and token not in STOP_WORDS
    )
    return list(dict.fromkeys(tokens))
