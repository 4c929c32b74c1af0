"""Constants for the ranker module."""

from swipefeed.events.models import EventType


# Tokens shorter than this carry too little meaning to match on
MIN_KEYWORD_LENGTH: int = 3

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the",
        "and",
        "for",
        "are",
        "but",
        "not",
        "you",
        "your",
        "all",
        "can",
        "has",
        "have",
        "had",
        "was",
        "were",
        "with",
        "this",
        "that",
        "from",
        "they",
        "will",
        "what",
        "when",
        "how",
        "why",
        "its",
        "into",
        "about",
        "just",
        "than",
        "then",
        "our",
        "out",
    }
)

# Event types that count as positive engagement
POSITIVE_EVENT_TYPES: frozenset[EventType] = frozenset(
    {EventType.LIKE, EventType.CLICK, EventType.BOOKMARK}
)
