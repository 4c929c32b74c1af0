"""Rule-based topic classification for story titles and domains."""

from swipefeed.topics.classifier import TopicClassifier, classify_topics
from swipefeed.topics.constants import OTHER_TOPIC


__all__ = ["OTHER_TOPIC", "TopicClassifier", "classify_topics"]
