"""Topic rule configuration schema."""

from typing import Annotated

from pydantic import Field, model_validator

from swipefeed.data_model import StrictBaseModel
from swipefeed.topics.constants import DEFAULT_TOPIC_RULES


class TopicRule(StrictBaseModel):
    """Classification rule for a single topic.

    Attributes:
        name: Topic label reported by the classifier.
        keywords: Lowercase title keywords that vote for this topic.
        domains: Site domains (without "www.") that vote for this topic.
    """

    name: Annotated[str, Field(min_length=1, max_length=50)]
    keywords: list[str] = Field(default_factory=list)
    domains: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_terms(self) -> "TopicRule":
        """Ensure keywords and domains are non-empty lowercase strings."""
        for term in [*self.keywords, *self.domains]:
            if not term.strip():
                msg = "Topic keywords and domains must be non-empty strings"
                raise ValueError(msg)
            if term != term.lower():
                msg = f"Topic term must be lowercase: {term!r}"
                raise ValueError(msg)
        return self


def default_topic_rules() -> list[TopicRule]:
    """Build the built-in topic rule table.

    Returns:
        List of TopicRule in table order.
    """
    return [
        TopicRule(name=name, keywords=list(keywords), domains=list(domains))
        for name, keywords, domains in DEFAULT_TOPIC_RULES
    ]
