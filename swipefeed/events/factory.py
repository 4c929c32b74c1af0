"""Event construction with denormalized story snapshots."""

from swipefeed.events.models import EventType, UserEvent
from swipefeed.feed.models import CandidateStory, CommentRef
from swipefeed.topics import TopicClassifier


COMMENT_EVENT_TYPES = frozenset({EventType.COMMENT_LIKE, EventType.COMMENT_BOOKMARK})


def story_event(
    event_type: EventType,
    story: CandidateStory,
    now_ms: int,
    classifier: TopicClassifier,
    dwell_ms: int | None = None,
) -> UserEvent:
    """Build a story-level event.

    Author, domain, title, topics, url and comment count are copied from
    the story at this moment.

    Args:
        event_type: Interaction type.
        story: Story interacted with.
        now_ms: Event time in milliseconds.
        classifier: Classifier used to tag topics at write time.
        dwell_ms: Time spent on the story, for dwell events.

    Returns:
        The new event.
    """
    domain = story.domain
    return UserEvent(
        type=event_type,
        post_id=story.id,
        timestamp=now_ms,
        score=story.score,
        dwell_ms=dwell_ms,
        author=story.author or None,
        domain=domain,
        title=story.title,
        topics=tuple(sorted(classifier.classify(story.title, domain))),
        url=story.url,
        comment_count=story.comment_count,
    )


def comment_event(
    event_type: EventType,
    story: CandidateStory,
    comment: CommentRef,
    now_ms: int,
) -> UserEvent:
    """Build a comment-level event.

    Args:
        event_type: COMMENT_LIKE or COMMENT_BOOKMARK.
        story: Story the comment belongs to.
        comment: Comment snapshot.
        now_ms: Event time in milliseconds.

    Returns:
        The new event.

    Raises:
        ValueError: If event_type is not a comment event type.
    """
    if event_type not in COMMENT_EVENT_TYPES:
        msg = f"Not a comment event type: {event_type.value}"
        raise ValueError(msg)
    return UserEvent(
        type=event_type,
        post_id=story.id,
        timestamp=now_ms,
        score=story.score,
        title=story.title,
        url=story.url,
        comment_id=comment.id,
        comment_author=comment.author,
        comment_text=comment.text,
        comment_time=comment.time,
    )
