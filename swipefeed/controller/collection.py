"""Builders for the likes and bookmarks collection views."""

from collections.abc import Iterable

from swipefeed.events.models import UserEvent
from swipefeed.feed.models import CandidateStory, CommentRef


def collection_candidates(events: Iterable[UserEvent]) -> list[CandidateStory]:
    """Rebuild stories from stored event snapshots.

    Story time is taken from the event time since the original post time
    is not stored.

    Args:
        events: Events of one type, newest first.

    Returns:
        One story per post id, in first-occurrence order.
    """
    seen: set[int] = set()
    stories: list[CandidateStory] = []
    for event in events:
        if event.post_id in seen:
            continue
        seen.add(event.post_id)
        stories.append(
            CandidateStory(
                id=event.post_id,
                title=event.title or "",
                url=event.url,
                author=event.author or "",
                time=event.timestamp // 1000,
                score=event.score,
                comment_count=event.comment_count or 0,
            )
        )
    return stories


def collection_comments(events: Iterable[UserEvent]) -> list[tuple[int, CommentRef]]:
    """Rebuild comment snapshots from comment-level events.

    Args:
        events: Comment events of one type, newest first.

    Returns:
        (post id, comment) pairs, one per comment id, in first-occurrence order.
    """
    seen: set[int] = set()
    comments: list[tuple[int, CommentRef]] = []
    for event in events:
        if event.comment_id is None or event.comment_id in seen:
            continue
        seen.add(event.comment_id)
        comments.append(
            (
                event.post_id,
                CommentRef(
                    id=event.comment_id,
                    author=event.comment_author or "",
                    text=event.comment_text or "",
                    time=event.comment_time or 0,
                ),
            )
        )
    return comments
