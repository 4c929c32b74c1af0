"""Account surface the controller needs for mirroring likes."""

from typing import Protocol


class VoteMirror(Protocol):
    """Upstream account hook.

    Only two questions matter to the ranking session: whether the reader
    is logged in, and how to send an upvote for a liked story.
    """

    def is_authenticated(self) -> bool:
        """Check whether the reader has an upstream session."""
        ...

    def upvote(self, post_id: int) -> None:
        """Send an upvote for a story.

        Raises:
            Exception: Any failure; the caller logs and ignores it.
        """
        ...
