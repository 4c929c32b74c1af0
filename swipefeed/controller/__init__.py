"""Viewing-session orchestration over the ranker."""

from swipefeed.controller.account import VoteMirror
from swipefeed.controller.collection import collection_candidates, collection_comments
from swipefeed.controller.controller import RankController, ViewMode
from swipefeed.controller.state_machine import (
    RankState,
    RankStateMachine,
    RankStateTransitionError,
)


__all__ = [
    "RankController",
    "RankState",
    "RankStateMachine",
    "RankStateTransitionError",
    "ViewMode",
    "VoteMirror",
    "collection_candidates",
    "collection_comments",
]
