"""Rank controller: one reader's viewing session over a candidate list.

The controller owns the candidate list. Positions up to and including the
current one are history and never move; every user action re-ranks only
the tail after the current position. Page refills run on a worker thread
and are merged into that tail under the same lock, so re-ranks and merges
never interleave.
"""

import threading
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from enum import Enum

import structlog

from swipefeed.config.schemas.ranking import RankingConfig
from swipefeed.controller.account import VoteMirror
from swipefeed.controller.state_machine import RankState, RankStateMachine
from swipefeed.data_model import now_ms
from swipefeed.events.factory import comment_event, story_event
from swipefeed.events.guarded import GuardedEventStore
from swipefeed.events.models import EventType
from swipefeed.feed.models import CandidateStory, CommentRef
from swipefeed.feed.supplier import (
    CandidateSource,
    CandidateSupplier,
    FeedSource,
    SupplierError,
    deduplicate_candidates,
)
from swipefeed.ranker import CandidateRanker


logger = structlog.get_logger()


class ViewMode(str, Enum):
    """How the session treats its candidate list."""

    FEED = "feed"
    COLLECTION = "collection"


class RankController:
    """Drives ranking for one viewing session.

    In FEED mode the list is personalized, re-ranked after every action and
    refilled from the supplier near its end. In COLLECTION mode (likes or
    bookmarks) the list keeps its given order, is never refilled and leaving
    an item records no skip or navigate event.
    """

    def __init__(
        self,
        supplier: CandidateSupplier,
        store: GuardedEventStore,
        source: CandidateSource | None = None,
        config: RankingConfig | None = None,
        *,
        mode: ViewMode = ViewMode.FEED,
        vote_mirror: VoteMirror | None = None,
        clock: Callable[[], int] = now_ms,
        session_id: str | None = None,
        ranker: CandidateRanker | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            supplier: Source of candidate pages.
            store: Timeout-guarded event store.
            source: Feed or search to page through.
            config: Ranking configuration.
            mode: FEED or COLLECTION.
            vote_mirror: Upstream account hook for mirroring likes.
            clock: Millisecond clock.
            session_id: Identifier for logs; random if omitted.
            ranker: Ranker to use; built from config if omitted.
        """
        self._supplier = supplier
        self._store = store
        self._source = source or FeedSource()
        self._config = config or RankingConfig()
        self._mode = mode
        self._vote_mirror = vote_mirror
        self._clock = clock
        self._session_id = session_id or uuid.uuid4().hex[:12]
        self._ranker = ranker or CandidateRanker(self._config)

        self._session_start_ms = clock()
        self._candidates: list[CandidateStory] = []
        self._index = 0
        self._current_since_ms = self._session_start_ms

        self._next_page = self._source.first_page
        self._exhausted = False
        self._consecutive_failures = 0
        self._refill_in_flight = False
        self._pending: Future[int] | None = None

        self._lock = threading.RLock()
        self._state_machine = RankStateMachine(self._session_id)
        self._executor = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix=f"rank-{self._session_id}"
        )
        self._log = logger.bind(
            component="controller",
            session_id=self._session_id,
            mode=mode.value,
        )

    def __enter__(self) -> "RankController":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def session_id(self) -> str:
        """Get the session identifier."""
        return self._session_id

    @property
    def session_start_ms(self) -> int:
        """Get the session start marker used for decay boosting."""
        return self._session_start_ms

    @property
    def state(self) -> RankState:
        """Get the current session state."""
        return self._state_machine.state

    @property
    def mode(self) -> ViewMode:
        """Get the view mode."""
        return self._mode

    @property
    def candidates(self) -> list[CandidateStory]:
        """Get a copy of the candidate list in display order."""
        with self._lock:
            return list(self._candidates)

    @property
    def current_index(self) -> int:
        """Get the current position."""
        return self._index

    @property
    def current(self) -> CandidateStory | None:
        """Get the candidate the reader is looking at."""
        with self._lock:
            if not self._candidates:
                return None
            return self._candidates[self._index]

    @property
    def exhausted(self) -> bool:
        """True once the supplier has no more pages for this session."""
        return self._exhausted

    def start(
        self,
        initial: Sequence[CandidateStory] | None = None,
        prefetch: bool = True,
    ) -> list[CandidateStory]:
        """Seed the list, rank it and enter VIEWING.

        In FEED mode without initial candidates the first page is fetched
        synchronously. Pages after it are prefetched in the background.

        Args:
            initial: Candidates to seed with.
            prefetch: Whether to start the background prefetch.

        Returns:
            The ranked candidate list.
        """
        seed: list[CandidateStory]
        if initial is not None:
            # Initial candidates stand in for the first page
            seed = list(initial)
            self._next_page = self._source.first_page + 1
        elif self._mode == ViewMode.FEED:
            seed = self._fetch_next_page() or []
        else:
            seed = []

        with self._lock:
            unique = deduplicate_candidates(seed)
            if self._mode == ViewMode.FEED:
                unique = self._rank_tail(unique)
            self._candidates = unique
            self._index = 0
            self._current_since_ms = self._clock()
            self._state_machine.transition_to(RankState.VIEWING)

        self._log.info(
            "session_started",
            candidates=len(self._candidates),
            source=self._source.describe(),
        )

        if prefetch and self._mode == ViewMode.FEED:
            pages = self._config.feed.max_background_pages - 1
            if pages > 0:
                self._schedule_refill(pages)
        return self.candidates

    def next(self) -> CandidateStory | None:
        """Advance to the next candidate.

        Records skip or navigate for the item being left (FEED mode), plus a
        dwell event when the visit was long enough, then re-ranks the tail
        after the new position.

        Returns:
            The new current candidate, or None at the end of the list.
        """
        with self._lock:
            if self._index + 1 >= len(self._candidates):
                return None

            now = self._clock()
            leaving = self._candidates[self._index]
            dwell_ms = max(0, now - self._current_since_ms)
            feed = self._config.feed

            if self._mode == ViewMode.FEED:
                skipped = dwell_ms < feed.skip_dwell_ms
                event_type = EventType.SKIP if skipped else EventType.NAVIGATE
                self._record(event_type, leaving, now)
            if dwell_ms >= feed.min_dwell_record_ms:
                self._record(EventType.DWELL, leaving, now, dwell_ms=dwell_ms)

            self._index += 1
            self._current_since_ms = now
            self._rerank_after_current()
            current = self._candidates[self._index]

        self.maybe_refill()
        return current

    def previous(self) -> CandidateStory | None:
        """Step back one candidate without recording events.

        Returns:
            The new current candidate, or None at the start of the list.
        """
        with self._lock:
            if self._index == 0:
                return None
            self._index -= 1
            self._current_since_ms = self._clock()
            return self._candidates[self._index]

    def toggle_like(self) -> bool:
        """Like or unlike the current candidate.

        A new like is mirrored upstream when the reader is logged in.

        Returns:
            True if the candidate is now liked.
        """
        story = self.current
        liked = self._toggle(EventType.LIKE)
        if liked and story is not None:
            self._mirror_vote(story.id)
        return liked

    def toggle_bookmark(self) -> bool:
        """Bookmark or unbookmark the current candidate.

        Returns:
            True if the candidate is now bookmarked.
        """
        return self._toggle(EventType.BOOKMARK)

    def open_link(self) -> str | None:
        """Record a click on the current candidate's link.

        Returns:
            The URL to open, or None for text-only posts and empty lists.
        """
        with self._lock:
            story = self.current
            if story is None:
                return None
            self._record(EventType.CLICK, story, self._clock())
            self._rerank_after_current()
            return story.url

    def toggle_comment_like(self, comment: CommentRef) -> bool:
        """Like or unlike a comment on the current candidate.

        Args:
            comment: Comment snapshot.

        Returns:
            True if the comment is now liked.
        """
        return self._toggle_comment(EventType.COMMENT_LIKE, comment)

    def toggle_comment_bookmark(self, comment: CommentRef) -> bool:
        """Bookmark or unbookmark a comment on the current candidate.

        Args:
            comment: Comment snapshot.

        Returns:
            True if the comment is now bookmarked.
        """
        return self._toggle_comment(EventType.COMMENT_BOOKMARK, comment)

    def maybe_refill(self) -> bool:
        """Fetch the next page when the reader nears the end of the list.

        Returns:
            True if a refill was scheduled.
        """
        if self._mode != ViewMode.FEED:
            return False
        with self._lock:
            remaining = len(self._candidates) - self._index - 1
            if remaining >= self._config.feed.refill_threshold:
                return False
        return self._schedule_refill(1)

    def wait_for_refill(self, timeout: float | None = None) -> int:
        """Block until the in-flight refill finishes.

        Args:
            timeout: Seconds to wait; None waits indefinitely.

        Returns:
            Number of candidates the refill added; 0 if none was running
            or the refill was cancelled by close().
        """
        future = self._pending
        if future is None:
            return 0
        try:
            return future.result(timeout=timeout)
        except CancelledError:
            return 0

    def close(self) -> None:
        """End the session. Pending refills stop issuing fetches."""
        with self._lock:
            if self._state_machine.is_terminal:
                return
            self._state_machine.transition_to(RankState.CLOSED)
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._log.info("session_closed", candidates=len(self._candidates))

    def _record(
        self,
        event_type: EventType,
        story: CandidateStory,
        now: int,
        dwell_ms: int | None = None,
    ) -> None:
        event = story_event(
            event_type, story, now, self._ranker.classifier, dwell_ms=dwell_ms
        )
        self._store.append(event)

    def _toggle(self, event_type: EventType) -> bool:
        with self._lock:
            story = self.current
            if story is None:
                return False
            if self._store.exists_where(event_type, post_id=story.id):
                self._store.delete_where(event_type, post_id=story.id)
                active = False
            else:
                self._record(event_type, story, self._clock())
                active = True
            self._log.info(
                "story_toggled",
                event_type=event_type.value,
                post_id=story.id,
                active=active,
            )
            self._rerank_after_current()
            return active

    def _toggle_comment(self, event_type: EventType, comment: CommentRef) -> bool:
        with self._lock:
            story = self.current
            if story is None:
                return False
            if self._store.exists_where(event_type, comment_id=comment.id):
                self._store.delete_where(event_type, comment_id=comment.id)
                return False
            self._store.append(comment_event(event_type, story, comment, self._clock()))
            return True

    def _mirror_vote(self, post_id: int) -> None:
        mirror = self._vote_mirror
        if mirror is None or self._state_machine.is_terminal:
            return

        def vote() -> None:
            try:
                if mirror.is_authenticated():
                    mirror.upvote(post_id)
            except Exception:  # noqa: BLE001
                self._log.warning("vote_mirror_failed", post_id=post_id, exc_info=True)

        self._executor.submit(vote)

    def _rank_tail(self, tail: Sequence[CandidateStory]) -> list[CandidateStory]:
        """Rank candidates unseen-first against the full history.

        Must be called while holding the lock.
        """
        if not tail:
            return []
        events = self._store.all()
        seen_ids = self._store.unique_post_ids()
        return self._ranker.rank_partitioned(
            tail,
            events,
            seen_ids,
            now_ms=self._clock(),
            session_start_ms=self._session_start_ms,
            candidate_index={c.id: c for c in (*self._candidates, *tail)},
        )

    def _rerank_after_current(self) -> None:
        """Re-rank the suffix strictly after the current position.

        Must be called while holding the lock.
        """
        if self._mode != ViewMode.FEED:
            return
        head = self._candidates[: self._index + 1]
        tail = self._candidates[self._index + 1 :]
        self._candidates = head + self._rank_tail(tail)

    def _schedule_refill(self, max_pages: int) -> bool:
        with self._lock:
            if (
                self._exhausted
                or self._refill_in_flight
                or self._state_machine.state != RankState.VIEWING
            ):
                return False
            self._refill_in_flight = True
            self._state_machine.transition_to(RankState.REFILLING)
            self._pending = self._executor.submit(self._run_refill, max_pages)
        return True

    def _run_refill(self, max_pages: int) -> int:
        added = 0
        try:
            for _ in range(max_pages):
                if self._exhausted or self._state_machine.is_terminal:
                    break
                fetched = self._fetch_next_page()
                if not fetched:
                    break
                added += self._merge(fetched)
        finally:
            with self._lock:
                self._refill_in_flight = False
                if self._state_machine.state == RankState.REFILLING:
                    self._state_machine.transition_to(RankState.VIEWING)
        self._log.info("refill_complete", added=added, next_page=self._next_page)
        return added

    def _fetch_next_page(self) -> list[CandidateStory] | None:
        """Fetch the next page from the source.

        Returns:
            The page, [] when the source is exhausted, or None on failure.
        """
        page = self._next_page
        try:
            fetched = self._source.fetch_page(self._supplier, page)
        except SupplierError as e:
            self._consecutive_failures += 1
            limit = self._config.feed.max_consecutive_fetch_failures
            self._log.warning(
                "page_fetch_failed",
                page=page,
                error=e.message,
                consecutive_failures=self._consecutive_failures,
            )
            if self._consecutive_failures >= limit:
                self._exhausted = True
                self._log.warning("paging_abandoned", page=page, failures=limit)
            return None

        self._consecutive_failures = 0
        self._next_page = page + 1
        if not fetched:
            self._exhausted = True
            self._log.info("source_exhausted", page=page)
        return fetched

    def _merge(self, fetched: Sequence[CandidateStory]) -> int:
        with self._lock:
            if self._state_machine.is_terminal:
                return 0
            new = deduplicate_candidates(fetched, (c.id for c in self._candidates))
            if not new:
                return 0
            head = self._candidates[: self._index + 1]
            tail = self._candidates[self._index + 1 :] + new
            self._candidates = head + self._rank_tail(tail)
            self._log.info(
                "candidates_merged", added=len(new), total=len(self._candidates)
            )
            return len(new)
