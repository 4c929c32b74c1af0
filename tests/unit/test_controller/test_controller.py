"""Unit tests for the rank controller."""

import threading
from collections.abc import Callable, Iterator

import pytest

from swipefeed.config.schemas.ranking import FeedConfig, RankingConfig
from swipefeed.controller import (
    RankController,
    RankState,
    ViewMode,
    collection_candidates,
)
from swipefeed.events import (
    EventStoreMetrics,
    EventType,
    GuardedEventStore,
    InMemoryEventStore,
    UserEvent,
)
from swipefeed.feed.models import CandidateStory, CommentRef, FeedKind, SearchSort
from swipefeed.feed.supplier import SearchSource, SupplierError
from swipefeed.ranker import CandidateRanker, RankerMetrics
from tests.helpers.time import FIXED_NOW_MS, FakeClock


WAIT_S = 5.0


def _story(
    story_id: int,
    score: int = 100,
    author: str | None = None,
    domain: str | None = None,
    title: str | None = None,
) -> CandidateStory:
    """Create a test CandidateStory with its own author and domain by default."""
    domain = domain or f"site{story_id}.com"
    return CandidateStory(
        id=story_id,
        score=score,
        author=author or f"author{story_id}",
        url=f"https://{domain}/{story_id}",
        title=title or f"Entry {story_id}",
    )


def _config(**feed: object) -> RankingConfig:
    return RankingConfig(feed=FeedConfig(**feed))  # type: ignore[arg-type]


# Never refills on its own, so event tests stay synchronous
QUIET = {"refill_threshold": 0, "max_background_pages": 1}


class FakeSupplier:
    """Page supplier backed by a dict, with scripted failures."""

    def __init__(
        self,
        pages: dict[int, list[CandidateStory]] | None = None,
        failing: dict[int, int] | None = None,
    ) -> None:
        self.pages = pages or {}
        self.failing = dict(failing or {})
        self.calls: list[int] = []
        self.search_calls: list[tuple[str, int]] = []

    def fetch(self, kind: FeedKind, page: int) -> list[CandidateStory]:
        self.calls.append(page)
        if self.failing.get(page, 0) > 0:
            self.failing[page] -= 1
            raise SupplierError(f"feed:{kind.value}", page, "connection reset")
        return list(self.pages.get(page, []))

    def search(self, query: str, sort: SearchSort, page: int) -> list[CandidateStory]:
        self.search_calls.append((query, page))
        return list(self.pages.get(page, []))


class FakeMirror:
    """Vote mirror that records upvotes."""

    def __init__(self, authenticated: bool = True, fail: bool = False) -> None:
        self.authenticated = authenticated
        self.fail = fail
        self.votes: list[int] = []
        self.checked = threading.Event()

    def is_authenticated(self) -> bool:
        try:
            return self.authenticated
        finally:
            if not self.authenticated:
                self.checked.set()

    def upvote(self, post_id: int) -> None:
        try:
            if self.fail:
                raise RuntimeError("upstream rejected vote")
            self.votes.append(post_id)
        finally:
            self.checked.set()


class BlockingMirror:
    """Vote mirror whose upvotes hold a worker until released."""

    def __init__(self) -> None:
        self.entered = threading.Semaphore(0)
        self.release = threading.Event()

    def is_authenticated(self) -> bool:
        return True

    def upvote(self, post_id: int) -> None:
        self.entered.release()
        self.release.wait(WAIT_S)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> Iterator[GuardedEventStore]:
    guarded = GuardedEventStore(InMemoryEventStore(), metrics=EventStoreMetrics())
    yield guarded
    guarded.close()


@pytest.fixture
def make_controller(
    clock: FakeClock, store: GuardedEventStore
) -> Iterator[Callable[..., RankController]]:
    """Factory for controllers that are closed after the test."""
    created: list[RankController] = []

    def factory(
        supplier: FakeSupplier | None = None,
        config: RankingConfig | None = None,
        **kwargs: object,
    ) -> RankController:
        config = config or _config(**QUIET)
        controller = RankController(
            supplier or FakeSupplier(),
            store,
            config=config,
            clock=clock,
            session_id="test-session",
            ranker=CandidateRanker(config, metrics=RankerMetrics()),
            **kwargs,  # type: ignore[arg-type]
        )
        created.append(controller)
        return controller

    yield factory
    for controller in created:
        controller.close()


def _types(events: list[UserEvent]) -> list[EventType]:
    return [e.type for e in events]


def _ids(stories: list[CandidateStory]) -> list[int]:
    return [s.id for s in stories]


class TestStart:
    """Tests for seeding a session."""

    def test_initial_candidates_ranked(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        controller = make_controller()
        assert controller.state == RankState.INITIALIZING

        ranked = controller.start([_story(1, 10), _story(2, 30), _story(3, 20)])

        assert _ids(ranked) == [2, 3, 1]
        assert controller.state == RankState.VIEWING
        assert controller.current_index == 0
        assert controller.current == _story(2, 30)

    def test_duplicates_dropped(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        controller = make_controller()
        ranked = controller.start([_story(1, 10), _story(1, 50), _story(2, 20)])
        assert _ids(ranked) == [2, 1]
        assert controller.current == _story(2, 20)

    def test_first_page_fetched_synchronously(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({1: [_story(1), _story(2)]})
        controller = make_controller(supplier)
        assert len(controller.start(prefetch=False)) == 2
        assert supplier.calls == [1]

    def test_search_source_pages_from_zero(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({0: [_story(1)]})
        controller = make_controller(supplier, source=SearchSource("rust"))
        controller.start(prefetch=False)
        assert supplier.search_calls == [("rust", 0)]

    def test_empty_session(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        """An empty list has no current story and ignores actions."""
        controller = make_controller()
        assert controller.start([]) == []
        assert controller.current is None
        assert controller.next() is None
        assert controller.toggle_like() is False
        assert controller.open_link() is None

    def test_prefetch_after_initial_starts_at_second_page(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        """Initial candidates stand in for the first page."""
        supplier = FakeSupplier({2: [_story(4)], 3: [_story(5)]})
        controller = make_controller(
            supplier, _config(refill_threshold=0, max_background_pages=4)
        )
        controller.start([_story(1)])

        assert controller.wait_for_refill(WAIT_S) == 2
        assert supplier.calls == [2, 3, 4]
        assert controller.exhausted
        assert controller.state == RankState.VIEWING
        assert _ids(controller.candidates)[0] == 1

    def test_seen_candidates_ranked_after_unseen(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        store.append(
            UserEvent(
                type=EventType.NAVIGATE, post_id=1, timestamp=FIXED_NOW_MS, score=500
            )
        )
        controller = make_controller()

        ranked = controller.start([_story(1, 500), _story(2, 100), _story(3, 300)])

        assert _ids(ranked) == [3, 2, 1]

    def test_sparse_history_borrows_from_initial_candidates(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        # The stored like has no author, domain or title of its own
        store.append(
            UserEvent(type=EventType.LIKE, post_id=1, timestamp=FIXED_NOW_MS, score=0)
        )
        controller = make_controller()

        ranked = controller.start(
            [
                _story(3, 110, author="bob", title="Database tuning"),
                _story(2, 100, author="alice", title="Compiler internals"),
                _story(1, 50, author="alice", title="Gardening notes"),
            ]
        )

        assert _ids(ranked) == [2, 3, 1]


class TestNavigation:
    """Tests for moving through the list."""

    def test_quick_exit_is_skip(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1, 30), _story(2, 20), _story(3, 10)])

        clock.advance(300)
        controller.next()

        events = store.all()
        assert _types(events) == [EventType.SKIP]
        assert events[0].post_id == 1

    def test_short_visit_is_skip_with_dwell(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1, 30), _story(2, 20)])

        clock.advance(1200)
        controller.next()

        events = store.all()
        assert _types(events) == [EventType.SKIP, EventType.DWELL]
        assert events[1].dwell_ms == 1200

    def test_long_visit_is_navigate_with_dwell(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1, 30), _story(2, 20)])

        clock.advance(4000)
        assert controller.next() == _story(2, 20)

        events = store.all()
        assert _types(events) == [EventType.NAVIGATE, EventType.DWELL]
        assert events[1].dwell_ms == 4000
        assert events[1].author == "author1"
        assert events[1].domain == "site1.com"

    def test_end_of_list(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1)])
        assert controller.next() is None
        assert store.all() == []

    def test_previous_records_nothing(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1, 30), _story(2, 20)])
        assert controller.previous() is None

        clock.advance(100)
        controller.next()
        count = len(store.all())

        clock.advance(100)
        assert controller.previous() == _story(1, 30)
        assert controller.current_index == 0
        assert len(store.all()) == count


class TestReranking:
    """Tests for the re-rank after each action."""

    def test_like_promotes_same_author(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        controller = make_controller()
        controller.start(
            [
                _story(1, 100, author="x", title="Alpha"),
                _story(2, 90, author="y", title="Bravo"),
                _story(3, 80, author="x", title="Charlie"),
            ]
        )
        assert _ids(controller.candidates) == [1, 2, 3]

        assert controller.toggle_like() is True
        assert _ids(controller.candidates) == [1, 3, 2]

    def test_history_never_moves(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
    ) -> None:
        """Positions up to the current one stay fixed across actions."""
        controller = make_controller()
        controller.start(
            [_story(i, 100 - i, author="same" if i % 2 else None) for i in range(8)]
        )
        clock.advance(100)
        controller.next()
        clock.advance(5000)
        controller.next()
        head = controller.candidates[: controller.current_index + 1]

        controller.toggle_like()
        controller.open_link()
        controller.toggle_bookmark()

        assert controller.candidates[: controller.current_index + 1] == head
        assert sorted(_ids(controller.candidates)) == list(range(8))


class TestToggles:
    """Tests for like, bookmark, click and comment actions."""

    def test_like_round_trip(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        """Liking then unliking leaves no trace."""
        controller = make_controller()
        controller.start([_story(1), _story(2)])

        assert controller.toggle_like() is True
        assert store.exists_where(EventType.LIKE, post_id=1)

        assert controller.toggle_like() is False
        assert store.all() == []

    def test_bookmark_round_trip(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1)])

        assert controller.toggle_bookmark() is True
        (event,) = store.all()
        assert event.type == EventType.BOOKMARK
        assert event.title == "Entry 1"

        assert controller.toggle_bookmark() is False
        assert store.all() == []

    def test_open_link_records_click(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1)])

        assert controller.open_link() == "https://site1.com/1"
        assert _types(store.all()) == [EventType.CLICK]

    def test_comment_like_round_trip(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1)])
        comment = CommentRef(id=77, author="carol", text="Good point", time=5)

        assert controller.toggle_comment_like(comment) is True
        (event,) = store.all()
        assert event.type == EventType.COMMENT_LIKE
        assert event.post_id == 1
        assert event.comment_id == 77
        assert event.comment_text == "Good point"

        assert controller.toggle_comment_like(comment) is False
        assert store.all() == []

    def test_comment_bookmark(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        controller = make_controller()
        controller.start([_story(1)])
        assert controller.toggle_comment_bookmark(CommentRef(id=8)) is True
        assert store.exists_where(EventType.COMMENT_BOOKMARK, comment_id=8)


class TestVoteMirror:
    """Tests for mirroring likes upstream."""

    def test_like_mirrored_when_authenticated(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        mirror = FakeMirror()
        controller = make_controller(vote_mirror=mirror)
        controller.start([_story(5)])

        controller.toggle_like()

        assert mirror.checked.wait(WAIT_S)
        assert mirror.votes == [5]

    def test_not_mirrored_when_logged_out(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        mirror = FakeMirror(authenticated=False)
        controller = make_controller(vote_mirror=mirror)
        controller.start([_story(5)])

        controller.toggle_like()

        assert mirror.checked.wait(WAIT_S)
        assert mirror.votes == []

    def test_mirror_failure_keeps_local_like(
        self,
        make_controller: Callable[..., RankController],
        store: GuardedEventStore,
    ) -> None:
        mirror = FakeMirror(fail=True)
        controller = make_controller(vote_mirror=mirror)
        controller.start([_story(5)])

        assert controller.toggle_like() is True
        assert mirror.checked.wait(WAIT_S)
        assert store.exists_where(EventType.LIKE, post_id=5)


class TestRefill:
    """Tests for paging in more candidates."""

    def test_refill_near_end_deduplicates(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
    ) -> None:
        supplier = FakeSupplier(
            {
                1: [_story(1, 50), _story(2, 40), _story(3, 30)],
                2: [_story(3, 30), _story(4, 20), _story(5, 10)],
            }
        )
        controller = make_controller(
            supplier, _config(refill_threshold=2, max_background_pages=1)
        )
        controller.start()
        assert supplier.calls == [1]

        clock.advance(100)
        controller.next()

        assert controller.wait_for_refill(WAIT_S) == 2
        assert supplier.calls == [1, 2]
        assert sorted(_ids(controller.candidates)) == [1, 2, 3, 4, 5]
        assert controller.state == RankState.VIEWING

    def test_no_refill_with_enough_remaining(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({1: [_story(i) for i in range(5)]})
        controller = make_controller(
            supplier, _config(refill_threshold=3, max_background_pages=1)
        )
        controller.start()
        assert controller.maybe_refill() is False
        assert supplier.calls == [1]

    def test_empty_page_exhausts(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({1: [_story(1)]})
        controller = make_controller(supplier, _config(max_background_pages=4))
        controller.start()

        assert controller.wait_for_refill(WAIT_S) == 0
        assert controller.exhausted
        assert controller.maybe_refill() is False
        assert supplier.calls == [1, 2]

    def test_failed_page_retried(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({1: [_story(1)], 2: [_story(2)]}, failing={2: 1})
        controller = make_controller(supplier, _config(max_background_pages=1))
        controller.start()

        assert controller.maybe_refill() is True
        assert controller.wait_for_refill(WAIT_S) == 0
        assert not controller.exhausted

        assert controller.maybe_refill() is True
        assert controller.wait_for_refill(WAIT_S) == 1
        assert supplier.calls == [1, 2, 2]

    def test_consecutive_failures_stop_paging(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({1: [_story(1)]}, failing={2: 99})
        controller = make_controller(supplier, _config(max_background_pages=1))
        controller.start()

        for _ in range(3):
            assert controller.maybe_refill() is True
            assert controller.wait_for_refill(WAIT_S) == 0

        assert controller.exhausted
        assert controller.maybe_refill() is False
        assert supplier.calls == [1, 2, 2, 2]

    def test_merged_tail_matches_partitioned_ranking(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
        store: GuardedEventStore,
    ) -> None:
        supplier = FakeSupplier(
            {
                1: [_story(1, 50), _story(2, 40), _story(3, 30)],
                2: [_story(4, 10), _story(5, 45), _story(6, 20)],
            }
        )
        config = _config(refill_threshold=2, max_background_pages=1)
        controller = make_controller(supplier, config)
        controller.start()
        assert _ids(controller.candidates) == [1, 2, 3]

        clock.advance(100)
        controller.next()
        assert controller.wait_for_refill(WAIT_S) == 3

        merged = controller.candidates
        position = controller.current_index
        assert _ids(merged[: position + 1]) == [1, 2]

        tail = merged[position + 1 :]
        expected = CandidateRanker(config, metrics=RankerMetrics()).rank_partitioned(
            tail,
            store.all(),
            store.unique_post_ids(),
            now_ms=clock(),
            session_start_ms=controller.session_start_ms,
            candidate_index={c.id: c for c in merged},
        )
        assert _ids(tail) == _ids(expected)
        assert _ids(tail) == [5, 3, 6, 4]


class TestCollectionMode:
    """Tests for likes and bookmarks views."""

    def test_order_kept_and_no_skip_events(
        self,
        make_controller: Callable[..., RankController],
        clock: FakeClock,
        store: GuardedEventStore,
    ) -> None:
        supplier = FakeSupplier({1: [_story(99)]})
        bookmarks = [
            UserEvent(type=EventType.BOOKMARK, post_id=1, timestamp=3000, score=5),
            UserEvent(type=EventType.BOOKMARK, post_id=2, timestamp=2000, score=500),
            UserEvent(type=EventType.BOOKMARK, post_id=3, timestamp=1000, score=50),
        ]
        controller = make_controller(supplier, mode=ViewMode.COLLECTION)
        assert controller.mode == ViewMode.COLLECTION

        controller.start(collection_candidates(bookmarks))
        assert _ids(controller.candidates) == [1, 2, 3]

        clock.advance(100)
        controller.next()
        assert store.all() == []

        clock.advance(1500)
        controller.next()
        assert _types(store.all()) == [EventType.DWELL]

        assert controller.maybe_refill() is False
        assert supplier.calls == []


class TestClose:
    """Tests for ending a session."""

    def test_close_is_idempotent(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        controller = make_controller()
        controller.start([_story(1), _story(2)])

        controller.close()
        controller.close()

        assert controller.state == RankState.CLOSED

    def test_no_refill_after_close(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        supplier = FakeSupplier({1: [_story(1)], 2: [_story(2)]})
        controller = make_controller(supplier, _config(max_background_pages=1))
        controller.start()

        controller.close()

        assert controller.maybe_refill() is False
        assert supplier.calls == [1]

    def test_context_manager_closes(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        with make_controller() as controller:
            controller.start([_story(1)])
        assert controller.state == RankState.CLOSED

    def test_refill_cancelled_by_close_reports_nothing(
        self, make_controller: Callable[..., RankController]
    ) -> None:
        mirror = BlockingMirror()
        supplier = FakeSupplier({2: [_story(9)]})
        controller = make_controller(
            supplier,
            _config(refill_threshold=3, max_background_pages=1),
            vote_mirror=mirror,
        )
        controller.start([_story(i, 100 - i) for i in range(1, 6)])

        try:
            # Both workers stay busy with votes, so the refill only queues
            assert controller.toggle_like() is True
            controller.next()
            assert controller.toggle_like() is True
            assert mirror.entered.acquire(timeout=WAIT_S)
            assert mirror.entered.acquire(timeout=WAIT_S)

            controller.next()
            assert controller.state == RankState.REFILLING

            controller.close()

            assert controller.wait_for_refill(WAIT_S) == 0
            assert controller.state == RankState.CLOSED
            assert supplier.calls == []
        finally:
            mirror.release.set()
