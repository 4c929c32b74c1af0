"""State machine for a ranking session."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class RankState(str, Enum):
    """State of a ranking session.

    States represent the lifecycle of one viewing session:
    - INITIALIZING: Seeding the candidate list and computing the first ranking
    - VIEWING: Reader is stepping through candidates
    - REFILLING: More candidates are being fetched and merged
    - CLOSED: Session ended; no further fetches are issued
    """

    INITIALIZING = "INITIALIZING"
    VIEWING = "VIEWING"
    REFILLING = "REFILLING"
    CLOSED = "CLOSED"


# Valid state transitions
_VALID_TRANSITIONS: dict[RankState, set[RankState]] = {
    RankState.INITIALIZING: {RankState.VIEWING, RankState.CLOSED},
    RankState.VIEWING: {RankState.REFILLING, RankState.CLOSED},
    RankState.REFILLING: {RankState.VIEWING, RankState.CLOSED},
    RankState.CLOSED: set(),  # Terminal state
}


class RankStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        session_id: str,
        from_state: RankState,
        to_state: RankState,
    ) -> None:
        """Initialize the transition error.

        Args:
            session_id: Identifier of the viewing session.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.session_id = session_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal rank state transition for session '{session_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class RankStateMachine:
    """Enforces valid session transitions and logs every change.

    Not thread-safe on its own; the controller holds its lock around
    every transition.
    """

    def __init__(
        self,
        session_id: str,
        initial_state: RankState = RankState.INITIALIZING,
    ) -> None:
        """Initialize the state machine.

        Args:
            session_id: Identifier for the viewing session.
            initial_state: Starting state.
        """
        self._session_id = session_id
        self._state = initial_state
        self._log = logger.bind(component="controller", session_id=session_id)

    @property
    def state(self) -> RankState:
        """Get the current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state == RankState.CLOSED

    def can_transition_to(self, target: RankState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: RankState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            RankStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_rank_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise RankStateTransitionError(self._session_id, self._state, target)

        old_state = self._state
        self._state = target
        self._log.info(
            "rank_state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )
