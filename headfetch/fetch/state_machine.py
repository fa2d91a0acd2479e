"""Request cycle state machine for a fetch session."""

from enum import Enum, auto
from typing import ClassVar

import structlog

from headfetch.fetch.errors import HeadFetchError


logger = structlog.get_logger()


class SessionState(Enum):
    """Request cycle states.

    State transitions:
        IDLE -> HEAD_ISSUED: Probe completed at the transport level
        IDLE -> FAILED: Probe failed at the transport level
        HEAD_ISSUED -> VALIDATED: Probe metadata passed policy
        HEAD_ISSUED -> FAILED: Probe metadata rejected by policy
        VALIDATED -> BODY_ISSUED: Body-bearing request sent
        BODY_ISSUED -> COMPLETE: Body received within limits
        VALIDATED/BODY_ISSUED -> FAILED: Transport error or size breach
    """

    IDLE = auto()
    HEAD_ISSUED = auto()
    VALIDATED = auto()
    BODY_ISSUED = auto()
    COMPLETE = auto()
    FAILED = auto()


class SessionStateError(HeadFetchError):
    """Raised when an invalid session state transition is attempted."""

    def __init__(self, from_state: SessionState, to_state: SessionState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid session state transition: {from_state.name} -> {to_state.name}"
        )


class SessionStateMachine:
    """State machine for one request cycle.

    Enforces valid state transitions within a cycle. ``restart`` begins a
    new cycle from any state.
    """

    VALID_TRANSITIONS: ClassVar[dict[SessionState, set[SessionState]]] = {
        SessionState.IDLE: {
            SessionState.HEAD_ISSUED,
            SessionState.FAILED,
        },
        SessionState.HEAD_ISSUED: {
            SessionState.VALIDATED,
            SessionState.FAILED,
        },
        SessionState.VALIDATED: {
            SessionState.BODY_ISSUED,
            SessionState.FAILED,
        },
        SessionState.BODY_ISSUED: {
            SessionState.COMPLETE,
            SessionState.FAILED,
        },
        SessionState.COMPLETE: set(),  # Terminal state
        SessionState.FAILED: set(),  # Terminal state
    }

    def __init__(self, session_id: str) -> None:
        """Initialize the state machine in IDLE state.

        Args:
            session_id: Session identifier for logging.
        """
        self._session_id = session_id
        self._state = SessionState.IDLE
        self._log = logger.bind(session_id=session_id, component="session")

    @property
    def state(self) -> SessionState:
        """Get the current state."""
        return self._state

    def can_transition(self, to_state: SessionState) -> bool:
        """Check if a transition to the given state is valid.

        Args:
            to_state: The target state.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return to_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(self, to_state: SessionState) -> None:
        """Transition to a new state.

        Args:
            to_state: The target state.

        Raises:
            SessionStateError: If the transition is invalid.
        """
        if not self.can_transition(to_state):
            self._log.error(
                "invariant_violation",
                error_type="illegal_state_transition",
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise SessionStateError(self._state, to_state)

        old_state = self._state
        self._state = to_state
        self._log.debug(
            "session_state_transition",
            from_state=old_state.name,
            to_state=to_state.name,
        )

    def restart(self) -> None:
        """Return to IDLE to begin a new cycle."""
        if self._state is not SessionState.IDLE:
            self._log.debug(
                "session_state_transition",
                from_state=self._state.name,
                to_state=SessionState.IDLE.name,
            )
        self._state = SessionState.IDLE

    def to_head_issued(self) -> None:
        """Transition to HEAD_ISSUED state."""
        self.transition(SessionState.HEAD_ISSUED)

    def to_validated(self) -> None:
        """Transition to VALIDATED state."""
        self.transition(SessionState.VALIDATED)

    def to_body_issued(self) -> None:
        """Transition to BODY_ISSUED state."""
        self.transition(SessionState.BODY_ISSUED)

    def to_complete(self) -> None:
        """Transition to COMPLETE state."""
        self.transition(SessionState.COMPLETE)

    def to_failed(self) -> None:
        """Transition to FAILED state."""
        self.transition(SessionState.FAILED)

    def is_terminal(self) -> bool:
        """Check if the current state is terminal."""
        return self._state in (SessionState.COMPLETE, SessionState.FAILED)

    def is_complete(self) -> bool:
        """Check if the cycle completed successfully."""
        return self._state == SessionState.COMPLETE

    def is_failed(self) -> bool:
        """Check if the cycle failed."""
        return self._state == SessionState.FAILED
