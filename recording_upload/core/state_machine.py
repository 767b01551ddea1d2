"""Generic State Machine for upload attempt transitions.

This module provides a reusable state machine pattern and the transition
map that every resumable upload attempt walks through.

Example:
    sm = create_upload_attempt_state_machine()

    sm.transition(UploadAttemptState.TOKEN_CHECK)
    sm.transition(UploadAttemptState.INITIATING)
    sm.transition(UploadAttemptState.TRANSFERRING)

    if sm.is_terminal:
        ...
"""

from enum import Enum
from typing import Generic, TypeVar

from recording_upload.core.exceptions import RecordingUploadError
from recording_upload.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=str | Enum)

# Type alias for transition maps
TransitionMap = dict[T, list[T]]


class InvalidTransitionError(RecordingUploadError):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, current: T, target: T, allowed: list[T] | None = None):
        self.current = current
        self.target = target
        self.allowed = allowed or []
        allowed_str = ", ".join(str(s) for s in self.allowed) if self.allowed else "none"
        super().__init__(
            message=f"Invalid transition from '{current}' to '{target}'. "
            f"Allowed transitions: {allowed_str}",
            context={
                "current": str(current),
                "target": str(target),
                "allowed": [str(s) for s in self.allowed],
            },
        )


class StateMachine(Generic[T]):
    """Generic state machine for status transitions.

    Provides a type-safe way to manage status transitions with
    explicit allowed transitions defined upfront.

    Attributes:
        current: Current state
        transitions: Map of allowed transitions from each state
    """

    def __init__(self, initial: T, transitions: TransitionMap[T]):
        """Initialize state machine.

        Args:
            initial: Initial state
            transitions: Map of state -> list of allowed target states
        """
        self._current = initial
        self._transitions = transitions
        self._history: list[T] = [initial]

    @property
    def current(self) -> T:
        """Get current state."""
        return self._current

    @property
    def history(self) -> list[T]:
        """States visited so far, oldest first."""
        return list(self._history)

    @property
    def allowed_transitions(self) -> list[T]:
        """Get list of states we can transition to from current state."""
        return self._transitions.get(self._current, [])

    @property
    def is_terminal(self) -> bool:
        """True when no transition leaves the current state."""
        return not self.allowed_transitions

    def can_transition(self, target: T) -> bool:
        """Check if transition to target state is allowed.

        Args:
            target: Target state to check

        Returns:
            True if transition is allowed, False otherwise
        """
        return target in self.allowed_transitions

    def transition(self, target: T) -> None:
        """Perform transition to target state.

        Args:
            target: Target state

        Raises:
            InvalidTransitionError: If transition is not allowed
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(
                current=self._current,
                target=target,
                allowed=self.allowed_transitions,
            )
        logger.debug(
            "State transition",
            current=getattr(self._current, "value", self._current),
            target=getattr(target, "value", target),
        )
        self._current = target
        self._history.append(target)

    def __repr__(self) -> str:
        return f"StateMachine(current={self._current!r}, allowed={self.allowed_transitions!r})"


# ============================================
# Upload attempt transitions
# ============================================


class UploadAttemptState(str, Enum):
    """Lifecycle of a single resumable upload attempt."""

    IDLE = "idle"
    TOKEN_CHECK = "token_check"
    INITIATING = "initiating"
    TRANSFERRING = "transferring"
    SUCCESS = "success"
    AUTH_EXPIRED = "auth_expired"
    FAILED = "failed"


def get_upload_attempt_transitions() -> TransitionMap[UploadAttemptState]:
    """Get transition map for UploadAttemptState."""
    return {
        UploadAttemptState.IDLE: [UploadAttemptState.TOKEN_CHECK],
        UploadAttemptState.TOKEN_CHECK: [
            UploadAttemptState.INITIATING,
            UploadAttemptState.FAILED,
        ],
        UploadAttemptState.INITIATING: [
            UploadAttemptState.TRANSFERRING,
            UploadAttemptState.AUTH_EXPIRED,
            UploadAttemptState.FAILED,
        ],
        UploadAttemptState.TRANSFERRING: [
            UploadAttemptState.TRANSFERRING,
            UploadAttemptState.SUCCESS,
            UploadAttemptState.AUTH_EXPIRED,
            UploadAttemptState.FAILED,
        ],
        UploadAttemptState.AUTH_EXPIRED: [UploadAttemptState.IDLE],  # Retry with new session
        UploadAttemptState.SUCCESS: [],  # Terminal state
        UploadAttemptState.FAILED: [],  # Terminal state
    }


def create_upload_attempt_state_machine(
    initial_state: str | None = None,
) -> StateMachine[UploadAttemptState]:
    """Create a state machine for one upload attempt.

    Args:
        initial_state: Initial state (default: IDLE)

    Returns:
        Configured StateMachine for an upload attempt
    """
    initial = UploadAttemptState(initial_state) if initial_state else UploadAttemptState.IDLE
    return StateMachine(initial, get_upload_attempt_transitions())


__all__ = [
    "InvalidTransitionError",
    "StateMachine",
    "TransitionMap",
    "UploadAttemptState",
    "create_upload_attempt_state_machine",
    "get_upload_attempt_transitions",
]
