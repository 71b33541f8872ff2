"""
Retry logic with exponential backoff for upstream calls.

The retry loop is an explicit state machine so that each edge
(success, not-found, cancellation, exhaustion) can be driven and
inspected on its own:

    ATTEMPTING -> SUCCESS | NOT_FOUND | CANCELLED
    ATTEMPTING -> RETRY_WAIT -> ATTEMPTING  (until max_attempts)
    ATTEMPTING -> EXHAUSTED
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, TypeVar

from .cancellation import CallContext
from .errors import NotFoundError, RequestCancelledError, UpstreamError

T = TypeVar("T")


class TransientError(Exception):
    """A single attempt failed in a way that is worth retrying."""
    pass


class RetryStatus(str, Enum):
    ATTEMPTING = "attempting"
    RETRY_WAIT = "retry_wait"
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    EXHAUSTED = "exhausted"


TERMINAL_STATUSES = frozenset({
    RetryStatus.SUCCESS,
    RetryStatus.NOT_FOUND,
    RetryStatus.CANCELLED,
    RetryStatus.EXHAUSTED,
})


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed retry policy.

    Args:
        max_attempts: Total attempts including the first one
        base_delay: Wait before the second attempt, in seconds
        max_delay: Upper bound for any single wait
        exponential_base: Multiplier applied to the delay after each wait
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0


DEFAULT_POLICY = RetryPolicy()


@dataclass
class RetryState:
    """Per-call retry bookkeeping. Lives for one fetch and is then discarded."""

    policy: RetryPolicy = DEFAULT_POLICY
    attempt: int = 0
    delay: Optional[float] = None
    status: RetryStatus = RetryStatus.ATTEMPTING
    last_error: Optional[Exception] = None
    waits: List[float] = field(default_factory=list)

    def __post_init__(self):
        if self.delay is None:
            self.delay = self.policy.base_delay

    @property
    def terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def attempts_left(self) -> int:
        return self.policy.max_attempts - self.attempt

    def begin_attempt(self) -> None:
        if self.terminal:
            raise RuntimeError(f"retry state already finished ({self.status.value})")
        if self.attempts_left <= 0:
            raise RuntimeError("no attempts left")
        self.attempt += 1
        self.status = RetryStatus.ATTEMPTING

    def succeed(self) -> None:
        self.status = RetryStatus.SUCCESS

    def not_found(self) -> None:
        self.status = RetryStatus.NOT_FOUND

    def cancel(self) -> None:
        self.status = RetryStatus.CANCELLED

    def fail(self, error: Exception) -> Optional[float]:
        """
        Record a transient failure.

        Returns:
            The delay to wait before the next attempt, or None when the
            budget is exhausted (status becomes EXHAUSTED).
        """
        self.last_error = error
        if self.attempts_left <= 0:
            self.status = RetryStatus.EXHAUSTED
            return None
        self.status = RetryStatus.RETRY_WAIT
        return min(self.delay, self.policy.max_delay)

    def waited(self, delay: float) -> None:
        """Record a completed backoff wait and grow the delay."""
        self.waits.append(delay)
        self.delay *= self.policy.exponential_base


def retry_call(
    func: Callable[[], T],
    ctx: CallContext,
    policy: Optional[RetryPolicy] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    state: Optional[RetryState] = None,
) -> T:
    """
    Run ``func`` under ``policy``, retrying on TransientError.

    NotFoundError and RequestCancelledError end the call immediately.
    A transient failure observed while ``ctx`` is done counts as a
    cancellation, not as a spent attempt.

    Args:
        func: Zero-argument callable performing one attempt
        ctx: Cancellation/deadline context of the caller
        policy: Retry policy (default: DEFAULT_POLICY, or the policy of ``state``)
        on_retry: Optional callback(next_attempt, exception, delay)
        state: Optional RetryState to drive

    Raises:
        ValueError: ``policy`` and ``state.policy`` disagree
        NotFoundError: Upstream reported absence
        RequestCancelledError: ctx was cancelled or expired
        UpstreamError: All attempts failed transiently
    """
    if state is None:
        state = RetryState(policy=policy or DEFAULT_POLICY)
    elif policy is not None and policy != state.policy:
        raise ValueError("policy does not match the policy of the given retry state")

    while True:
        if ctx.done:
            state.cancel()
            raise RequestCancelledError(ctx.reason())

        state.begin_attempt()
        try:
            result = func()
        except NotFoundError:
            state.not_found()
            raise
        except RequestCancelledError:
            state.cancel()
            raise
        except TransientError as e:
            if ctx.done:
                state.cancel()
                raise RequestCancelledError(ctx.reason()) from e

            delay = state.fail(e)
            if delay is None:
                raise UpstreamError(
                    f"failed after {state.attempt} attempts: {e}"
                ) from e

            if on_retry:
                on_retry(state.attempt + 1, e, delay)

            if not ctx.wait(delay):
                state.cancel()
                raise RequestCancelledError(ctx.reason()) from e
            state.waited(delay)
        else:
            state.succeed()
            return result
