"""
Retry mechanism with exponential or constant backoff for API clients.

The executor wraps one idempotent operation, classifies each failure as
retryable or permanent, and waits between attempts through a QueryContext so
that cancellation and deadlines cut the wait short.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from src.utils.core.cancellation import QueryCancelledError, QueryContext
from src.utils.core.logger import get_logger

logger = get_logger(__name__, utility="general")

T = TypeVar("T")

NotifyFunc = Callable[[Exception, float], None]


class RetryExhaustedError(Exception):
    """Exception raised when all retry attempts are exhausted."""

    error_category = "exhausted"

    def __init__(self, message: str, last_exception: Exception, attempts: int):
        super().__init__(message)
        self.message = message
        self.last_exception = last_exception
        self.attempts = attempts

    def is_retryable(self) -> bool:
        return False


class PermanentError(Exception):
    """Wraps an exception that must stop the retry loop immediately."""

    def __init__(self, cause: Exception):
        super().__init__(str(cause))
        self.cause = cause


def is_permanent_error(err: BaseException) -> bool:
    """Check whether ``err`` (or anything in its cause chain) is a PermanentError"""
    while err is not None:
        if isinstance(err, PermanentError):
            return True
        err = err.__cause__
    return False


class BackoffStrategy(str, Enum):
    """Rule used to compute the wait before the next attempt"""

    EXPONENTIAL = "exponential"
    CONSTANT = "constant"


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior.

    ``max_retries`` counts retries after the first attempt, so an operation
    runs at most ``max_retries + 1`` times.
    """

    max_retries: int = 3
    initial_interval: float = 1.0  # seconds
    max_interval: float = 30.0  # seconds
    multiplier: float = 2.0
    jitter: float = 0.1  # fraction of the delay, applied as +/-
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", BackoffStrategy(self.strategy))
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_interval < 0 or self.max_interval < 0:
            raise ValueError("retry intervals must be >= 0")
        if self.multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {self.multiplier}")
        if not 0 <= self.jitter < 1:
            raise ValueError(f"jitter must be in [0, 1), got {self.jitter}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @classmethod
    def default(cls) -> "RetryPolicy":
        return cls()

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        return cls(max_retries=0)

    @classmethod
    def aggressive(cls) -> "RetryPolicy":
        """Many short retries, suited to unstable networks"""
        return cls(max_retries=10, initial_interval=0.1, max_interval=60.0)


def calculate_delay(attempt: int, policy: RetryPolicy) -> float:
    """Delay in seconds to wait after the given failed attempt (1-based)."""
    if policy.strategy == BackoffStrategy.CONSTANT:
        return policy.initial_interval

    delay = policy.initial_interval * (policy.multiplier ** (attempt - 1))
    if policy.jitter:
        delay *= random.uniform(1 - policy.jitter, 1 + policy.jitter)
    return max(0.0, min(delay, policy.max_interval))


def _is_retryable_exception(exception: Exception) -> bool:
    """Exceptions that classify themselves (``is_retryable()``) decide; others are permanent."""
    check = getattr(exception, "is_retryable", None)
    if callable(check):
        return bool(check())
    return False


def _log_retry(exception: Exception, delay: float) -> None:
    logger.warning(f"Request failed ({type(exception).__name__}: {exception}). Retrying in {delay:.2f}s")


class RetryExecutor:
    """Runs an operation under a RetryPolicy.

    Holds only the frozen policy and two callables, so one executor can be
    shared by concurrent queries.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        is_retryable: Callable[[Exception], bool] = _is_retryable_exception,
        notify: Optional[NotifyFunc] = _log_retry,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.is_retryable = is_retryable
        self.notify = notify

    def execute(self, operation: Callable[[], T], ctx: Optional[QueryContext] = None) -> T:
        """
        Run ``operation`` until it succeeds, fails permanently or the budget is spent.

        Raises:
            QueryCancelledError: context cancelled before an attempt or during a wait
            RetryExhaustedError: every attempt failed with a retryable error
            Exception: the first permanent error, unmodified
        """
        ctx = ctx or QueryContext.background()
        max_attempts = self.policy.max_attempts
        last_exception: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            ctx.raise_if_cancelled()
            try:
                return operation()
            except QueryCancelledError:
                raise
            except PermanentError as e:
                raise e.cause from None
            except Exception as e:
                if not self.is_retryable(e):
                    logger.debug(f"Non-retryable exception: {type(e).__name__}: {e}")
                    raise
                last_exception = e

            if attempt == max_attempts:
                break

            delay = calculate_delay(attempt, self.policy)
            if self.notify is not None:
                self.notify(last_exception, delay)
            if ctx.wait(delay):
                logger.info(f"Retry wait aborted after attempt {attempt}/{max_attempts}: {ctx.error()}")
                raise ctx.error()

        logger.error(
            f"All {max_attempts} attempts failed. "
            f"Last error: {type(last_exception).__name__}: {last_exception}"
        )
        raise RetryExhaustedError(
            f"Operation failed after {max_attempts} attempts: {last_exception}",
            last_exception,
            max_attempts,
        )


def execute_with_retry(
    operation: Callable[[], Any],
    policy: Optional[RetryPolicy] = None,
    ctx: Optional[QueryContext] = None,
    notify: Optional[NotifyFunc] = None,
) -> Any:
    """
    Retry an arbitrary operation, treating every exception as transient.

    Raise ``PermanentError(err)`` from the operation to stop immediately.

    Example:
        execute_with_retry(lambda: sync_once(), RetryPolicy(max_retries=5))
    """
    executor = RetryExecutor(
        policy,
        is_retryable=lambda e: not isinstance(e, PermanentError),
        notify=notify or _log_retry,
    )
    return executor.execute(operation, ctx)
