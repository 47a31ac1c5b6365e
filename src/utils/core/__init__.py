# Core utilities package
# Foundational infrastructure shared by the API client: logging, retry, cancellation

__all__ = [
    "get_logger",
    "init_logging_structure",
    "shutdown_logging",
    "QueryContext",
    "QueryCancelledError",
    "RetryPolicy",
    "RetryExecutor",
    "RetryExhaustedError",
    "BackoffStrategy",
    "PermanentError",
    "calculate_delay",
    "execute_with_retry",
    "is_permanent_error",
]

from .logger import get_logger, init_logging_structure, shutdown_logging
from .cancellation import QueryContext, QueryCancelledError
from .retry import (
    RetryPolicy,
    RetryExecutor,
    RetryExhaustedError,
    BackoffStrategy,
    PermanentError,
    calculate_delay,
    execute_with_retry,
    is_permanent_error,
)
