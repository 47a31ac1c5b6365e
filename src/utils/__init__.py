# Shared utilities; the building blocks live in the core subpackage

from .core.logger import get_logger, init_logging_structure, shutdown_logging
from .core.cancellation import QueryContext, QueryCancelledError
from .core.retry import RetryPolicy, RetryExecutor, RetryExhaustedError, BackoffStrategy

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
]
