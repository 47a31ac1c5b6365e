"""
Error taxonomy for the Tushare client.

Every error carries an ``error_category`` and answers ``is_retryable()``, which
is what the retry executor consults. Only the rate-limit business code is
retryable; everything else surfaces on first occurrence.
"""

from typing import Any, Dict, Optional

from src.data_collector.config import CODE_RATE_LIMIT_EXCEEDED
from src.utils.core.cancellation import QueryCancelledError
from src.utils.core.retry import RetryExhaustedError

__all__ = [
    "TushareAPIError",
    "BusinessError",
    "RateLimitError",
    "TransportError",
    "SerializationError",
    "DecodeError",
    "RetryExhaustedError",
    "QueryCancelledError",
    "business_error_for",
]


class TushareAPIError(Exception):
    """Base class for errors raised by the Tushare client"""

    error_category: str = "unknown"

    def __init__(self, message: str) -> None:
        self.message: str = message
        super().__init__(self.message)

    def is_retryable(self) -> bool:
        return self.error_category == "retryable"


class BusinessError(TushareAPIError):
    """The exchange succeeded but the service rejected the request (non-zero code)"""

    error_category = "business"

    def __init__(self, code: int, msg: str) -> None:
        self.code: int = code
        self.msg: str = msg
        super().__init__(f"tushare api error: code={code}, msg={msg}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BusinessError):
            return NotImplemented
        return type(self) is type(other) and (self.code, self.msg) == (other.code, other.msg)

    def __hash__(self) -> int:
        return hash((type(self), self.code, self.msg))


class RateLimitError(BusinessError):
    """Reserved rate-limit code; the caller should slow down and may retry"""

    error_category = "retryable"

    def __init__(self, msg: str = "rate limit exceeded", code: int = CODE_RATE_LIMIT_EXCEEDED) -> None:
        super().__init__(code, msg)


class TransportError(TushareAPIError):
    """Connection failure, timeout or non-200 HTTP status"""

    error_category = "transport"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.status_code: Optional[int] = status_code
        self.body: Optional[str] = body
        super().__init__(message)


class SerializationError(TushareAPIError):
    """Request could not be encoded or the response body could not be decoded"""

    error_category = "serialization"

    def __init__(self, message: str, response_data: Optional[Dict[str, Any]] = None) -> None:
        self.response_data = response_data
        super().__init__(message)


class DecodeError(TushareAPIError):
    """Records could not be decoded into the requested structure"""

    error_category = "decode"

    def __init__(self, message: str, row: Optional[int] = None) -> None:
        self.row: Optional[int] = row
        if row is not None:
            message = f"row {row}: {message}"
        super().__init__(message)


def business_error_for(code: int, msg: str) -> BusinessError:
    """Map a non-zero response code to its error class"""
    if code == CODE_RATE_LIMIT_EXCEEDED:
        return RateLimitError(msg, code)
    return BusinessError(code, msg)
