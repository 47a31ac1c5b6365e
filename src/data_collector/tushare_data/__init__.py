"""
Tushare Pro Data Acquisition Module

Paginated, rate-limit aware access to the Tushare Pro API with retry/backoff,
cancellation, structured decoding and a lenient tabular view.
"""

from .client import TushareDataClient
from .decoder import RecordDecoder
from .errors import (
    BusinessError,
    DecodeError,
    QueryCancelledError,
    RateLimitError,
    RetryExhaustedError,
    SerializationError,
    TransportError,
    TushareAPIError,
)
from .models import RequestParams, ResponseData, ScalarKind, TushareResponse, classify_scalar
from .tabular import TabularView

__version__ = "1.0.0"

__all__ = [
    "TushareDataClient",
    "RecordDecoder",
    "TabularView",
    "RequestParams",
    "ResponseData",
    "TushareResponse",
    "ScalarKind",
    "classify_scalar",
    "TushareAPIError",
    "BusinessError",
    "RateLimitError",
    "TransportError",
    "SerializationError",
    "DecodeError",
    "RetryExhaustedError",
    "QueryCancelledError",
]
