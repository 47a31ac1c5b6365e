"""Fixtures package for tests.

Re-export the canned response helpers for convenient imports from
`tests._fixtures`.
"""

from .remote_api_responses import (
    FakeResponse,
    canned_api_factory,
    error_response,
    page_payload,
    page_response,
    rate_limit_response,
    SAMPLE_FIELDS,
    SAMPLE_ITEMS,
)

__all__ = [
    "FakeResponse",
    "canned_api_factory",
    "error_response",
    "page_payload",
    "page_response",
    "rate_limit_response",
    "SAMPLE_FIELDS",
    "SAMPLE_ITEMS",
]
