"""
Utilities package for the HCDN billit storer.

This package contains reusable helpers for:
- Date parsing
- Rate limiting
- Retry logic
- Content hashing
"""

from .dates import parse_date, to_wire_date
from .rate_limiter import RateLimiter
from .retry import (
    retry_async,
    calculate_backoff,
    is_retryable_error,
    RetryError,
)
from .hash_utils import calculate_hash, compute_bill_hash

__all__ = [
    "parse_date",
    "to_wire_date",
    "RateLimiter",
    "retry_async",
    "calculate_backoff",
    "is_retryable_error",
    "RetryError",
    "calculate_hash",
    "compute_bill_hash",
]
