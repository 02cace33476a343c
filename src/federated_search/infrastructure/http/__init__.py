"""HTTP Client Utilities."""

from .client import (
    fetch_with_timeout,
    read_json,
    with_retry,
)

__all__ = [
    # Core request functions
    "fetch_with_timeout",
    "read_json",
    # Retry
    "with_retry",
]
