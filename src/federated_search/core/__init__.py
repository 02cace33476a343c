"""
Core module for Federated Search.

Provides:
- Unified exception hierarchy
- Async utilities for concurrent API calls
"""

from .exceptions import (
    # Base
    FederatedSearchError,
    ErrorContext,
    ErrorSeverity,
    ErrorCategory,
    # API errors
    APIError,
    TransportError,
    RequestTimeoutError,
    RateLimitError,
    ServiceUnavailableError,
    # Data errors
    DataError,
    ProtocolError,
    ParseError,
    # Degradation / configuration
    NormalizationDegradedError,
    ConfigurationError,
    # Utilities
    is_retryable_error,
    get_retry_delay,
)

from .async_utils import (
    gather_with_errors,
    timeout_with_fallback,
)

__all__ = [
    # Exceptions
    "FederatedSearchError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "APIError",
    "TransportError",
    "RequestTimeoutError",
    "RateLimitError",
    "ServiceUnavailableError",
    "DataError",
    "ProtocolError",
    "ParseError",
    "NormalizationDegradedError",
    "ConfigurationError",
    "is_retryable_error",
    "get_retry_delay",
    # Async utilities
    "gather_with_errors",
    "timeout_with_fallback",
]
