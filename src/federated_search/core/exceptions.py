"""
Unified Exception Hierarchy for Federated Search.

Exception Hierarchy:
    FederatedSearchError (base)
    ├── APIError
    │   ├── TransportError
    │   │   └── RequestTimeoutError
    │   ├── RateLimitError
    │   └── ServiceUnavailableError
    ├── DataError
    │   └── ProtocolError
    │       └── ParseError
    ├── NormalizationDegradedError
    └── ConfigurationError

Only ConfigurationError ever reaches callers of the public API. Everything
else is raised inside the transport layer and converted into data
(a SourceOutcome error, or a normalization fallback) before it crosses the
component boundary.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = auto()      # Recoverable, can continue
    ERROR = auto()        # Failed but can retry
    CRITICAL = auto()     # Cannot continue
    TRANSIENT = auto()    # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""
    API = "api"
    NETWORK = "network"
    DATA = "data"
    NORMALIZATION = "normalization"
    CONFIGURATION = "config"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context attached to an error."""
    source_id: str | None = None
    operation: str | None = None
    url: str | None = None
    status_code: int | None = None
    suggestion: str | None = None
    retry_after: float | None = None


class FederatedSearchError(Exception):
    """
    Base exception for all Federated Search errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    """

    __slots__ = ('context', 'severity', 'category', 'retryable')

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.API,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.source_id:
            result["source"] = self.context.source_id
        if self.context.status_code is not None:
            result["status_code"] = self.context.status_code
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        return result


# =============================================================================
# API Errors
# =============================================================================

class APIError(FederatedSearchError):
    """Base class for errors talking to a remote service."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        retryable: bool = True,
        category: ErrorCategory = ErrorCategory.API,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=category,
            retryable=retryable,
        )


class TransportError(APIError):
    """Raised for connection-level failures (DNS, refused, reset)."""

    def __init__(
        self,
        message: str = "Network connection failed",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, context=context, retryable=True, category=ErrorCategory.NETWORK)
        self.severity = ErrorSeverity.TRANSIENT


class RequestTimeoutError(TransportError):
    """Raised when a request does not complete within its timeout budget."""

    def __init__(
        self,
        timeout: float,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(f"Request timed out after {timeout:g}s", context=context)
        self.timeout = timeout


class RateLimitError(APIError):
    """Raised when a remote service answers HTTP 429."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float = 1.0,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = context or ErrorContext()
        ctx = ErrorContext(
            source_id=ctx.source_id,
            operation=ctx.operation,
            url=ctx.url,
            status_code=ctx.status_code or 429,
            suggestion=ctx.suggestion or "Wait and retry the request",
            retry_after=retry_after,
        )
        super().__init__(message, context=ctx, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


class ServiceUnavailableError(APIError):
    """Raised when a remote service answers with a 5xx status."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message, context=context, retryable=True)
        self.severity = ErrorSeverity.TRANSIENT


# =============================================================================
# Data Errors
# =============================================================================

class DataError(FederatedSearchError):
    """Base class for data-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.DATA,
            retryable=False,
        )


class ProtocolError(DataError):
    """Raised for non-success statuses or payloads that fail validation."""


class ParseError(ProtocolError):
    """Raised when a response body cannot be decoded."""

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        full_msg = f"Parse error: {message}"
        if source:
            full_msg = f"Parse error ({source}): {message}"
        super().__init__(full_msg, context=context)


# =============================================================================
# Normalization / Configuration
# =============================================================================

class NormalizationDegradedError(FederatedSearchError):
    """The conversion service could not be used; the original text applies."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.NORMALIZATION,
            retryable=False,
        )


class ConfigurationError(FederatedSearchError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


# =============================================================================
# Retry helpers
# =============================================================================

def is_retryable_error(error: BaseException) -> bool:
    """Check if an error should be retried."""
    if isinstance(error, FederatedSearchError):
        return error.retryable
    return False


def get_retry_delay(
    error: BaseException | None,
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
) -> float:
    """
    Calculate retry delay with exponential backoff.

    Args:
        error: The exception that occurred
        attempt: Current attempt number (0-based)
        base_delay: Delay for the first retry
        max_delay: Upper bound for any single delay

    Returns:
        Delay in seconds before next retry
    """
    if isinstance(error, FederatedSearchError) and error.context.retry_after:
        base_delay = max(base_delay, error.context.retry_after)

    if base_delay <= 0:
        return 0.0

    delay = base_delay * (2 ** attempt)
    jitter = random.uniform(0, 0.1 * delay)
    return min(delay + jitter, max_delay)
