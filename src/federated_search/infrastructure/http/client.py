"""
HTTP Client Module - timeout-bounded requests and retry.

This module provides the two transport primitives the search engine is built
on:
- fetch_with_timeout(): one GET that always terminates within its budget and
  maps every failure onto the exception hierarchy
- with_retry(): re-runs an operation on transient failures with exponential
  backoff (tenacity)

Usage:
    from federated_search.infrastructure.http.client import fetch_with_timeout, with_retry

    async with httpx.AsyncClient() as client:
        response = await with_retry(
            lambda: fetch_with_timeout(client, url, params={"wd": "query"}, timeout=10.0),
            max_attempts=3,
        )
        payload = read_json(response)
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from federated_search.core.exceptions import (
    ErrorContext,
    ParseError,
    ProtocolError,
    RateLimitError,
    RequestTimeoutError,
    ServiceUnavailableError,
    TransportError,
    get_retry_delay,
    is_retryable_error,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from tenacity import RetryCallState

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Single request
# =============================================================================


async def fetch_with_timeout(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float,
) -> httpx.Response:
    """
    Make one HTTP GET request that finishes within ``timeout`` seconds.

    The httpx timeout bounds each network phase; the surrounding
    ``asyncio.timeout`` bounds the request as a whole.

    Args:
        client: Shared async client (connection pool)
        url: Full request URL
        params: Query parameters
        headers: Request headers
        timeout: Total time budget in seconds

    Returns:
        The response, always with a 2xx status

    Raises:
        RequestTimeoutError: When the budget is exceeded
        TransportError: When the connection fails
        RateLimitError: When the server answers 429
        ServiceUnavailableError: When the server answers 5xx
        ProtocolError: For any other non-2xx status
    """
    context = ErrorContext(operation="GET", url=url)

    try:
        async with asyncio.timeout(timeout):
            response = await client.get(
                url,
                params=dict(params) if params else None,
                headers=dict(headers) if headers else None,
                timeout=timeout,
            )
    except (TimeoutError, httpx.TimeoutException) as e:
        logger.debug(f"Timeout after {timeout:g}s for {url}")
        raise RequestTimeoutError(timeout, context=context) from e
    except httpx.RequestError as e:
        logger.debug(f"Request error for {url}: {e!r}")
        raise TransportError(f"Connection failed: {str(e) or type(e).__name__}", context=context) from e

    if response.is_success:
        return response

    status = response.status_code
    message = f"HTTP {status} {response.reason_phrase}".rstrip()
    context = ErrorContext(operation="GET", url=url, status_code=status)

    if status == 429:
        raise RateLimitError(message, retry_after=_parse_retry_after(response), context=context)
    if status >= 500:
        raise ServiceUnavailableError(message, context=context)
    raise ProtocolError(message, context=context)


def read_json(response: httpx.Response, *, source: str | None = None) -> Any:
    """
    Decode a JSON response body.

    Raises:
        ParseError: When the body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise ParseError("Invalid JSON response", source=source) from e


def _parse_retry_after(response: httpx.Response) -> float:
    try:
        return max(0.0, float(response.headers.get("Retry-After", 0.0)))
    except (ValueError, TypeError):
        return 0.0


# =============================================================================
# Retry
# =============================================================================


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    retryable: Callable[[BaseException], bool] = is_retryable_error,
) -> T:
    """
    Await ``operation()``, retrying transient failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        max_attempts: Total attempts including the first
        base_delay: Delay before the first retry (seconds)
        max_delay: Cap for any single delay (seconds)
        retryable: Predicate deciding whether an exception is transient

    Returns:
        The first successful result

    Raises:
        The last exception once attempts are exhausted, or the first
        non-retryable exception
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=_backoff(base_delay, max_delay),
        retry=retry_if_exception(retryable),
        before_sleep=_log_retry(max_attempts),
        reraise=True,
    )
    return await retrying(operation)


def _backoff(base_delay: float, max_delay: float) -> Callable[[RetryCallState], float]:
    def wait(retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        return get_retry_delay(error, retry_state.attempt_number - 1, base_delay, max_delay)

    return wait


def _log_retry(max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Retry {retry_state.attempt_number}/{max_attempts - 1}: {error} (waiting {delay:.1f}s)"
        )

    return before_sleep
