"""
Base API Client - Common HTTP request pattern with timeout and retry.

Shared by the source search client and the query normalizer:
- httpx.AsyncClient management (one pooled client per API client)
- Timeout-bounded GET through fetch_with_timeout()
- Retry on transient failures through with_retry()
- JSON decoding with consistent errors
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from typing_extensions import Self

from federated_search.infrastructure.http.client import fetch_with_timeout, read_json, with_retry

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for external API clients.

    Subclasses set ``_service_name`` and call ``_get_json()``. Errors are
    raised as ``FederatedSearchError`` subclasses; what to do with them is the
    subclass's decision.

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "MyAPI"

            async def lookup(self, term: str) -> dict:
                return await self._get_json("https://api.example.com/lookup", params={"q": term})
    """

    _service_name: str = "API"

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_attempts: int = 3,
        retry_base_delay: float = 0.5,
        retry_max_delay: float = 4.0,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            timeout: Time budget for a single request attempt (seconds)
            max_attempts: Total attempts per request (1 disables retry)
            retry_base_delay: Delay before the first retry (seconds)
            retry_max_delay: Cap for any single retry delay (seconds)
            headers: Default headers for all requests
            client: Existing httpx client to use instead of creating one.
                    The caller keeps ownership of an injected client.
        """
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers=dict(headers or {}),
            follow_redirects=True,
            limits=httpx.Limits(
                max_connections=50,
                max_keepalive_connections=20,
                keepalive_expiry=30.0,
            ),
        )

    async def _get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        source: str | None = None,
    ) -> Any:
        """
        GET ``url`` with retry and decode the JSON body.

        Raises:
            FederatedSearchError: Transport, status or parse failure after
                retries are exhausted
        """

        async def attempt() -> httpx.Response:
            return await fetch_with_timeout(
                self._client,
                url,
                params=params,
                headers=headers,
                timeout=self._timeout,
            )

        response = await with_retry(
            attempt,
            max_attempts=self._max_attempts,
            base_delay=self._retry_base_delay,
            max_delay=self._retry_max_delay,
        )
        return read_json(response, source=source or self._service_name)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
