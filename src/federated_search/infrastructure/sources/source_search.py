"""
Source Search Client

Runs one search against one configured content source and always returns a
SourceOutcome. Sources expose the common "provide/vod" style API:

    GET {baseUrl}{searchPath}?ac=detail&wd=<keyword>&pg=<page>

    {"code": 1, "msg": "...", "list": [{...}, {...}]}

Failure isolation:
    Nothing raised while talking to a source leaves ``search()``. Transport,
    timeout, status and payload errors become an outcome with empty results,
    zero response time and an ``error`` message.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from federated_search.config import SearchSettings
from federated_search.core.exceptions import ErrorContext, FederatedSearchError, ProtocolError
from federated_search.infrastructure.sources.base_client import BaseAPIClient
from federated_search.models.source import ContentItem, SourceDescriptor, SourceOutcome

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

# Query parameter names of the source search API
PARAM_MODE = "ac"
PARAM_KEYWORD = "wd"
PARAM_PAGE = "pg"
DETAIL_MODE = "detail"

# "code" values that mean success
_SUCCESS_CODES = ("0", "1")


class SourceSearchClient(BaseAPIClient):
    """
    Search client shared by all sources.

    One instance serves any number of concurrent searches; the descriptor
    passed to ``search()`` selects the endpoint.

    Usage:
        async with SourceSearchClient(SearchSettings()) as client:
            outcome = await client.search("keyword", source, page=1)
            if outcome.ok:
                print(len(outcome.results))
    """

    _service_name = "SourceSearch"

    def __init__(
        self,
        settings: SearchSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or SearchSettings()
        super().__init__(
            timeout=self._settings.request_timeout,
            max_attempts=self._settings.max_attempts,
            retry_base_delay=self._settings.retry_base_delay,
            retry_max_delay=self._settings.retry_max_delay,
            client=client,
        )

    def build_request(
        self,
        query: str,
        source: SourceDescriptor,
        page: int = 1,
    ) -> tuple[str, dict[str, str], dict[str, str]]:
        """Return ``(url, params, headers)`` for a search; source headers win."""
        params = {
            PARAM_MODE: DETAIL_MODE,
            PARAM_KEYWORD: query,
            PARAM_PAGE: str(page),
        }
        headers = {**self._settings.default_headers(), **source.headers}
        return source.search_url, params, headers

    async def search(
        self,
        query: str,
        source: SourceDescriptor,
        page: int = 1,
    ) -> SourceOutcome:
        """
        Search one source.

        Args:
            query: Normalized query text; empty means no request is made
            source: Source to query
            page: 1-based page number; invalid values fall back to 1

        Returns:
            SourceOutcome for ``source``, never raises
        """
        if not query or not query.strip():
            return SourceOutcome(source=source.id, results=[], response_time=0)

        page = _coerce_page(page, source.id)
        url, params, headers = self.build_request(query, source, page)

        start = time.perf_counter()
        try:
            payload = await self._get_json(url, params=params, headers=headers, source=source.id)
            results = self._extract_results(payload, source)
        except Exception as e:
            self._log_failure(source, e)
            return SourceOutcome.failed(
                source.id,
                f"Failed to fetch search results from {source.name}: {e}",
            )

        elapsed_ms = round((time.perf_counter() - start) * 1000)
        logger.debug(f"Source {source.id}: {len(results)} results in {elapsed_ms}ms (page {page})")
        return SourceOutcome(source=source.id, results=results, response_time=elapsed_ms)

    @staticmethod
    def _log_failure(source: SourceDescriptor, error: Exception) -> None:
        if not isinstance(error, FederatedSearchError):
            logger.warning(f"Source {source.name} ({source.id}) search failed: {error!r}")
            return
        details = error.to_dict()
        details.setdefault("source", source.id)
        logger.warning(
            f"Source {source.name} ({source.id}) search failed "
            f"[{error.category.value}/{error.severity.name.lower()}]: {error}",
            extra={"error_details": details},
        )

    @staticmethod
    def _extract_results(payload: Any, source: SourceDescriptor) -> list[ContentItem]:
        """
        Validate a decoded payload and tag every item with the source id.

        A missing, null or non-array ``list`` is an empty result set.

        Raises:
            ProtocolError: If the payload is not an object or reports failure
        """
        context = ErrorContext(source_id=source.id, operation="search")

        if not isinstance(payload, Mapping):
            raise ProtocolError(
                f"Expected a JSON object, got {type(payload).__name__}",
                context=context,
            )

        code = payload.get("code")
        if code is not None and str(code) not in _SUCCESS_CODES:
            raise ProtocolError(str(payload.get("msg") or "Invalid API response"), context=context)

        items = payload.get("list")
        if not isinstance(items, list):
            if items is not None:
                logger.debug(f"Source {source.id}: 'list' is {type(items).__name__}, treating as empty")
            return []

        results = [{**item, "source": source.id} for item in items if isinstance(item, Mapping)]
        if len(results) != len(items):
            logger.debug(f"Source {source.id}: dropped {len(items) - len(results)} non-object items")
        return results


def _coerce_page(page: Any, source_id: str) -> int:
    if isinstance(page, int) and not isinstance(page, bool) and page >= 1:
        return page
    logger.warning(f"Source {source_id}: invalid page {page!r}, using 1")
    return 1
