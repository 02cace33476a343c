"""
Search Aggregator - fan-out/fan-in over all configured sources.

    query ──► QueryNormalizer (once) ──► normalized query
                                              │
              ┌───────────────┬───────────────┼───────────────┐
              ▼               ▼               ▼               ▼
         search(src0)    search(src1)    search(src2)   ...  (concurrent)
              │               │               │               │
              └───────────────┴───────┬───────┴───────────────┘
                                      ▼
                    [outcome0, outcome1, outcome2, ...]  (input order)

Every source gets exactly one outcome. A failing source only affects its own
slot; ``aggregate()`` waits for all of them and never raises.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from typing_extensions import Self

from federated_search.config import SearchSettings
from federated_search.core.async_utils import gather_with_errors
from federated_search.infrastructure.conversion.zhconvert import QueryNormalizer
from federated_search.infrastructure.sources.source_search import SourceSearchClient
from federated_search.models.source import SourceDescriptor, SourceOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class SearchAggregator:
    """
    Searches many sources in parallel and collects one outcome per source.

    Usage:
        async with SearchAggregator.from_settings(SearchSettings()) as aggregator:
            outcomes = await aggregator.aggregate("電影", sources, page=1)
            for outcome in outcomes:
                print(outcome.source, len(outcome.results), outcome.error)
    """

    def __init__(
        self,
        normalizer: QueryNormalizer,
        client: SourceSearchClient,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        """
        Args:
            normalizer: Query normalizer, called once per aggregation
            client: Source search client shared by all source tasks
            max_concurrency: Maximum sources searched at once (None = all)
        """
        self._normalizer = normalizer
        self._client = client
        self._max_concurrency = max_concurrency

    @classmethod
    def from_settings(cls, settings: SearchSettings | None = None) -> SearchAggregator:
        settings = settings or SearchSettings()
        return cls(
            QueryNormalizer(settings),
            SourceSearchClient(settings),
            max_concurrency=settings.max_concurrency,
        )

    async def aggregate(
        self,
        query: str,
        sources: Sequence[SourceDescriptor],
        page: int = 1,
    ) -> list[SourceOutcome]:
        """
        Search all ``sources`` for ``query``.

        Args:
            query: Raw query text
            sources: Sources to search; output order follows this order
            page: 1-based page number passed to every source

        Returns:
            One SourceOutcome per source, ``outcomes[i].source == sources[i].id``
        """
        sources = list(sources)
        if not sources:
            logger.debug("aggregate() called with no sources")
            return []

        start = time.perf_counter()
        normalized = await self._normalize(query)

        raw = await gather_with_errors(
            *(self._search_one(normalized, source, page) for source in sources),
            return_exceptions=True,
            max_concurrency=self._max_concurrency,
        )
        outcomes = [
            result if isinstance(result, SourceOutcome) else self._unexpected(source, result)
            for source, result in zip(sources, raw, strict=True)
        ]

        failed = sum(1 for o in outcomes if not o.ok)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"Aggregated {len(outcomes)} sources for {normalized!r} (page {page}): "
            f"{len(outcomes) - failed} ok, {failed} failed in {elapsed_ms:.0f}ms"
        )
        return outcomes

    async def _normalize(self, query: str) -> str:
        try:
            normalized = await self._normalizer.normalize(query)
        except Exception as e:
            logger.exception(f"Normalizer raised unexpectedly: {e}")
            return (query or "").strip()
        if normalized != (query or "").strip():
            logger.debug(f"Normalized query {query!r} -> {normalized!r}")
        return normalized

    async def _search_one(self, query: str, source: SourceDescriptor, page: int) -> SourceOutcome:
        try:
            outcome = await self._client.search(query, source, page)
        except Exception as e:
            return self._unexpected(source, e)
        if not isinstance(outcome, SourceOutcome):
            return self._unexpected(source, TypeError(f"search returned {type(outcome).__name__}"))
        return outcome

    @staticmethod
    def _unexpected(source: SourceDescriptor, error: object) -> SourceOutcome:
        # A task that ended cancelled leaves its slot empty
        if error is None:
            logger.error(f"Search task for {source.id} was cancelled")
            return SourceOutcome.failed(source.id, f"Search of {source.name} was cancelled")
        logger.error(f"Unexpected failure searching {source.id}: {error!r}")
        return SourceOutcome.failed(source.id, f"Unexpected error searching {source.name}: {error}")

    async def close(self) -> None:
        await self._normalizer.close()
        await self._client.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


async def search_all_sources(
    query: str,
    sources: Sequence[SourceDescriptor],
    page: int = 1,
    settings: SearchSettings | None = None,
) -> list[SourceOutcome]:
    """
    One-shot aggregation: build an aggregator, search, close its clients.

    Example:
        outcomes = await search_all_sources("電影", sources)
    """
    async with SearchAggregator.from_settings(settings) as aggregator:
        return await aggregator.aggregate(query, sources, page)
