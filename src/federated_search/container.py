"""
Application DI Container (dependency-injector).

Centralizes creation of the search components so a request handler only
needs the aggregator.

Usage::

    from federated_search.container import ApplicationContainer

    container = ApplicationContainer()
    container.config.from_dict({
        "request_timeout": 8.0,
        "max_concurrency": 10,
    })

    aggregator = container.aggregator()
    outcomes = await aggregator.aggregate("query", sources)

    # In tests - override any provider:
    container.source_client.override(providers.Object(mock_client))
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from dependency_injector import containers, providers

from federated_search.application.search.aggregator import SearchAggregator
from federated_search.config import SearchSettings
from federated_search.infrastructure.conversion.zhconvert import QueryNormalizer
from federated_search.infrastructure.sources.source_search import SourceSearchClient

logger = logging.getLogger(__name__)


def _create_settings(options: dict[str, Any] | None) -> SearchSettings:
    """Environment settings, overridden by explicit container config."""
    settings = SearchSettings.from_env()
    overrides = {k: v for k, v in (options or {}).items() if v is not None}
    if overrides:
        settings = SearchSettings.from_dict({**asdict(settings), **overrides})
    logger.debug(f"Search settings: {settings}")
    return settings


class ApplicationContainer(containers.DeclarativeContainer):
    """Central DI container for the search engine.

    - ``settings``: SearchSettings (environment + ``config`` overrides)
    - ``normalizer``: QueryNormalizer
    - ``source_client``: SourceSearchClient
    - ``aggregator``: SearchAggregator wired to the two clients above
    """

    config = providers.Configuration()

    settings = providers.Singleton(
        _create_settings,
        options=config,
    )

    normalizer = providers.Singleton(
        QueryNormalizer,
        settings=settings,
    )

    source_client = providers.Singleton(
        SourceSearchClient,
        settings=settings,
    )

    aggregator = providers.Singleton(
        SearchAggregator,
        normalizer=normalizer,
        client=source_client,
        max_concurrency=settings.provided.max_concurrency,
    )


__all__ = ["ApplicationContainer"]
