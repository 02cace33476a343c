"""
Federated Search - Multi-Source Search Aggregation

Searches many independent content sources in parallel and returns one outcome
per source, whether that source answered, failed or timed out. Query text is
normalized (traditional → simplified Chinese) once before dispatch.

Usage:
    from federated_search import SearchAggregator, SearchSettings, load_sources

    sources = load_sources([
        {"id": "alpha", "name": "Alpha", "baseUrl": "https://alpha.example.com",
         "searchPath": "/api.php/provide/vod"},
    ])

    async with SearchAggregator.from_settings(SearchSettings()) as aggregator:
        outcomes = await aggregator.aggregate("電影", sources, page=1)

    for outcome in outcomes:
        print(outcome.to_dict())

Features:
    - Best-effort query normalization with a strict timeout and silent fallback
    - Per-source retry with exponential backoff on transient failures
    - Failure isolation: errors become data on the failing source's outcome
    - Output order always matches input source order
"""

from .application.search import SearchAggregator, search_all_sources
from .config import SearchSettings, load_sources
from .core.exceptions import ConfigurationError, FederatedSearchError
from .infrastructure.conversion.zhconvert import QueryNormalizer
from .infrastructure.sources.source_search import SourceSearchClient
from .models import ContentItem, SourceDescriptor, SourceOutcome

__version__ = "0.1.0"

__all__ = [
    # High-level API
    "SearchAggregator",
    "search_all_sources",
    # Components
    "QueryNormalizer",
    "SourceSearchClient",
    # Models
    "SourceDescriptor",
    "SourceOutcome",
    "ContentItem",
    # Configuration
    "SearchSettings",
    "load_sources",
    # Errors
    "FederatedSearchError",
    "ConfigurationError",
]
