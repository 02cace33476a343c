"""
Application Layer - Use Cases and Orchestration

Contains:
- search: multi-source search aggregation
"""

from .search import SearchAggregator, search_all_sources

__all__ = [
    "SearchAggregator",
    "search_all_sources",
]
