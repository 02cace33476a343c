"""
Multi-Source Search

    Raw query
        │
        ▼
    ┌──────────────────┐
    │ QueryNormalizer  │  ← traditional → simplified, 1s budget, never fails
    └────────┬─────────┘
             │
    ┌────────┴────────┐
    ▼        ▼        ▼
  Source A  Source B  Source C  ← Parallel queries, retried, isolated
    │        │        │
    └────────┴────────┘
             │
             ▼
    ┌──────────────────┐
    │ SearchAggregator │  ← One outcome per source, in input order
    └──────────────────┘
"""

from .aggregator import SearchAggregator, search_all_sources

__all__ = [
    "SearchAggregator",
    "search_all_sources",
]
