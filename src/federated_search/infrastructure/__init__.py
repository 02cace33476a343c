"""
Infrastructure Layer - External Systems Integration

Contains:
- http: timeout-bounded requests and retry
- sources: content source search client
- conversion: query text normalization service
"""

from .conversion.zhconvert import QueryNormalizer
from .sources.source_search import SourceSearchClient

__all__ = [
    "QueryNormalizer",
    "SourceSearchClient",
]
