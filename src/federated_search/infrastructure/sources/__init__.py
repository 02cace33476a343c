"""Content source clients."""

from .base_client import BaseAPIClient
from .source_search import SourceSearchClient

__all__ = [
    "BaseAPIClient",
    "SourceSearchClient",
]
