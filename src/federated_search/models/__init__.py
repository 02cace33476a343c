"""
Data Models for Multi-Source Search

Source descriptors (what to query) and per-source outcomes (what came back).
"""

from .source import (
    ContentItem,
    SourceDescriptor,
    SourceOutcome,
)

__all__ = [
    "ContentItem",
    "SourceDescriptor",
    "SourceOutcome",
]
