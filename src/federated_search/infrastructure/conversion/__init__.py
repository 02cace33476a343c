"""Query text conversion."""

from .zhconvert import QueryNormalizer, max_normalized_length, strip_invisible

__all__ = [
    "QueryNormalizer",
    "max_normalized_length",
    "strip_invisible",
]
