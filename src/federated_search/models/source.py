"""
Source and Outcome Models for Multi-Source Search

SourceDescriptor describes one remote search endpoint. SourceOutcome is the
per-source record produced by every search, whether it succeeded or not.

Architecture Decision:
    Plain dataclasses, like the rest of the models package. Items returned by
    a source are kept as opaque mappings (ContentItem) since sources disagree
    on their fields; only the originating ``source`` id is added.

Example:
    >>> source = SourceDescriptor.from_dict({
    ...     "id": "alpha",
    ...     "name": "Alpha",
    ...     "baseUrl": "https://alpha.example.com",
    ...     "searchPath": "/api.php/provide/vod",
    ... })
    >>> source.search_url
    'https://alpha.example.com/api.php/provide/vod'
    >>> SourceOutcome.failed("alpha", "boom").to_dict()
    {'results': [], 'source': 'alpha', 'responseTime': 0, 'error': 'boom'}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from federated_search.core.exceptions import ConfigurationError, ErrorContext

ContentItem = dict[str, Any]


@dataclass(frozen=True)
class SourceDescriptor:
    """
    Immutable configuration for one remote search endpoint.

    ``headers`` holds per-source overrides applied on top of the default
    request headers; it is exposed as a read-only mapping.
    """
    id: str
    name: str
    base_url: str
    search_path: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers or {})))

    @property
    def search_url(self) -> str:
        return f"{self.base_url}{self.search_path}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SourceDescriptor:
        """
        Create a descriptor from a configuration mapping.

        Accepts snake_case keys (``base_url``, ``search_path``) as well as the
        camelCase keys used by front-end source lists (``baseUrl``,
        ``searchPath``). ``name`` defaults to ``id``.

        Raises:
            ConfigurationError: If a required key is missing or empty
        """
        source_id = data.get("id")
        base_url = data.get("base_url", data.get("baseUrl"))
        search_path = data.get("search_path", data.get("searchPath"))

        missing = [
            key
            for key, value in (("id", source_id), ("baseUrl", base_url), ("searchPath", search_path))
            if not isinstance(value, str) or not value
        ]
        if missing:
            raise ConfigurationError(
                f"Source descriptor missing required field(s): {', '.join(missing)}",
                context=ErrorContext(source_id=source_id if isinstance(source_id, str) else None),
            )

        headers = data.get("headers") or {}
        if not isinstance(headers, Mapping):
            raise ConfigurationError(
                f"Source '{source_id}' headers must be a mapping",
                context=ErrorContext(source_id=source_id),
            )

        return cls(
            id=source_id,
            name=data.get("name") or source_id,
            base_url=base_url,
            search_path=search_path,
            headers={str(k): str(v) for k, v in headers.items()},
        )


@dataclass
class SourceOutcome:
    """
    Result of searching one source.

    Exactly one outcome exists per requested source. When ``error`` is set,
    ``results`` is empty and ``response_time`` is 0 or None.
    """
    source: str
    results: list[ContentItem] = field(default_factory=list)
    response_time: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, source: str, message: str) -> SourceOutcome:
        return cls(source=source, results=[], response_time=0, error=message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape returned to front-end callers."""
        result: dict[str, Any] = {
            "results": list(self.results),
            "source": self.source,
        }
        if self.response_time is not None:
            result["responseTime"] = self.response_time
        if self.error is not None:
            result["error"] = self.error
        return result
