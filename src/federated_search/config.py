"""
Search Settings - explicit configuration for the aggregation engine.

All tunables live in one immutable object that is passed into the components
at construction time. Nothing reads the environment at call time.

Usage:
    from federated_search.config import SearchSettings

    settings = SearchSettings.from_env()
    settings = SearchSettings(request_timeout=5.0, max_concurrency=8)

Environment variables (all optional):
    FEDERATED_SEARCH_CONVERSION_URL         Text conversion endpoint
    FEDERATED_SEARCH_CONVERTER              Converter mode (default: Simplified)
    FEDERATED_SEARCH_NORMALIZATION_TIMEOUT  Seconds (default: 1.0)
    FEDERATED_SEARCH_REQUEST_TIMEOUT        Seconds per source attempt (default: 10.0)
    FEDERATED_SEARCH_MAX_ATTEMPTS           Attempts per source (default: 3)
    FEDERATED_SEARCH_RETRY_BASE_DELAY       Seconds (default: 0.5)
    FEDERATED_SEARCH_RETRY_MAX_DELAY        Seconds (default: 4.0)
    FEDERATED_SEARCH_MAX_CONCURRENCY        Parallel sources (default: unbounded)
    FEDERATED_SEARCH_USER_AGENT             User-Agent sent to sources
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from federated_search.core.exceptions import ConfigurationError
from federated_search.models.source import SourceDescriptor

logger = logging.getLogger(__name__)

ENV_PREFIX = "FEDERATED_SEARCH_"

DEFAULT_CONVERSION_URL = "https://api.zhconvert.org/convert"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = "application/json, text/plain, */*"


@dataclass(frozen=True)
class SearchSettings:
    """Tunables for normalization, per-source requests and fan-out."""
    conversion_url: str = DEFAULT_CONVERSION_URL
    converter: str = "Simplified"
    normalization_timeout: float = 1.0
    request_timeout: float = 10.0
    max_attempts: int = 3
    retry_base_delay: float = 0.5
    retry_max_delay: float = 4.0
    max_concurrency: int | None = None
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check value types and ranges.

        Normalization runs before any source is contacted, so its budget must
        stay below a single source request timeout.

        Raises:
            ConfigurationError: If any value is out of range
        """
        for name in _FLOAT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
                raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")

        if self.normalization_timeout <= 0:
            raise ConfigurationError(f"normalization_timeout must be > 0, got {self.normalization_timeout}")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be > 0, got {self.request_timeout}")
        if self.normalization_timeout >= self.request_timeout:
            raise ConfigurationError(
                f"normalization_timeout ({self.normalization_timeout:g}s) must be shorter than "
                f"request_timeout ({self.request_timeout:g}s)"
            )
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.retry_base_delay < 0 or self.retry_max_delay < 0:
            raise ConfigurationError("retry delays must be >= 0")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be >= 1 or unset, got {self.max_concurrency}")
        if not self.conversion_url:
            raise ConfigurationError("conversion_url must not be empty")

    def default_headers(self) -> dict[str, str]:
        """Simulated-browser headers sent to every source."""
        return {"User-Agent": self.user_agent, "Accept": self.accept}

    def with_overrides(self, **changes: Any) -> SearchSettings:
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchSettings:
        """
        Build settings from a mapping, ignoring keys that are not settings.

        String values for numeric settings (INI files, ``Configuration.from_env``)
        are parsed.

        Raises:
            ConfigurationError: If a value cannot be parsed or is out of range
        """
        known = {f.name for f in fields(cls)}
        values = {
            k: _parse_value(k, v.strip(), label=k) if isinstance(v, str) else v
            for k, v in data.items()
            if k in known and v is not None
        }
        return cls(**values)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SearchSettings:
        """
        Build settings from ``FEDERATED_SEARCH_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for f in fields(cls):
            raw = env.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            values[f.name] = _parse_value(f.name, raw.strip())

        if values:
            logger.debug(f"Settings from environment: {sorted(values)}")
        return cls(**values)


_FLOAT_FIELDS = {"normalization_timeout", "request_timeout", "retry_base_delay", "retry_max_delay"}
_INT_FIELDS = {"max_attempts", "max_concurrency"}


def _parse_value(name: str, raw: str, *, label: str | None = None) -> Any:
    try:
        if name in _FLOAT_FIELDS:
            return float(raw)
        if name in _INT_FIELDS:
            return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {label or ENV_PREFIX + name.upper()}: {raw!r}") from e
    return raw


def load_sources(entries: Iterable[Mapping[str, Any]]) -> tuple[SourceDescriptor, ...]:
    """
    Build source descriptors from configuration mappings.

    Order is preserved; it defines the order of aggregated outcomes.

    Raises:
        ConfigurationError: If an entry is invalid or an id is repeated
    """
    sources: list[SourceDescriptor] = []
    seen: set[str] = set()
    for entry in entries:
        source = SourceDescriptor.from_dict(entry)
        if source.id in seen:
            raise ConfigurationError(f"Duplicate source id: {source.id!r}")
        seen.add(source.id)
        sources.append(source)
    return tuple(sources)
