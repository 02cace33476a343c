"""
Query Normalizer - traditional to simplified Chinese via zhconvert.

API: https://api.zhconvert.org/convert?converter=Simplified&text=<text>

Response:
    {"code": 0, "msg": "", "data": {"text": "<converted>", ...}}

Normalization is best effort. Whatever goes wrong (timeout, network, status,
payload shape) the trimmed input is returned and the problem is logged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from federated_search.config import SearchSettings
from federated_search.core.async_utils import timeout_with_fallback
from federated_search.core.exceptions import ErrorContext, FederatedSearchError, NormalizationDegradedError
from federated_search.infrastructure.sources.base_client import BaseAPIClient

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

# Zero-width and other invisible characters the service may leave behind
_INVISIBLE_CHARS = re.compile("[\u00ad\u200b-\u200f\u2060\ufeff]")


def max_normalized_length(text: str) -> int:
    """Longest conversion result accepted for ``text``."""
    return 2 * len(text) + 16


def strip_invisible(text: str) -> str:
    return _INVISIBLE_CHARS.sub("", text).strip()


class QueryNormalizer(BaseAPIClient):
    """
    Converts query text to its canonical (simplified) form.

    ``normalize()`` never raises: on any failure it returns the trimmed input.

    Usage:
        async with QueryNormalizer() as normalizer:
            query = await normalizer.normalize("  電影  ")  # -> "电影"
    """

    _service_name = "zhconvert"

    def __init__(
        self,
        settings: SearchSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or SearchSettings()
        super().__init__(
            timeout=self._settings.normalization_timeout,
            max_attempts=1,
            client=client,
        )

    async def normalize(self, text: str) -> str:
        """
        Normalize ``text`` for dispatch.

        Returns:
            "" for empty/whitespace input (no request is made), otherwise the
            converted text, or the trimmed input if conversion failed
        """
        trimmed = (text or "").strip()
        if not trimmed:
            return ""

        def on_timeout() -> str:
            return self._degraded(trimmed, f"timed out after {self._timeout:g}s")

        try:
            return await timeout_with_fallback(self._convert(trimmed), self._timeout, on_timeout)
        except FederatedSearchError as e:
            return self._degraded(trimmed, str(e))
        except Exception as e:
            logger.exception(f"Unexpected normalization failure: {e}")
            return trimmed

    async def _convert(self, text: str) -> str:
        payload = await self._get_json(
            self._settings.conversion_url,
            params={"converter": self._settings.converter, "text": text},
        )
        converted = strip_invisible(self._extract_text(payload))

        if not converted:
            raise NormalizationDegradedError("conversion returned empty text")
        if len(converted) > max_normalized_length(text):
            raise NormalizationDegradedError(
                f"conversion result too long ({len(converted)} chars for {len(text)})"
            )
        return converted

    @staticmethod
    def _extract_text(payload: Any) -> str:
        context = ErrorContext(operation="normalize")
        if not isinstance(payload, Mapping):
            raise NormalizationDegradedError("response is not a JSON object", context=context)
        if payload.get("code") != 0:
            raise NormalizationDegradedError(
                f"service reported code {payload.get('code')!r}: {payload.get('msg') or 'no message'}",
                context=context,
            )
        data = payload.get("data")
        converted = data.get("text") if isinstance(data, Mapping) else None
        if not isinstance(converted, str):
            raise NormalizationDegradedError("response has no converted text", context=context)
        return converted

    @staticmethod
    def _degraded(text: str, reason: str) -> str:
        logger.warning(f"Query normalization degraded, using original text: {reason}")
        return text
