"""Abstract market source: cache-then-fetch JSON path shared by all providers."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence, TypeVar

import httpx
import structlog

from arbscan.cache import TTLCache
from arbscan.errors import UpstreamHttpError, UpstreamMalformedPayloadError
from arbscan.http import DEFAULT_TIMEOUT_SEC, fetch_with_timeout
from arbscan.models import Market
from arbscan.sources.extract import DEFAULT_CONTAINERS, ExtractionFailure, decode_body, extract_records, is_active

log = structlog.get_logger(__name__)

T = TypeVar("T")


class MarketSource(ABC):
    """One provider. Subclasses define endpoints and how a raw market becomes a Market."""

    source_id: str = ""
    label: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TTLCache,
        *,
        api_base: str,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        containers: Sequence[str] = DEFAULT_CONTAINERS,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.containers = tuple(containers)
        self.headers = {"Accept": "application/json", **(headers or {})}

    @abstractmethod
    async def fetch_markets(self) -> list[Market]:
        """Return active, non-closed markets (cached for the TTL window)."""
        ...

    @abstractmethod
    def normalize_market(self, raw: dict[str, Any], event: dict[str, Any] | None = None) -> Market:
        """Convert one provider market (and its parent event, if any) to a Market."""
        ...

    def _url(self, path: str) -> str:
        return f"{self.api_base}/{path.lstrip('/')}"

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        label: str | None = None,
    ) -> Any | None:
        """GET a JSON endpoint. None when the body is not JSON at all."""
        url = self._url(path)
        resp = await fetch_with_timeout(
            self.client,
            url,
            source=self.source_id,
            params=params,
            headers=self.headers,
            timeout=self.timeout,
        )
        if not resp.is_success:
            raise UpstreamHttpError(self.source_id, resp.status_code, label=label or self.label)
        try:
            payload = decode_body(resp.text)
        except json.JSONDecodeError as e:
            raise UpstreamMalformedPayloadError(
                self.source_id, f"{label or self.label} returned invalid JSON: {e}"
            ) from e
        if payload is None:
            log.warning("non_json_body", source=self.source_id, url=url, body=resp.text[:80])
        return payload

    async def _cached(
        self,
        cache_key: str,
        path: str,
        derive: Callable[[Any], T],
        *,
        params: dict[str, Any] | None = None,
        label: str | None = None,
    ) -> T:
        """Serve `derive(raw)` from cache when fresh, else fetch, derive, then store raw.

        The raw payload is only stored after `derive` succeeds, so a cached payload
        can always be re-derived. Non-JSON bodies are derived from None and not stored.
        """
        if self.cache.is_fresh(cache_key):
            log.debug("cache_hit", source=self.source_id, key=cache_key)
            return derive(self.cache.get(cache_key))
        payload = await self._get_json(path, params=params, label=label)
        result = derive(payload)
        if payload is not None:
            self.cache.put(cache_key, payload)
        return result

    def _records(self, payload: Any) -> list[dict[str, Any]]:
        if payload is None:
            return []
        try:
            return extract_records(payload, self.containers)
        except ExtractionFailure as e:
            raise UpstreamMalformedPayloadError(self.source_id, f"{self.label}: {e}") from e

    def _active_markets(self, rows: list[dict[str, Any]], event: dict[str, Any] | None = None) -> list[Market]:
        markets = []
        for row in rows:
            if not is_active(row):
                continue
            try:
                markets.append(self.normalize_market(row, event))
            except (TypeError, ValueError) as e:
                log.warning("skip_market", source=self.source_id, market_id=row.get("id"), error=str(e))
        return markets
