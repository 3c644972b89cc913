"""Probable (provider B) REST client - events/markets listing and the token price table."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import httpx
import structlog

from arbscan.cache import PROBABLE_MARKETS, PROBABLE_PRICES, TTLCache
from arbscan.config import Settings
from arbscan.errors import UpstreamError, UpstreamMalformedPayloadError
from arbscan.http import DEFAULT_TIMEOUT_SEC
from arbscan.models import Market
from arbscan.sources.base import MarketSource
from arbscan.sources.extract import first_of, is_closed, json_list, parse_tokens, status_of

log = structlog.get_logger(__name__)

PROBABLE_API = "https://market-api.probable.markets"
LAYOUTS = ("events", "markets")
DEFAULT_EVENTS_PARAMS: dict[str, Any] = {"closed": "false", "sort": "volume", "order": "desc", "limit": 100}
EVENT_CONTAINERS: tuple[str, ...] = ("$", "events", "data")
MARKET_CONTAINERS: tuple[str, ...] = ("$", "markets", "data")

_CONSUMED = ("id", "question", "title", "tokens", "clobTokenIds", "outcomes")


def _to_price(value: Any) -> float | None:
    if isinstance(value, dict):
        value = first_of(value, "price", "mid", "last")
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_price_table(payload: Any) -> dict[str, float]:
    """Token id -> price. Accepts a flat mapping, one nested under prices/data, or a list of rows."""
    if payload is None:
        return {}
    if isinstance(payload, dict):
        for key in ("prices", "data"):
            if isinstance(payload.get(key), (dict, list)):
                payload = payload[key]
                break
    table: dict[str, float] = {}
    if isinstance(payload, dict):
        for token_id, value in payload.items():
            price = _to_price(value)
            if price is not None:
                table[str(token_id)] = price
        return table
    if isinstance(payload, list):
        for row in payload:
            if not isinstance(row, dict):
                continue
            token_id = first_of(row, "token_id", "tokenId", "asset_id")
            price = _to_price(row)
            if token_id is not None and price is not None:
                table[str(token_id)] = price
        return table
    raise UpstreamMalformedPayloadError("probable", f"price table is a {type(payload).__name__}")


def apply_prices(markets: list[Market], prices: dict[str, float]) -> list[Market]:
    """Attach prices to tokens found in `prices`. Tokens without an entry are left as they are."""
    if not prices:
        return markets
    for market in markets:
        for token in market.tokens:
            price = prices.get(token.token_id)
            if price is not None:
                token.price = price
    return markets


class ProbableSource(MarketSource):
    """Open markets, either nested in events (layout "events") or as a flat list ("markets")."""

    source_id = "probable"
    label = "Probable"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TTLCache,
        *,
        api_base: str = PROBABLE_API,
        layout: str = "events",
        markets_path: str = "/events",
        markets_params: dict[str, Any] | None = None,
        prices_enabled: bool = True,
        prices_path: str = "/prices",
        containers: Sequence[str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        if layout not in LAYOUTS:
            raise ValueError(f"unknown probable layout {layout!r}, expected one of {LAYOUTS}")
        if containers is None:
            containers = EVENT_CONTAINERS if layout == "events" else MARKET_CONTAINERS
        super().__init__(client, cache, api_base=api_base, timeout=timeout, containers=containers)
        self.layout = layout
        self.markets_path = markets_path
        self.markets_params = dict(DEFAULT_EVENTS_PARAMS if markets_params is None else markets_params)
        self.prices_enabled = prices_enabled
        self.prices_path = prices_path

    async def fetch_markets(self) -> list[Market]:
        """Open markets with prices joined in. A failing price table leaves tokens unpriced."""
        if not self.prices_enabled:
            return await self._fetch_listing()
        markets, prices = await asyncio.gather(
            self._fetch_listing(), self._prices_or_empty(), return_exceptions=True
        )
        # wait for both before raising
        for outcome in (markets, prices):
            if isinstance(outcome, BaseException):
                raise outcome
        return apply_prices(markets, prices)

    async def fetch_prices(self) -> dict[str, float]:
        return await self._cached(
            PROBABLE_PRICES, self.prices_path, parse_price_table, label=f"{self.label} prices"
        )

    async def _prices_or_empty(self) -> dict[str, float]:
        try:
            return await self.fetch_prices()
        except UpstreamError as e:
            log.warning("prices_unavailable", source=self.source_id, error=str(e))
            return {}

    async def _fetch_listing(self) -> list[Market]:
        return await self._cached(
            PROBABLE_MARKETS, self.markets_path, self._markets_from_payload, params=self.markets_params
        )

    def _markets_from_payload(self, payload: Any) -> list[Market]:
        rows = self._records(payload)
        if self.layout == "markets":
            return self._active_markets(rows)
        markets: list[Market] = []
        for event in rows:
            nested = event.get("markets")
            if isinstance(nested, list):
                markets.extend(self._active_markets([m for m in nested if isinstance(m, dict)], event))
        return markets

    def normalize_market(self, raw: dict[str, Any], event: dict[str, Any] | None = None) -> Market:
        market_id = first_of(raw, "id", "market_id", "conditionId", "condition_id")
        if market_id is None:
            raise ValueError("market has no id")
        market = Market(
            market_id=str(market_id),
            venue=self.source_id,
            title=str(first_of(raw, "question", "title") or ""),
            status=status_of(raw),
            active=True,
            closed=is_closed(raw),
            tokens=parse_tokens(raw),
            extra={k: v for k, v in raw.items() if k not in _CONSUMED},
        )
        if event is not None:
            market.event_title = event.get("title")
            market.event_slug = event.get("slug")
            market.event_tags = list(json_list(event.get("tags")))
        return market

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient, cache: TTLCache) -> ProbableSource:
        return cls(
            client,
            cache,
            api_base=settings.probable_api_base,
            layout=settings.probable_layout,
            markets_path=settings.probable_markets_path,
            markets_params=settings.probable_markets_params,
            prices_enabled=settings.probable_prices_enabled,
            prices_path=settings.probable_prices_path,
            containers=settings.probable_containers,
            timeout=settings.http_timeout_sec,
        )
