"""Opinion (provider A) REST client - active market list and single-token prices."""

from __future__ import annotations

from typing import Any, Sequence

import httpx

from arbscan.cache import OPINION_MARKETS, TTLCache
from arbscan.config import Settings
from arbscan.errors import UpstreamMalformedPayloadError
from arbscan.http import DEFAULT_TIMEOUT_SEC
from arbscan.models import Market
from arbscan.sources.base import MarketSource
from arbscan.sources.extract import first_of, is_closed, parse_tokens, status_of

OPINION_API = "https://openapi.opinion.trade/openapi"
OPINION_CONTAINERS: tuple[str, ...] = ("result.list", "$", "markets", "data")
DEFAULT_MARKETS_PARAMS: dict[str, Any] = {"status": "activated", "limit": 50, "sortBy": 5}

# Fields lifted into Market proper; everything else is kept in Market.extra
_CONSUMED = ("marketId", "marketTitle", "tokens", "yesTokenId", "noTokenId", "yesLabel", "noLabel")


class OpinionSource(MarketSource):
    """Lists activated markets; authenticates with an `apikey` header."""

    source_id = "opinion"
    label = "Opinion"

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: TTLCache,
        *,
        api_base: str = OPINION_API,
        api_key: str = "",
        markets_path: str = "/market",
        markets_params: dict[str, Any] | None = None,
        price_path: str = "/token/latest-price",
        containers: Sequence[str] = OPINION_CONTAINERS,
        timeout: float = DEFAULT_TIMEOUT_SEC,
    ) -> None:
        super().__init__(
            client,
            cache,
            api_base=api_base,
            timeout=timeout,
            containers=containers,
            headers={"apikey": api_key} if api_key else None,
        )
        self.markets_path = markets_path
        self.markets_params = dict(DEFAULT_MARKETS_PARAMS if markets_params is None else markets_params)
        self.price_path = price_path

    async def fetch_markets(self) -> list[Market]:
        return await self._cached(
            OPINION_MARKETS,
            self.markets_path,
            lambda payload: self._active_markets(self._records(payload)),
            params=self.markets_params,
        )

    async def fetch_price(self, token_id: str) -> Any:
        """Latest price payload for one token, passed through as-is. Never cached."""
        payload = await self._get_json(
            self.price_path, params={"token_id": token_id}, label=f"{self.label} price"
        )
        if payload is None:
            raise UpstreamMalformedPayloadError(self.source_id, f"{self.label} price returned a non-JSON body")
        return payload

    def normalize_market(self, raw: dict[str, Any], event: dict[str, Any] | None = None) -> Market:
        market_id = first_of(raw, "marketId", "market_id", "id")
        if market_id is None:
            raise ValueError("market has no id")
        title = first_of(raw, "marketTitle", "title", "question") or ""
        return Market(
            market_id=str(market_id),
            venue=self.source_id,
            title=str(title),
            status=status_of(raw),
            active=True,
            closed=is_closed(raw),
            tokens=parse_tokens(raw),
            extra={k: v for k, v in raw.items() if k not in _CONSUMED},
        )

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient, cache: TTLCache) -> OpinionSource:
        return cls(
            client,
            cache,
            api_base=settings.opinion_api_base,
            api_key=settings.opinion_api_key,
            markets_path=settings.opinion_markets_path,
            markets_params=settings.opinion_markets_params,
            price_path=settings.opinion_price_path,
            containers=settings.opinion_containers or OPINION_CONTAINERS,
            timeout=settings.http_timeout_sec,
        )
