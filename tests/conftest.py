"""Shared fixtures: fake upstream providers over httpx.MockTransport and a manual clock."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from arbscan.cache import TTLCache
from arbscan.config import Settings

OPINION_BASE = "https://opinion.test/openapi"
PROBABLE_BASE = "https://probable.test"

OPINION_MARKETS = "opinion.test/openapi/market"
OPINION_PRICE = "opinion.test/openapi/token/latest-price"
PROBABLE_EVENTS = "probable.test/events"
PROBABLE_PRICES = "probable.test/prices"


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """Routes by host+path. Each route builds a fresh response per request and counts hits."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: list[httpx.Request] = []

    def route(self, key: str, status: int = 200, json: Any = None, text: str | None = None) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text)
            return httpx.Response(status, json=json)

        self.routes[key] = respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        respond = self.routes.get(f"{request.url.host}{request.url.path}")
        if respond is None:
            return httpx.Response(404, text="Not Found")
        return respond(request)

    def hits(self, key: str) -> int:
        return sum(1 for r in self.calls if f"{r.url.host}{r.url.path}" == key)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def opinion_payload() -> dict[str, Any]:
    return {
        "errno": 0,
        "result": {
            "total": 2,
            "list": [
                {
                    "marketId": 101,
                    "marketTitle": "Will BTC close above 100k?",
                    "statusEnum": "Activated",
                    "yesTokenId": "oy1",
                    "noTokenId": "on1",
                    "volume": "1200",
                },
                {
                    "marketId": 102,
                    "marketTitle": "Already settled",
                    "statusEnum": "Resolved",
                    "yesTokenId": "oy2",
                    "noTokenId": "on2",
                },
            ],
        },
    }


def probable_events() -> list[dict[str, Any]]:
    return [
        {
            "title": "BTC price end of year",
            "slug": "btc-eoy",
            "tags": [{"label": "Crypto"}],
            "markets": [
                {
                    "id": "m1",
                    "question": "BTC above 100k?",
                    "active": True,
                    "closed": False,
                    "tokens": [{"token_id": "t1", "outcome": "Yes"}, {"token_id": "t2", "outcome": "No"}],
                },
                {
                    "id": "m2",
                    "question": "BTC above 200k?",
                    "active": True,
                    "closed": True,
                    "tokens": [{"token_id": "t3", "outcome": "Yes"}],
                },
            ],
        }
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(ttl_sec=60.0, clock=clock)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def settings() -> Settings:
    return Settings.from_dict(
        {
            "http": {"timeout_sec": 2.0},
            "cache": {"ttl_sec": 60.0},
            "opinion": {"api_base": OPINION_BASE, "api_key": "test-key"},
            "probable": {"api_base": PROBABLE_BASE},
        }
    )
