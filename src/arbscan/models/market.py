"""Market, Token - provider-neutral entities."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Token(BaseModel):
    """Single outcome token (e.g. Yes/No) in a market."""

    token_id: str
    outcome: str | None = None
    price: float | None = Field(None, description="Latest price, set by the price join; provider units")


class Market(BaseModel):
    """Canonical market - venue-agnostic."""

    market_id: str
    venue: str
    title: str = ""
    status: str | None = None
    active: bool = True
    closed: bool = False
    tokens: list[Token] = Field(default_factory=list)
    # Denormalized from the parent event (probable events layout)
    event_title: str | None = None
    event_slug: str | None = None
    event_tags: list[Any] | None = None
    extra: dict[str, Any] = Field(default_factory=dict)
