"""Canonical schema (Pydantic) - Market, Token."""

from arbscan.models.market import Market, Token

__all__ = ["Market", "Token"]
