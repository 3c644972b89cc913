"""Outbound HTTP helpers."""

from arbscan.http.fetch import DEFAULT_TIMEOUT_SEC, fetch_with_timeout, make_client

__all__ = ["DEFAULT_TIMEOUT_SEC", "fetch_with_timeout", "make_client"]
