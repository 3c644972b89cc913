"""Upstream error hierarchy shared by sources, aggregator and API."""

from __future__ import annotations


class UpstreamError(Exception):
    """Base for any failure talking to a market-data provider."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message


class UpstreamHttpError(UpstreamError):
    """Provider answered with a non-2xx status."""

    def __init__(self, source: str, status_code: int, label: str | None = None) -> None:
        super().__init__(source, f"{label or source} API error: {status_code}")
        self.status_code = status_code


class UpstreamTimeoutError(UpstreamError):
    """No response within the configured bound."""

    def __init__(self, source: str, url: str, timeout: float) -> None:
        super().__init__(source, f"{source} request timed out after {timeout:g}s: {url}")
        self.url = url
        self.timeout = timeout


class UpstreamNetworkError(UpstreamError):
    """Transport-level failure (DNS, refused connection, reset)."""


class UpstreamMalformedPayloadError(UpstreamError):
    """Body parsed as JSON-looking but could not be decoded or shaped into markets."""
