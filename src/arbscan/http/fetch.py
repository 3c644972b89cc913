"""Fetch-with-timeout adapter over a shared httpx.AsyncClient."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from arbscan.errors import UpstreamNetworkError, UpstreamTimeoutError

log = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


def make_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Shared client for all sources. No httpx timeouts: fetch_with_timeout owns the bound."""
    return httpx.AsyncClient(transport=transport, timeout=None, follow_redirects=True)


async def fetch_with_timeout(
    client: httpx.AsyncClient,
    url: str,
    *,
    source: str = "upstream",
    method: str = "GET",
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = DEFAULT_TIMEOUT_SEC,
) -> httpx.Response:
    """
    Perform one request and return the response with its body already read.

    The whole exchange (connect, send, read body) must finish within `timeout`
    seconds; otherwise the in-flight request is cancelled and
    UpstreamTimeoutError is raised. Transport failures raise UpstreamNetworkError.
    Status codes are not inspected here.
    """
    try:
        async with asyncio.timeout(timeout):
            resp = await client.request(method, url, params=params, headers=headers)
    except TimeoutError:
        log.warning("upstream_timeout", source=source, url=url, timeout=timeout)
        raise UpstreamTimeoutError(source, url, timeout) from None
    except httpx.TimeoutException as e:
        # httpx's own per-phase timeouts, if the client was built with them
        log.warning("upstream_timeout", source=source, url=url, timeout=timeout)
        raise UpstreamTimeoutError(source, url, timeout) from e
    except httpx.TransportError as e:
        log.warning("upstream_network_error", source=source, url=url, error=str(e))
        raise UpstreamNetworkError(source, f"{source} network error: {e}") from e
    log.debug("upstream_response", source=source, url=url, status=resp.status_code)
    return resp
