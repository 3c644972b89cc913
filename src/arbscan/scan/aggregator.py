"""Scan orchestrator: fetch every source concurrently, isolate failures per source."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Sequence

import structlog

from arbscan.api.schemas import ScanResponse, SourceSection
from arbscan.errors import UpstreamError
from arbscan.models import Market
from arbscan.sources.base import MarketSource

log = structlog.get_logger(__name__)


@dataclass
class SourceResult:
    """Outcome of one source for one scan: markets on success, error otherwise."""

    source_id: str
    markets: list[Market] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def section(self) -> SourceSection:
        return SourceSection.from_markets(self.markets, error=str(self.error) if self.error else None)


async def _settle(source: MarketSource) -> SourceResult:
    started = time.monotonic()
    try:
        markets = await source.fetch_markets()
    except UpstreamError as e:
        log.warning("source_failed", source=source.source_id, error=str(e), kind=type(e).__name__)
        return SourceResult(source.source_id, error=e)
    except Exception as e:
        log.exception("source_crashed", source=source.source_id)
        return SourceResult(source.source_id, error=e)
    log.info(
        "source_ok",
        source=source.source_id,
        count=len(markets),
        elapsed_ms=int((time.monotonic() - started) * 1000),
    )
    return SourceResult(source.source_id, markets=markets)


async def settle_all(sources: Sequence[MarketSource]) -> list[SourceResult]:
    """Run every source concurrently; never fails on the first error. Order follows `sources`."""
    return list(await asyncio.gather(*(_settle(s) for s in sources)))


class ScanAggregator:
    """Builds the unified scan response from the opinion and probable sources."""

    def __init__(self, opinion: MarketSource, probable: MarketSource) -> None:
        self.opinion = opinion
        self.probable = probable

    async def scan(self) -> ScanResponse:
        opinion, probable = await settle_all([self.opinion, self.probable])
        errors = {r.source_id: str(r.error) for r in (opinion, probable) if not r.ok}
        if errors:
            log.info("scan_partial", errors=errors)
        return ScanResponse(
            success=True,
            timestamp=int(time.time() * 1000),
            opinion=opinion.section(),
            probable=probable.section(),
        )
