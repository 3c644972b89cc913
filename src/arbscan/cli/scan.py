"""One-shot scan and per-source market listing from the command line."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import typer

from arbscan.cache import TTLCache
from arbscan.config import Settings
from arbscan.errors import UpstreamError
from arbscan.http import make_client
from arbscan.models import Market
from arbscan.scan import ScanAggregator
from arbscan.sources import OpinionSource, ProbableSource

T = TypeVar("T")

markets_app = typer.Typer(help="List active markets from a single source")


def _run(settings: Settings, job: Callable[[OpinionSource, ProbableSource], Awaitable[T]]) -> T:
    async def _main() -> T:
        cache = TTLCache(ttl_sec=settings.cache_ttl_sec)
        async with make_client() as client:
            opinion = OpinionSource.from_settings(settings, client, cache)
            probable = ProbableSource.from_settings(settings, client, cache)
            return await job(opinion, probable)

    return asyncio.run(_main())


def _echo_markets(markets: list[Market], limit: int) -> None:
    for m in markets[:limit]:
        prices = " ".join(
            f"{t.outcome or '?'}={t.price:.3f}" if t.price is not None else f"{t.outcome or '?'}=-"
            for t in m.tokens
        )
        typer.echo(f"  {m.market_id[:20]:<20}  {m.title[:60]:<60}  {prices}")
    typer.echo(f"Total: {len(markets)} markets")


def scan(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the full scan response as JSON"),
) -> None:
    """Fetch both sources once and print per-source counts."""
    settings = ctx.obj["settings"]
    result = _run(settings, lambda o, p: ScanAggregator(o, p).scan())
    if as_json:
        typer.echo(result.model_dump_json(exclude_none=True, indent=2))
        return
    for name, section in (("opinion", result.opinion), ("probable", result.probable)):
        suffix = f"  (error: {section.error})" if section.error else ""
        typer.echo(f"{name:<9} {section.count:>5} markets{suffix}")


def _list(ctx: typer.Context, pick: str, limit: int) -> None:
    settings = ctx.obj["settings"]

    async def job(opinion: OpinionSource, probable: ProbableSource) -> list[Market]:
        source = opinion if pick == "opinion" else probable
        return await source.fetch_markets()

    try:
        markets = _run(settings, job)
    except UpstreamError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    _echo_markets(markets, limit)


@markets_app.command("opinion")
def opinion_markets(
    ctx: typer.Context,
    limit: int = typer.Option(50, "--limit", "-n", help="Max rows to print"),
) -> None:
    """List active Opinion markets."""
    _list(ctx, "opinion", limit)


@markets_app.command("probable")
def probable_markets(
    ctx: typer.Context,
    limit: int = typer.Option(50, "--limit", "-n", help="Max rows to print"),
) -> None:
    """List open Probable markets with joined prices."""
    _list(ctx, "probable", limit)
