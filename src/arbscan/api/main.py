"""FastAPI backend: per-source market endpoints and the aggregated scan."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from arbscan.api.schemas import ErrorResponse, HealthResponse, ScanErrorResponse, ScanResponse
from arbscan.cache import TTLCache
from arbscan.config import Settings, get_settings
from arbscan.errors import UpstreamError
from arbscan.http import make_client
from arbscan.models import Market
from arbscan.scan import ScanAggregator
from arbscan.sources import OpinionSource, ProbableSource

log = structlog.get_logger(__name__)

# Set by run_api() so the uvicorn-imported app picks the same profile and config dir.
_config_profile: str | None = None
_config_dir: Path | None = None


def _now_ms() -> int:
    return int(time.time() * 1000)


def _error_json(message: str, status_code: int = 500) -> JSONResponse:
    """Return consistent error JSON: { error }."""
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """Build the app. `transport` and `clock` let tests stand in for the network and time."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or get_settings(_config_profile, _config_dir)
        # One cache and one client for the process lifetime
        cache = TTLCache(ttl_sec=cfg.cache_ttl_sec, clock=clock)
        async with make_client(transport) as client:
            opinion = OpinionSource.from_settings(cfg, client, cache)
            probable = ProbableSource.from_settings(cfg, client, cache)
            app.state.settings = cfg
            app.state.cache = cache
            app.state.opinion = opinion
            app.state.probable = probable
            app.state.aggregator = ScanAggregator(opinion, probable)
            log.info(
                "api_started",
                opinion_api=cfg.opinion_api_base,
                probable_api=cfg.probable_api_base,
                cache_ttl_sec=cfg.cache_ttl_sec,
            )
            yield

    app = FastAPI(title="arbscan API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
        log.error("upstream_error", path=request.url.path, source=exc.source, error=exc.message)
        return _error_json(exc.message)

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=_now_ms())

    @app.get(
        "/api/opinion/markets",
        response_model=list[Market],
        response_model_exclude_none=True,
        responses={500: {"model": ErrorResponse}},
    )
    async def opinion_markets(request: Request) -> list[Market]:
        return await request.app.state.opinion.fetch_markets()

    @app.get("/api/opinion/price/{token_id}", responses={500: {"model": ErrorResponse}})
    async def opinion_price(token_id: str, request: Request) -> Any:
        """Latest price for one token, straight from the provider (uncached)."""
        return await request.app.state.opinion.fetch_price(token_id)

    @app.get(
        "/api/probable/markets",
        response_model=list[Market],
        response_model_exclude_none=True,
        responses={500: {"model": ErrorResponse}},
    )
    async def probable_markets(request: Request) -> list[Market]:
        return await request.app.state.probable.fetch_markets()

    @app.get(
        "/api/probable/prices",
        response_model=dict[str, float],
        responses={500: {"model": ErrorResponse}},
    )
    async def probable_prices(request: Request) -> dict[str, float]:
        return await request.app.state.probable.fetch_prices()

    @app.get(
        "/api/scan",
        response_model=ScanResponse,
        response_model_exclude_none=True,
        responses={500: {"model": ScanErrorResponse}},
    )
    async def scan(request: Request):
        """Both sources at once. A failing source comes back empty; the scan itself still succeeds."""
        try:
            return await request.app.state.aggregator.scan()
        except Exception as e:
            log.exception("scan_failed")
            return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    @app.get("/", include_in_schema=False)
    def index(request: Request):
        path = Path(request.app.state.settings.static_dir) / "index.html"
        if not path.is_file():
            return _error_json("frontend not found", status_code=404)
        return FileResponse(path)

    return app


app = create_app()


def run_api(
    host: str | None = None,
    port: int | None = None,
    profile: str | None = None,
    config_dir: Path | None = None,
) -> None:
    global _config_profile, _config_dir
    _config_profile = profile
    _config_dir = config_dir
    settings = get_settings(profile, config_dir)
    import uvicorn

    uvicorn.run(
        "arbscan.api.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=False,
    )
