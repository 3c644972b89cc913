"""TOML config loading and profiles."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

# Default config search path (project root or cwd)
_CONFIG_DIR = Path(__file__).resolve().parent.parent.parent.parent / "config"
_CWD_CONFIG = Path.cwd() / "config"


def _load_toml(path: Path) -> dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override values take precedence.

    Query-param tables (keys ending in `_params`) are replaced whole, so a profile
    never inherits another endpoint variant's params.
    """
    result = dict(base)
    for key, value in override.items():
        if key.endswith("_params"):
            result[key] = value
        elif key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _find_config_dir(config_dir: Path | None = None) -> Path:
    if config_dir is not None:
        return config_dir
    if _CWD_CONFIG.exists():
        return _CWD_CONFIG
    return _CONFIG_DIR


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Load merged config from default.toml and optional profile overlay."""
    config_dir = _find_config_dir(config_dir)
    default_path = config_dir / "default.toml"
    if not default_path.exists():
        return {}
    base = _load_toml(default_path)
    if profile:
        profile_path = config_dir / f"{profile}.toml"
        if profile_path.exists():
            overlay = _load_toml(profile_path)
            base = _deep_merge(base, overlay)
    return base


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    """Return Settings instance from merged config. PORT in the environment overrides server.port."""
    raw = load_config(profile, config_dir)
    port = os.environ.get("PORT")
    if port:
        raw = _deep_merge(raw, {"server": {"port": int(port)}})
    return Settings.from_dict(raw)


class Settings:
    """Application settings from TOML config."""

    def __init__(
        self,
        *,
        server: dict[str, Any] | None = None,
        http: dict[str, Any] | None = None,
        cache: dict[str, Any] | None = None,
        opinion: dict[str, Any] | None = None,
        probable: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.server = server or {}
        self.http = http or {}
        self.cache = cache or {}
        self.opinion = opinion or {}
        self.probable = probable or {}
        self.logging = logging or {}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(
            server=raw.get("server"),
            http=raw.get("http"),
            cache=raw.get("cache"),
            opinion=raw.get("opinion"),
            probable=raw.get("probable"),
            logging=raw.get("logging"),
        )

    # Convenience accessors with defaults
    @property
    def host(self) -> str:
        return self.server.get("host", "127.0.0.1")

    @property
    def port(self) -> int:
        return int(self.server.get("port", 3000))

    @property
    def static_dir(self) -> str:
        return self.server.get("static_dir", "public")

    @property
    def http_timeout_sec(self) -> float:
        return float(self.http.get("timeout_sec", 10.0))

    @property
    def cache_ttl_sec(self) -> float:
        return float(self.cache.get("ttl_sec", 60.0))

    @property
    def opinion_api_base(self) -> str:
        return self.opinion.get("api_base", "https://openapi.opinion.trade/openapi")

    @property
    def opinion_api_key(self) -> str:
        return self.opinion.get("api_key", "")

    @property
    def opinion_markets_path(self) -> str:
        return self.opinion.get("markets_path", "/market")

    @property
    def opinion_markets_params(self) -> dict[str, Any] | None:
        return self.opinion.get("markets_params")

    @property
    def opinion_price_path(self) -> str:
        return self.opinion.get("price_path", "/token/latest-price")

    @property
    def opinion_containers(self) -> list[str] | None:
        value = self.opinion.get("containers")
        return list(value) if value else None

    @property
    def probable_api_base(self) -> str:
        return self.probable.get("api_base", "https://market-api.probable.markets")

    @property
    def probable_layout(self) -> str:
        return self.probable.get("layout", "events")

    @property
    def probable_markets_path(self) -> str:
        return self.probable.get("markets_path", "/events")

    @property
    def probable_markets_params(self) -> dict[str, Any] | None:
        return self.probable.get("markets_params")

    @property
    def probable_prices_enabled(self) -> bool:
        return bool(self.probable.get("prices_enabled", True))

    @property
    def probable_prices_path(self) -> str:
        return self.probable.get("prices_path", "/prices")

    @property
    def probable_containers(self) -> list[str] | None:
        value = self.probable.get("containers")
        return list(value) if value else None

    @property
    def logging_level(self) -> str:
        return self.logging.get("level", "INFO").upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return getattr(logging, self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Configure structlog with settings. Call once at application entry."""
    import structlog

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.logging_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
