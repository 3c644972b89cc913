"""Config loading: default + profile overlay, PORT override."""

from pathlib import Path

from arbscan.config import Settings, get_settings, load_config


def _write(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


def test_defaults_without_config(tmp_path, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    s = get_settings(config_dir=tmp_path)
    assert s.port == 3000
    assert s.cache_ttl_sec == 60.0
    assert s.http_timeout_sec == 10.0
    assert s.probable_layout == "events"
    assert s.probable_prices_enabled is True
    assert s.opinion_containers is None


def test_profile_overlay_deep_merges(tmp_path):
    _write(
        tmp_path / "default.toml",
        '[probable]\napi_base = "https://p.test"\nlayout = "events"\n[cache]\nttl_sec = 60\n',
    )
    _write(tmp_path / "flat.toml", '[probable]\nlayout = "markets"\nprices_enabled = false\n')
    raw = load_config("flat", tmp_path)
    assert raw["probable"] == {"api_base": "https://p.test", "layout": "markets", "prices_enabled": False}
    s = Settings.from_dict(raw)
    assert s.probable_layout == "markets"
    assert s.probable_prices_enabled is False
    assert s.cache_ttl_sec == 60.0


def test_port_env_overrides(tmp_path, monkeypatch):
    _write(tmp_path / "default.toml", "[server]\nport = 3000\n")
    monkeypatch.setenv("PORT", "8123")
    assert get_settings(config_dir=tmp_path).port == 8123


def test_repo_default_config_parses(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    config_dir = Path(__file__).resolve().parent.parent / "config"
    s = get_settings(config_dir=config_dir)
    assert s.opinion_containers == ["result.list", "$", "markets", "data"]
    assert s.opinion_markets_params == {"status": "activated", "limit": 50, "sortBy": 5}
    assert s.probable_markets_params["closed"] == "false"


def test_flat_profile_replaces_query_params(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    config_dir = Path(__file__).resolve().parent.parent / "config"
    s = get_settings("flat", config_dir)
    assert s.probable_markets_params == {"active": "true", "closed": "false", "limit": 100}
    assert s.probable_layout == "markets"
    # non-param tables still deep-merge
    assert s.probable_api_base == "https://market-api.probable.markets"
