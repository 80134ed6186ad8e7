from __future__ import annotations

from esg_dashboard.config import settings as settings_module
from esg_dashboard.config.settings import load_settings
from esg_dashboard.core.cache_policy import cache_control, cache_window

_ENV_KEYS = (
    "ESG_DASHBOARD_APP_NAME",
    "ESG_DASHBOARD_CORS_ORIGINS",
    "ESG_DASHBOARD_LOG_LEVEL",
    "ESG_DASHBOARD_YAHOO_TIMEOUT_SECONDS",
    "ESG_DASHBOARD_ANTHROPIC_API_KEY",
    "ESG_DASHBOARD_ANTHROPIC_MODEL",
    "ESG_DASHBOARD_SHORT_S_MAXAGE",
    "ESG_DASHBOARD_SETTINGS_FILE",
    "ANTHROPIC_API_KEY",
)


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_yaml_values_override_defaults(tmp_path, monkeypatch) -> None:
    _clear_env(monkeypatch)
    path = tmp_path / "settings.yaml"
    path.write_text(
        "app:\n  name: Test API\n  log_level: debug\n"
        "yahoo:\n  timeout_seconds: 4\n"
        "cache:\n  medium:\n    s_maxage: 7200\n",
        encoding="utf-8",
    )
    cfg = load_settings(path)
    assert cfg.app_name == "Test API"
    assert cfg.log_level == "DEBUG"
    assert cfg.yahoo_timeout_seconds == 4.0
    assert cfg.medium_cache.s_maxage == 7200
    assert cfg.medium_cache.stale_while_revalidate == 300
    assert cfg.short_cache.s_maxage == 300
    assert cfg.anthropic_api_key == ""


def test_environment_overrides_yaml(tmp_path, monkeypatch) -> None:
    _clear_env(monkeypatch)
    path = tmp_path / "settings.yaml"
    path.write_text("yahoo:\n  timeout_seconds: 4\n", encoding="utf-8")
    monkeypatch.setenv("ESG_DASHBOARD_YAHOO_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("ESG_DASHBOARD_CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("ESG_DASHBOARD_SHORT_S_MAXAGE", "60")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-plain")

    cfg = load_settings(path)
    assert cfg.yahoo_timeout_seconds == 2.5
    assert cfg.cors_origins == ["https://a.example", "https://b.example"]
    assert cfg.short_cache.s_maxage == 60
    assert cfg.anthropic_api_key == "sk-plain"

    monkeypatch.setenv("ESG_DASHBOARD_ANTHROPIC_API_KEY", "sk-prefixed")
    assert load_settings(path).anthropic_api_key == "sk-prefixed"


def test_missing_file_uses_defaults(tmp_path, monkeypatch) -> None:
    _clear_env(monkeypatch)
    cfg = load_settings(tmp_path / "absent.yaml")
    assert cfg.anthropic_model == "claude-haiku-4-5-20251001"
    assert cfg.medium_cache.s_maxage == 3600


def test_get_settings_honours_settings_file_override(tmp_path, monkeypatch) -> None:
    _clear_env(monkeypatch)
    path = tmp_path / "custom.yaml"
    path.write_text("app:\n  version: 9.9.9\n", encoding="utf-8")
    monkeypatch.setenv("ESG_DASHBOARD_SETTINGS_FILE", str(path))
    settings_module.get_settings.cache_clear()
    try:
        assert settings_module.get_settings().app_version == "9.9.9"
    finally:
        settings_module.get_settings.cache_clear()


def test_cache_control_tiers(settings) -> None:
    short = "s-maxage=300, stale-while-revalidate=60"
    medium = "s-maxage=3600, stale-while-revalidate=300"
    for endpoint in ("quote", "quotes", "chart", "dashboard", "compare"):
        assert cache_control(endpoint, settings) == short
    for endpoint in ("financials", "commentary"):
        assert cache_control(endpoint, settings) == medium
    assert cache_window("unlisted", settings) == settings.short_cache
