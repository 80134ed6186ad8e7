from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

ENV_PREFIX = "ESG_DASHBOARD_"


class CacheWindow(BaseModel):
    s_maxage: int
    stale_while_revalidate: int


class AppSettings(BaseModel):
    app_name: str = "Agri ESG Dashboard API"
    app_version: str = "0.1.0"
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )
    log_level: str = "INFO"
    yahoo_timeout_seconds: float = 10.0
    anthropic_api_key: str = ""
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_model: str = "claude-haiku-4-5-20251001"
    anthropic_max_tokens: int = 5000
    anthropic_timeout_seconds: float = 60.0
    short_cache: CacheWindow = Field(default_factory=lambda: CacheWindow(s_maxage=300, stale_while_revalidate=60))
    medium_cache: CacheWindow = Field(default_factory=lambda: CacheWindow(s_maxage=3600, stale_while_revalidate=300))


def _parse_list_env(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    vals = [item.strip() for item in raw.split(",")]
    vals = [item for item in vals if item]
    return vals or None


def _env(name: str, legacy_name: str | None = None) -> str | None:
    val = os.getenv(f"{ENV_PREFIX}{name}")
    if val is not None:
        return val
    if legacy_name:
        return os.getenv(legacy_name)
    return None


def _cache_window(cfg: dict[str, Any], key: str, default: CacheWindow) -> CacheWindow:
    section = cfg.get(key) if isinstance(cfg.get(key), dict) else {}
    env_key = key.upper()
    return CacheWindow(
        s_maxage=int(
            _env(f"{env_key}_S_MAXAGE")
            or section.get("s_maxage", default.s_maxage)
        ),
        stale_while_revalidate=int(
            _env(f"{env_key}_STALE_WHILE_REVALIDATE")
            or section.get("stale_while_revalidate", default.stale_while_revalidate)
        ),
    )


def settings_path() -> Path:
    override = _env("SETTINGS_FILE")
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[2] / "config" / "settings.yaml"


def load_settings(path: Path | None = None) -> AppSettings:
    source = path or settings_path()
    payload: dict[str, Any] = {}
    if source.exists():
        payload = yaml.safe_load(source.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Settings file {source} must contain a mapping")
    app_cfg = payload.get("app", {}) if isinstance(payload.get("app"), dict) else {}
    yahoo_cfg = payload.get("yahoo", {}) if isinstance(payload.get("yahoo"), dict) else {}
    llm_cfg = payload.get("anthropic", {}) if isinstance(payload.get("anthropic"), dict) else {}
    cache_cfg = payload.get("cache", {}) if isinstance(payload.get("cache"), dict) else {}
    defaults = AppSettings()
    return AppSettings(
        app_name=_env("APP_NAME") or app_cfg.get("name", defaults.app_name),
        app_version=_env("APP_VERSION") or app_cfg.get("version", defaults.app_version),
        cors_origins=_parse_list_env(_env("CORS_ORIGINS")) or app_cfg.get("cors_origins", defaults.cors_origins),
        log_level=(_env("LOG_LEVEL") or app_cfg.get("log_level", defaults.log_level)).upper(),
        yahoo_timeout_seconds=float(
            _env("YAHOO_TIMEOUT_SECONDS") or yahoo_cfg.get("timeout_seconds", defaults.yahoo_timeout_seconds)
        ),
        # The key is never read from the YAML file.
        anthropic_api_key=_env("ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY") or "",
        anthropic_base_url=_env("ANTHROPIC_BASE_URL") or llm_cfg.get("base_url", defaults.anthropic_base_url),
        anthropic_model=_env("ANTHROPIC_MODEL") or llm_cfg.get("model", defaults.anthropic_model),
        anthropic_max_tokens=int(
            _env("ANTHROPIC_MAX_TOKENS") or llm_cfg.get("max_tokens", defaults.anthropic_max_tokens)
        ),
        anthropic_timeout_seconds=float(
            _env("ANTHROPIC_TIMEOUT_SECONDS") or llm_cfg.get("timeout_seconds", defaults.anthropic_timeout_seconds)
        ),
        short_cache=_cache_window(cache_cfg, "short", defaults.short_cache),
        medium_cache=_cache_window(cache_cfg, "medium", defaults.medium_cache),
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()
