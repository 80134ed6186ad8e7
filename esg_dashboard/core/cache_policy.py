from __future__ import annotations

from typing import Literal

from esg_dashboard.config.settings import AppSettings, CacheWindow, get_settings

CacheTier = Literal["short", "medium"]

# Which window each endpoint family is served under.
ENDPOINT_TIERS: dict[str, CacheTier] = {
    "quote": "short",
    "quotes": "short",
    "chart": "short",
    "dashboard": "short",
    "compare": "short",
    "financials": "medium",
    "commentary": "medium",
}


def cache_window(endpoint: str, settings: AppSettings | None = None) -> CacheWindow:
    cfg = settings or get_settings()
    tier = ENDPOINT_TIERS.get((endpoint or "").strip().lower(), "short")
    return cfg.medium_cache if tier == "medium" else cfg.short_cache


def cache_control(endpoint: str, settings: AppSettings | None = None) -> str:
    window = cache_window(endpoint, settings)
    return f"s-maxage={window.s_maxage}, stale-while-revalidate={window.stale_while_revalidate}"
