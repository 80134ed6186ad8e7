from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, Request

from esg_dashboard.config.settings import AppSettings, get_settings
from esg_dashboard.core.companies import CompanyStore, get_company_store
from esg_dashboard.core.market_data import MarketDataClient
from esg_dashboard.core.yahoo_client import YahooClient
from esg_dashboard.services.commentary import CommentaryService
from esg_dashboard.services.llm_client import AnthropicClient

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Process-wide service handles, built once and handed to routes."""

    settings: AppSettings
    store: CompanyStore
    market: MarketDataClient
    commentary: CommentaryService

    @classmethod
    def build_default(cls, settings: AppSettings | None = None) -> "AppServices":
        cfg = settings or get_settings()
        store = get_company_store()
        market = MarketDataClient(YahooClient(timeout_seconds=cfg.yahoo_timeout_seconds))
        generator = AnthropicClient.from_settings(cfg)
        if not cfg.anthropic_api_key:
            logger.warning("Anthropic API key not configured; /commentary will return no entries")
        return cls(
            settings=cfg,
            store=store,
            market=market,
            commentary=CommentaryService(market=market, generator=generator, store=store),
        )

    async def shutdown(self) -> None:
        await self.market.close()


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_app_settings(services: AppServices = Depends(get_services)) -> AppSettings:
    return services.settings


def get_store(services: AppServices = Depends(get_services)) -> CompanyStore:
    return services.store


def get_market_data(services: AppServices = Depends(get_services)) -> MarketDataClient:
    return services.market


def get_commentary_service(services: AppServices = Depends(get_services)) -> CommentaryService:
    return services.commentary
