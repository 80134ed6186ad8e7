from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure `import esg_dashboard...` works even when pytest is launched from the package dir.
REPO_ROOT = Path(__file__).resolve().parents[2]
repo_root_str = str(REPO_ROOT)
if repo_root_str not in sys.path:
    sys.path.insert(0, repo_root_str)

from esg_dashboard.core.errors import UpstreamError  # noqa: E402


def quote_row(symbol: str, price: float, market_cap: float, change_percent: float = 0.5) -> dict:
    return {
        "symbol": symbol,
        "regularMarketPrice": price,
        "regularMarketChange": round(price * change_percent / 100, 2),
        "regularMarketChangePercent": change_percent,
        "marketCap": market_cap,
        "regularMarketVolume": 1_000_000,
        "fiftyTwoWeekHigh": price * 1.2,
        "fiftyTwoWeekLow": price * 0.8,
        "currency": "USD",
    }


def summary_row(revenue: float, margin: float) -> dict:
    return {"financialData": {"totalRevenue": {"raw": revenue, "fmt": ""}, "profitMargins": {"raw": margin, "fmt": ""}}}


class FakeYahoo:
    """In-memory stand-in for YahooClient; unknown symbols fail like an empty upstream result."""

    def __init__(self) -> None:
        self.quotes: dict[str, dict] = {}
        self.summaries: dict[str, dict] = {}
        self.charts: dict[str, dict] = {}
        self.chart_calls: list[dict] = []
        self.closed = False

    async def get_quote(self, symbol: str) -> dict:
        if symbol not in self.quotes:
            raise UpstreamError("yahoo", "no quote returned", symbol)
        return self.quotes[symbol]

    async def get_quote_summary(self, symbol: str, modules=None) -> dict:
        if symbol not in self.summaries:
            raise UpstreamError("yahoo", "no summary returned", symbol)
        return self.summaries[symbol]

    async def get_chart(self, symbol: str, period1: int, period2: int, interval: str = "1d") -> dict:
        self.chart_calls.append({"symbol": symbol, "period1": period1, "period2": period2, "interval": interval})
        if symbol not in self.charts:
            raise UpstreamError("yahoo", "no chart returned", symbol)
        return self.charts[symbol]

    async def close(self) -> None:
        self.closed = True


class FakeGenerator:
    def __init__(self, reply: str = "[]", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_yahoo() -> FakeYahoo:
    yahoo = FakeYahoo()
    yahoo.quotes = {
        "AAPL": quote_row("AAPL", 190.5, 2.9e12, 0.79),
        "MDLZ": quote_row("MDLZ", 64.2, 8.6e10, -1.1),
        "GIS": quote_row("GIS", 58.9, 3.2e10, 0.4),
        "CTVA": quote_row("CTVA", 61.0, 4.2e10, 1.3),
    }
    yahoo.summaries = {
        "MDLZ": summary_row(3.6e10, 0.118),
        "GIS": summary_row(1.99e10, 0.123),
        "CTVA": summary_row(1.7e10, 0.054),
    }
    yahoo.charts = {
        "AAPL": {
            "timestamp": [1735776000, 1735689600],
            "indicators": {"quote": [{"close": [191.0, 189.5], "volume": [None, 4_000_000]}]},
        }
    }
    return yahoo


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def settings():
    from esg_dashboard.config.settings import AppSettings

    return AppSettings()


@pytest.fixture
def services(fake_yahoo, fake_generator, settings):
    from esg_dashboard.api.deps import AppServices
    from esg_dashboard.core.companies import get_company_store
    from esg_dashboard.core.market_data import MarketDataClient
    from esg_dashboard.services.commentary import CommentaryService

    store = get_company_store()
    market = MarketDataClient(fake_yahoo)
    return AppServices(
        settings=settings,
        store=store,
        market=market,
        commentary=CommentaryService(market=market, generator=fake_generator, store=store),
    )


@pytest.fixture
def client(services):
    from fastapi.testclient import TestClient

    from esg_dashboard.main import create_app

    return TestClient(create_app(services=services))
