from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, get_args

from esg_dashboard.core.models import ChartDataPoint, CompanyFinancials, Period, StockQuote
from esg_dashboard.core.yahoo_client import YahooClient
from esg_dashboard.shared.settle import SettleResult, settle_all

logger = logging.getLogger(__name__)

DEFAULT_PERIOD: Period = "1M"
VALID_PERIODS: tuple[str, ...] = get_args(Period)

# period -> (trailing days, bar interval); 1Y uses weekly bars to bound payload size.
PERIOD_WINDOWS: dict[str, tuple[int, str]] = {
    "1W": (7, "1d"),
    "1M": (30, "1d"),
    "3M": (90, "1d"),
    "1Y": (365, "1wk"),
}


def to_float(value: Any) -> float | None:
    # quoteSummary wraps numbers as {"raw": 1.0, "fmt": "1.00"}.
    if isinstance(value, dict):
        value = value.get("raw")
    if value in (None, "", "NA", "N/A", "-") or isinstance(value, bool):
        return None
    try:
        out = float(value)
        if out != out:  # NaN guard
            return None
        return out
    except (TypeError, ValueError):
        return None


def _or_zero(value: Any) -> float:
    out = to_float(value)
    return out if out is not None else 0.0


def normalize_period(raw: str | None) -> Period:
    candidate = (raw or "").strip().upper()
    if candidate in VALID_PERIODS:
        return candidate  # type: ignore[return-value]
    return DEFAULT_PERIOD


def period_window(period: Period, now: datetime | None = None) -> tuple[datetime, datetime, str]:
    """Return ``(start, end, interval)`` for a chart period ending at ``now``.

    The start is snapped to midnight UTC of the first calendar day.
    """
    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    days, interval = PERIOD_WINDOWS.get(period, PERIOD_WINDOWS[DEFAULT_PERIOD])
    first_day = (end - timedelta(days=days)).date()
    start = datetime(first_day.year, first_day.month, first_day.day, tzinfo=timezone.utc)
    return start, end, interval


def _iso_day(epoch: Any) -> str | None:
    if isinstance(epoch, bool) or not isinstance(epoch, (int, float)):
        return None
    return datetime.fromtimestamp(epoch, tz=timezone.utc).date().isoformat()


def parse_quote(ticker: str, row: dict[str, Any]) -> StockQuote:
    return StockQuote(
        ticker=ticker.upper(),
        price=_or_zero(row.get("regularMarketPrice")),
        change=_or_zero(row.get("regularMarketChange")),
        change_percent=_or_zero(row.get("regularMarketChangePercent")),
        market_cap=_or_zero(row.get("marketCap")),
        volume=_or_zero(row.get("regularMarketVolume")),
        fifty_two_week_high=_or_zero(row.get("fiftyTwoWeekHigh")),
        fifty_two_week_low=_or_zero(row.get("fiftyTwoWeekLow")),
        currency=str(row.get("currency") or "USD"),
    )


def parse_chart(result: dict[str, Any]) -> list[ChartDataPoint]:
    timestamps = result.get("timestamp") or []
    quotes = (result.get("indicators") or {}).get("quote") or [{}]
    q = quotes[0] if isinstance(quotes[0], dict) else {}
    closes = q.get("close") or []
    volumes = q.get("volume") or []

    rows: list[tuple[float, ChartDataPoint]] = []
    for i, ts in enumerate(timestamps):
        day = _iso_day(ts)
        if day is None:
            continue
        close = closes[i] if i < len(closes) else None
        volume = volumes[i] if i < len(volumes) else None
        rows.append((float(ts), ChartDataPoint(date=day, close=_or_zero(close), volume=_or_zero(volume))))
    rows.sort(key=lambda item: item[0])
    return [point for _, point in rows]


def parse_financials(ticker: str, summary: dict[str, Any]) -> CompanyFinancials:
    financial_data = summary.get("financialData") or {}
    return CompanyFinancials(
        ticker=ticker.upper(),
        ttm_revenue=to_float(financial_data.get("totalRevenue")),
        ttm_profit_margin=to_float(financial_data.get("profitMargins")),
    )


class MarketDataClient:
    """Normalizes Yahoo payloads into quotes, chart points and financials."""

    def __init__(self, yahoo: YahooClient):
        self.yahoo = yahoo

    async def close(self) -> None:
        await self.yahoo.close()

    async def fetch_quote(self, ticker: str) -> StockQuote:
        symbol = ticker.strip().upper()
        row = await self.yahoo.get_quote(symbol)
        return parse_quote(symbol, row)

    async def fetch_quotes_settled(self, tickers: Iterable[str]) -> SettleResult[StockQuote]:
        return await settle_all(tickers, self.fetch_quote)

    async def fetch_quotes(self, tickers: Iterable[str]) -> list[StockQuote]:
        result = await self.fetch_quotes_settled(tickers)
        return result.successes

    async def fetch_chart_data(
        self,
        ticker: str,
        period: Period = DEFAULT_PERIOD,
        now: datetime | None = None,
    ) -> list[ChartDataPoint]:
        symbol = ticker.strip().upper()
        start, end, interval = period_window(period, now)
        result = await self.yahoo.get_chart(
            symbol,
            period1=int(start.timestamp()),
            period2=int(end.timestamp()),
            interval=interval,
        )
        points = parse_chart(result)
        logger.debug("Chart %s %s: %d points", symbol, period, len(points))
        return points

    async def fetch_financials(self, ticker: str) -> CompanyFinancials:
        symbol = ticker.strip().upper()
        summary = await self.yahoo.get_quote_summary(symbol, ["financialData"])
        return parse_financials(symbol, summary)

    async def fetch_financials_settled(self, tickers: Iterable[str]) -> SettleResult[CompanyFinancials]:
        return await settle_all(tickers, self.fetch_financials)

