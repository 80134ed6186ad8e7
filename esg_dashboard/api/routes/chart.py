from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from esg_dashboard.api.deps import get_app_settings, get_market_data
from esg_dashboard.api.responses import apply_cache_headers, error_response
from esg_dashboard.config.settings import AppSettings
from esg_dashboard.core.companies import normalize_ticker
from esg_dashboard.core.market_data import MarketDataClient, normalize_period
from esg_dashboard.core.models import ChartDataPoint, ErrorResponse

router = APIRouter(tags=["chart"])


@router.get("/chart/{ticker}", response_model=list[ChartDataPoint], responses={500: {"model": ErrorResponse}})
async def get_chart(
    ticker: str,
    response: Response,
    period: str | None = Query(None, description="1W, 1M, 3M or 1Y; anything else means 1M"),
    market: MarketDataClient = Depends(get_market_data),
    settings: AppSettings = Depends(get_app_settings),
):
    symbol = normalize_ticker(ticker)
    try:
        points = await market.fetch_chart_data(symbol, normalize_period(period))
    except Exception as e:
        return error_response(f"Failed to fetch chart data for {symbol}", e)
    apply_cache_headers(response, "chart", settings)
    return points
