from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from esg_dashboard.api.deps import get_app_settings, get_market_data, get_store
from esg_dashboard.api.params import parse_ticker_list
from esg_dashboard.api.responses import apply_cache_headers, error_response
from esg_dashboard.config.settings import AppSettings
from esg_dashboard.core.companies import CompanyStore, normalize_ticker
from esg_dashboard.core.market_data import MarketDataClient
from esg_dashboard.core.models import ErrorResponse, StockQuote

router = APIRouter(tags=["quotes"])


@router.get("/quote/{ticker}", response_model=StockQuote, responses={500: {"model": ErrorResponse}})
async def get_quote(
    ticker: str,
    response: Response,
    market: MarketDataClient = Depends(get_market_data),
    settings: AppSettings = Depends(get_app_settings),
):
    symbol = normalize_ticker(ticker)
    try:
        quote = await market.fetch_quote(symbol)
    except Exception as e:
        return error_response(f"Failed to fetch quote for {symbol}", e)
    apply_cache_headers(response, "quote", settings)
    return quote


@router.get("/quotes", response_model=list[StockQuote], responses={500: {"model": ErrorResponse}})
async def get_quotes(
    response: Response,
    tickers: str | None = Query(None, description="Comma-separated tickers; defaults to the full universe"),
    market: MarketDataClient = Depends(get_market_data),
    store: CompanyStore = Depends(get_store),
    settings: AppSettings = Depends(get_app_settings),
):
    symbols = parse_ticker_list(tickers, store.tickers())
    try:
        settled = await market.fetch_quotes_settled(symbols)
    except Exception as e:
        return error_response("Failed to fetch quotes", e)
    apply_cache_headers(response, "quotes", settings, dropped=settled.dropped_keys)
    return settled.successes
