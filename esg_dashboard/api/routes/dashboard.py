from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from esg_dashboard.api.deps import get_app_settings, get_market_data, get_store
from esg_dashboard.api.params import parse_direction, parse_sector, parse_ticker_list
from esg_dashboard.api.responses import apply_cache_headers, error_response
from esg_dashboard.config.settings import AppSettings
from esg_dashboard.core.companies import CompanyStore
from esg_dashboard.core.market_data import MarketDataClient
from esg_dashboard.core.models import ComparisonResponse, DashboardRow, ErrorResponse
from esg_dashboard.core.views import DASHBOARD_SORT_FIELDS, comparison_metrics, dashboard_rows, sort_dashboard

router = APIRouter(tags=["dashboard"])

MAX_COMPARE = 3


@router.get("/dashboard", response_model=list[DashboardRow], responses={500: {"model": ErrorResponse}})
async def get_dashboard(
    response: Response,
    sector: str | None = Query(None, description="Sector key, or 'all'"),
    sort: str | None = Query(None, description=f"One of {', '.join(DASHBOARD_SORT_FIELDS)}"),
    direction: str | None = Query(None, alias="dir", description="asc or desc"),
    market: MarketDataClient = Depends(get_market_data),
    store: CompanyStore = Depends(get_store),
    settings: AppSettings = Depends(get_app_settings),
):
    if sort and sort not in DASHBOARD_SORT_FIELDS:
        raise HTTPException(status_code=400, detail=f"Unsupported sort field: {sort}")
    order = parse_direction(direction) or "desc"
    companies = store.by_sector(parse_sector(sector))
    symbols = [c.ticker for c in companies]
    try:
        quotes, financials = await asyncio.gather(
            market.fetch_quotes_settled(symbols),
            market.fetch_financials_settled(symbols),
        )
    except Exception as e:
        return error_response("Failed to build dashboard", e)

    dropped = list(dict.fromkeys(quotes.dropped_keys + financials.dropped_keys))
    apply_cache_headers(response, "dashboard", settings, dropped=dropped)
    rows = dashboard_rows(companies, quotes.successes, financials.successes)
    return sort_dashboard(rows, sort, order)


@router.get("/compare", response_model=ComparisonResponse, responses={500: {"model": ErrorResponse}})
async def compare_companies(
    response: Response,
    tickers: str | None = Query(None, description=f"Up to {MAX_COMPARE} comma-separated tickers"),
    market: MarketDataClient = Depends(get_market_data),
    store: CompanyStore = Depends(get_store),
    settings: AppSettings = Depends(get_app_settings),
):
    symbols = parse_ticker_list(tickers, [])
    if len(symbols) > MAX_COMPARE:
        raise HTTPException(status_code=400, detail=f"Too many tickers. Max {MAX_COMPARE}")
    symbols = [s for s in symbols if s in store]
    companies = [store.get_company(s) for s in symbols]
    try:
        settled = await market.fetch_quotes_settled(symbols)
    except Exception as e:
        return error_response("Failed to fetch quotes", e)
    quote_map = {q.ticker: q for q in settled.successes}

    apply_cache_headers(response, "compare", settings, dropped=settled.dropped_keys)
    return ComparisonResponse(
        tickers=symbols,
        companies=companies,
        quotes=[quote_map.get(s) for s in symbols],
        metrics=comparison_metrics(companies),
    )
