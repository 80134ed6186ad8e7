from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from esg_dashboard.api.deps import get_app_settings, get_commentary_service, get_store
from esg_dashboard.api.params import parse_ticker_list
from esg_dashboard.api.responses import apply_cache_headers, error_response
from esg_dashboard.config.settings import AppSettings
from esg_dashboard.core.companies import CompanyStore
from esg_dashboard.core.models import CompanyCommentary, ErrorResponse
from esg_dashboard.services.commentary import CommentaryService

router = APIRouter(tags=["commentary"])


@router.get("/commentary", response_model=list[CompanyCommentary], responses={500: {"model": ErrorResponse}})
async def get_commentary(
    response: Response,
    tickers: str | None = Query(None, description="Comma-separated tickers; defaults to the full universe"),
    service: CommentaryService = Depends(get_commentary_service),
    store: CompanyStore = Depends(get_store),
    settings: AppSettings = Depends(get_app_settings),
):
    symbols = parse_ticker_list(tickers, store.tickers())
    try:
        items = await service.generate(symbols)
    except Exception as e:
        return error_response("Failed to generate commentary", e)
    # An empty reply means the generator failed; keep it out of shared caches.
    apply_cache_headers(response, "commentary", settings, cacheable=bool(items))
    return items
