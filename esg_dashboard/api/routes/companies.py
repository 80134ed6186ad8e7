from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from esg_dashboard.api.deps import get_store
from esg_dashboard.api.params import parse_direction, parse_sector
from esg_dashboard.core.companies import SECTOR_LABELS, CompanyStore
from esg_dashboard.core.models import Company, LeaderboardRow, SectorSummary
from esg_dashboard.core.views import LEADERBOARD_FIELDS, leaderboard

router = APIRouter(tags=["companies"])


@router.get("/companies", response_model=list[Company])
def list_companies(
    sector: str | None = Query(None, description="Sector key, or 'all'"),
    store: CompanyStore = Depends(get_store),
):
    return store.by_sector(parse_sector(sector))


@router.get("/companies/{ticker}", response_model=Company)
def get_company(ticker: str, store: CompanyStore = Depends(get_store)):
    company = store.get_company(ticker)
    if company is None:
        raise HTTPException(status_code=404, detail=f"Unknown ticker: {ticker.strip().upper()}")
    return company


@router.get("/sectors", response_model=list[SectorSummary])
def list_sectors(store: CompanyStore = Depends(get_store)):
    return [
        SectorSummary(key=key, label=label, count=len(store.by_sector(key)))
        for key, label in SECTOR_LABELS.items()
    ]


@router.get("/leaderboard", response_model=list[LeaderboardRow])
def get_leaderboard(
    sort: str = Query("overall", description=f"One of {', '.join(LEADERBOARD_FIELDS)}"),
    direction: str | None = Query(None, alias="dir", description="asc or desc"),
    sector: str | None = Query(None),
    store: CompanyStore = Depends(get_store),
):
    if sort not in LEADERBOARD_FIELDS:
        raise HTTPException(status_code=400, detail=f"Unsupported sort field: {sort}")
    return leaderboard(store.by_sector(parse_sector(sector)), sort, parse_direction(direction))
