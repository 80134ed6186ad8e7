from __future__ import annotations

from typing import Sequence

from fastapi import HTTPException

from esg_dashboard.core.companies import SECTOR_LABELS, normalize_ticker

MAX_TICKERS = 50
SORT_DIRECTIONS = ("asc", "desc")


def parse_ticker_list(raw: str | None, default: Sequence[str]) -> list[str]:
    """Split a comma-separated ticker parameter.

    A missing or blank parameter means ``default``. Tickers are uppercased and
    de-duplicated in order; unknown symbols are passed through untouched.
    """
    names = [normalize_ticker(item) for item in (raw or "").split(",")]
    names = [name for name in names if name]
    if not names:
        return list(default)
    if len(names) > MAX_TICKERS:
        raise HTTPException(status_code=400, detail=f"Too many tickers. Max {MAX_TICKERS}")
    deduped: list[str] = []
    seen = set()
    for name in names:
        if name not in seen:
            seen.add(name)
            deduped.append(name)
    return deduped


def parse_sector(raw: str | None) -> str | None:
    value = (raw or "").strip().lower()
    if not value or value == "all":
        return None
    if value not in SECTOR_LABELS:
        raise HTTPException(status_code=400, detail=f"Unsupported sector: {raw}")
    return value


def parse_direction(raw: str | None) -> str | None:
    value = (raw or "").strip().lower()
    if not value:
        return None
    if value not in SORT_DIRECTIONS:
        raise HTTPException(status_code=400, detail=f"Unsupported sort direction: {raw}")
    return value
