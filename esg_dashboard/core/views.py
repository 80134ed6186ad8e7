"""Sorting, filtering and comparison over the reference universe.

These back the dashboard grid, the ESG leaderboard and the comparison
table. All inputs are small in-memory lists, so everything here is plain
synchronous Python.
"""
from __future__ import annotations

from typing import Callable, Iterable, Literal, Sequence

from esg_dashboard.core.companies import SECTOR_LABELS
from esg_dashboard.core.formatting import format_market_cap, format_ratio_percent, format_revenue
from esg_dashboard.core.models import (
    Company,
    CompanyFinancials,
    ComparisonMetric,
    DashboardRow,
    LeaderboardRow,
    StockQuote,
)

SortDir = Literal["asc", "desc"]

LEADERBOARD_FIELDS: dict[str, Callable[[Company], float]] = {
    "overall": lambda c: c.esg.overall,
    "environmental": lambda c: c.esg.environmental,
    "social": lambda c: c.esg.social,
    "governance": lambda c: c.esg.governance,
    "carbonIntensity": lambda c: c.climate.carbon_intensity,
    "renewableEnergy": lambda c: c.climate.renewable_energy,
}

# Lower is better for intensity, so it ranks ascending unless asked otherwise.
LEADERBOARD_DEFAULT_DIR: dict[str, SortDir] = {"carbonIntensity": "asc"}

DASHBOARD_SORT_FIELDS: dict[str, Callable[[DashboardRow], float | None]] = {
    "marketCap": lambda r: r.quote.market_cap if r.quote else None,
    "ttmRevenue": lambda r: r.financials.ttm_revenue if r.financials else None,
    "ttmProfitMargin": lambda r: r.financials.ttm_profit_margin if r.financials else None,
}

# (key, label, highlight, accessor)
COMPARISON_METRICS: list[tuple[str, str, Literal["max", "min", "none"], Callable[[Company], float | None]]] = [
    ("esg.overall", "Overall", "max", lambda c: c.esg.overall),
    ("esg.environmental", "Environmental", "max", lambda c: c.esg.environmental),
    ("esg.social", "Social", "max", lambda c: c.esg.social),
    ("esg.governance", "Governance", "max", lambda c: c.esg.governance),
    ("climate.scope1", "Scope 1 (MT CO2e)", "min", lambda c: c.climate.scope1),
    ("climate.scope2", "Scope 2 (MT CO2e)", "min", lambda c: c.climate.scope2),
    ("climate.scope3", "Scope 3 (MT CO2e)", "min", lambda c: c.climate.scope3),
    ("climate.carbonIntensity", "Carbon Intensity (tCO2e/$M)", "none", lambda c: c.climate.carbon_intensity),
    ("climate.renewableEnergy", "Renewables %", "none", lambda c: c.climate.renewable_energy),
    ("climate.netZeroTarget", "Net Zero Target", "none", lambda c: c.climate.net_zero_target),
]


def sort_nulls_last(items: Iterable, key: Callable, direction: SortDir = "desc") -> list:
    """Stable sort where ``None`` keys always sink to the bottom."""
    pool = list(items)
    present = [item for item in pool if key(item) is not None]
    missing = [item for item in pool if key(item) is None]
    present.sort(key=key, reverse=direction == "desc")
    return present + missing


def leaderboard(companies: Sequence[Company], field: str = "overall", direction: SortDir | None = None) -> list[LeaderboardRow]:
    if field not in LEADERBOARD_FIELDS:
        raise ValueError(f"Unsupported leaderboard field: {field}")
    resolved = direction or LEADERBOARD_DEFAULT_DIR.get(field, "desc")
    ordered = sorted(companies, key=LEADERBOARD_FIELDS[field], reverse=resolved == "desc")
    return [
        LeaderboardRow(
            rank=i + 1,
            ticker=c.ticker,
            name=c.name,
            sector=c.sector,
            sector_label=SECTOR_LABELS[c.sector],
            esg=c.esg,
            climate=c.climate,
        )
        for i, c in enumerate(ordered)
    ]


def dashboard_rows(
    companies: Sequence[Company],
    quotes: Iterable[StockQuote],
    financials: Iterable[CompanyFinancials],
) -> list[DashboardRow]:
    quote_map = {q.ticker: q for q in quotes}
    financials_map = {f.ticker: f for f in financials}
    rows = []
    for c in companies:
        quote = quote_map.get(c.ticker)
        fin = financials_map.get(c.ticker)
        rows.append(
            DashboardRow(
                ticker=c.ticker,
                name=c.name,
                sector=c.sector,
                sector_label=SECTOR_LABELS[c.sector],
                esg_rating=c.esg.rating,
                quote=quote,
                financials=fin,
                market_cap_display=format_market_cap(quote.market_cap) if quote else None,
                ttm_revenue_display=(
                    format_revenue(fin.ttm_revenue) if fin and fin.ttm_revenue is not None else None
                ),
                ttm_profit_margin_display=(
                    format_ratio_percent(fin.ttm_profit_margin, digits=2)
                    if fin and fin.ttm_profit_margin is not None
                    else None
                ),
            )
        )
    return rows


def sort_dashboard(rows: Sequence[DashboardRow], field: str | None, direction: SortDir = "desc") -> list[DashboardRow]:
    if not field:
        return list(rows)
    if field not in DASHBOARD_SORT_FIELDS:
        raise ValueError(f"Unsupported dashboard sort field: {field}")
    return sort_nulls_last(rows, DASHBOARD_SORT_FIELDS[field], direction)


def best_flags(values: Sequence[float | None], highlight: Literal["max", "min", "none"]) -> list[bool]:
    """Mark the best value(s); nothing is marked with fewer than two numbers."""
    numbers = [v for v in values if v is not None]
    if highlight == "none" or len(numbers) < 2:
        return [False] * len(values)
    best = max(numbers) if highlight == "max" else min(numbers)
    return [v is not None and v == best for v in values]


def comparison_metrics(companies: Sequence[Company]) -> list[ComparisonMetric]:
    metrics = []
    for key, label, highlight, accessor in COMPARISON_METRICS:
        values = [accessor(c) for c in companies]
        metrics.append(
            ComparisonMetric(
                key=key,
                label=label,
                highlight=highlight,
                values=values,
                best=best_flags(values, highlight),
            )
        )
    return metrics
