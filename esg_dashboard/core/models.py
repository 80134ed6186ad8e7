from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Sector = Literal["food-manufacturer", "ag-chemical", "commodity-trader", "seeds-genetics", "animal-feed"]
ESGRating = Literal["AAA", "AA", "A", "BBB", "BB", "B", "CCC"]
CDPScore = Literal["A", "A-", "B", "B-", "C", "D"]
Period = Literal["1W", "1M", "3M", "1Y"]


class CamelModel(BaseModel):
    # JSON uses camelCase, Python attributes stay snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ESGData(FrozenCamelModel):
    overall: int = Field(ge=0, le=100)
    environmental: int = Field(ge=0, le=100)
    social: int = Field(ge=0, le=100)
    governance: int = Field(ge=0, le=100)
    rating: ESGRating
    last_updated: str


class ClimateData(FrozenCamelModel):
    scope1: float  # MT CO2e
    scope2: float
    scope3: float
    carbon_intensity: float  # tCO2e per $M revenue
    renewable_energy: float  # percent
    net_zero_target: int | None = None
    cdp_score: CDPScore


class Company(FrozenCamelModel):
    ticker: str
    name: str
    sector: Sector
    country: str
    description: str
    esg: ESGData
    climate: ClimateData


class StockQuote(CamelModel):
    ticker: str
    price: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0
    market_cap: float = 0.0
    volume: float = 0.0
    fifty_two_week_high: float = 0.0
    fifty_two_week_low: float = 0.0
    currency: str = "USD"


class ChartDataPoint(CamelModel):
    date: str
    close: float = 0.0
    volume: float = 0.0


class CompanyFinancials(CamelModel):
    ticker: str
    ttm_revenue: float | None = None
    ttm_profit_margin: float | None = None


class CompanyCommentary(CamelModel):
    ticker: str
    commentary: str
    climate_impact: str


class ErrorResponse(BaseModel):
    error: str


class SectorSummary(CamelModel):
    key: Sector
    label: str
    count: int


class LeaderboardRow(CamelModel):
    rank: int
    ticker: str
    name: str
    sector: Sector
    sector_label: str
    esg: ESGData
    climate: ClimateData


class DashboardRow(CamelModel):
    ticker: str
    name: str
    sector: Sector
    sector_label: str
    esg_rating: ESGRating
    quote: StockQuote | None = None
    financials: CompanyFinancials | None = None
    market_cap_display: str | None = None
    ttm_revenue_display: str | None = None
    ttm_profit_margin_display: str | None = None


class ComparisonMetric(CamelModel):
    key: str
    label: str
    highlight: Literal["max", "min", "none"] = "none"
    values: list[float | None]
    best: list[bool]


class ComparisonResponse(CamelModel):
    tickers: list[str]
    companies: list[Company]
    quotes: list[StockQuote | None]
    metrics: list[ComparisonMetric]
