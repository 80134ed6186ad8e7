from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import yaml

from esg_dashboard.core.models import Company, Sector

DATA_PATH = Path(__file__).resolve().parents[1] / "data" / "companies.yaml"

SECTOR_LABELS: dict[str, str] = {
    "food-manufacturer": "Food Manufacturers",
    "ag-chemical": "Ag Chemicals",
    "commodity-trader": "Commodity Traders",
    "seeds-genetics": "Seeds & Genetics",
    "animal-feed": "Animal Feed",
}


def normalize_ticker(ticker: str) -> str:
    return (ticker or "").strip().upper()


class CompanyStore:
    """Immutable in-memory table of the reference universe."""

    def __init__(self, companies: Iterable[Company]) -> None:
        ordered = tuple(companies)
        index: dict[str, Company] = {}
        for company in ordered:
            key = normalize_ticker(company.ticker)
            if key in index:
                raise ValueError(f"Duplicate ticker in reference data: {key}")
            index[key] = company
        self._companies = ordered
        self._index = index

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "CompanyStore":
        companies = []
        for record in records:
            payload = dict(record)
            payload["ticker"] = normalize_ticker(str(payload.get("ticker", "")))
            companies.append(Company.model_validate(payload))
        return cls(companies)

    @classmethod
    def from_yaml(cls, path: Path = DATA_PATH) -> "CompanyStore":
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        records = payload.get("companies") if isinstance(payload, dict) else None
        if not isinstance(records, list):
            raise ValueError(f"{path} must define a 'companies' list")
        return cls.from_records(records)

    def get_company(self, ticker: str) -> Company | None:
        return self._index.get(normalize_ticker(ticker))

    def list_all(self) -> list[Company]:
        return list(self._companies)

    def list_tickers(self) -> set[str]:
        return set(self._index)

    def tickers(self) -> list[str]:
        return [company.ticker for company in self._companies]

    def by_sector(self, sector: Sector | str | None) -> list[Company]:
        if sector is None or sector == "all":
            return self.list_all()
        return [company for company in self._companies if company.sector == sector]

    def __len__(self) -> int:
        return len(self._companies)

    def __contains__(self, ticker: object) -> bool:
        return isinstance(ticker, str) and normalize_ticker(ticker) in self._index


@lru_cache(maxsize=1)
def get_company_store() -> CompanyStore:
    return CompanyStore.from_yaml()
