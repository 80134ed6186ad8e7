from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from esg_dashboard.core.companies import CompanyStore
from esg_dashboard.core.errors import UnparseableGenerationReply, UpstreamError
from esg_dashboard.core.formatting import format_billions, format_ratio_percent, format_signed_percent
from esg_dashboard.core.market_data import MarketDataClient, parse_financials, to_float
from esg_dashboard.core.models import CompanyCommentary
from esg_dashboard.services.llm_client import TextGenerator
from esg_dashboard.shared.settle import settle_all

logger = logging.getLogger(__name__)

COMMENTARY_PLACEHOLDER = "Commentary unavailable."
CLIMATE_PLACEHOLDER = "Data unavailable."

PROMPT_HEADER = """You are a financial analyst. For each company below, produce two pieces of analysis:
1. "commentary": Exactly 1 sentence covering profitability, revenue scale and the likely reason behind the stock's current performance.
2. "climateImpact": Exactly 1 sentence on how climate change has specifically impacted this company's TTM financial performance. Consider physical risks (weather, supply chain), transition risks (carbon costs, regulation), commodity price volatility driven by climate, and any revenue opportunities from sustainability trends.

Reply with JSON only, as an array: [{"ticker":"...","commentary":"...","climateImpact":"..."}]
"""

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$")
# Terminal punctuation followed by whitespace + capital, or by end of text.
# "U.S. demand" does not end a sentence; "3.5 percent" never matches either.
_SENTENCE_END = re.compile(r"[.!?]+(?=\s+[A-Z]|\s*$)")


@dataclass
class CompanySnapshot:
    ticker: str
    name: str
    sector: str
    price: Optional[float] = None
    change_percent: Optional[float] = None
    market_cap: Optional[float] = None
    ttm_revenue: Optional[float] = None
    ttm_profit_margin: Optional[float] = None


def first_sentence(text: str) -> str:
    """Truncate ``text`` to its first sentence.

    Approximate: an abbreviation followed by a capitalized word ("U.S. Steel")
    still ends the sentence early. Text without terminal punctuation is kept whole.
    """
    stripped = (text or "").strip()
    match = _SENTENCE_END.search(stripped)
    if match is None:
        return stripped
    return stripped[: match.end()].strip()


def strip_code_fences(raw: str) -> str:
    text = (raw or "").strip()
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    return text.strip()


def describe_snapshot(snapshot: CompanySnapshot) -> str:
    parts = []
    if snapshot.market_cap:
        parts.append(f"{format_billions(snapshot.market_cap)} market cap")
    if snapshot.ttm_revenue:
        parts.append(f"{format_billions(snapshot.ttm_revenue)} TTM revenue")
    if snapshot.ttm_profit_margin is not None:
        parts.append(f"{format_ratio_percent(snapshot.ttm_profit_margin)} TTM profit margin")
    if snapshot.change_percent is not None:
        parts.append(f"{format_signed_percent(snapshot.change_percent)} today")
    return f"- {snapshot.ticker} ({snapshot.name}, {snapshot.sector}): {', '.join(parts)}"


def build_prompt(snapshots: Iterable[CompanySnapshot]) -> str:
    lines = "\n".join(describe_snapshot(s) for s in snapshots)
    return f"{PROMPT_HEADER}\n{lines}"


def placeholder_commentary(tickers: Sequence[str]) -> list[CompanyCommentary]:
    return [
        CompanyCommentary(ticker=t, commentary=COMMENTARY_PLACEHOLDER, climate_impact=CLIMATE_PLACEHOLDER)
        for t in tickers
    ]


def _decode_items(raw: str) -> list[dict[str, str]]:
    try:
        decoded: Any = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise UnparseableGenerationReply(f"reply is not JSON: {e.msg} at char {e.pos}") from e
    if not isinstance(decoded, list):
        raise UnparseableGenerationReply(f"expected a JSON array, got {type(decoded).__name__}")
    items = []
    for index, item in enumerate(decoded):
        if not isinstance(item, dict):
            raise UnparseableGenerationReply(f"element {index} is not an object")
        for field in ("ticker", "commentary", "climateImpact"):
            if not isinstance(item.get(field), str):
                raise UnparseableGenerationReply(f"element {index} lacks string field {field!r}")
        items.append(item)
    return items


def parse_commentary_reply(raw: str, tickers: Sequence[str]) -> list[CompanyCommentary]:
    """Parse the generator reply, or fall back to placeholders for every ticker.

    The reply is one JSON document covering all tickers, so a single
    malformed reply loses the whole batch.
    """
    try:
        items = _decode_items(raw)
    except UnparseableGenerationReply as e:
        logger.warning("Commentary reply unusable for %d tickers (%s); raw=%.200r", len(tickers), e, raw)
        return placeholder_commentary(tickers)
    return [
        CompanyCommentary(
            ticker=item["ticker"].strip().upper(),
            commentary=first_sentence(item["commentary"]),
            climate_impact=first_sentence(item["climateImpact"]),
        )
        for item in items
    ]


class CommentaryService:
    def __init__(self, market: MarketDataClient, generator: TextGenerator, store: CompanyStore):
        self.market = market
        self.generator = generator
        self.store = store

    async def build_snapshot(self, ticker: str) -> CompanySnapshot:
        symbol = ticker.strip().upper()
        company = self.store.get_company(symbol)
        snapshot = CompanySnapshot(
            ticker=symbol,
            name=company.name if company else symbol,
            sector=company.sector if company else "unknown",
        )
        quote, summary = await asyncio.gather(
            self.market.yahoo.get_quote(symbol),
            self.market.yahoo.get_quote_summary(symbol, ["financialData"]),
            return_exceptions=True,
        )
        for outcome in (quote, summary):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        if isinstance(quote, Exception):
            logger.info(f"Commentary snapshot for {symbol} has no quote: {quote}")
        else:
            snapshot.price = to_float(quote.get("regularMarketPrice"))
            snapshot.change_percent = to_float(quote.get("regularMarketChangePercent"))
            snapshot.market_cap = to_float(quote.get("marketCap"))

        if isinstance(summary, Exception):
            logger.info(f"Commentary snapshot for {symbol} has no financials: {summary}")
        else:
            financials = parse_financials(symbol, summary)
            snapshot.ttm_revenue = financials.ttm_revenue
            snapshot.ttm_profit_margin = financials.ttm_profit_margin
        return snapshot

    async def generate(self, tickers: Iterable[str]) -> list[CompanyCommentary]:
        symbols = [t.strip().upper() for t in tickers if t and t.strip()]
        if not symbols:
            return []
        settled = await settle_all(symbols, self.build_snapshot)
        prompt = build_prompt(settled.successes)
        try:
            raw = await self.generator.complete(prompt)
        except UpstreamError as e:
            logger.error(f"Commentary generation failed for {len(symbols)} tickers: {e}")
            return []
        return parse_commentary_reply(raw, symbols)
