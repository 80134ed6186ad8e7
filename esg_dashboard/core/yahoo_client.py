from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from esg_dashboard.core.errors import UpstreamError

logger = logging.getLogger(__name__)

PROVIDER = "yahoo"
QUOTE_URL = "https://query1.finance.yahoo.com/v7/finance/quote"
QUOTE_SUMMARY_URL = "https://query2.finance.yahoo.com/v10/finance/quoteSummary/{symbol}"
CHART_URL = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
CONSENT_URL = "https://fc.yahoo.com"
CRUMB_URL = "https://query2.finance.yahoo.com/v1/test/getcrumb"
# Seconds to wait after a failed crumb handshake before trying another.
CRUMB_RETRY_SECONDS = 30.0


class YahooClient:
    """Thin async wrapper over the Yahoo Finance web API.

    Every call either returns the decoded payload or raises ``UpstreamError``;
    nothing is retried except the single cookie/crumb refresh on HTTP 401.
    """

    def __init__(self, timeout_seconds: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout_seconds
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._crumb: Optional[str] = None
        self._crumb_generation = 0
        self._crumb_lock = asyncio.Lock()
        self._crumb_failed_at: Optional[float] = None

    async def initialize(self):
        if self.client:
            return

        headers = {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
            "Accept": "*/*",
            "Accept-Encoding": "gzip, deflate, br",
            "Connection": "keep-alive",
        }

        self.client = httpx.AsyncClient(
            http2=True,
            timeout=self.timeout,
            headers=headers,
            follow_redirects=True,
            trust_env=False,
            transport=self._transport,
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
        )

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None
        self._crumb = None
        self._crumb_failed_at = None

    async def _ensure_client(self):
        if not self.client:
            await self.initialize()

    async def _ensure_crumb(self, seen_generation: int):
        """Fetch Yahoo cookie + crumb for authenticated API requests.

        Concurrent callers that saw the same crumb generation share one
        handshake; later callers reuse its outcome instead of repeating it. A
        failed handshake is not retried for ``CRUMB_RETRY_SECONDS``.
        """
        async with self._crumb_lock:
            if self._crumb_generation != seen_generation:
                return
            if self._crumb_failed_at is not None and time.monotonic() - self._crumb_failed_at < CRUMB_RETRY_SECONDS:
                return
            self._crumb = None
            self._crumb_generation += 1
            await self._ensure_client()
            try:
                # Consent cookies land in the client jar and back the crumb request.
                await self.client.get(CONSENT_URL)
                resp = await self.client.get(CRUMB_URL)
                if resp.status_code == 200:
                    self._crumb = resp.text.strip() or None
                else:
                    logger.warning(f"Yahoo crumb request returned HTTP {resp.status_code}")
            except httpx.HTTPError as e:
                logger.warning(f"Failed to get Yahoo crumb: {e}")
            self._crumb_failed_at = None if self._crumb else time.monotonic()

    async def _get_json(self, url: str, params: Dict[str, Any], symbol: str) -> Dict[str, Any]:
        await self._ensure_client()
        generation = self._crumb_generation
        if self._crumb:
            params = {**params, "crumb": self._crumb}
        try:
            response = await self.client.get(url, params=params)
            if response.status_code == 401:
                await self._ensure_crumb(generation)
                if self._crumb:
                    response = await self.client.get(url, params={**params, "crumb": self._crumb})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(PROVIDER, f"HTTP {e.response.status_code}", symbol) from e
        except httpx.HTTPError as e:
            raise UpstreamError(PROVIDER, f"{type(e).__name__}: {e}", symbol) from e
        except ValueError as e:
            raise UpstreamError(PROVIDER, "invalid JSON payload", symbol) from e
        if not isinstance(data, dict):
            raise UpstreamError(PROVIDER, "unexpected payload type", symbol)
        return data

    async def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Get the real-time quote row for one symbol."""
        data = await self._get_json(QUOTE_URL, {"symbols": symbol}, symbol)
        rows = (data.get("quoteResponse") or {}).get("result") or []
        for row in rows:
            if isinstance(row, dict) and str(row.get("symbol") or "").upper() == symbol.upper():
                return row
        raise UpstreamError(PROVIDER, "no quote returned", symbol)

    async def get_quote_summary(self, symbol: str, modules: Optional[List[str]] = None) -> Dict[str, Any]:
        """Get module data from the quoteSummary v10 API."""
        if modules is None:
            modules = ["financialData"]
        data = await self._get_json(
            QUOTE_SUMMARY_URL.format(symbol=symbol),
            {"modules": ",".join(modules)},
            symbol,
        )
        summary = data.get("quoteSummary") or {}
        results = summary.get("result") or []
        if not results or not isinstance(results[0], dict):
            error = summary.get("error") or {}
            detail = error.get("description") if isinstance(error, dict) else None
            raise UpstreamError(PROVIDER, detail or "no summary returned", symbol)
        return results[0]

    async def get_chart(self, symbol: str, period1: int, period2: int, interval: str = "1d") -> Dict[str, Any]:
        """Get OHLCV bars between two epoch-second bounds."""
        data = await self._get_json(
            CHART_URL.format(symbol=symbol),
            {
                "period1": period1,
                "period2": period2,
                "interval": interval,
                "includePrePost": "false",
            },
            symbol,
        )
        chart = data.get("chart") or {}
        results = chart.get("result") or []
        if not results or not isinstance(results[0], dict):
            error = chart.get("error") or {}
            detail = error.get("description") if isinstance(error, dict) else None
            raise UpstreamError(PROVIDER, detail or "no chart returned", symbol)
        return results[0]
