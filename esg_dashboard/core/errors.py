from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors raised by the dashboard backend."""


class UpstreamError(DashboardError):
    """A market-data or text-generation provider call failed.

    Covers network errors, timeouts, auth/rate-limit responses and empty
    results. Batch endpoints drop the affected ticker; single-entity
    endpoints turn it into a 500 response.
    """

    def __init__(self, provider: str, message: str, symbol: str | None = None) -> None:
        self.provider = provider
        self.symbol = symbol
        prefix = f"{provider}[{symbol}]" if symbol else provider
        super().__init__(f"{prefix}: {message}")


class UnparseableGenerationReply(DashboardError):
    """The text generator's reply is not JSON of the expected shape."""
