from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Response
from fastapi.responses import JSONResponse

from esg_dashboard.config.settings import AppSettings
from esg_dashboard.core.cache_policy import cache_control
from esg_dashboard.core.errors import UpstreamError

logger = logging.getLogger(__name__)

DROPPED_HEADER = "X-Dropped-Tickers"
NO_STORE = "no-store"


def apply_cache_headers(
    response: Response,
    endpoint: str,
    settings: AppSettings,
    dropped: Iterable[str] = (),
    cacheable: bool = True,
) -> None:
    response.headers["Cache-Control"] = cache_control(endpoint, settings) if cacheable else NO_STORE
    dropped_keys = list(dropped)
    if dropped_keys:
        response.headers[DROPPED_HEADER] = ",".join(dropped_keys)


def error_response(message: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error(f"{message}: {exc}")
    else:
        logger.exception(message)
    return JSONResponse(status_code=500, content={"error": message})
