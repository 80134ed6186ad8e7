from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

# Load .env file from the package directory before anything reads os.getenv
_env_file = Path(__file__).resolve().parent / ".env"
if _env_file.exists():
    for _line in _env_file.read_text(encoding="utf-8").splitlines():
        _line = _line.strip()
        if _line and not _line.startswith("#") and "=" in _line:
            _key, _, _val = _line.partition("=")
            os.environ.setdefault(_key.strip(), _val.strip())

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from esg_dashboard.api.deps import AppServices
from esg_dashboard.api.routes.chart import router as chart_router
from esg_dashboard.api.routes.commentary import router as commentary_router
from esg_dashboard.api.routes.companies import router as companies_router
from esg_dashboard.api.routes.dashboard import router as dashboard_router
from esg_dashboard.api.routes.financials import router as financials_router
from esg_dashboard.api.routes.quotes import router as quotes_router
from esg_dashboard.config.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


def create_app(services: AppServices | None = None, settings: AppSettings | None = None) -> FastAPI:
    cfg = settings or (services.settings if services else get_settings())
    logging.getLogger("esg_dashboard").setLevel(cfg.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{cfg.app_name} {cfg.app_version} starting")
        yield
        await app.state.services.shutdown()

    app = FastAPI(title=cfg.app_name, version=cfg.app_version, lifespan=lifespan)
    app.state.services = services or AppServices.build_default(cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(quotes_router)
    app.include_router(chart_router)
    app.include_router(financials_router)
    app.include_router(commentary_router)
    app.include_router(companies_router)
    app.include_router(dashboard_router)
    return app


app = create_app()
