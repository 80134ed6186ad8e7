from __future__ import annotations

import argparse
import logging

import uvicorn

from esg_dashboard.config.settings import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the agri-food ESG dashboard API.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    parser.add_argument("--log-level", default="", help="Overrides the configured log level")
    args = parser.parse_args()

    level = (args.log_level or get_settings().log_level).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "esg_dashboard.main:app",
        host=args.host,
        port=int(args.port),
        reload=bool(args.reload),
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
