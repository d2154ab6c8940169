from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _shutdown_price_service() -> None:
    from pricewatch.services.price_intelligence_service import get_price_intelligence_service

    if get_price_intelligence_service.cache_info().currsize == 0:
        return
    get_price_intelligence_service().close()
    get_price_intelligence_service.cache_clear()


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Close the shared HTTP session and robots cache on shutdown."""
    try:
        yield
    finally:
        _shutdown_price_service()
        logging.getLogger(__name__).info("Price intelligence service shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    from db.config import load_env_files

    load_env_files()
    _configure_logging()

    application = FastAPI(
        title="Pricewatch API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from pricewatch.api.routers import price_scraping_router

    application.include_router(price_scraping_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
