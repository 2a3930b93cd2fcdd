"""HTTP endpoints triggering an EIC sync or a broker scrape."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.config import SyncSettings, get_settings
from ..core.errors import SyncError
from ..schemas import BrokerExport
from ..sync.pipeline import SyncSummary, run_eic_sync, scrape_broker

logger = logging.getLogger("services.ghostfolio_sync.api")

router = APIRouter(prefix="/api", tags=["eic"])


def get_sync_settings() -> SyncSettings:
    return get_settings()


def get_sync_runner() -> Callable[[SyncSettings], Awaitable[SyncSummary]]:
    return run_eic_sync


def get_scraper() -> Callable[[SyncSettings], Awaitable[BrokerExport]]:
    return scrape_broker


@router.get("/update-eic-data", response_model=SyncSummary)
async def update_eic_data(
    settings: SyncSettings = Depends(get_sync_settings),
    runner: Callable[[SyncSettings], Awaitable[SyncSummary]] = Depends(get_sync_runner),
) -> SyncSummary:
    """Run one full sync and return what it created."""

    logger.info("Starting EIC sync")
    try:
        return await runner(settings)
    except Exception:
        logger.exception("EIC sync failed")
        raise


@router.get("/eic-data", response_model=BrokerExport)
async def get_eic_data(
    settings: SyncSettings = Depends(get_sync_settings),
    scraper: Callable[[SyncSettings], Awaitable[BrokerExport]] = Depends(get_scraper),
) -> BrokerExport:
    """Scrape the broker portal without writing to Ghostfolio."""

    return await scraper(settings)


async def sync_error_handler(request: Request, exc: SyncError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "statusCode": 500,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
            "message": str(exc),
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SyncError, sync_error_handler)


__all__ = [
    "router",
    "get_sync_settings",
    "get_sync_runner",
    "get_scraper",
    "register_error_handlers",
    "sync_error_handler",
]
