"""FastAPI entrypoint for the Ghostfolio EIC sync service."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from .api import register_error_handlers, router
from .core.config import get_settings
from .core.logging import setup_logging
from .core.telemetry import setup_telemetry

settings = get_settings()
setup_logging(settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
setup_telemetry(app)
register_error_handlers(app)
app.include_router(router)


@app.get("/health", tags=["system"])
async def health() -> dict[str, Any]:
    """Lightweight health probe."""

    current = get_settings()
    return {"status": "ok", "settings": current.dict_for_logging()}
