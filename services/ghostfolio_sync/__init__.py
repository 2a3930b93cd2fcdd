"""Ghostfolio EIC sync service package."""

from .core.config import SyncSettings, get_settings
from .core.errors import SyncError
from .sync.pipeline import SyncSummary, run_eic_sync

__all__ = [
    "SyncError",
    "SyncSettings",
    "SyncSummary",
    "get_settings",
    "run_eic_sync",
]
