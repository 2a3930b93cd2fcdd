"""Configuration, logging, error and retry primitives for the sync service."""

from .config import SyncSettings, get_settings
from .errors import (
    ConfigurationError,
    MissingInstrumentError,
    PayloadValidationError,
    ReconciliationError,
    RemoteCallError,
    ScrapeError,
    SyncError,
)
from .retry import call_with_retry

__all__ = [
    "SyncSettings",
    "get_settings",
    "call_with_retry",
    "SyncError",
    "ConfigurationError",
    "ScrapeError",
    "MissingInstrumentError",
    "PayloadValidationError",
    "RemoteCallError",
    "ReconciliationError",
]
