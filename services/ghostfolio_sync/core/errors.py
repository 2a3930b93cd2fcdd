"""Exception hierarchy shared by the sync clients and reconcilers."""

from __future__ import annotations


class SyncError(RuntimeError):
    """Base class for every failure that aborts a sync run."""


class ConfigurationError(SyncError):
    """Raised when a required secret or credential is missing."""


class ScrapeError(SyncError):
    """Raised when scraped or downloaded data is missing or malformed."""


class MissingInstrumentError(ScrapeError):
    """Raised when a transaction symbol has no isin in the order export."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Isin and name cannot be found for symbol {symbol}")
        self.symbol = symbol


class PayloadValidationError(SyncError):
    """Raised when a payload or response does not match its schema."""


class RemoteCallError(SyncError):
    """Raised when an outward call fails or exhausts its retries."""

    def __init__(self, name: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.name = name
        self.status_code = status_code


class ReconciliationError(SyncError):
    """Raised when reconciliation cannot proceed without guessing."""


__all__ = [
    "SyncError",
    "ConfigurationError",
    "ScrapeError",
    "MissingInstrumentError",
    "PayloadValidationError",
    "RemoteCallError",
    "ReconciliationError",
]
