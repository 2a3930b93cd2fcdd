"""Reconciliation engine converging Ghostfolio to the scraped broker state."""

from .entities import (
    control_account,
    control_platform,
    control_tag,
    create_missing_orders,
    create_missing_profiles,
    find_or_create,
)
from .fees import reconcile_fees
from .gap_fill import fill_gaps
from .instruments import build_instrument_map
from .pipeline import SyncSummary, run_eic_sync, scrape_broker

__all__ = [
    "SyncSummary",
    "build_instrument_map",
    "control_account",
    "control_platform",
    "control_tag",
    "create_missing_orders",
    "create_missing_profiles",
    "fill_gaps",
    "find_or_create",
    "reconcile_fees",
    "run_eic_sync",
    "scrape_broker",
]
