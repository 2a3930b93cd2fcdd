"""Management fee reconciliation with optional currency conversion.

The flow is ``COLLECT -> DIFF -> (DIRECT | RATE_FETCH -> CONVERT) -> CREATE* -> DONE``:
dated management fees are diffed against fee activities already in
Ghostfolio by their ``DD.MM.YYYY`` date, converted into the base currency
when the fee currency differs, and created newest first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from ..clients.ghostfolio import GhostfolioClient
from ..core.dates import date_to_dotted, date_to_iso, iso_to_date
from ..core.errors import ReconciliationError
from ..schemas import (
    Activity,
    ActivityCreate,
    CreatedActivity,
    ExchangeRateSeries,
    FeeRecord,
    FeeSchedule,
    Tag,
    TagRef,
    validate_model,
)
from .entities import find_tag

logger = logging.getLogger("services.ghostfolio_sync.fees")


def collect_fees(fees: Iterable[FeeRecord]) -> list[FeeRecord]:
    """Return dated management fees sorted oldest first."""

    collected = []
    for fee in fees:
        if fee.management_fee <= 0:
            continue
        if fee.date is None:
            logger.warning("Skipping management fee %.2f without a date", fee.management_fee)
            continue
        collected.append(fee)
    return sorted(collected, key=lambda fee: fee.date)


def fees_to_add(fees: list[FeeRecord], orders: Iterable[Activity], fee_symbol: str) -> list[FeeRecord]:
    booked = {
        date_to_dotted(iso_to_date(order.date))
        for order in orders
        if order.symbol_profile is not None and fee_symbol in (order.symbol_profile.name or "")
    }
    return [fee for fee in fees if date_to_dotted(fee.date) not in booked]


def convert_fee(fee: FeeRecord, rates: ExchangeRateSeries | None) -> float:
    if rates is None:
        return fee.management_fee
    rate = rates.rate_for(fee.date)
    if rate is None:
        raise ReconciliationError(f"Rate for date {date_to_dotted(fee.date)} was not found.")
    return fee.management_fee * rate.rate_from_currency


def build_fee_activity(
    fee: FeeRecord,
    amount: float,
    *,
    fee_symbol: str,
    account_id: str,
    base_currency: str,
    tag: Tag | None,
) -> ActivityCreate:
    dotted = date_to_dotted(fee.date)
    tags = [TagRef(id=tag.id, name=tag.name, user_id=tag.user_id)] if tag is not None else None
    return validate_model(
        ActivityCreate,
        {
            "account_id": account_id,
            "currency": base_currency,
            "custom_currency": base_currency,
            "data_source": "MANUAL",
            "date": date_to_iso(fee.date),
            "fee": amount,
            "type": "FEE",
            "symbol": f"{fee_symbol} ({dotted})",
            "tags": tags,
            "unit_price": 0,
            "quantity": 0,
            "update_account_balance": False,
        },
    )


async def reconcile_fees(
    ghostfolio: GhostfolioClient,
    rates_source,
    schedule: FeeSchedule,
    fee_symbol: str,
    account_id: str,
    tag_name: str | None = None,
    *,
    now: datetime | None = None,
) -> list[CreatedActivity]:
    """Create the management fee activities Ghostfolio is missing."""

    base_currency = await ghostfolio.get_base_currency()
    tag = await find_tag(ghostfolio, tag_name) if tag_name else None

    fees = collect_fees(schedule.fees)
    pending = fees_to_add(fees, await ghostfolio.get_orders(), fee_symbol)
    if not pending:
        logger.info("No management fee to add.")
        return []
    logger.debug("%d management fees will be added", len(pending))

    rates = None
    if schedule.currency != base_currency:
        logger.debug("Fetching %s/%s rates for %d fee records", schedule.currency, base_currency, len(pending))
        rates = await rates_source.get_rates_for_date_range(
            schedule.currency,
            base_currency,
            pending[0].date,
            pending[-1].date,
            now=now,
        )

    created: list[CreatedActivity] = []
    while pending:
        fee = pending.pop()
        logger.debug("Creating fee for symbol %s with date %s", fee_symbol, date_to_dotted(fee.date))
        activity = build_fee_activity(
            fee,
            convert_fee(fee, rates),
            fee_symbol=fee_symbol,
            account_id=account_id,
            base_currency=base_currency,
            tag=tag,
        )
        created.append(await ghostfolio.create_order(activity))
    return created


__all__ = [
    "collect_fees",
    "fees_to_add",
    "convert_fee",
    "build_fee_activity",
    "reconcile_fees",
]
