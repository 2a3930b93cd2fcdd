"""Derive the per-run instrument map from scraped orders and transactions."""

from __future__ import annotations

from collections.abc import Iterable

from ..core.errors import MissingInstrumentError
from ..schemas import BrokerOrder, BrokerTransaction, InstrumentDefinition


def build_instrument_map(
    orders: Iterable[BrokerOrder],
    transactions: Iterable[BrokerTransaction],
) -> dict[str, InstrumentDefinition]:
    """Return one definition per transaction symbol, in first-seen order.

    The isin comes from the first order seen for the symbol and the currency
    from the first transaction. A transaction symbol that no order names
    raises :class:`MissingInstrumentError`.
    """

    isins: dict[str, str] = {}
    for order in orders:
        isins.setdefault(order.symbol, order.isin)

    instruments: dict[str, InstrumentDefinition] = {}
    for transaction in transactions:
        if transaction.symbol in instruments:
            continue
        isin = isins.get(transaction.symbol)
        if isin is None:
            raise MissingInstrumentError(transaction.symbol)
        instruments[transaction.symbol] = InstrumentDefinition(
            symbol=transaction.symbol,
            isin=isin,
            currency=transaction.currency,
        )
    return instruments


__all__ = ["build_instrument_map"]
