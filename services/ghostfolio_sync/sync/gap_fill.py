"""Fill holes in Ghostfolio's manual price history from justETF."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Protocol

from ..core.dates import date_to_iso, iso_to_date, parse_dotted_date
from ..core.errors import ScrapeError
from ..schemas import HistoricalSeries, InstrumentDefinition, MarketDataForSymbol, MarketPrice

logger = logging.getLogger("services.ghostfolio_sync.gap_fill")

DEFAULT_BATCH_SIZE = 500
DEFAULT_BATCH_DELAY = 1.0


class MarketDataStore(Protocol):
    async def get_market_data(self, symbol: str) -> MarketDataForSymbol: ...

    async def set_market_data(self, symbol: str, points: list[MarketPrice]) -> None: ...


class ReferencePriceSource(Protocol):
    async def get_historical_series(self, isin: str, currency: str) -> HistoricalSeries | None: ...


def missing_points(remote: MarketDataForSymbol, reference: HistoricalSeries) -> list[MarketPrice]:
    """Return reference prices whose date Ghostfolio does not have yet."""

    known = {iso_to_date(point.date) for point in remote.market_data}
    missing: list[MarketPrice] = []
    for point in reference.points:
        day = parse_dotted_date(point.date)
        if day in known:
            continue
        known.add(day)
        missing.append(MarketPrice(date=date_to_iso(day), market_price=point.value))
    return missing


async def push_in_batches(
    store: MarketDataStore,
    symbol: str,
    points: list[MarketPrice],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_delay: float = DEFAULT_BATCH_DELAY,
) -> int:
    """Send ``points`` in chunks of ``batch_size``, pausing between chunks."""

    for start in range(0, len(points), batch_size):
        if start:
            await asyncio.sleep(batch_delay)
        await store.set_market_data(symbol, points[start : start + batch_size])
    return len(points)


async def fill_gaps(
    ghostfolio: MarketDataStore,
    justetf: ReferencePriceSource,
    instruments: Iterable[InstrumentDefinition],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_delay: float = DEFAULT_BATCH_DELAY,
) -> int:
    """Gap-fill every instrument in order and return the number of points pushed.

    Instruments are handled one after another; the first failure stops the
    remaining queue.
    """

    pushed = 0
    for instrument in instruments:
        remote = await ghostfolio.get_market_data(instrument.symbol)
        reference = await justetf.get_historical_series(instrument.isin, instrument.currency)
        if reference is None or not reference.points:
            message = f"Unable to retrieve just-etf historical data for {instrument.symbol}"
            logger.critical(message)
            raise ScrapeError(message)

        points = missing_points(remote, reference)
        logger.debug("Updating %d market data records for symbol %s", len(points), instrument.symbol)
        pushed += await push_in_batches(
            ghostfolio,
            instrument.symbol,
            points,
            batch_size=batch_size,
            batch_delay=batch_delay,
        )
    return pushed


__all__ = ["fill_gaps", "missing_points", "push_in_batches"]
