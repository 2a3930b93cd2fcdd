"""Records scraped from the EIC portal and the reference data sources."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..core.dates import DOTTED_DATE_PATTERN


class InstrumentDefinition(BaseModel):
    """Unique instrument derived from the broker exports, keyed by symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    isin: str
    currency: str


class BrokerTransaction(BaseModel):
    """One executed transaction from the EIC transactions export.

    ``amount`` is the number of shares, ``volume`` equals amount * price and
    ``fee`` is the execution fee. Only ``accounted`` rows are booked.
    """

    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1, validation_alias=AliasChoices("symbol", "fond"))
    type: Literal["BUY", "SELL"]
    currency: str = Field(..., min_length=1)
    amount: float
    price: float
    volume: float = 0.0
    fee: float = 0.0
    date: str = Field(..., pattern=DOTTED_DATE_PATTERN)
    accounted: bool


class BrokerOrder(BaseModel):
    """One order from the EIC orders export; the source of each symbol's isin."""

    model_config = ConfigDict(populate_by_name=True)

    currency: str
    amount: float | None = None
    symbol: str = Field(..., min_length=1, validation_alias=AliasChoices("symbol", "fond"))
    isin: str = Field(..., min_length=1)
    date: str | None = None


class FeeRecord(BaseModel):
    management_fee: float = 0.0
    baggage_fee: float = 0.0
    processing_fee: float = 0.0
    date: dt.date | None = None


class FeeSchedule(BaseModel):
    currency: str = Field(..., min_length=3, max_length=3)
    fees: list[FeeRecord] = Field(default_factory=list)


class BrokerExport(BaseModel):
    transactions: list[BrokerTransaction] = Field(..., min_length=1)
    orders: list[BrokerOrder] = Field(..., min_length=1)
    fees: FeeSchedule


class PricePoint(BaseModel):
    date: str = Field(..., pattern=DOTTED_DATE_PATTERN)
    value: float


class HistoricalSeries(BaseModel):
    isin: str
    currency: str
    latest_date: str = Field(..., pattern=DOTTED_DATE_PATTERN)
    points: list[PricePoint] = Field(..., min_length=1)


class CountryWeight(BaseModel):
    country: str
    weight: float


class SectorWeight(BaseModel):
    sector: str
    weight: float


class CountriesAndSectors(BaseModel):
    countries: list[CountryWeight] | None = None
    sectors: list[SectorWeight] | None = None


class CountryCode(BaseModel):
    country: str
    alpha2: str = Field(..., min_length=2, max_length=2)
    alpha3: str = Field(..., min_length=3, max_length=3)


class ExchangeRate(BaseModel):
    date: dt.date
    rate_from_currency: float
    rate_inverted: float


class ExchangeRateSeries(BaseModel):
    rates: list[ExchangeRate] = Field(..., min_length=1)

    def rate_for(self, day: dt.date) -> ExchangeRate | None:
        return next((rate for rate in self.rates if rate.date == day), None)


__all__ = [
    "InstrumentDefinition",
    "BrokerTransaction",
    "BrokerOrder",
    "FeeRecord",
    "FeeSchedule",
    "BrokerExport",
    "PricePoint",
    "HistoricalSeries",
    "CountryWeight",
    "SectorWeight",
    "CountriesAndSectors",
    "CountryCode",
    "ExchangeRate",
    "ExchangeRateSeries",
]
