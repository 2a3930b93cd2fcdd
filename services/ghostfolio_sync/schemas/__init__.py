"""Pydantic schemas for scraped records and Ghostfolio payloads."""

from .base import validate_many, validate_model, validation_message
from .ghostfolio import (
    Account,
    AccountCreate,
    Activity,
    ActivityCreate,
    CountryAllocation,
    CreatedActivity,
    CreatedProfile,
    MarketDataForSymbol,
    MarketDataProfile,
    MarketPrice,
    Platform,
    PlatformCreate,
    ProfileUpdate,
    SectorAllocation,
    SymbolProfile,
    Tag,
    TagCreate,
    TagRef,
    User,
    UserSettings,
)
from .scraped import (
    BrokerExport,
    BrokerOrder,
    BrokerTransaction,
    CountriesAndSectors,
    CountryCode,
    CountryWeight,
    ExchangeRate,
    ExchangeRateSeries,
    FeeRecord,
    FeeSchedule,
    HistoricalSeries,
    InstrumentDefinition,
    PricePoint,
    SectorWeight,
)

__all__ = [
    "validate_model",
    "validate_many",
    "validation_message",
    "Account",
    "AccountCreate",
    "Activity",
    "ActivityCreate",
    "CountryAllocation",
    "CreatedActivity",
    "CreatedProfile",
    "MarketDataForSymbol",
    "MarketDataProfile",
    "MarketPrice",
    "Platform",
    "PlatformCreate",
    "ProfileUpdate",
    "SectorAllocation",
    "SymbolProfile",
    "Tag",
    "TagCreate",
    "TagRef",
    "User",
    "UserSettings",
    "BrokerExport",
    "BrokerOrder",
    "BrokerTransaction",
    "CountriesAndSectors",
    "CountryCode",
    "CountryWeight",
    "ExchangeRate",
    "ExchangeRateSeries",
    "FeeRecord",
    "FeeSchedule",
    "HistoricalSeries",
    "InstrumentDefinition",
    "PricePoint",
    "SectorWeight",
]
