"""Pydantic schemas for the Ghostfolio REST API (camelCase on the wire)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ActivityType = Literal["BUY", "SELL", "FEE"]


class GhostfolioModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body Ghostfolio expects."""

        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class UserSettings(GhostfolioModel):
    base_currency: str


class Tag(GhostfolioModel):
    id: str
    name: str
    user_id: str | None = None
    activity_count: int | None = None


class TagCreate(GhostfolioModel):
    name: str = Field(..., min_length=1)
    user_id: str | None = None


class TagRef(GhostfolioModel):
    id: str
    name: str
    user_id: str | None = None


class User(GhostfolioModel):
    id: str
    settings: UserSettings
    tags: list[Tag] = Field(default_factory=list)


class PlatformCreate(GhostfolioModel):
    name: str = Field(..., min_length=1)
    url: str | None = None


class Platform(PlatformCreate):
    id: str


class AccountCreate(GhostfolioModel):
    balance: float
    currency: str = Field(..., min_length=3, max_length=3)
    name: str = Field(..., min_length=1)
    platform_id: str | None = None
    comment: str | None = None
    is_excluded: bool | None = None


class Account(GhostfolioModel):
    id: str
    name: str | None = None
    balance: float = 0.0
    currency: str | None = None
    platform_id: str | None = None
    user_id: str | None = None


class MarketDataProfile(GhostfolioModel):
    """Item of the admin market-data listing: a profile Ghostfolio already knows."""

    symbol: str
    data_source: str
    name: str | None = None
    currency: str | None = None
    asset_class: str | None = None
    asset_sub_class: str | None = None
    is_active: bool | None = None
    market_data_item_count: int | None = None


class CountryAllocation(GhostfolioModel):
    code: str
    weight: float


class SectorAllocation(GhostfolioModel):
    name: str
    weight: float


class CreatedProfile(GhostfolioModel):
    symbol: str
    data_source: str = "MANUAL"
    asset_class: str | None = None
    asset_sub_class: str | None = None
    comment: str | None = None
    countries: list[CountryAllocation] | None = None
    currency: str | None = None
    scraper_configuration: dict[str, Any] | None = None
    sectors: list[SectorAllocation] | None = None
    symbol_mapping: dict[str, str] | None = None
    url: str | None = None


class ProfileUpdate(GhostfolioModel):
    asset_class: str | None = None
    asset_sub_class: str | None = None
    comment: str | None = None
    countries: list[CountryAllocation] | None = None
    currency: str | None = None
    is_active: bool | None = None
    name: str | None = None
    scraper_configuration: dict[str, Any] | None = None
    sectors: list[SectorAllocation] | None = None
    symbol_mapping: dict[str, str] | None = None
    url: str | None = None


class MarketPrice(GhostfolioModel):
    date: str
    market_price: float


class MarketDataForSymbol(GhostfolioModel):
    market_data: list[MarketPrice] = Field(default_factory=list)
    asset_profile: dict[str, Any] | None = None


class SymbolProfile(GhostfolioModel):
    symbol: str | None = None
    name: str | None = None
    data_source: str | None = None
    currency: str | None = None


class Activity(GhostfolioModel):
    """An order/activity already stored in Ghostfolio."""

    id: str
    date: str
    type: str
    unit_price: float
    quantity: float = 0.0
    fee: float | None = None
    currency: str | None = None
    account_id: str | None = None
    symbol_profile: SymbolProfile | None = Field(default=None, alias="SymbolProfile")
    tags: list[Tag] = Field(default_factory=list)

    def has_tag(self, name: str) -> bool:
        return any(tag.name == name for tag in self.tags)


class ActivityCreate(GhostfolioModel):
    account_id: str | None = None
    asset_class: str | None = None
    asset_sub_class: str | None = None
    comment: str | None = None
    currency: str = Field(..., min_length=3, max_length=3)
    custom_currency: str | None = None
    data_source: str = "MANUAL"
    date: str
    fee: float = Field(..., ge=0)
    quantity: float = Field(..., ge=0)
    symbol: str = Field(..., min_length=1)
    tags: list[TagRef] | None = None
    type: ActivityType
    unit_price: float = Field(..., ge=0)
    update_account_balance: bool = False


class CreatedActivity(GhostfolioModel):
    id: str
    date: str | None = None
    type: str | None = None
    unit_price: float | None = None
    fee: float | None = None
    quantity: float | None = None


__all__ = [
    "ActivityType",
    "GhostfolioModel",
    "UserSettings",
    "User",
    "Tag",
    "TagCreate",
    "TagRef",
    "PlatformCreate",
    "Platform",
    "AccountCreate",
    "Account",
    "MarketDataProfile",
    "CountryAllocation",
    "SectorAllocation",
    "CreatedProfile",
    "ProfileUpdate",
    "MarketPrice",
    "MarketDataForSymbol",
    "SymbolProfile",
    "Activity",
    "ActivityCreate",
    "CreatedActivity",
]
