"""Idempotent find-or-create reconciliation of Ghostfolio entities."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TypeVar

from ..clients.ghostfolio import GhostfolioClient
from ..core.dates import dotted_to_iso, iso_to_date
from ..schemas import (
    Account,
    AccountCreate,
    Activity,
    ActivityCreate,
    BrokerTransaction,
    CountriesAndSectors,
    CountryAllocation,
    CountryCode,
    CreatedActivity,
    InstrumentDefinition,
    Platform,
    PlatformCreate,
    ProfileUpdate,
    SectorAllocation,
    Tag,
    TagCreate,
    TagRef,
    validate_model,
)

logger = logging.getLogger("services.ghostfolio_sync.entities")

E = TypeVar("E")

DEFAULT_ASSET_CLASS = "EQUITY"
DEFAULT_ASSET_SUB_CLASS = "ETF"
OTHER_COUNTRY = "Other"
THE_SUFFIX = " (the)"


async def find_or_create(
    candidate_key: str,
    fetch_existing: Callable[[], Awaitable[Sequence[E]]],
    create: Callable[[], Awaitable[E]],
    *,
    key: Callable[[E], str | None],
) -> E:
    """Return the existing entity whose ``key`` equals ``candidate_key`` or create it."""

    existing = await fetch_existing()
    found = next((entity for entity in existing if key(entity) == candidate_key), None)
    if found is not None:
        logger.debug("Found %s %r", type(found).__name__, candidate_key)
        return found
    logger.debug("No entity named %r found, creating it", candidate_key)
    return await create()


async def find_tag(ghostfolio: GhostfolioClient, name: str) -> Tag | None:
    tags = await ghostfolio.get_tags()
    return next((tag for tag in tags if tag.name == name), None)


async def control_platform(ghostfolio: GhostfolioClient, name: str, url: str | None = None) -> Platform:
    return await find_or_create(
        name,
        ghostfolio.get_platforms,
        lambda: ghostfolio.create_platform(PlatformCreate(name=name, url=url)),
        key=lambda platform: platform.name,
    )


async def control_tag(ghostfolio: GhostfolioClient, name: str) -> Tag:
    async def _create() -> Tag:
        user = await ghostfolio.get_user()
        return await ghostfolio.create_tag(TagCreate(name=name, user_id=user.id))

    return await find_or_create(name, ghostfolio.get_tags, _create, key=lambda tag: tag.name)


async def control_account(ghostfolio: GhostfolioClient, platform_id: str, name: str) -> Account:
    async def _create() -> Account:
        user = await ghostfolio.get_user()
        return await ghostfolio.create_account(
            AccountCreate(
                balance=0,
                currency=user.settings.base_currency,
                name=name,
                platform_id=platform_id,
            )
        )

    return await find_or_create(name, ghostfolio.get_accounts, _create, key=lambda account: account.name)


def _table_name(code: CountryCode) -> str:
    name = code.country.strip().lower()
    return name[: -len(THE_SUFFIX)] if name.endswith(THE_SUFFIX) else name


def _best_match(country: str, codes: Sequence[CountryCode]) -> CountryCode | None:
    needle = country.strip().lower()
    ranked = []
    for code in codes:
        name = _table_name(code)
        if name == needle:
            return code
        if name.startswith(needle):
            ranked.append((0, len(name), code))
        elif needle in name:
            ranked.append((1, len(name), code))
    if not ranked:
        return None
    return min(ranked, key=lambda item: item[:2])[2]


def resolve_countries(
    scraped: CountriesAndSectors,
    codes: Sequence[CountryCode],
    isin: str,
) -> list[CountryAllocation]:
    """Map justETF country names to alpha-2 codes.

    Names are compared ignoring case and a trailing ``(the)``. An exact match
    wins, then the shortest table name starting with the scraped name, then
    the shortest one containing it, so "United States" resolves to the USA
    rather than its Minor Outlying Islands. Unmatched names keep the raw name
    as their code.
    """

    allocations = []
    for entry in scraped.countries or []:
        match = _best_match(entry.country, codes)
        if match is None and entry.country != OTHER_COUNTRY:
            logger.warning("Unable to find country for isin %s and Just ETF country %s", isin, entry.country)
        allocations.append(CountryAllocation(code=match.alpha2 if match else entry.country, weight=entry.weight))
    return allocations


async def create_missing_profiles(
    ghostfolio: GhostfolioClient,
    justetf,
    country_codes,
    instruments: Iterable[InstrumentDefinition],
    *,
    gather_data: bool = False,
    delay: float = 0.0,
) -> list[str]:
    """Create and enrich a MANUAL profile for every instrument Ghostfolio lacks."""

    profiles = await ghostfolio.get_profiles()
    known = {profile.symbol for profile in profiles}
    created: list[str] = []

    for instrument in instruments:
        if instrument.symbol in known:
            continue

        codes = await country_codes.get_country_codes()
        scraped = await justetf.get_countries_and_sectors(instrument.isin)
        countries = resolve_countries(scraped, codes, instrument.isin)
        sectors = (
            [SectorAllocation(name=item.sector, weight=item.weight) for item in scraped.sectors]
            if scraped.sectors is not None
            else None
        )

        logger.info("Creating profile for symbol %s", instrument.symbol)
        profile = await ghostfolio.create_profile(instrument.symbol)
        await ghostfolio.update_profile(
            instrument.symbol,
            ProfileUpdate(
                asset_class=profile.asset_class or DEFAULT_ASSET_CLASS,
                asset_sub_class=profile.asset_sub_class or DEFAULT_ASSET_SUB_CLASS,
                comment=profile.comment,
                countries=profile.countries if profile.countries is not None else countries,
                currency=instrument.currency,
                is_active=gather_data,
                name=f"{instrument.symbol} ({instrument.isin})",
                scraper_configuration=profile.scraper_configuration,
                sectors=profile.sectors if profile.sectors is not None else sectors,
                symbol_mapping=profile.symbol_mapping,
            ),
        )
        known.add(instrument.symbol)
        created.append(instrument.symbol)
        if delay:
            await asyncio.sleep(delay)

    return created


def find_matching_order(orders: Iterable[Activity], iso_date: str, unit_price: float) -> Activity | None:
    """Return the remote order booked on the same day at the same unit price."""

    day = iso_to_date(iso_date)
    return next(
        (order for order in orders if iso_to_date(order.date) == day and order.unit_price == unit_price),
        None,
    )


async def create_missing_orders(
    ghostfolio: GhostfolioClient,
    transactions: Sequence[BrokerTransaction],
    account_id: str,
    tag_name: str,
    *,
    delay: float = 0.0,
) -> list[CreatedActivity]:
    """Create a BUY/SELL activity for every transaction Ghostfolio lacks.

    Only remote orders carrying ``tag_name`` are considered when matching.
    Transactions are processed in scraped order and the first failure stops
    the rest.
    """

    tag = await control_tag(ghostfolio, tag_name)
    orders = [order for order in await ghostfolio.get_orders() if order.has_tag(tag.name)]
    user = await ghostfolio.get_user()
    tag_ref = TagRef(id=tag.id, name=tag.name, user_id=user.id)

    created: list[CreatedActivity] = []
    for transaction in transactions:
        iso_date = dotted_to_iso(transaction.date)
        if find_matching_order(orders, iso_date, transaction.price) is not None:
            continue

        logger.debug("Creating order for symbol %s and date %s", transaction.symbol, iso_date)
        activity = validate_model(
            ActivityCreate,
            {
                "account_id": account_id,
                "asset_class": DEFAULT_ASSET_CLASS,
                "asset_sub_class": DEFAULT_ASSET_SUB_CLASS,
                "currency": transaction.currency,
                "custom_currency": transaction.currency,
                "date": iso_date,
                "data_source": "MANUAL",
                "fee": transaction.fee,
                "quantity": transaction.amount,
                "symbol": transaction.symbol,
                "tags": [tag_ref],
                "type": transaction.type,
                "unit_price": transaction.price,
                "update_account_balance": False,
            },
        )
        created.append(await ghostfolio.create_order(activity))
        if delay:
            await asyncio.sleep(delay)

    return created


__all__ = [
    "find_or_create",
    "find_tag",
    "control_platform",
    "control_tag",
    "control_account",
    "resolve_countries",
    "create_missing_profiles",
    "find_matching_order",
    "create_missing_orders",
]
