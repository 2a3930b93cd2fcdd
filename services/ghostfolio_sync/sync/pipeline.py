"""One EIC -> Ghostfolio synchronisation pass."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack

from pydantic import BaseModel, Field

from ..clients import CountryCodesClient, EicPortal, GhostfolioClient, JustEtfClient, OfxClient, fetch_broker_export
from ..core.config import SyncSettings
from ..schemas import BrokerExport, FeeSchedule
from .entities import control_account, control_platform, control_tag, create_missing_orders, create_missing_profiles
from .fees import reconcile_fees
from .gap_fill import fill_gaps
from .instruments import build_instrument_map

logger = logging.getLogger("services.ghostfolio_sync.pipeline")

EIC_PLATFORM_NAME = "EIC"
EIC_PLATFORM_URL = "https://webapp.eic.eu/"


class SyncSummary(BaseModel):
    platform_id: str
    account_id: str
    instruments: list[str] = Field(default_factory=list)
    profiles_created: list[str] = Field(default_factory=list)
    price_points_pushed: int = 0
    orders_created: int = 0
    fees_created: int = 0


async def scrape_broker(settings: SyncSettings, portal: EicPortal | None = None) -> BrokerExport:
    """Log into the EIC portal and return its transactions, orders and fees."""

    async with AsyncExitStack() as stack:
        if portal is None:
            portal = await stack.enter_async_context(
                EicPortal(
                    timeout_seconds=settings.request_timeout_seconds,
                    retry_delay=settings.retry_delay_seconds,
                    create_retry_delay=settings.create_retry_delay_seconds,
                    max_retries=settings.max_retries,
                )
            )
        return await fetch_broker_export(portal, settings.eic_login, settings.eic_password)


async def run_eic_sync(
    settings: SyncSettings,
    *,
    ghostfolio: GhostfolioClient | None = None,
    portal: EicPortal | None = None,
    justetf: JustEtfClient | None = None,
    country_codes: CountryCodesClient | None = None,
    rates: OfxClient | None = None,
) -> SyncSummary:
    """Scrape the broker and converge Ghostfolio to it.

    Collaborators that are not passed in are built from ``settings`` and
    closed when the run ends. The Ghostfolio session token is always cleared
    at the end of the run, whether it succeeds or fails.
    """

    client_options = {
        "timeout_seconds": settings.request_timeout_seconds,
        "retry_delay": settings.retry_delay_seconds,
        "max_retries": settings.max_retries,
    }

    async with AsyncExitStack() as stack:
        if ghostfolio is None:
            ghostfolio = await stack.enter_async_context(GhostfolioClient.from_settings(settings))
        else:
            stack.callback(ghostfolio.clear_token)
        if justetf is None:
            justetf = await stack.enter_async_context(JustEtfClient(**client_options))
        if country_codes is None:
            country_codes = await stack.enter_async_context(CountryCodesClient(**client_options))
        if rates is None:
            rates = await stack.enter_async_context(OfxClient(**client_options))

        export = await scrape_broker(settings, portal)
        instruments = build_instrument_map(export.orders, export.transactions)
        logger.info("Resolved %d instruments from the broker exports", len(instruments))

        platform = await control_platform(ghostfolio, EIC_PLATFORM_NAME, EIC_PLATFORM_URL)
        await control_tag(ghostfolio, settings.ghostfolio_eic_target_tag)
        account = await control_account(ghostfolio, platform.id, settings.ghostfolio_eic_account_name)

        profiles = await create_missing_profiles(
            ghostfolio,
            justetf,
            country_codes,
            instruments.values(),
            gather_data=settings.gather_data,
            delay=settings.item_delay_seconds,
        )
        pushed = await fill_gaps(
            ghostfolio,
            justetf,
            instruments.values(),
            batch_size=settings.price_batch_size,
            batch_delay=settings.price_batch_delay_seconds,
        )

        accounted = [transaction for transaction in export.transactions if transaction.accounted]
        orders = await create_missing_orders(
            ghostfolio,
            accounted,
            account.id,
            settings.ghostfolio_eic_target_tag,
            delay=settings.item_delay_seconds,
        )

        # Other fee kinds are already part of the BUY/SELL orders.
        management = FeeSchedule(
            currency=export.fees.currency,
            fees=[fee for fee in export.fees.fees if fee.management_fee > 0],
        )
        fees = await reconcile_fees(
            ghostfolio,
            rates,
            management,
            settings.fee_symbol,
            account.id,
            settings.ghostfolio_eic_target_tag,
        )

    summary = SyncSummary(
        platform_id=platform.id,
        account_id=account.id,
        instruments=list(instruments),
        profiles_created=profiles,
        price_points_pushed=pushed,
        orders_created=len(orders),
        fees_created=len(fees),
    )
    logger.info(
        "EIC sync finished: %d profiles, %d price points, %d orders, %d fees created",
        len(summary.profiles_created),
        summary.price_points_pushed,
        summary.orders_created,
        summary.fees_created,
    )
    return summary


__all__ = ["SyncSummary", "run_eic_sync", "scrape_broker"]
