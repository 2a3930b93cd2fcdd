"""OFX spot-rate history client."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

import httpx

from ..core.dates import date_to_epoch_ms, epoch_ms_to_date
from ..core.errors import PayloadValidationError, ScrapeError
from ..schemas import ExchangeRateSeries, validate_model
from .base import BaseHttpClient

logger = logging.getLogger("services.ghostfolio_sync.ofx")

OFX_API_URL = "https://api.ofx.com/PublicSite.ApiService/SpotRateHistory"


def rate_window(start: date, end: date, now: datetime) -> tuple[int, int]:
    """Return the ``(start_ms, end_ms)`` window requested for ``start..end``.

    One day is added on each side, except that an ``end`` falling on today's
    UTC date ends the window at ``now`` so no future rates are requested.
    """

    start_ms = date_to_epoch_ms(start - timedelta(days=1))
    if end == now.astimezone(timezone.utc).date():
        end_ms = date_to_epoch_ms(now)
    else:
        end_ms = date_to_epoch_ms(end + timedelta(days=1))
    return start_ms, end_ms


def map_rates_response(payload: Any) -> ExchangeRateSeries:
    points = payload.get("HistoricalPoints") if isinstance(payload, dict) else None
    if not isinstance(points, list):
        raise PayloadValidationError("Error occurred in get_rates_for_date_range: response has no 'HistoricalPoints'.")
    try:
        rates = [
            {
                "date": epoch_ms_to_date(point["PointInTime"]),
                "rate_from_currency": point["InterbankRate"],
                "rate_inverted": point["InverseInterbankRate"],
            }
            for point in points
        ]
    except (KeyError, TypeError) as exc:
        raise PayloadValidationError(f"Error occurred in get_rates_for_date_range: malformed point ({exc}).") from exc
    return validate_model(ExchangeRateSeries, {"rates": rates})


class OfxClient(BaseHttpClient):
    def __init__(
        self,
        *,
        base_url: str = OFX_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        retry_delay: float = 300.0,
        max_retries: int = 3,
    ) -> None:
        super().__init__(
            client=client,
            timeout_seconds=timeout_seconds,
            retry_delay=retry_delay,
            max_retries=max_retries,
        )
        self.base_url = base_url.rstrip("/")

    async def get_rates_for_date_range(
        self,
        from_currency: str,
        to_currency: str,
        start: date,
        end: date,
        *,
        now: datetime | None = None,
    ) -> ExchangeRateSeries:
        if len(from_currency) != 3:
            raise ScrapeError("From currency must be from three letters.")
        if len(to_currency) != 3:
            raise ScrapeError("Target currency must be from three letters.")

        start_ms, end_ms = rate_window(start, end, now or datetime.now(timezone.utc))
        url = f"{self.base_url}/{from_currency.upper()}/{to_currency.upper()}/{start_ms}/{end_ms}"
        payload = await self._request_json(
            "GET",
            url,
            name="get_rates_for_date_range",
            params={"DecimalPlaces": 6, "ReportingInterval": "daily", "format": "json"},
        )
        series = map_rates_response(payload)
        logger.debug("Fetched %d %s/%s rates", len(series.rates), from_currency, to_currency)
        return series


__all__ = ["OfxClient", "rate_window", "map_rates_response"]
