"""justETF client: historical prices and country/sector weights for an ETF."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx
from lxml import html

from ..core.dates import dash_to_dotted
from ..core.errors import ScrapeError
from ..schemas import (
    CountriesAndSectors,
    CountryWeight,
    HistoricalSeries,
    PricePoint,
    SectorWeight,
    validate_model,
)
from .base import BaseHttpClient

logger = logging.getLogger("services.ghostfolio_sync.justetf")

JUSTETF_URL = "https://www.justetf.com"
PERFORMANCE_CHART_PATH = "/api/etfs/{isin}/performance-chart"
PROFILE_PAGE_PATH = "/en/etf-profile.html"

MIN_WEIGHT_SUM = 0.99
OTHER_SECTOR = "Other"


def map_historical_response(payload: Any, isin: str, currency: str) -> HistoricalSeries:
    """Translate the performance-chart JSON into a :class:`HistoricalSeries`."""

    if not isinstance(payload, dict) or not isinstance(payload.get("latestDate"), str):
        raise ScrapeError(f"No latestDate in historical data for isin: {isin}")
    series = payload.get("series")
    if not isinstance(series, list):
        raise ScrapeError(f"No series data in historical data for isin: {isin}")

    points = []
    for item in series:
        raw_date = item.get("date") if isinstance(item, dict) else None
        value = (item.get("value") or {}).get("raw") if isinstance(item, dict) else None
        if raw_date is None or value is None:
            raise ScrapeError(f"Incomplete series point in historical data for isin: {isin}")
        points.append(PricePoint(date=dash_to_dotted(raw_date), value=value))

    return validate_model(
        HistoricalSeries,
        {
            "isin": isin,
            "currency": currency,
            "latest_date": dash_to_dotted(payload["latestDate"]),
            "points": points,
        },
    )


def _parse_weight(raw: str) -> float:
    text = raw.strip().rstrip("%").strip()
    try:
        return float(text) / 100
    except ValueError as exc:
        raise ScrapeError(f"Unable to parse weight from {raw!r}") from exc


def _weights_under(document: html.HtmlElement, heading: str) -> list[tuple[str, float]] | None:
    """Return ``(name, weight)`` rows of the table next to the ``heading`` h3."""

    header = next((h3 for h3 in document.iter("h3") if heading in h3.text_content()), None)
    if header is None:
        return None
    container = header.getparent()
    rows = []
    for row in container.iter("tr"):
        cells = row.findall("td")
        if len(cells) < 2:
            continue
        name = cells[0].text_content().strip()
        weight = cells[1].text_content().strip()
        if name and weight:
            rows.append((name, _parse_weight(weight)))
    return rows


def parse_countries_and_sectors(page: str, isin: str) -> CountriesAndSectors:
    """Extract country and sector weights from an ETF profile page.

    Weights are fractions. A section that is present must add up to at least
    0.99, except a sector breakdown consisting of the single row ``Other``.
    """

    document = html.fromstring(page)
    result = CountriesAndSectors()

    countries = _weights_under(document, "Countries")
    if countries is not None:
        if sum(weight for _, weight in countries) < MIN_WEIGHT_SUM:
            raise ScrapeError(f"Unable to scrape some countries data from just etf for isin {isin}")
        result.countries = [CountryWeight(country=name, weight=weight) for name, weight in countries]

    sectors = _weights_under(document, "Sectors")
    if sectors is not None:
        only_other = len(sectors) == 1 and sectors[0][0] == OTHER_SECTOR
        if sum(weight for _, weight in sectors) < MIN_WEIGHT_SUM and not only_other:
            raise ScrapeError(f"Unable to scrape some sectors data from just etf for isin {isin}")
        result.sectors = [SectorWeight(sector=name, weight=weight) for name, weight in sectors]

    return result


class JustEtfClient(BaseHttpClient):
    """Reads the justETF chart API and ETF profile pages."""

    def __init__(
        self,
        *,
        base_url: str = JUSTETF_URL,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        retry_delay: float = 300.0,
        max_retries: int = 3,
    ) -> None:
        super().__init__(
            base_url=base_url,
            client=client,
            timeout_seconds=timeout_seconds,
            retry_delay=retry_delay,
            max_retries=max_retries,
        )

    async def get_historical_series(
        self,
        isin: str,
        currency: str,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> HistoricalSeries:
        params = {
            "locale": "en",
            "currency": currency,
            "valuesType": "MARKET_VALUE",
            "reduceData": "false",
            "includeDividends": "true",
            "features": "DIVIDENDS",
        }
        if date_from is not None:
            params["dateFrom"] = date_from.isoformat()
        if date_to is not None:
            params["dateTo"] = date_to.isoformat()

        payload = await self._request_json(
            "GET",
            PERFORMANCE_CHART_PATH.format(isin=isin),
            name="get_historical_series",
            params=params,
        )
        series = map_historical_response(payload, isin, currency)
        logger.debug("Fetched %d reference prices for %s", len(series.points), isin)
        return series

    async def get_countries_and_sectors(self, isin: str) -> CountriesAndSectors:
        response = await self._request(
            "GET",
            PROFILE_PAGE_PATH,
            name="get_countries_and_sectors",
            params={"isin": isin},
        )
        return parse_countries_and_sectors(response.text, isin)


__all__ = [
    "JustEtfClient",
    "map_historical_response",
    "parse_countries_and_sectors",
]
