"""Country-name to ISO code table scraped from iban.com."""

from __future__ import annotations

import logging

import httpx
from lxml import html

from ..core.errors import ScrapeError
from ..schemas import CountryCode, validate_model
from .base import BaseHttpClient

logger = logging.getLogger("services.ghostfolio_sync.country_codes")

COUNTRY_CODES_URL = "https://www.iban.com/country-codes"


def parse_country_codes(page: str) -> list[CountryCode]:
    document = html.fromstring(page)
    body = next(document.iter("tbody"), None)
    if body is None:
        raise ScrapeError("Country codes table not found")

    codes = []
    for row in body.iter("tr"):
        cells = [cell.text_content().strip() for cell in row.findall("td")]
        if len(cells) < 3 or not all(cells[:3]):
            continue
        country, alpha2, alpha3 = cells[:3]
        codes.append(validate_model(CountryCode, {"country": country, "alpha2": alpha2, "alpha3": alpha3}))
    return codes


class CountryCodesClient(BaseHttpClient):
    """Fetches the country code table once and keeps it for the client's lifetime."""

    def __init__(
        self,
        *,
        url: str = COUNTRY_CODES_URL,
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
        self.url = url
        self._codes: list[CountryCode] | None = None

    async def get_country_codes(self) -> list[CountryCode]:
        if self._codes is None:
            response = await self._request("GET", self.url, name="get_country_codes")
            self._codes = parse_country_codes(response.text)
            logger.debug("Loaded %d country codes", len(self._codes))
        return self._codes


__all__ = ["CountryCodesClient", "parse_country_codes"]
