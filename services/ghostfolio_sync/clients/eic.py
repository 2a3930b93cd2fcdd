"""EIC broker portal: cookie session login, CSV exports and the monthly fee table."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable
from urllib.parse import urljoin

import httpx
import pandas as pd
from lxml import html

from ..core.dates import EMPTY_CELL, currency_of, split_amount
from ..core.errors import ConfigurationError, ScrapeError
from ..schemas import BrokerExport, BrokerOrder, BrokerTransaction, FeeRecord, FeeSchedule, validate_model
from .base import BaseHttpClient

logger = logging.getLogger("services.ghostfolio_sync.eic")

EIC_URL = "https://webapp.eic.eu"
TRANSACTIONS_DOWNLOAD_PATH = "/services/services.php?action=export_transakcie"
ORDERS_DOWNLOAD_PATH = "/services/services.php?action=export_pokyny"
EXPORT_ENCODING = "windows-1250"

FEE_TABLE_OPTION = "Záväzky a poplatky mesačne"
FEE_TABLE_CLASS = "poplatky"
NEXT_PAGE = ">"
PREVIOUS_PAGE = "<"

# CSV column headers of the portal exports
COL_ORDER_KIND = "Druh pokynu"
COL_FUND = "Fond"
COL_CURRENCY = "Mena"
COL_COUNT = "Počet"
COL_PRICE = "Cena"
COL_VOLUME = "Objem"
COL_FEE = "Poplatok<br />za vykonanie"
COL_TRADE_DAY = "Obchodný deň"
COL_STATE = "Stav"
COL_HAVE = "Mám"
COL_WANT = "Chcem"
COL_ISIN = "ISIN"
COL_DATE = "Dátum"

KIND_BUY = "Kúpa"
KIND_CONVERSION = "Konverzia"
STATE_ACCOUNTED = "Zaúčtovaný"


@dataclass(frozen=True)
class FeeRow:
    """Raw cells of one fee table row."""

    period: str
    processing_fee: str
    management_fee: str
    baggage_fee: str


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse a semicolon-delimited export whose first row holds the column names."""

    if not text.strip():
        return []
    frame = pd.read_csv(
        io.StringIO(text),
        sep=";",
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    if frame.empty:
        return []
    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.apply(lambda column: column.str.strip())
    return frame.to_dict(orient="records")


def _number(raw: str | None) -> float | None:
    value = (raw or "").replace("\xa0", "").replace(" ", "").replace(",", ".")
    if not value or value == EMPTY_CELL:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ScrapeError(f"Unable to parse number from {raw!r}") from exc


def map_transactions(rows: Iterable[dict[str, str]]) -> list[BrokerTransaction]:
    transactions = []
    for row in rows:
        if not row.get(COL_ORDER_KIND):
            continue
        data = {
            "fond": row.get(COL_FUND),
            "type": "BUY" if row[COL_ORDER_KIND] == KIND_BUY else "SELL",
            "currency": row.get(COL_CURRENCY),
            "amount": _number(row.get(COL_COUNT)),
            "price": _number(row.get(COL_PRICE)),
            "volume": _number(row.get(COL_VOLUME)) or 0.0,
            "fee": _number(row.get(COL_FEE)) or 0.0,
            "date": row.get(COL_TRADE_DAY),
            "accounted": row.get(COL_STATE) == STATE_ACCOUNTED,
        }
        transactions.append(validate_model(BrokerTransaction, data))
    return transactions


def map_orders(rows: Iterable[dict[str, str]]) -> list[BrokerOrder]:
    orders = []
    for row in rows:
        if row.get(COL_ORDER_KIND) == KIND_CONVERSION:
            continue
        data = {
            "currency": row.get(COL_HAVE),
            "amount": _number(row.get(COL_COUNT)),
            "fond": row.get(COL_WANT),
            "isin": row.get(COL_ISIN),
            "date": row.get(COL_DATE) or None,
        }
        orders.append(validate_model(BrokerOrder, data))
    return orders


def _period_start(period: str) -> date | None:
    """Return the first day of an ``MM/YYYY`` period; ``None`` for rows without one."""

    value = period.strip()
    if "/" not in value:
        return None
    try:
        month, year = (int(part) for part in value.split("/"))
        return date(year, month, 1)
    except ValueError as exc:
        raise ScrapeError(f"Fee period {period!r} must be in format MM/YYYY") from exc


def resolve_fee_currency(rows: list[FeeRow]) -> str:
    """Return the currency of the first row carrying one.

    Within that row the baggage fee is consulted first, then the management
    and processing fees.
    """

    for row in rows:
        for cell in (row.baggage_fee, row.management_fee, row.processing_fee):
            currency = currency_of(cell)
            if currency:
                return currency
    raise ScrapeError("No currency found in fee table data.")


def map_fee_rows(rows: list[FeeRow]) -> FeeSchedule:
    currency = resolve_fee_currency(rows)
    logger.debug("Resolved fee currency is %s", currency)
    fees = [
        FeeRecord(
            management_fee=split_amount(row.management_fee)[0],
            baggage_fee=split_amount(row.baggage_fee)[0],
            processing_fee=split_amount(row.processing_fee)[0],
            date=_period_start(row.period),
        )
        for row in rows
    ]
    return validate_model(FeeSchedule, {"currency": currency, "fees": fees})


def _is_logged_in(document: html.HtmlElement) -> bool:
    return bool(document.xpath('//div[@class="header"]'))


def _fee_table_root(document: html.HtmlElement) -> html.HtmlElement:
    option = next(
        (
            element
            for element in document.iter("option")
            if "selected" in element.attrib and FEE_TABLE_OPTION in element.text_content()
        ),
        None,
    )
    if option is None:
        raise ScrapeError("No fee table in EIC displayed.")
    for ancestor in option.iterancestors():
        if ancestor.xpath(f'.//table[contains(@class, "{FEE_TABLE_CLASS}")]'):
            return ancestor
    raise ScrapeError("Fee table not found next to the fee table selector.")


def _pagination_links(root: html.HtmlElement) -> list[html.HtmlElement]:
    return root.xpath('.//*[contains(concat(" ", normalize-space(@class), " "), " pagination ")]//a')


def page_indicator(root: html.HtmlElement) -> str | None:
    for link in _pagination_links(root):
        text = link.text_content().strip()
        if text not in (NEXT_PAGE, PREVIOUS_PAGE):
            return text
    return None


def next_page_href(root: html.HtmlElement) -> str | None:
    for link in _pagination_links(root):
        if link.text_content().strip() == NEXT_PAGE:
            return link.get("href")
    return None


def fee_rows(root: html.HtmlElement) -> list[FeeRow]:
    table = root.xpath(f'.//table[contains(@class, "{FEE_TABLE_CLASS}")]')[0]
    rows = []
    for row in table.iter("tr"):
        cells = row.findall("td")
        if len(cells) < 6:
            # header
            continue
        text = [cell.text_content().strip() for cell in cells]
        rows.append(
            FeeRow(
                period=text[0],
                processing_fee=text[3] or EMPTY_CELL,
                management_fee=text[4] or EMPTY_CELL,
                baggage_fee=text[5] or EMPTY_CELL,
            )
        )
    return rows


class EicPortal(BaseHttpClient):
    """Cookie-based session against the EIC web application."""

    def __init__(
        self,
        *,
        base_url: str = EIC_URL,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
        retry_delay: float = 300.0,
        create_retry_delay: float = 30.0,
        max_retries: int = 3,
    ) -> None:
        super().__init__(
            base_url=base_url,
            client=client,
            timeout_seconds=timeout_seconds,
            retry_delay=retry_delay,
            max_retries=max_retries,
        )
        self.short_retry_delay = create_retry_delay
        self.logged_in = False

    def _require_login(self, method: str) -> None:
        if not self.logged_in:
            raise ScrapeError(f"To perform {method} method, you must first log in.")

    async def login(self, login: str, password: str) -> None:
        landing = await self._request("GET", "/", name="login")
        document = html.fromstring(landing.text)
        form = next((f for f in document.iter("form") if f.xpath('.//input[@name="j_username"]')), None)
        if form is None:
            raise ScrapeError("EIC login form not found.")

        fields: dict[str, Any] = {
            field.get("name"): field.get("value", "")
            for field in form.xpath('.//input[@type="hidden"][@name]')
        }
        fields.update({"j_username": login, "j_password": password, "login": "login"})
        action = urljoin(str(landing.url), form.get("action") or str(landing.url))

        response = await self._request("POST", action, name="login", data=fields)
        if not _is_logged_in(html.fromstring(response.text)):
            raise ScrapeError("Unable to login to EIC.")
        self.logged_in = True
        logger.debug("Successfully logged into EIC")

    async def _download(self, path: str, *, name: str, retry_delay: float | None = None) -> str:
        self._require_login(name)
        response = await self._request("GET", path, name=name, retry_delay=retry_delay)
        return response.content.decode(EXPORT_ENCODING)

    async def download_transactions_csv(self) -> str:
        return await self._download(TRANSACTIONS_DOWNLOAD_PATH, name="download_transactions_csv")

    async def download_orders_csv(self) -> str:
        return await self._download(
            ORDERS_DOWNLOAD_PATH, name="download_orders_csv", retry_delay=self.short_retry_delay
        )

    async def scrape_fee_table(self) -> list[FeeRow]:
        """Collect fee rows from every page of the fee table.

        Pagination ends when following the next-page link leaves the page
        indicator unchanged, or when there is no next-page link.
        """

        self._require_login("scrape_fee_table")
        response = await self._request("GET", "/", name="scrape_fee_table")
        root = _fee_table_root(html.fromstring(response.text))

        rows: list[FeeRow] = []
        while True:
            rows.extend(fee_rows(root))
            current = page_indicator(root)
            href = next_page_href(root)
            if not href:
                break
            response = await self._request("GET", urljoin(str(response.url), href), name="scrape_fee_table")
            root = _fee_table_root(html.fromstring(response.text))
            if page_indicator(root) == current:
                break

        logger.debug("Scraped EIC fee table with %d records", len(rows))
        return rows


async def fetch_broker_export(portal: EicPortal, login: str | None, password: str | None) -> BrokerExport:
    """Log in and gather transactions, orders and fees in one validated bundle."""

    if not login or not password:
        raise ConfigurationError("EIC login or password is not provided.")

    await portal.login(login, password)
    schedule = map_fee_rows(await portal.scrape_fee_table())

    transactions = map_transactions(parse_csv(await portal.download_transactions_csv()))
    logger.debug("Transaction file parsed")
    orders = map_orders(parse_csv(await portal.download_orders_csv()))
    logger.debug("Order file parsed")

    return validate_model(
        BrokerExport,
        {"transactions": transactions, "orders": orders, "fees": schedule},
    )


__all__ = [
    "EicPortal",
    "FeeRow",
    "fetch_broker_export",
    "map_fee_rows",
    "map_orders",
    "map_transactions",
    "parse_csv",
    "resolve_fee_currency",
]
