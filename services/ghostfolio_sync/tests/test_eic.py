"""EIC portal client and export mapping tests."""

from __future__ import annotations

from datetime import date
from urllib.parse import parse_qs

import httpx
import pytest

from services.ghostfolio_sync.clients.eic import (
    EicPortal,
    FeeRow,
    fetch_broker_export,
    map_fee_rows,
    map_orders,
    map_transactions,
    parse_csv,
)
from services.ghostfolio_sync.core.errors import ConfigurationError, ScrapeError

TRANSACTIONS_CSV = (
    "Fond;Druh pokynu;Mena;Počet;Cena;Objem;Poplatok<br />za vykonanie;Obchodný deň;Stav\n"
    "ABC;Kúpa;EUR;10;5;50;0,50;01.03.2024;Zaúčtovaný\n"
    "ABC;Predaj;EUR;2;6;12;0;05.03.2024;Čaká na vysporiadanie\n"
    ";;;;;;;;\n"
)

ORDERS_CSV = (
    "Druh pokynu;Mám;Počet;Chcem;ISIN;Dátum\n"
    "Nákup;EUR;10;ABC;IE000123;28.02.2024\n"
    "Konverzia;CZK;100;EUR;;28.02.2024\n"
)

LOGIN_PAGE = """
<html><body>
  <form action="/j_security_check" method="post">
    <input type="hidden" name="csrf" value="tok-1">
    <input type="text" name="j_username">
    <input type="password" name="j_password">
    <input type="submit" name="login" value="Prihlásiť">
  </form>
</body></html>
"""


def _dashboard(page: int, rows: list[tuple[str, str, str, str]]) -> str:
    body = "".join(
        f"<tr><td>{period}</td><td>x</td><td>x</td><td>{processing}</td><td>{management}</td><td>{baggage}</td></tr>"
        for period, processing, management, baggage in rows
    )
    return f"""
<html><body>
  <div class="header">Dashboard</div>
  <div class="box">
    <form><select>
      <option>Prehľad</option>
      <option selected>Záväzky a poplatky mesačne</option>
    </select></form>
    <table class="table poplatky">
      <tr><th>Obdobie</th><th>a</th><th>b</th><th>c</th><th>d</th><th>e</th></tr>
      {body}
    </table>
    <ul class="pagination">
      <li><a href="/?page={max(page - 1, 1)}">&lt;</a></li>
      <li><a href="#">{page}</a></li>
      <li><a href="/?page=2">&gt;</a></li>
    </ul>
  </div>
</body></html>
"""


class PortalStub:
    def __init__(self, accept_login: bool = True) -> None:
        self.accept_login = accept_login
        self.logged_in = False
        self.requests: list[httpx.Request] = []
        self.form: dict[str, list[str]] = {}
        self.export_cookies: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path == "/j_security_check":
            self.form = parse_qs(request.content.decode())
            if not self.accept_login:
                return httpx.Response(200, text=LOGIN_PAGE)
            self.logged_in = True
            return httpx.Response(200, text=_dashboard(1, []), headers={"Set-Cookie": "JSESSIONID=abc; Path=/"})
        if request.url.path == "/" and not self.logged_in:
            return httpx.Response(200, text=LOGIN_PAGE)
        if request.url.path == "/":
            if request.url.params.get("page") == "2":
                return httpx.Response(200, text=_dashboard(2, [("01/2024", "-", "-1.00 EUR", "-")]))
            return httpx.Response(
                200,
                text=_dashboard(1, [("03/2024", "-", "-3.00 EUR", "-"), ("02/2024", "-", "-2.00 EUR", "-0.10 EUR")]),
            )
        if request.url.path == "/services/services.php":
            self.export_cookies.append(request.headers.get("cookie", ""))
            action = request.url.params["action"]
            text = TRANSACTIONS_CSV if action == "export_transakcie" else ORDERS_CSV
            return httpx.Response(200, content=text.encode("windows-1250"))
        return httpx.Response(404)


def _portal(stub: PortalStub) -> EicPortal:
    http = httpx.AsyncClient(base_url="https://eic.test", transport=httpx.MockTransport(stub))
    return EicPortal(base_url="https://eic.test", client=http, retry_delay=0, create_retry_delay=0)


def test_transactions_csv_maps_to_transactions():
    transactions = map_transactions(parse_csv(TRANSACTIONS_CSV))

    assert len(transactions) == 2
    first, second = transactions
    assert first.symbol == "ABC"
    assert first.type == "BUY"
    assert first.amount == 10
    assert first.price == 5
    assert first.fee == 0.5
    assert first.date == "01.03.2024"
    assert first.accounted is True
    assert second.type == "SELL"
    assert second.accounted is False


def test_conversion_orders_are_dropped():
    orders = map_orders(parse_csv(ORDERS_CSV))

    assert [(order.symbol, order.isin, order.currency) for order in orders] == [("ABC", "IE000123", "EUR")]


def test_fee_rows_resolve_currency_and_month():
    schedule = map_fee_rows(
        [
            FeeRow(period="03/2024", processing_fee="-", management_fee="-3.00 CZK", baggage_fee="-"),
            FeeRow(period="", processing_fee="-", management_fee="-1.00 CZK", baggage_fee="-"),
        ]
    )

    assert schedule.currency == "CZK"
    assert schedule.fees[0].management_fee == 3.0
    assert schedule.fees[0].date == date(2024, 3, 1)
    assert schedule.fees[1].date is None


def test_fee_rows_without_any_currency_fail():
    with pytest.raises(ScrapeError):
        map_fee_rows([FeeRow(period="03/2024", processing_fee="-", management_fee="-", baggage_fee="-")])


@pytest.mark.asyncio
async def test_login_then_scrape_all_fee_pages():
    stub = PortalStub()
    async with _portal(stub) as portal:
        await portal.login("user", "pass")
        rows = await portal.scrape_fee_table()

    assert stub.form["j_username"] == ["user"]
    assert stub.form["j_password"] == ["pass"]
    assert stub.form["csrf"] == ["tok-1"]
    assert [row.period for row in rows] == ["03/2024", "02/2024", "01/2024"]
    assert rows[1].baggage_fee == "-0.10 EUR"


@pytest.mark.asyncio
async def test_rejected_login_raises():
    async with _portal(PortalStub(accept_login=False)) as portal:
        with pytest.raises(ScrapeError, match="Unable to login"):
            await portal.login("user", "wrong")


@pytest.mark.asyncio
async def test_downloads_require_login():
    async with _portal(PortalStub()) as portal:
        with pytest.raises(ScrapeError, match="log in"):
            await portal.download_transactions_csv()


@pytest.mark.asyncio
async def test_fetch_broker_export_bundles_everything():
    stub = PortalStub()
    async with _portal(stub) as portal:
        export = await fetch_broker_export(portal, "user", "pass")

    assert [transaction.symbol for transaction in export.transactions] == ["ABC", "ABC"]
    assert export.orders[0].isin == "IE000123"
    assert export.fees.currency == "EUR"
    assert [fee.management_fee for fee in export.fees.fees] == [3.0, 2.0, 1.0]
    assert stub.export_cookies == ["JSESSIONID=abc", "JSESSIONID=abc"]


@pytest.mark.asyncio
async def test_fetch_broker_export_requires_credentials():
    async with _portal(PortalStub()) as portal:
        with pytest.raises(ConfigurationError):
            await fetch_broker_export(portal, None, "pass")


@pytest.mark.parametrize("period", ["13/2024", "ab/cd", "03/2024/1"])
def test_malformed_fee_period_is_fatal(period):
    rows = [FeeRow(period=period, processing_fee="-", management_fee="-12.00 EUR", baggage_fee="-")]

    with pytest.raises(ScrapeError, match=period):
        map_fee_rows(rows)
