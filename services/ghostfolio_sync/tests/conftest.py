import asyncio
import inspect
import itertools
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[3]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.ghostfolio_sync.schemas import (  # noqa: E402
    Account,
    Activity,
    CountriesAndSectors,
    CountryCode,
    CountryWeight,
    CreatedActivity,
    CreatedProfile,
    ExchangeRate,
    ExchangeRateSeries,
    HistoricalSeries,
    MarketDataForSymbol,
    MarketDataProfile,
    MarketPrice,
    Platform,
    SectorWeight,
    Tag,
    User,
)


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        names = inspect.signature(test_function).parameters
        kwargs = {name: value for name, value in pyfuncitem.funcargs.items() if name in names}
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            loop.run_until_complete(test_function(**kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


class FakeGhostfolio:
    """In-memory stand-in for :class:`GhostfolioClient` recording every write."""

    def __init__(self, base_currency: str = "EUR") -> None:
        self._ids = itertools.count(1)
        self.user = User(id="user-1", settings={"base_currency": base_currency})
        self.platforms: list[Platform] = []
        self.tags: list[Tag] = []
        self.accounts: list[Account] = []
        self.profiles: list[MarketDataProfile] = []
        self.market_data: dict[str, list[MarketPrice]] = {}
        self.orders: list[Activity] = []
        self.created_orders: list[dict] = []
        self.profile_updates: dict[str, dict] = {}
        self.market_data_calls: list[tuple[str, int]] = []
        self.created_platforms = 0
        self.created_tags: list[dict] = []
        self.created_accounts: list[dict] = []
        self.auth_token: str | None = "token"
        self.cleared = False

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def clear_token(self) -> None:
        self.auth_token = None
        self.cleared = True

    async def get_user(self) -> User:
        return self.user

    async def get_base_currency(self) -> str:
        return self.user.settings.base_currency

    async def get_platforms(self) -> list[Platform]:
        return list(self.platforms)

    async def create_platform(self, platform) -> Platform:
        self.created_platforms += 1
        created = Platform(id=self._next_id("platform"), **platform.model_dump())
        self.platforms.append(created)
        return created

    async def get_tags(self) -> list[Tag]:
        return list(self.tags)

    async def create_tag(self, tag) -> Tag:
        self.created_tags.append(tag.to_payload())
        created = Tag(id=self._next_id("tag"), name=tag.name, user_id=tag.user_id)
        self.tags.append(created)
        return created

    async def get_accounts(self) -> list[Account]:
        return list(self.accounts)

    async def create_account(self, account) -> Account:
        self.created_accounts.append(account.to_payload())
        created = Account(
            id=self._next_id("account"),
            name=account.name,
            balance=account.balance,
            currency=account.currency,
            platform_id=account.platform_id,
        )
        self.accounts.append(created)
        return created

    async def get_profiles(self) -> list[MarketDataProfile]:
        return list(self.profiles)

    async def create_profile(self, symbol: str) -> CreatedProfile:
        self.profiles.append(MarketDataProfile(symbol=symbol, data_source="MANUAL"))
        return CreatedProfile(symbol=symbol)

    async def update_profile(self, symbol: str, profile) -> None:
        self.profile_updates[symbol] = profile.to_payload()

    async def get_market_data(self, symbol: str) -> MarketDataForSymbol:
        return MarketDataForSymbol(market_data=list(self.market_data.get(symbol, [])))

    async def set_market_data(self, symbol: str, points: list[MarketPrice]) -> None:
        self.market_data_calls.append((symbol, len(points)))
        self.market_data.setdefault(symbol, []).extend(points)

    async def get_orders(self) -> list[Activity]:
        return list(self.orders)

    async def create_order(self, activity) -> CreatedActivity:
        payload = activity.to_payload()
        self.created_orders.append(payload)
        order_id = self._next_id("order")
        self.orders.append(
            Activity.model_validate(
                {
                    "id": order_id,
                    "date": payload["date"],
                    "type": payload["type"],
                    "unitPrice": payload["unitPrice"],
                    "quantity": payload["quantity"],
                    "fee": payload["fee"],
                    "currency": payload["currency"],
                    "accountId": payload.get("accountId"),
                    "SymbolProfile": {"symbol": payload["symbol"], "name": payload["symbol"]},
                    "tags": payload.get("tags", []),
                }
            )
        )
        return CreatedActivity(id=order_id, date=payload["date"], type=payload["type"])


class FakeJustEtf:
    def __init__(self, series: dict[str, HistoricalSeries] | None = None) -> None:
        self.series = series or {}
        self.profile_calls: list[str] = []
        self.countries_and_sectors = CountriesAndSectors(
            countries=[
                CountryWeight(country="United States", weight=0.6),
                CountryWeight(country="Japan", weight=0.3),
                CountryWeight(country="Other", weight=0.1),
            ],
            sectors=[SectorWeight(sector="Technology", weight=1.0)],
        )

    async def get_historical_series(self, isin: str, currency: str) -> HistoricalSeries | None:
        return self.series.get(isin)

    async def get_countries_and_sectors(self, isin: str) -> CountriesAndSectors:
        self.profile_calls.append(isin)
        return self.countries_and_sectors


class FakeCountryCodes:
    def __init__(self) -> None:
        self.calls = 0

    async def get_country_codes(self) -> list[CountryCode]:
        self.calls += 1
        return [
            CountryCode(country="United States of America (the)", alpha2="US", alpha3="USA"),
            CountryCode(country="Japan", alpha2="JP", alpha3="JPN"),
        ]


class FakeRates:
    def __init__(self, rates: list[ExchangeRate]) -> None:
        self.rates = rates
        self.calls: list[tuple] = []

    async def get_rates_for_date_range(self, from_currency, to_currency, start, end, *, now=None):
        self.calls.append((from_currency, to_currency, start, end))
        return ExchangeRateSeries(rates=self.rates)


@pytest.fixture
def ghostfolio() -> FakeGhostfolio:
    return FakeGhostfolio()


@pytest.fixture
def justetf() -> FakeJustEtf:
    return FakeJustEtf()


@pytest.fixture
def country_codes() -> FakeCountryCodes:
    return FakeCountryCodes()


@pytest.fixture
def fake_rates():
    return FakeRates
