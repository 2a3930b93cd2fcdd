"""Management fee reconciliation tests."""

from __future__ import annotations

from datetime import date

import pytest

from services.ghostfolio_sync.core.errors import ReconciliationError
from services.ghostfolio_sync.schemas import ExchangeRate, FeeRecord, FeeSchedule, Tag
from services.ghostfolio_sync.sync.fees import collect_fees, reconcile_fees

FEE_SYMBOL = "EIC-MNG-FEE"


def _schedule(currency: str, *fees: tuple[date | None, float]) -> FeeSchedule:
    return FeeSchedule(
        currency=currency,
        fees=[FeeRecord(management_fee=amount, date=day) for day, amount in fees],
    )


def test_collect_fees_keeps_dated_positive_fees_sorted():
    fees = [
        FeeRecord(management_fee=3, date=date(2024, 3, 1)),
        FeeRecord(management_fee=0, date=date(2024, 2, 1)),
        FeeRecord(management_fee=1, date=None),
        FeeRecord(management_fee=2, date=date(2024, 1, 1)),
    ]

    collected = collect_fees(fees)

    assert [fee.date for fee in collected] == [date(2024, 1, 1), date(2024, 3, 1)]


@pytest.mark.asyncio
async def test_converts_fee_with_rate_for_its_date(ghostfolio, fake_rates):
    rates = fake_rates([ExchangeRate(date=date(2024, 3, 1), rate_from_currency=1.2, rate_inverted=1 / 1.2)])
    schedule = _schedule("CZK", (date(2024, 3, 1), 100))

    created = await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")

    assert len(created) == 1
    payload = ghostfolio.created_orders[0]
    assert payload["fee"] == pytest.approx(120.0)
    assert payload["currency"] == "EUR"
    assert payload["type"] == "FEE"
    assert payload["unitPrice"] == 0
    assert payload["quantity"] == 0
    assert payload["symbol"] == "EIC-MNG-FEE (01.03.2024)"
    assert payload["date"] == "2024-03-01T00:00:00.000Z"
    assert rates.calls == [("CZK", "EUR", date(2024, 3, 1), date(2024, 3, 1))]


@pytest.mark.asyncio
async def test_same_currency_fees_are_created_as_is_newest_first(ghostfolio, fake_rates):
    rates = fake_rates([])
    schedule = _schedule("EUR", (date(2024, 1, 1), 10), (date(2024, 3, 1), 30), (date(2024, 2, 1), 20))

    await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")

    assert [payload["fee"] for payload in ghostfolio.created_orders] == [30, 20, 10]
    assert rates.calls == []


@pytest.mark.asyncio
async def test_repeated_runs_never_duplicate_fee_orders(ghostfolio, fake_rates):
    rates = fake_rates([])
    schedule = _schedule("EUR", (date(2024, 1, 1), 10), (date(2024, 2, 1), 20))

    await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")
    second = await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")

    assert second == []
    symbols = [payload["symbol"] for payload in ghostfolio.created_orders]
    assert sorted(symbols) == ["EIC-MNG-FEE (01.01.2024)", "EIC-MNG-FEE (01.02.2024)"]


@pytest.mark.asyncio
async def test_window_spans_oldest_to_newest_pending_fee(ghostfolio, fake_rates):
    rates = fake_rates(
        [
            ExchangeRate(date=date(2024, 1, 1), rate_from_currency=0.5, rate_inverted=2),
            ExchangeRate(date=date(2024, 2, 1), rate_from_currency=0.25, rate_inverted=4),
        ]
    )
    schedule = _schedule("CZK", (date(2024, 2, 1), 100), (date(2024, 1, 1), 100))

    await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")

    assert rates.calls == [("CZK", "EUR", date(2024, 1, 1), date(2024, 2, 1))]
    assert [payload["fee"] for payload in ghostfolio.created_orders] == [25.0, 50.0]


@pytest.mark.asyncio
async def test_missing_rate_is_fatal(ghostfolio, fake_rates):
    rates = fake_rates([ExchangeRate(date=date(2024, 2, 29), rate_from_currency=1.2, rate_inverted=0.8)])
    schedule = _schedule("CZK", (date(2024, 3, 1), 100))

    with pytest.raises(ReconciliationError, match="01.03.2024"):
        await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")

    assert ghostfolio.created_orders == []


@pytest.mark.asyncio
async def test_existing_tag_is_attached_but_never_created(ghostfolio, fake_rates):
    schedule = _schedule("EUR", (date(2024, 1, 1), 10))

    await reconcile_fees(ghostfolio, fake_rates([]), schedule, FEE_SYMBOL, "account-1", "EIC")
    assert "tags" not in ghostfolio.created_orders[0]
    assert ghostfolio.created_tags == []

    ghostfolio.tags.append(Tag(id="t1", name="EIC", user_id="user-1"))
    schedule = _schedule("EUR", (date(2024, 2, 1), 20))
    await reconcile_fees(ghostfolio, fake_rates([]), schedule, FEE_SYMBOL, "account-1", "EIC")

    assert ghostfolio.created_orders[1]["tags"] == [{"id": "t1", "name": "EIC", "userId": "user-1"}]


@pytest.mark.asyncio
async def test_nothing_to_add_is_a_no_op(ghostfolio, fake_rates):
    rates = fake_rates([])
    schedule = _schedule("CZK", (None, 10), (date(2024, 1, 1), 0))

    created = await reconcile_fees(ghostfolio, rates, schedule, FEE_SYMBOL, "account-1")

    assert created == []
    assert rates.calls == []
