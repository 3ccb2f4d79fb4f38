"""Unit tests for rebuilding positions from the ledger."""

from dataclasses import replace
from decimal import Decimal

import pytest

from libao.models import OrderAction, TransactionRecord, TransactionType
from libao.services.ledger_replay import chronological, repair_portfolio, replay_ledger
from libao.services.portfolio_service import ExecuteOrder, apply_mutation
from tests.helpers import make_order, ts

TRADES = [
    ("tw-core", "2330", OrderAction.BUY, "500", "1000", "2024-01-10"),
    ("tw-core", "2330", OrderAction.BUY, "550", "500", "2024-02-10"),
    ("tw-core", "0050", OrderAction.BUY, "130", "200", "2024-02-15"),
    ("tw-core", "2330", OrderAction.SELL, "600", "1200", "2024-03-10"),
    ("us-core", "AAPL", OrderAction.BUY, "180", "10", "2024-03-12"),
    ("tw-core", "0050", OrderAction.SELL, "140", "50", "2024-04-01"),
]


def snapshot(categories):
    return [
        [
            (
                a.symbol,
                a.shares,
                a.avg_cost,
                [(lt.date, lt.shares, lt.cost_per_share) for lt in a.lots],
            )
            for a in category.assets
        ]
        for category in categories
    ]


@pytest.fixture
def traded_state(empty_state):
    """State built by executing TRADES one by one."""
    state = empty_state
    for category_id, symbol, action, price, shares, when in TRADES:
        rate = Decimal("31") if category_id == "us-core" else Decimal("1")
        order = make_order(symbol, action, price, shares, when, exchange_rate=rate)
        state = apply_mutation(state, ExecuteOrder(category_id=category_id, order=order))
    return state


@pytest.mark.unit
class TestReplay:
    """Test suite for replay_ledger and repair_portfolio."""

    def test_replay_matches_incremental_execution(self, traded_state):
        categories, report = replay_ledger(traded_state.categories, traded_state.transactions)

        assert snapshot(categories) == snapshot(traded_state.categories)
        assert report.replayed == len(TRADES)
        assert report.skipped == 0
        assert report.oversold == []

    def test_replay_is_idempotent(self, traded_state):
        once, _ = repair_portfolio(traded_state)
        twice, _ = repair_portfolio(once)

        assert snapshot(once.categories) == snapshot(twice.categories)

    def test_repair_fixes_drifted_positions(self, traded_state):
        tw = traded_state.categories[0]
        broken = replace(
            traded_state,
            categories=[replace(tw, assets=[]), *traded_state.categories[1:]],
        )

        repaired, _ = repair_portfolio(broken)

        assert snapshot(repaired.categories) == snapshot(traded_state.categories)

    def test_repair_keeps_current_prices(self, traded_state):
        tw = traded_state.categories[0]
        marked = [replace(a, current_price=Decimal("999")) for a in tw.assets]
        state = replace(
            traded_state, categories=[replace(tw, assets=marked), traded_state.categories[1]]
        )

        repaired, _ = repair_portfolio(state)

        assert all(a.current_price == Decimal("999") for a in repaired.categories[0].assets)

    def test_dividends_ignored(self, traded_state):
        dividend = TransactionRecord(
            id="d1",
            date=ts("2024-05-01"),
            asset_id="x",
            symbol="0050",
            name="0050",
            type=TransactionType.DIVIDEND,
            shares=Decimal("150"),
            price=Decimal("2"),
            exchange_rate=Decimal("1"),
            amount=Decimal("300"),
            category_name="TW Core",
            realized_pnl=Decimal("300"),
        )
        categories, report = replay_ledger(
            traded_state.categories, [dividend, *traded_state.transactions]
        )

        assert report.replayed == len(TRADES)
        assert snapshot(categories) == snapshot(traded_state.categories)

    def test_unknown_category_skipped(self, traded_state):
        orphan = replace(traded_state.transactions[0], id="o1", category_name="Deleted")
        _, report = replay_ledger(traded_state.categories, [orphan, *traded_state.transactions])

        assert report.skipped == 1

    def test_oversold_sell_is_clamped(self, empty_state):
        sell = TransactionRecord(
            id="s1",
            date=ts("2024-01-01"),
            asset_id="a",
            symbol="2330",
            name="2330",
            type=TransactionType.SELL,
            shares=Decimal("10"),
            price=Decimal("500"),
            exchange_rate=Decimal("1"),
            amount=Decimal("5000"),
            category_name="TW Core",
        )
        categories, report = replay_ledger(empty_state.categories, [sell])

        assert categories[0].assets == []
        assert report.oversold == ["s1"]

    def test_chronological_keeps_execution_order_on_ties(self, traded_state):
        first = replace(traded_state.transactions[0], id="first", date=ts("2025-01-01"))
        second = replace(traded_state.transactions[0], id="second", date=ts("2025-01-01"))

        # Ledger is newest first: "second" was executed after "first"
        ordered = chronological([second, first])

        assert [r.id for r in ordered] == ["first", "second"]

    def test_legacy_buys_replay_identically(self, traded_state):
        legacy = [replace(r, lot_id=None, asset_id="") for r in traded_state.transactions]

        first, _ = replay_ledger(traded_state.categories, legacy)
        second, _ = replay_ledger(traded_state.categories, legacy)

        assert first == second
        lot_ids = {lt.id for a in first[0].assets for lt in a.lots}
        assert lot_ids <= {r.id for r in legacy}
