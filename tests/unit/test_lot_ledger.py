"""Unit tests for FIFO lot bookkeeping."""

from decimal import Decimal

import pytest

from libao.models import Asset, Lot
from libao.services.lot_ledger import (
    average_cost,
    consume_fifo,
    insert_lot,
    remove_lot,
    sort_lots,
    total_shares,
    with_lots,
)
from tests.helpers import ts


def lot(lot_id: str, when: str, shares: str, cost: str, rate: str = "1") -> Lot:
    return Lot(
        id=lot_id,
        date=ts(when),
        shares=Decimal(shares),
        cost_per_share=Decimal(cost),
        exchange_rate=Decimal(rate),
    )


@pytest.fixture
def two_lots():
    """Lots dated 2024-01-01 (100 @ 10) and 2024-02-01 (100 @ 20), stored out of order."""
    return [lot("feb", "2024-02-01", "100", "20"), lot("jan", "2024-01-01", "100", "10")]


@pytest.mark.unit
class TestConsumeFifo:
    """Test suite for consume_fifo."""

    def test_oldest_lot_consumed_first(self, two_lots):
        """Selling 150 takes all of January and 50 of February."""
        result = consume_fifo(two_lots, Decimal("150"))

        assert result.cost_twd == Decimal("2000")
        assert [a.lot_id for a in result.allocations] == ["jan", "feb"]
        assert [a.shares for a in result.allocations] == [Decimal("100"), Decimal("50")]
        assert len(result.lots) == 1
        assert result.lots[0].id == "feb"
        assert result.lots[0].shares == Decimal("50")
        assert result.unfilled == 0

    def test_exact_lot_is_removed(self, two_lots):
        result = consume_fifo(two_lots, Decimal("100"))

        assert [lt.id for lt in result.lots] == ["feb"]
        assert result.consumed_shares == Decimal("100")

    def test_oversell_reports_unfilled(self, two_lots):
        result = consume_fifo(two_lots, Decimal("250"))

        assert result.lots == []
        assert result.unfilled == Decimal("50")
        assert result.consumed_shares == Decimal("200")

    def test_cost_uses_lot_exchange_rate(self):
        lots = [lot("a", "2024-01-01", "10", "100", rate="30")]
        result = consume_fifo(lots, Decimal("4"))

        assert result.cost_twd == Decimal("12000")

    def test_input_not_modified(self, two_lots):
        consume_fifo(two_lots, Decimal("150"))

        assert two_lots[1].shares == Decimal("100")


@pytest.mark.unit
class TestLotOrdering:
    """Test suite for lot ordering helpers."""

    def test_sort_keeps_insertion_order_on_ties(self):
        lots = [lot("b", "2024-01-01", "1", "1"), lot("a", "2024-01-01", "1", "1")]

        assert [lt.id for lt in sort_lots(lots)] == ["b", "a"]

    def test_insert_lot_merges_chronologically(self, two_lots):
        merged = insert_lot(two_lots, lot("mid", "2024-01-15", "5", "15"))

        assert [lt.id for lt in merged] == ["jan", "mid", "feb"]


@pytest.mark.unit
class TestRemoveLot:
    """Test suite for remove_lot."""

    def test_remove_by_id(self, two_lots):
        remaining, removed = remove_lot(two_lots, "jan")

        assert removed.id == "jan"
        assert [lt.id for lt in remaining] == ["feb"]

    def test_unknown_id_falls_back_to_latest(self, two_lots):
        remaining, removed = remove_lot(two_lots, "missing")

        assert removed.id == "feb"
        assert [lt.id for lt in remaining] == ["jan"]

    def test_missing_id_falls_back_to_latest(self, two_lots):
        _, removed = remove_lot(two_lots, None)

        assert removed.id == "feb"

    def test_empty_list(self):
        assert remove_lot([], "x") == ([], None)


@pytest.mark.unit
class TestAverages:
    """Test suite for share totals and average cost."""

    def test_weighted_average(self, two_lots):
        assert total_shares(two_lots) == Decimal("200")
        assert average_cost(two_lots, Decimal("200")) == Decimal("15")

    def test_average_falls_back_without_shares(self):
        assert average_cost([], Decimal("0"), fallback=Decimal("7")) == Decimal("7")

    def test_with_lots_recomputes_position(self, two_lots):
        asset = Asset(
            id="a1",
            symbol="2330",
            name="TSMC",
            shares=Decimal("0"),
            avg_cost=Decimal("0"),
            current_price=Decimal("25"),
        )
        updated = with_lots(asset, two_lots)

        assert updated.shares == Decimal("200")
        assert updated.avg_cost == Decimal("15")
        assert [lt.id for lt in updated.lots] == ["jan", "feb"]
        assert asset.shares == Decimal("0")
