"""Unit tests for the persisted portfolio document."""

from decimal import Decimal

import pydantic
import pytest

from libao.lib.document_models import (
    public_martingale_from_document,
    public_martingale_to_document,
    state_from_document,
    state_to_document,
)
from libao.models import CapitalLogType, Market, TransactionType, UsBroker

LEGACY_DOCUMENT = {
    "totalCapital": 2000000,
    "settings": {"usExchangeRate": 31.5, "enableFees": False, "usBroker": "IBKR"},
    "categories": [
        {
            "id": "tw-g",
            "name": "G倉 (長線)",
            "market": "TW",
            "allocationPercent": 25,
            "assets": [
                {
                    "id": "a1",
                    "symbol": "2330",
                    "name": "台積電",
                    "shares": 1000,
                    "avgCost": 500,
                    "currentPrice": 600,
                }
            ],
        }
    ],
    "transactions": [
        {
            "id": "t1",
            "date": "2024-01-10T01:30:00.000Z",
            "assetId": "a1",
            "symbol": "2330",
            "name": "台積電",
            "type": "BUY",
            "shares": 1000,
            "price": 500,
            "exchangeRate": 1,
            "amount": 500000,
            "fee": 20,
            "tax": 0,
            "categoryName": "G倉 (長線)",
            "portfolioRatio": 100,
        }
    ],
    "martingale": [],
    "lastModified": 1704850200000,
}


@pytest.mark.unit
class TestStateFromDocument:
    """Test suite for reading documents."""

    def test_legacy_document(self):
        state = state_from_document(LEGACY_DOCUMENT)

        assert state.settings.us_exchange_rate == Decimal("31.5")
        assert state.settings.enable_fees is False
        assert state.settings.us_broker == UsBroker.IBKR
        assert state.categories[0].market == Market.TW
        asset = state.categories[0].assets[0]
        assert asset.shares == Decimal("1000")
        assert asset.lots == []

        record = state.transactions[0]
        assert record.type == TransactionType.BUY
        assert record.is_martingale is None
        assert record.lot_id is None
        assert record.realized_pnl == Decimal("0")
        assert record.date.tzinfo is not None
        assert state.last_modified == 1704850200000

    def test_total_capital_becomes_opening_deposit(self):
        state = state_from_document(LEGACY_DOCUMENT)

        assert len(state.capital_logs) == 1
        assert state.capital_logs[0].type == CapitalLogType.DEPOSIT
        assert state.total_capital == Decimal("2000000")

    def test_total_capital_follows_logs(self):
        document = {
            **LEGACY_DOCUMENT,
            "totalCapital": 5,
            "capitalLogs": [
                {"id": "c1", "date": "2024-01-01", "type": "DEPOSIT", "amount": 300},
                {"id": "c2", "date": "2024-02-01", "type": "WITHDRAW", "amount": 100},
            ],
        }

        assert state_from_document(document).total_capital == Decimal("200")

    def test_bad_market_rejected(self):
        document = {
            **LEGACY_DOCUMENT,
            "categories": [{"id": "x", "name": "X", "market": "JP"}],
        }

        with pytest.raises(pydantic.ValidationError):
            state_from_document(document)

    def test_zero_share_lot_rejected(self):
        category = {
            "id": "x",
            "name": "X",
            "market": "TW",
            "assets": [
                {
                    "id": "a",
                    "symbol": "2330",
                    "shares": 0,
                    "lots": [{"id": "l", "date": "2024-01-01", "shares": 0, "costPerShare": 1}],
                }
            ],
        }

        with pytest.raises(pydantic.ValidationError):
            state_from_document({"categories": [category]})


@pytest.mark.unit
class TestStateToDocument:
    """Test suite for writing documents."""

    def test_camel_case_and_numbers(self):
        document = state_to_document(state_from_document(LEGACY_DOCUMENT))

        assert document["totalCapital"] == 2000000.0
        assert document["settings"]["usExchangeRate"] == 31.5
        transaction = document["transactions"][0]
        assert transaction["categoryName"] == "G倉 (長線)"
        assert transaction["date"] == "2024-01-10T01:30:00.000Z"
        assert transaction["amount"] == 500000.0
        assert "isMartingale" not in transaction
        assert "lotId" not in transaction
        assert document["capitalLogs"][0]["type"] == "DEPOSIT"

    def test_written_document_reads_back(self):
        state = state_from_document(LEGACY_DOCUMENT)

        again = state_from_document(state_to_document(state))

        assert again.categories == state.categories
        assert again.transactions == state.transactions
        assert again.total_capital == state.total_capital


@pytest.mark.unit
class TestPublicMartingaleDocument:
    def test_reads_back_categories_and_records(self, fresh_state):
        records = state_from_document(LEGACY_DOCUMENT).transactions

        document = public_martingale_to_document(fresh_state.martingale, records)
        categories, transactions = public_martingale_from_document(document)

        assert [c.name for c in categories] == ["馬丁策略 (Martingale)"]
        assert transactions[0].id == "t1"
