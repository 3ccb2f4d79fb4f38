"""Unit tests for fee estimation and industry labels."""

from decimal import Decimal

import pytest

from libao.models import AppSettings, Market, OrderAction
from libao.services.fees import estimate_fees
from libao.services.industry import OTHER, get_industry


@pytest.mark.unit
class TestEstimateFees:
    """Test suite for estimate_fees."""

    def test_tw_buy_discounted_commission(self):
        # 500,000 * 0.001425 * 0.6 = 427.5 -> 427
        estimate = estimate_fees(
            Market.TW, OrderAction.BUY, Decimal("500"), Decimal("1000"), AppSettings()
        )

        assert estimate.fee == Decimal("427")
        assert estimate.tax == Decimal("0")

    def test_tw_sell_adds_transaction_tax(self):
        estimate = estimate_fees(
            Market.TW, OrderAction.SELL, Decimal("600"), Decimal("400"), AppSettings()
        )

        assert estimate.fee == Decimal("205")
        assert estimate.tax == Decimal("720")

    def test_minimum_fee(self):
        estimate = estimate_fees(
            Market.TW, OrderAction.BUY, Decimal("10"), Decimal("1"), AppSettings()
        )

        assert estimate.fee == Decimal("20")

    def test_no_discount_uses_list_rate(self):
        settings = AppSettings(tw_fee_discount=None)
        estimate = estimate_fees(
            Market.TW, OrderAction.BUY, Decimal("100"), Decimal("1000"), settings
        )

        assert estimate.fee == Decimal("142")

    def test_us_orders_free(self):
        estimate = estimate_fees(
            Market.US, OrderAction.SELL, Decimal("150"), Decimal("10"), AppSettings()
        )

        assert estimate.fee == 0
        assert estimate.tax == 0

    def test_disabled_fees(self):
        settings = AppSettings(enable_fees=False)
        estimate = estimate_fees(
            Market.TW, OrderAction.SELL, Decimal("600"), Decimal("400"), settings
        )

        assert estimate.fee == 0
        assert estimate.tax == 0


@pytest.mark.unit
class TestGetIndustry:
    """Test suite for get_industry."""

    @pytest.mark.parametrize(
        "symbol,market,expected",
        [
            ("2330", Market.TW, "半導體 (Semiconductor)"),
            ("0050", Market.TW, "ETF"),
            ("00878", Market.TW, "ETF"),
            ("2603", Market.TW, "航運 (Shipping)"),
            ("2801", Market.TW, "金融 (Financial)"),
            ("9999", Market.TW, OTHER),
            ("nvda", Market.US, "半導體 (Semiconductor)"),
            ("BRK.B", Market.US, "金融 (Financial)"),
            ("ZZZZ", Market.US, "美股其他 (US Other)"),
            ("ABCDEF", Market.US, "美股 ETF/其他"),
        ],
    )
    def test_labels(self, symbol, market, expected):
        assert get_industry(symbol, market) == expected
