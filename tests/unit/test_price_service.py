"""Unit tests for PriceService."""

import os
import time
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pandas as pd
import pytest

from libao.lib.cache import CacheManager
from libao.models import Market
from libao.services.price_service import PriceService, yahoo_symbols


def make_ticker(close=None, dividends=None):
    ticker = MagicMock()
    if close is None:
        ticker.history.return_value = pd.DataFrame()
    else:
        ticker.history.return_value = pd.DataFrame({"Close": [close - 1, close]})
    ticker.info = {}
    ticker.dividends = dividends if dividends is not None else pd.Series(dtype=float)
    return ticker


@pytest.fixture
def service(tmp_path):
    return PriceService(cache=CacheManager(tmp_path / "cache"), timeout=2)


@pytest.mark.unit
class TestYahooSymbols:
    def test_tw_tries_both_exchanges(self):
        assert yahoo_symbols("6488", Market.TW) == ["6488.TW", "6488.TWO"]

    def test_us_symbol_unchanged(self):
        assert yahoo_symbols("AAPL", Market.US) == ["AAPL"]


@pytest.mark.unit
class TestGetPrice:
    """Test suite for quote lookups."""

    @pytest.mark.asyncio
    async def test_twse_quote(self, service):
        with patch("libao.services.price_service.yf.Ticker") as mock_ticker:
            mock_ticker.return_value = make_ticker(close=600.0)

            price = await service.get_price("2330", Market.TW)

        assert price == Decimal("600.0")
        mock_ticker.assert_called_once_with("2330.TW")

    @pytest.mark.asyncio
    async def test_falls_back_to_tpex(self, service):
        tickers = {"6488.TW": make_ticker(), "6488.TWO": make_ticker(close=512.0)}

        with patch("libao.services.price_service.yf.Ticker", side_effect=tickers.get):
            price = await service.get_price("6488", Market.TW)

        assert price == Decimal("512.0")

    @pytest.mark.asyncio
    async def test_memory_cache_within_ttl(self, service):
        with patch("libao.services.price_service.yf.Ticker") as mock_ticker:
            mock_ticker.return_value = make_ticker(close=180.0)

            await service.get_price("AAPL", Market.US)
            await service.get_price("AAPL", Market.US)

        assert mock_ticker.call_count == 1

    @pytest.mark.asyncio
    async def test_fresh_file_cache_skips_lookup(self, service):
        service.cache.set("quote", "US:AAPL", {"price": 181.5, "ticker": "AAPL"})

        with patch("libao.services.price_service.yf.Ticker") as mock_ticker:
            price = await service.get_price("AAPL", Market.US)

        assert price == Decimal("181.5")
        mock_ticker.assert_not_called()

    @pytest.mark.asyncio
    async def test_last_known_price_on_failure(self, service):
        service.cache.set("quote", "TW:2330", {"price": 590.0, "ticker": "2330.TW"})
        cache_file = next(service.cache.cache_dir.glob("quote_*.json"))
        an_hour_ago = time.time() - 3600
        os.utime(cache_file, (an_hour_ago, an_hour_ago))

        with patch(
            "libao.services.price_service.yf.Ticker", side_effect=ConnectionError("offline")
        ):
            price = await service.get_price("2330", Market.TW)

        assert price == Decimal("590")

    @pytest.mark.asyncio
    async def test_unknown_symbol_is_none(self, service):
        with patch("libao.services.price_service.yf.Ticker", return_value=make_ticker()):
            assert await service.get_price("ZZZZ", Market.US) is None

    @pytest.mark.asyncio
    async def test_get_prices_dedupes_and_drops_missing(self, service):
        tickers = {"AAPL": make_ticker(close=180.0), "ZZZZ": make_ticker()}

        with patch(
            "libao.services.price_service.yf.Ticker", side_effect=tickers.get
        ) as mock_ticker:
            prices = await service.get_prices(
                [("AAPL", Market.US), ("AAPL", Market.US), ("ZZZZ", Market.US)]
            )

        assert prices == {("AAPL", Market.US): Decimal("180.0")}
        assert mock_ticker.call_count == 2


@pytest.mark.unit
class TestGetStockDividends:
    @pytest.mark.asyncio
    async def test_filters_by_since(self, service):
        series = pd.Series(
            [2.75, 3.0, 3.5],
            index=pd.to_datetime(["2023-09-14", "2023-12-14", "2024-03-14"]),
        )

        with patch(
            "libao.services.price_service.yf.Ticker",
            return_value=make_ticker(dividends=series),
        ):
            events = await service.get_stock_dividends("2330", Market.TW, date(2023, 12, 1))

        assert [(e.date, e.rate_per_share) for e in events] == [
            (date(2023, 12, 14), Decimal("3.0")),
            (date(2024, 3, 14), Decimal("3.5")),
        ]

    @pytest.mark.asyncio
    async def test_lookup_failure_is_empty(self, service):
        with patch(
            "libao.services.price_service.yf.Ticker", side_effect=RuntimeError("boom")
        ):
            assert await service.get_stock_dividends("AAPL", Market.US, date(2024, 1, 1)) == []


@pytest.mark.unit
class TestUsdTwdRate:
    @pytest.mark.asyncio
    async def test_fetched_rate_is_cached(self, service):
        with patch("libao.services.price_service.yf.Ticker", return_value=make_ticker(close=32.5)):
            rate = await service.get_usd_twd_rate()

        assert rate == Decimal("32.5")
        assert service.cache.get_stale("fx", "TWD=X") == {"rate": 32.5}

    @pytest.mark.asyncio
    async def test_falls_back_to_cached_rate(self, service):
        service.cache.set("fx", "TWD=X", {"rate": 31.8})

        with patch.object(
            PriceService, "_fetch_usd_twd", AsyncMock(side_effect=ValueError("no rate"))
        ):
            rate = await service.get_usd_twd_rate()

        assert rate == Decimal("31.8")

    @pytest.mark.asyncio
    async def test_no_rate_ever_fetched(self, service):
        with patch.object(
            PriceService, "_fetch_usd_twd", AsyncMock(side_effect=ValueError("no rate"))
        ):
            assert await service.get_usd_twd_rate() is None
