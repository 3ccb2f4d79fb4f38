"""Market data lookups: quotes, dividend history and the USD/TWD rate.

All lookups go to Yahoo Finance through yfinance. Every call is bounded by a
timeout and degrades to the last known value instead of raising, so a slow
or failing data source never blocks ledger operations.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import pandas as pd
import yfinance as yf
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from libao.lib.cache import CacheManager
from libao.lib.config import (
    FETCH_TIMEOUT_SECONDS,
    PRICE_CACHE_TTL_SECONDS,
    USD_TWD_SYMBOL,
)
from libao.models import Market

logger = logging.getLogger(__name__)

PriceKey = tuple[str, Market]


@dataclass
class DividendEvent:
    """A cash dividend paid per share, keyed by ex-dividend date."""

    date: date
    rate_per_share: Decimal


def yahoo_symbols(symbol: str, market: Market) -> list[str]:
    """
    Yahoo Finance tickers to try for a symbol, in order.

    Taiwan listings live on TWSE (``.TW``) or TPEx (``.TWO``); the exchange is
    not known up front, so both are tried.
    """
    if market == Market.TW:
        return [f"{symbol}.TW", f"{symbol}.TWO"]
    return [symbol]


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or pd.isna(value):
        return None
    result = Decimal(str(float(value)))
    return result if result > 0 else None


class PriceService:
    """Fetches quotes and dividends with in-memory and file caching."""

    # Class-level cache shared across instances: key -> (price, fetched at)
    _price_cache: dict[str, tuple[Decimal, datetime]] = {}

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize price service.

        Args:
            cache: File cache for last-known prices (default: ~/.libao/cache)
            timeout: Seconds allowed per Yahoo Finance call
        """
        self.cache = cache or CacheManager()
        self.timeout = timeout

    @staticmethod
    def _cache_key(symbol: str, market: Market) -> str:
        return f"{market.value}:{symbol}"

    def _fetch_quote(self, ticker: str) -> Optional[Decimal]:
        """Blocking quote lookup for one Yahoo ticker."""
        yf_ticker = yf.Ticker(ticker)
        history = yf_ticker.history(period="5d")
        if history is not None and not history.empty and "Close" in history.columns:
            closes = history["Close"].dropna()
            if not closes.empty:
                return _to_decimal(closes.iloc[-1])

        info = yf_ticker.info or {}
        return _to_decimal(
            info.get("currentPrice") or info.get("regularMarketPrice") or info.get("previousClose")
        )

    def _fetch_dividends(self, ticker: str) -> "pd.Series[Any]":
        """Blocking dividend history lookup for one Yahoo ticker."""
        return yf.Ticker(ticker).dividends

    async def _call(self, func: Any, *args: Any) -> Any:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)

    def _last_known(self, symbol: str, market: Market) -> Optional[Decimal]:
        key = self._cache_key(symbol, market)
        if key in self._price_cache:
            return self._price_cache[key][0]
        cached = self.cache.get_stale("quote", key)
        if cached and "price" in cached:
            return Decimal(str(cached["price"]))
        return None

    async def get_price(self, symbol: str, market: Market) -> Optional[Decimal]:
        """
        Get the current price of a symbol.

        Strategy:
        1. In-memory cache younger than the TTL
        2. File cache younger than its TTL (survives across invocations)
        3. Yahoo Finance, trying each exchange suffix
        4. Last known price (memory, then file cache), however old

        Args:
            symbol: Stock symbol
            market: Market the symbol trades in

        Returns:
            Price in the market's currency, or None if never seen
        """
        key = self._cache_key(symbol, market)
        now = datetime.now(timezone.utc)

        if key in self._price_cache:
            cached_price, cached_time = self._price_cache[key]
            if (now - cached_time).total_seconds() < PRICE_CACHE_TTL_SECONDS:
                return cached_price

        cached = self.cache.get("quote", key)
        if cached and "price" in cached:
            price = Decimal(str(cached["price"]))
            self._price_cache[key] = (price, now)
            return price

        for ticker in yahoo_symbols(symbol, market):
            try:
                price = await self._call(self._fetch_quote, ticker)
            except asyncio.TimeoutError:
                logger.warning(f"Quote for {ticker} timed out after {self.timeout}s")
                continue
            except Exception as e:
                logger.warning(f"Yahoo Finance failed for {ticker}: {e}")
                continue

            if price is not None:
                self._price_cache[key] = (price, now)
                self.cache.set("quote", key, {"price": float(price), "ticker": ticker})
                logger.debug(f"Fetched {ticker}: {price}")
                return price

        stale = self._last_known(symbol, market)
        if stale is not None:
            logger.warning(f"Using last known price for {symbol}: {stale}")
        return stale

    async def get_prices(self, items: list[PriceKey]) -> dict[PriceKey, Decimal]:
        """
        Fetch prices for many symbols concurrently.

        Duplicate (symbol, market) pairs are fetched once. Symbols without any
        known price are left out of the result.
        """
        unique = list(dict.fromkeys(items))
        if not unique:
            return {}

        prices = await asyncio.gather(*(self.get_price(s, m) for s, m in unique))
        return {key: price for key, price in zip(unique, prices) if price is not None}

    async def get_stock_dividends(
        self, symbol: str, market: Market, since: date
    ) -> list[DividendEvent]:
        """
        Get cash dividends with an ex-date on or after ``since``.

        Returns:
            Dividend events, oldest first; empty if the lookup fails
        """
        for ticker in yahoo_symbols(symbol, market):
            try:
                series = await self._call(self._fetch_dividends, ticker)
            except asyncio.TimeoutError:
                logger.warning(f"Dividend lookup for {ticker} timed out")
                continue
            except Exception as e:
                logger.warning(f"Dividend lookup failed for {ticker}: {e}")
                continue

            if series is None or series.empty:
                continue

            events = []
            for timestamp, value in series.items():
                ex_date = pd.Timestamp(timestamp).date()
                rate = _to_decimal(value)
                if ex_date >= since and rate is not None:
                    events.append(DividendEvent(date=ex_date, rate_per_share=rate))
            return sorted(events, key=lambda e: e.date)

        return []

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type((ConnectionError, TimeoutError, ValueError)),
        reraise=True,
    )
    async def _fetch_usd_twd(self) -> Decimal:
        """
        Fetch the USD/TWD rate with retry logic.

        Raises:
            ValueError: If Yahoo Finance returns no usable rate
        """
        try:
            rate = await self._call(self._fetch_quote, USD_TWD_SYMBOL)
        except asyncio.TimeoutError:
            raise TimeoutError(f"{USD_TWD_SYMBOL} lookup timed out") from None
        if rate is None:
            raise ValueError(f"No rate available for {USD_TWD_SYMBOL}")
        return rate

    async def get_usd_twd_rate(self) -> Optional[Decimal]:
        """
        Get TWD per USD, falling back to the last cached rate.

        Returns:
            Exchange rate or None if no rate was ever fetched
        """
        try:
            rate = await self._fetch_usd_twd()
        except Exception as e:
            logger.warning(f"USD/TWD rate fetch failed: {e}")
            cached = self.cache.get_stale("fx", USD_TWD_SYMBOL)
            if cached and "rate" in cached:
                return Decimal(str(cached["rate"]))
            return None

        self.cache.set("fx", USD_TWD_SYMBOL, {"rate": float(rate)})
        logger.info(f"USD/TWD rate: {rate}")
        return rate
