"""Dividend workflow: scan held assets for paid dividends, confirm them into the ledger.

A confirmed dividend is a realized gain with no effect on lots. Scanning
only proposes entries; nothing is written until the user confirms them.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from libao.lib.config import TW_DIVIDEND_TAX_RATE, US_DIVIDEND_TAX_RATE
from libao.lib.errors import ValidationError
from libao.lib.market_hours import local_date
from libao.lib.validators import validate_percentage, validate_price, validate_shares
from libao.models import (
    Asset,
    Category,
    Market,
    PortfolioState,
    TransactionRecord,
    TransactionType,
)
from libao.services.transaction_classifier import filter_side
from libao.services.valuation import market_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScannedDividend:
    """A dividend proposed for confirmation.

    Attributes:
        symbol: Stock symbol
        name: Display name
        asset_id: Asset the dividend is booked against
        category_name: Category holding the asset
        market: Market of the category
        ex_date: Ex-dividend date
        rate_per_share: Cash paid per share (trade currency)
        shares: Shares held before the ex-date
        tax_rate: Withholding rate between 0 and 1
        exchange_rate: TWD per unit of trade currency
    """

    symbol: str
    name: str
    asset_id: str
    category_name: str
    market: Market
    ex_date: date
    rate_per_share: Decimal
    shares: Decimal
    tax_rate: Decimal
    exchange_rate: Decimal

    @property
    def gross_twd(self) -> Decimal:
        return self.shares * self.rate_per_share * self.exchange_rate


def default_tax_rate(market: Market) -> Decimal:
    """US dividends are withheld at 30% for non-residents; Taiwan pays gross."""
    return US_DIVIDEND_TAX_RATE if market == Market.US else TW_DIVIDEND_TAX_RATE


def shares_held_on(
    records: list[TransactionRecord], symbol: str, category_name: str, ex_date: date
) -> Decimal:
    """
    Shares of ``symbol`` held in a category at the start of ``ex_date``.

    Args:
        records: Ledger records of one side
        symbol: Stock symbol
        category_name: Category name
        ex_date: Ex-dividend date; trades on that day do not count

    Returns:
        BUY shares minus SELL shares dated before the ex-date
    """
    held = Decimal("0")
    for record in records:
        if record.symbol != symbol or record.category_name != category_name:
            continue
        if local_date(record.date) >= ex_date:
            continue
        if record.type == TransactionType.BUY:
            held += record.shares
        elif record.type == TransactionType.SELL:
            held -= record.shares
    return held


def _already_recorded(
    records: list[TransactionRecord], symbol: str, category_name: str, ex_date: date
) -> bool:
    return any(
        r.type == TransactionType.DIVIDEND
        and r.symbol == symbol
        and r.category_name == category_name
        and local_date(r.date) == ex_date
        for r in records
    )


async def _scan_asset(
    source: Any,
    category: Category,
    asset: Asset,
    side_records: list[TransactionRecord],
    exchange_rate: Decimal,
) -> list[ScannedDividend]:
    buys = [
        r
        for r in side_records
        if r.type == TransactionType.BUY
        and r.symbol == asset.symbol
        and r.category_name == category.name
    ]
    if not buys:
        logger.debug(f"No BUY on record for {asset.symbol} in '{category.name}', skipping")
        return []

    first_buy = local_date(min(r.date for r in buys))
    events = await source.get_stock_dividends(asset.symbol, category.market, first_buy)

    found = []
    for event in events:
        if _already_recorded(side_records, asset.symbol, category.name, event.date):
            continue
        shares = shares_held_on(side_records, asset.symbol, category.name, event.date)
        if shares <= 0:
            continue
        found.append(
            ScannedDividend(
                symbol=asset.symbol,
                name=asset.name,
                asset_id=asset.id,
                category_name=category.name,
                market=category.market,
                ex_date=event.date,
                rate_per_share=event.rate_per_share,
                shares=shares,
                tax_rate=default_tax_rate(category.market),
                exchange_rate=exchange_rate,
            )
        )
    return found


async def scan_dividends(
    state: PortfolioState, source: Any, martingale: bool = False
) -> list[ScannedDividend]:
    """
    Find dividends paid on held assets that are not yet in the ledger.

    For each held asset the dividend history is fetched from the first BUY
    onward; dividends already booked on the same day for the same position
    are skipped.

    Args:
        state: Portfolio state
        source: Object providing ``async get_stock_dividends(symbol, market, since)``
            (normally a PriceService)
        martingale: Scan the martingale categories instead of personal ones

    Returns:
        Proposed dividends ordered by ex-date
    """
    side_records = filter_side(state.transactions, state.martingale_category_names(), martingale)

    tasks = [
        _scan_asset(
            source,
            category,
            asset,
            side_records,
            market_rate(category.market, state.settings),
        )
        for category in state.collection(martingale)
        for asset in category.assets
    ]
    results = await asyncio.gather(*tasks)

    found = [dividend for batch in results for dividend in batch]
    logger.info(f"Dividend scan found {len(found)} new dividends across {len(tasks)} assets")
    return sorted(found, key=lambda d: (d.ex_date, d.symbol))


def confirm_dividends(
    dividends: list[ScannedDividend], martingale: bool = False
) -> list[TransactionRecord]:
    """
    Turn confirmed dividends into ledger records.

    ``amount`` is the gross dividend in TWD, ``tax`` the withholding on it,
    and ``realized_pnl`` what was actually received.

    Raises:
        ValidationError: Non-positive shares or rate, or a tax rate outside 0..1
    """
    records = []
    for dividend in dividends:
        shares = validate_shares(dividend.shares)
        rate = validate_price(dividend.rate_per_share)
        tax_rate = validate_percentage(dividend.tax_rate, max_value=Decimal("1"))
        if dividend.exchange_rate <= 0:
            raise ValidationError(f"Exchange rate must be positive for {dividend.symbol}")

        gross = shares * rate * dividend.exchange_rate
        tax = gross * tax_rate
        records.append(
            TransactionRecord(
                id=str(uuid.uuid4()),
                date=datetime.combine(dividend.ex_date, time.min, tzinfo=timezone.utc),
                asset_id=dividend.asset_id,
                symbol=dividend.symbol,
                name=dividend.name,
                type=TransactionType.DIVIDEND,
                shares=shares,
                price=rate,
                exchange_rate=dividend.exchange_rate,
                amount=gross,
                fee=Decimal("0"),
                tax=tax,
                category_name=dividend.category_name,
                realized_pnl=gross - tax,
                portfolio_ratio=Decimal("0"),
                is_martingale=martingale,
            )
        )
    return records


def reset_dividends(
    state: PortfolioState, martingale: bool = False
) -> tuple[list[TransactionRecord], int]:
    """
    Drop every DIVIDEND record of one side.

    Returns:
        (remaining ledger, number of records removed)
    """
    names = state.martingale_category_names()
    side_ids = {r.id for r in filter_side(state.transactions, names, martingale)}
    remaining = [
        r
        for r in state.transactions
        if not (r.type == TransactionType.DIVIDEND and r.id in side_ids)
    ]
    return remaining, len(state.transactions) - len(remaining)
