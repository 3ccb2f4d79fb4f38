"""Trade executor: apply one BUY or SELL order to a category.

Validation happens before any state is touched; on success the caller gets
the category's new asset list plus the ledger record to prepend.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from libao.lib.errors import InsufficientSharesError
from libao.lib.validators import (
    parse_timestamp,
    sanitize_string,
    validate_exchange_rate,
    validate_non_negative,
    validate_price,
    validate_shares,
    validate_symbol,
)
from libao.models import (
    Asset,
    Category,
    Lot,
    OrderAction,
    TradeOrder,
    TransactionRecord,
    TransactionType,
)
from libao.services.lot_ledger import FifoResult, consume_fifo, with_lots

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


@dataclass
class TradeResult:
    """Outcome of an executed order."""

    assets: list[Asset]
    transaction: TransactionRecord


@dataclass
class SellOutcome:
    """Asset list after a sale plus what the sale consumed."""

    assets: list[Asset]
    asset_id: str
    fifo: FifoResult


def ratio_percent(value: Decimal, base: Decimal) -> Decimal:
    """``value / base * 100``, or 0 when the base is not positive."""
    if base <= 0:
        return Decimal("0")
    return value / base * HUNDRED


def validate_order(order: TradeOrder, category: Category) -> TradeOrder:
    """
    Validate and normalize an order before execution.

    Args:
        order: Order as entered
        category: Target category (decides the symbol format)

    Returns:
        Order with normalized symbol and Decimal values, total amount and
        date filled in

    Raises:
        ValidationError: Missing symbol or name, or a malformed number
        InvalidPriceError: Price not positive
        InvalidQuantityError: Shares not positive
    """
    if not isinstance(order.action, OrderAction):
        raise TypeError(f"Unsupported order action: {order.action!r}")

    symbol = validate_symbol(order.symbol, category.market.value)
    name = sanitize_string(order.name)
    price = validate_price(order.price)
    shares = validate_shares(order.shares)
    exchange_rate = validate_exchange_rate(order.exchange_rate)
    fee = validate_non_negative(order.fee, "fee")
    tax = validate_non_negative(order.tax, "tax")

    if order.total_amount is None:
        total_amount = price * shares * exchange_rate
    else:
        total_amount = validate_non_negative(order.total_amount, "total amount")

    if order.transaction_date is None:
        transaction_date = datetime.now(timezone.utc)
    else:
        transaction_date = parse_timestamp(order.transaction_date)

    return replace(
        order,
        symbol=symbol,
        name=name,
        price=price,
        shares=shares,
        exchange_rate=exchange_rate,
        fee=fee,
        tax=tax,
        total_amount=total_amount,
        transaction_date=transaction_date,
    )


def apply_buy(
    assets: list[Asset],
    *,
    symbol: str,
    name: str,
    shares: Decimal,
    price: Decimal,
    exchange_rate: Decimal,
    date: datetime,
    lot_id: str,
    asset_id: Optional[str] = None,
    current_price: Optional[Decimal] = None,
) -> tuple[list[Asset], Asset]:
    """
    Add a purchase lot to the asset holding ``symbol``, creating it if needed.

    Args:
        assets: Category assets (not modified)
        symbol: Stock symbol
        name: Display name for a newly created asset
        shares: Shares bought
        price: Cost per share in trade currency
        exchange_rate: TWD per unit of trade currency
        date: Acquisition timestamp
        lot_id: Identifier for the new lot
        asset_id: Identifier for a newly created asset
        current_price: Price to mark the asset at; existing assets keep their
            price when omitted

    Returns:
        (new asset list, updated asset)
    """
    lot = Lot(
        id=lot_id, date=date, shares=shares, cost_per_share=price, exchange_rate=exchange_rate
    )

    for index, asset in enumerate(assets):
        if asset.symbol == symbol:
            updated = with_lots(asset, [*asset.lots, lot], shares=asset.shares + shares)
            if current_price is not None:
                updated = replace(updated, current_price=current_price)
            return assets[:index] + [updated] + assets[index + 1 :], updated

    created = Asset(
        id=asset_id or str(uuid.uuid4()),
        symbol=symbol,
        name=name,
        shares=shares,
        avg_cost=price,
        current_price=current_price if current_price is not None else price,
        lots=[lot],
    )
    return [*assets, created], created


def apply_sell(
    assets: list[Asset],
    symbol: str,
    shares: Decimal,
    current_price: Optional[Decimal] = None,
    strict: bool = True,
) -> SellOutcome:
    """
    Consume ``shares`` of ``symbol`` FIFO and update or drop the asset.

    Args:
        assets: Category assets (not modified)
        symbol: Stock symbol
        shares: Shares sold
        current_price: Price to mark a surviving asset at
        strict: Reject sales larger than the holding; when False the sale is
            clamped to what is held (used by ledger replay)

    Returns:
        SellOutcome

    Raises:
        InsufficientSharesError: Strict mode and the holding is too small
    """
    for index, asset in enumerate(assets):
        if asset.symbol == symbol:
            break
    else:
        if strict:
            raise InsufficientSharesError(symbol, Decimal("0"), shares)
        return SellOutcome(
            assets=list(assets), asset_id="", fifo=FifoResult(lots=[], unfilled=shares)
        )

    if strict and shares > asset.shares:
        raise InsufficientSharesError(symbol, asset.shares, shares)

    fifo = consume_fifo(asset.lots, shares)
    remaining_shares = asset.shares - min(shares, asset.shares)

    if remaining_shares <= 0:
        new_assets = assets[:index] + assets[index + 1 :]
    else:
        updated = with_lots(asset, fifo.lots, shares=remaining_shares)
        if current_price is not None:
            updated = replace(updated, current_price=current_price)
        new_assets = assets[:index] + [updated] + assets[index + 1 :]

    return SellOutcome(assets=new_assets, asset_id=asset.id, fifo=fifo)


def execute_order(
    category: Category,
    order: TradeOrder,
    total_capital: Decimal,
    martingale: bool = False,
) -> TradeResult:
    """
    Execute a BUY or SELL order against a category.

    Args:
        category: Target category
        order: Order as entered
        total_capital: Portfolio capital, used for the allocation ratio
        martingale: Whether the category belongs to the martingale portfolio

    Returns:
        TradeResult with the category's new assets and the ledger record

    Raises:
        ValidationError: Invalid order fields
        InsufficientSharesError: SELL larger than the holding
    """
    order = validate_order(order, category)
    assert order.total_amount is not None and order.transaction_date is not None

    projected = category.projected_investment(total_capital)

    if order.action == OrderAction.BUY:
        lot_id = str(uuid.uuid4())
        assets, asset = apply_buy(
            category.assets,
            symbol=order.symbol,
            name=order.name,
            shares=order.shares,
            price=order.price,
            exchange_rate=order.exchange_rate,
            date=order.transaction_date,
            lot_id=lot_id,
            asset_id=order.asset_id,
            current_price=order.price,
        )
        record = TransactionRecord(
            id=str(uuid.uuid4()),
            date=order.transaction_date,
            asset_id=asset.id,
            lot_id=lot_id,
            symbol=order.symbol,
            name=order.name,
            type=TransactionType.BUY,
            shares=order.shares,
            price=order.price,
            exchange_rate=order.exchange_rate,
            amount=order.total_amount,
            fee=order.fee,
            tax=order.tax,
            category_name=category.name,
            portfolio_ratio=ratio_percent(order.total_amount, projected),
            is_martingale=martingale,
        )
        logger.info(
            f"BUY {order.shares} {order.symbol} @ {order.price} in '{category.name}' "
            f"(asset {asset.id})"
        )

    elif order.action == OrderAction.SELL:
        outcome = apply_sell(
            category.assets, order.symbol, order.shares, current_price=order.price
        )
        assets = outcome.assets
        cost_twd = outcome.fifo.cost_twd
        record = TransactionRecord(
            id=str(uuid.uuid4()),
            date=order.transaction_date,
            asset_id=outcome.asset_id,
            symbol=order.symbol,
            name=order.name,
            type=TransactionType.SELL,
            shares=order.shares,
            price=order.price,
            exchange_rate=order.exchange_rate,
            amount=order.total_amount,
            fee=order.fee,
            tax=order.tax,
            category_name=category.name,
            realized_pnl=order.total_amount - cost_twd - order.fee - order.tax,
            portfolio_ratio=ratio_percent(cost_twd, projected),
            is_martingale=martingale,
            original_cost_twd=cost_twd,
        )
        logger.info(
            f"SELL {order.shares} {order.symbol} @ {order.price} in '{category.name}', "
            f"realized {record.realized_pnl}"
        )

    else:
        raise TypeError(f"Unsupported order action: {order.action!r}")

    return TradeResult(assets=assets, transaction=record)
