"""Brokerage fee and transaction tax estimates for order entry."""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from libao.lib.config import TW_FEE_RATE, TW_MIN_FEE, TW_SELL_TAX_RATE
from libao.models import AppSettings, Market, OrderAction


@dataclass
class FeeEstimate:
    """Estimated charges for an order, in TWD."""

    fee: Decimal
    tax: Decimal


def _floor(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_FLOOR)


def estimate_fees(
    market: Market,
    action: OrderAction,
    price: Decimal,
    shares: Decimal,
    settings: AppSettings,
) -> FeeEstimate:
    """
    Estimate fee and tax for an order.

    Taiwan orders pay a 0.1425% commission (times the broker discount, never
    below 20 TWD) and sells pay a 0.3% transaction tax, both floored to whole
    TWD. US orders and portfolios with fees disabled estimate zero.

    Args:
        market: Market of the category
        action: BUY or SELL
        price: Price per share
        shares: Shares traded
        settings: User settings (enable_fees, tw_fee_discount)

    Returns:
        FeeEstimate
    """
    zero = Decimal("0")
    if not settings.enable_fees or market != Market.TW:
        return FeeEstimate(fee=zero, tax=zero)

    value = price * shares
    if value <= 0:
        return FeeEstimate(fee=zero, tax=zero)

    rate = TW_FEE_RATE
    if settings.tw_fee_discount:
        rate = rate * settings.tw_fee_discount / Decimal(10)

    fee = max(_floor(value * rate), TW_MIN_FEE)
    tax = _floor(value * TW_SELL_TAX_RATE) if action == OrderAction.SELL else zero
    return FeeEstimate(fee=fee, tax=tax)
