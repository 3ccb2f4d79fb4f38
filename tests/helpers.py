"""Builders shared by the test modules."""

from datetime import datetime, timezone
from decimal import Decimal

from libao.models import OrderAction, TradeOrder


def ts(text: str) -> datetime:
    """Parse ``YYYY-MM-DD[THH:MM]`` as a UTC timestamp."""
    return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)


def make_order(
    symbol: str,
    action: OrderAction,
    price: str,
    shares: str,
    when: str,
    **kwargs,
) -> TradeOrder:
    """Build a TradeOrder from string values."""
    return TradeOrder(
        symbol=symbol,
        name=kwargs.pop("name", symbol),
        action=action,
        price=Decimal(price),
        shares=Decimal(shares),
        transaction_date=ts(when),
        **kwargs,
    )
