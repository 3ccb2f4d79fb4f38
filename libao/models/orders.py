"""Order intent submitted to the trade executor."""

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


class OrderAction(str, enum.Enum):
    """Side of a trade order."""

    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class TradeOrder:
    """A BUY or SELL request for one symbol in one category.

    Values are taken as entered; the executor validates them before touching
    any state.

    Attributes:
        symbol: Stock symbol
        name: Display name
        action: BUY or SELL
        price: Price per share in trade currency
        shares: Shares to trade
        exchange_rate: TWD per unit of trade currency (1 for TW)
        fee: Brokerage fee in TWD
        tax: Transaction tax in TWD
        total_amount: Gross TWD amount; defaults to price * shares * exchange_rate
        transaction_date: Execution time; defaults to now
        asset_id: Caller-chosen id for a newly created asset
    """

    symbol: str
    name: str
    action: OrderAction
    price: Decimal
    shares: Decimal
    exchange_rate: Decimal = Decimal("1")
    fee: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total_amount: Optional[Decimal] = None
    transaction_date: Optional[datetime] = None
    asset_id: Optional[str] = None
