"""Asset and purchase lot models.

An asset is one symbol held inside a category. Its position is the sum of
its purchase lots, which are consumed first-in first-out on sale.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Lot:
    """A single purchase batch with its own acquisition cost.

    Attributes:
        id: Unique identifier, referenced by the BUY transaction as lot_id
        date: Acquisition timestamp (FIFO order key)
        shares: Shares still held from this purchase
        cost_per_share: Purchase price in the trade currency
        exchange_rate: TWD per unit of trade currency at acquisition
    """

    id: str
    date: datetime
    shares: Decimal
    cost_per_share: Decimal
    exchange_rate: Decimal

    @property
    def cost_twd(self) -> Decimal:
        """Remaining cost basis of this lot in TWD."""
        return self.shares * self.cost_per_share * self.exchange_rate


@dataclass
class Asset:
    """A held symbol inside one category.

    Attributes:
        id: Stable identifier, referenced by transactions as asset_id
        symbol: Stock symbol (2330, AAPL)
        name: Display name
        shares: Total shares held, always the sum of lot shares
        avg_cost: Cost-weighted average price over the lots (trade currency)
        current_price: Last known market price (trade currency)
        lots: Purchase lots in acquisition order
        note: Free-form user note
    """

    id: str
    symbol: str
    name: str
    shares: Decimal
    avg_cost: Decimal
    current_price: Decimal
    lots: list[Lot] = field(default_factory=list)
    note: Optional[str] = None
