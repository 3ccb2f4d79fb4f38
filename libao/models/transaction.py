"""
Transaction record model.

Every executed order and every confirmed dividend appends one record to the
ledger. Records are immutable: they are only ever removed (revoke) or, once,
stamped with an explicit martingale flag by the legacy migration.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


class TransactionType(str, enum.Enum):
    """Enumeration of ledger transaction types."""

    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"


@dataclass(frozen=True)
class TransactionRecord:
    """One ledger entry.

    Attributes:
        id: Unique identifier
        date: Execution (or ex-dividend) timestamp
        asset_id: Asset the record belongs to
        symbol: Stock symbol
        name: Display name at execution time
        type: BUY, SELL or DIVIDEND
        shares: Shares traded (or held, for dividends)
        price: Price per share in trade currency (rate per share for dividends)
        exchange_rate: TWD per unit of trade currency
        amount: Total amount in TWD
        fee: Brokerage fee in TWD
        tax: Transaction or withholding tax in TWD
        category_name: Name of the owning category
        realized_pnl: Locked-in profit, SELL and DIVIDEND only
        portfolio_ratio: Percent of the category's projected investment
        is_martingale: Side flag; None on legacy records
        lot_id: Lot created by a BUY
        original_cost_twd: Exact TWD cost basis consumed by a SELL
    """

    id: str
    date: datetime
    asset_id: str
    symbol: str
    name: str
    type: TransactionType
    shares: Decimal
    price: Decimal
    exchange_rate: Decimal
    amount: Decimal
    category_name: str
    fee: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    realized_pnl: Decimal = Decimal("0")
    portfolio_ratio: Decimal = Decimal("0")
    is_martingale: Optional[bool] = None
    lot_id: Optional[str] = None
    original_cost_twd: Optional[Decimal] = None

    @property
    def is_realizing(self) -> bool:
        """True for records that carry realized P&L."""
        return self.type in (TransactionType.SELL, TransactionType.DIVIDEND)
