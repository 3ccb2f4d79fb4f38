"""Capital ledger entries (deposits and withdrawals)."""

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


class CapitalLogType(str, enum.Enum):
    """Direction of a capital movement."""

    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"


@dataclass(frozen=True)
class CapitalLogEntry:
    """A deposit into or withdrawal from the investable capital."""

    id: str
    date: datetime
    type: CapitalLogType
    amount: Decimal
    note: str = ""

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == CapitalLogType.DEPOSIT else -self.amount
