"""
Portfolio state: the single canonical document per user.

Every figure shown to the user is derived from this state on read; only the
state itself is persisted.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from libao.lib.config import (
    DEFAULT_CATEGORIES,
    DEFAULT_MARTINGALE_CATEGORIES,
    INITIAL_CAPITAL,
)
from libao.models.capital import CapitalLogEntry, CapitalLogType
from libao.models.category import Category, Market
from libao.models.settings import AppSettings
from libao.models.transaction import TransactionRecord


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class PortfolioState:
    """Canonical portfolio state.

    Attributes:
        total_capital: Signed sum of capital_logs (TWD)
        settings: User settings
        categories: Personal categories
        transactions: Ledger, most recent first
        capital_logs: Deposits and withdrawals
        martingale: Martingale (model portfolio) categories
        last_modified: Epoch milliseconds of the last mutation
    """

    total_capital: Decimal = Decimal("0")
    settings: AppSettings = field(default_factory=AppSettings)
    categories: list[Category] = field(default_factory=list)
    transactions: list[TransactionRecord] = field(default_factory=list)
    capital_logs: list[CapitalLogEntry] = field(default_factory=list)
    martingale: list[Category] = field(default_factory=list)
    last_modified: int = 0

    def collection(self, martingale: bool) -> list[Category]:
        """Return the martingale or personal category list."""
        return self.martingale if martingale else self.categories

    def martingale_category_names(self) -> set[str]:
        return {category.name for category in self.martingale}

    def find_transaction(self, transaction_id: str) -> Optional[TransactionRecord]:
        for record in self.transactions:
            if record.id == transaction_id:
                return record
        return None


def _build_categories(defaults: list[tuple[str, str, str, Decimal]]) -> list[Category]:
    return [
        Category(id=cat_id, name=name, market=Market(market), allocation_percent=percent)
        for cat_id, name, market, percent in defaults
    ]


def new_portfolio_state(initial_capital: Decimal = INITIAL_CAPITAL) -> PortfolioState:
    """
    Build the state of a brand-new portfolio.

    The initial capital is recorded as a DEPOSIT so total_capital stays equal
    to the sum of the capital ledger.

    Args:
        initial_capital: Opening capital in TWD

    Returns:
        Fresh PortfolioState with the default category sets
    """
    logs = []
    if initial_capital > 0:
        logs.append(
            CapitalLogEntry(
                id=str(uuid.uuid4()),
                date=datetime.now(timezone.utc),
                type=CapitalLogType.DEPOSIT,
                amount=initial_capital,
                note="Initial capital",
            )
        )

    return PortfolioState(
        total_capital=sum((log.signed_amount for log in logs), Decimal("0")),
        categories=_build_categories(DEFAULT_CATEGORIES),
        capital_logs=logs,
        martingale=_build_categories(DEFAULT_MARTINGALE_CATEGORIES),
        last_modified=now_millis(),
    )
