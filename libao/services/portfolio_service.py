"""Portfolio state transitions.

Every change to a portfolio goes through ``apply_mutation(state, action)``,
which returns a new state or raises with the input untouched. The host
persists the returned state as one full document.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Union

from libao.lib.errors import CategoryNotFoundError, ValidationError
from libao.lib.validators import sanitize_string, validate_percentage, validate_price
from libao.models import (
    AppSettings,
    CapitalLogType,
    Category,
    Market,
    PortfolioState,
    TradeOrder,
    TransactionRecord,
    UserRole,
    now_millis,
)
from libao.services.access import require_martingale_edit, require_martingale_view
from libao.services.capital import add_capital_log, delete_capital_log, total_capital
from libao.services.dividends import ScannedDividend, confirm_dividends, reset_dividends
from libao.services.ledger_replay import repair_portfolio
from libao.services.martingale_sync import (
    clear_martingale,
    merge_public_martingale,
    newest_first,
    reset_martingale,
)
from libao.services.trade_executor import execute_order
from libao.services.transaction_classifier import (
    is_martingale_transaction,
    migrate_legacy_dividends,
)
from libao.services.transaction_reverser import revoke_transaction

logger = logging.getLogger(__name__)

Role = Union[UserRole, str, None]


# Actions


@dataclass(frozen=True)
class ExecuteOrder:
    """Run a BUY or SELL in one category."""

    category_id: str
    order: TradeOrder
    martingale: bool = False


@dataclass(frozen=True)
class RevokeTransaction:
    """Undo the most recent record of a position."""

    transaction_id: str


@dataclass(frozen=True)
class RepairPortfolio:
    """Rebuild one side's positions from the ledger."""

    martingale: bool = False


@dataclass(frozen=True)
class ConfirmDividends:
    """Book scanned dividends into the ledger."""

    dividends: tuple[ScannedDividend, ...]
    martingale: bool = False


@dataclass(frozen=True)
class ResetDividends:
    """Remove every dividend record of one side."""

    martingale: bool = False


@dataclass(frozen=True)
class AddCapitalLog:
    """Record a deposit or withdrawal."""

    log_type: CapitalLogType
    amount: Decimal
    note: str = ""
    date: Optional[datetime] = None


@dataclass(frozen=True)
class DeleteCapitalLog:
    log_id: str


@dataclass(frozen=True)
class AddCategory:
    """Create a category with no assets."""

    name: str
    market: Market
    allocation_percent: Decimal
    martingale: bool = False


@dataclass(frozen=True)
class DeleteCategory:
    """Remove a category together with its assets."""

    category_id: str
    martingale: bool = False


@dataclass(frozen=True)
class UpdateAllocation:
    category_id: str
    allocation_percent: Decimal
    martingale: bool = False


@dataclass(frozen=True)
class MoveCategory:
    """Shift a category up (negative offset) or down in display order."""

    category_id: str
    offset: int
    martingale: bool = False


@dataclass(frozen=True)
class UpdateSettings:
    settings: AppSettings


@dataclass(frozen=True)
class UpdatePrices:
    """Mark assets at fetched prices.

    Prices are keyed by (symbol, market). Assets without a price keep their
    current one. ``category_id`` restricts the update to one category.
    """

    prices: Mapping[tuple[str, Market], Decimal]
    category_id: Optional[str] = None


@dataclass(frozen=True)
class MigrateLegacyDividends:
    pass


@dataclass(frozen=True)
class ResetMartingale:
    pass


@dataclass(frozen=True)
class MergePublicMartingale:
    """Adopt the martingale portfolio published by the admin."""

    categories: tuple[Category, ...]
    transactions: tuple[TransactionRecord, ...]


@dataclass(frozen=True)
class ClearMartingale:
    pass


PortfolioAction = Union[
    ExecuteOrder,
    RevokeTransaction,
    RepairPortfolio,
    ConfirmDividends,
    ResetDividends,
    AddCapitalLog,
    DeleteCapitalLog,
    AddCategory,
    DeleteCategory,
    UpdateAllocation,
    MoveCategory,
    UpdateSettings,
    UpdatePrices,
    MigrateLegacyDividends,
    ResetMartingale,
    MergePublicMartingale,
    ClearMartingale,
]


# Helpers


def find_category_index(categories: list[Category], key: str) -> int:
    """
    Locate a category by id, falling back to its name.

    Raises:
        CategoryNotFoundError: No category matches
    """
    for index, category in enumerate(categories):
        if category.id == key:
            return index
    for index, category in enumerate(categories):
        if category.name == key:
            return index
    raise CategoryNotFoundError(key)


def _with_collection(
    state: PortfolioState, martingale: bool, categories: list[Category]
) -> PortfolioState:
    if martingale:
        return replace(state, martingale=categories)
    return replace(state, categories=categories)


def _guard(martingale: bool, role: Role, action: str) -> None:
    if martingale:
        require_martingale_edit(role, action)


def _execute_order(state: PortfolioState, action: ExecuteOrder, role: Role) -> PortfolioState:
    _guard(action.martingale, role, "trade in the martingale portfolio")
    categories = list(state.collection(action.martingale))
    index = find_category_index(categories, action.category_id)
    category = categories[index]

    result = execute_order(category, action.order, state.total_capital, action.martingale)
    categories[index] = replace(category, assets=result.assets)
    state = _with_collection(state, action.martingale, categories)
    return replace(state, transactions=[result.transaction, *state.transactions])


def _revoke(state: PortfolioState, action: RevokeTransaction, role: Role) -> PortfolioState:
    record = state.find_transaction(action.transaction_id)
    if record is not None and is_martingale_transaction(
        record, state.martingale_category_names()
    ):
        require_martingale_edit(role, "revoke martingale transactions")
    return revoke_transaction(state, action.transaction_id)


def _add_category(state: PortfolioState, action: AddCategory, role: Role) -> PortfolioState:
    _guard(action.martingale, role, "edit martingale categories")
    name = sanitize_string(action.name, max_length=50)
    categories = list(state.collection(action.martingale))
    if any(c.name == name for c in categories):
        raise ValidationError(f"Category '{name}' already exists")

    try:
        market = Market(action.market)
    except ValueError:
        raise ValidationError(f"Unknown market '{action.market}'") from None

    categories.append(
        Category(
            id=str(uuid.uuid4()),
            name=name,
            market=market,
            allocation_percent=validate_percentage(action.allocation_percent),
        )
    )
    return _with_collection(state, action.martingale, categories)


def _delete_category(
    state: PortfolioState, action: DeleteCategory, role: Role
) -> PortfolioState:
    _guard(action.martingale, role, "edit martingale categories")
    categories = list(state.collection(action.martingale))
    removed = categories.pop(find_category_index(categories, action.category_id))
    logger.info(f"Deleted category '{removed.name}' with {len(removed.assets)} assets")
    return _with_collection(state, action.martingale, categories)


def _update_allocation(
    state: PortfolioState, action: UpdateAllocation, role: Role
) -> PortfolioState:
    _guard(action.martingale, role, "edit martingale categories")
    categories = list(state.collection(action.martingale))
    index = find_category_index(categories, action.category_id)
    categories[index] = replace(
        categories[index], allocation_percent=validate_percentage(action.allocation_percent)
    )
    return _with_collection(state, action.martingale, categories)


def _move_category(state: PortfolioState, action: MoveCategory, role: Role) -> PortfolioState:
    _guard(action.martingale, role, "edit martingale categories")
    categories = list(state.collection(action.martingale))
    index = find_category_index(categories, action.category_id)
    target = min(max(index + action.offset, 0), len(categories) - 1)
    categories.insert(target, categories.pop(index))
    return _with_collection(state, action.martingale, categories)


def _update_prices(state: PortfolioState, action: UpdatePrices) -> PortfolioState:
    prices = {key: validate_price(price) for key, price in action.prices.items()}

    def refresh(categories: list[Category]) -> list[Category]:
        refreshed = []
        for category in categories:
            if action.category_id is not None and action.category_id not in (
                category.id,
                category.name,
            ):
                refreshed.append(category)
                continue
            assets = [
                replace(
                    asset,
                    current_price=prices.get((asset.symbol, category.market), asset.current_price),
                )
                for asset in category.assets
            ]
            refreshed.append(replace(category, assets=assets))
        return refreshed

    return replace(
        state, categories=refresh(state.categories), martingale=refresh(state.martingale)
    )


def apply_mutation(
    state: PortfolioState, action: PortfolioAction, role: Role = None
) -> PortfolioState:
    """
    Apply one action to a portfolio.

    Args:
        state: Current state (never modified)
        action: What to do
        role: Current user's role; only consulted for the martingale side

    Returns:
        New state with ``last_modified`` stamped

    Raises:
        LibaoError: Validation, ordering or access failures, before any change
        TypeError: Unknown action type
    """
    if isinstance(action, ExecuteOrder):
        new_state = _execute_order(state, action, role)

    elif isinstance(action, RevokeTransaction):
        new_state = _revoke(state, action, role)

    elif isinstance(action, RepairPortfolio):
        _guard(action.martingale, role, "repair the martingale portfolio")
        new_state, _ = repair_portfolio(state, action.martingale)

    elif isinstance(action, ConfirmDividends):
        _guard(action.martingale, role, "book martingale dividends")
        records = confirm_dividends(list(action.dividends), action.martingale)
        new_state = replace(state, transactions=newest_first([*records, *state.transactions]))

    elif isinstance(action, ResetDividends):
        _guard(action.martingale, role, "reset martingale dividends")
        transactions, _ = reset_dividends(state, action.martingale)
        new_state = replace(state, transactions=transactions)

    elif isinstance(action, AddCapitalLog):
        logs = add_capital_log(
            state.capital_logs, action.log_type, action.amount, action.note, action.date
        )
        new_state = replace(state, capital_logs=logs, total_capital=total_capital(logs))

    elif isinstance(action, DeleteCapitalLog):
        logs = delete_capital_log(state.capital_logs, action.log_id)
        new_state = replace(state, capital_logs=logs, total_capital=total_capital(logs))

    elif isinstance(action, AddCategory):
        new_state = _add_category(state, action, role)

    elif isinstance(action, DeleteCategory):
        new_state = _delete_category(state, action, role)

    elif isinstance(action, UpdateAllocation):
        new_state = _update_allocation(state, action, role)

    elif isinstance(action, MoveCategory):
        new_state = _move_category(state, action, role)

    elif isinstance(action, UpdateSettings):
        new_state = replace(state, settings=action.settings)

    elif isinstance(action, UpdatePrices):
        new_state = _update_prices(state, action)

    elif isinstance(action, MigrateLegacyDividends):
        transactions, _ = migrate_legacy_dividends(
            state.transactions, state.martingale_category_names()
        )
        new_state = replace(state, transactions=transactions)

    elif isinstance(action, ResetMartingale):
        require_martingale_edit(role, "reset the martingale portfolio")
        new_state, _ = reset_martingale(state)

    elif isinstance(action, MergePublicMartingale):
        require_martingale_view(role, "view the martingale portfolio")
        new_state = merge_public_martingale(
            state, list(action.categories), list(action.transactions)
        )

    elif isinstance(action, ClearMartingale):
        new_state = clear_martingale(state)

    else:
        raise TypeError(f"Unsupported portfolio action: {type(action).__name__}")

    return replace(new_state, last_modified=now_millis())
