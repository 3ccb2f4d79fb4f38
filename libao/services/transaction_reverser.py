"""Transaction reverser: undo a ledger record by rebuilding the prior lot state.

Only the most recent record of a (symbol, category) pair can be revoked, so
the lots a reversal touches have not been changed by anything later. A BUY
is revocable only while the lot it created still holds every bought share.
"""

import logging
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from libao.lib.errors import OrderingViolationError, TransactionNotFoundError
from libao.models import (
    Asset,
    Category,
    Lot,
    PortfolioState,
    TransactionRecord,
    TransactionType,
)
from libao.services.lot_ledger import insert_lot, remove_lot, with_lots
from libao.services.transaction_classifier import filter_side, is_martingale_transaction

logger = logging.getLogger(__name__)


@dataclass
class RevokeCheck:
    """Whether a record may be revoked, and why not."""

    allowed: bool
    reason: str = ""


def _find_asset(
    categories: list[Category], record: TransactionRecord
) -> tuple[bool, Optional[Asset]]:
    """Locate the record's asset; the flag tells whether its category still exists."""
    for category in categories:
        if category.name != record.category_name:
            continue
        for asset in category.assets:
            if asset.id == record.asset_id or asset.symbol == record.symbol:
                return True, asset
        return True, None
    return False, None


def check_revocable(record: TransactionRecord, state: PortfolioState) -> RevokeCheck:
    """
    Check whether ``record`` can be revoked without corrupting its position.

    The record must be the latest of its (symbol, category name) pair on its
    own side. A record sharing the latest timestamp also passes, which lets
    same-moment trades be undone in either order. A BUY additionally needs
    its lot to be intact: still present and holding the bought shares.
    Legacy BUY records without a lot id fall back to dropping the newest lot.

    Args:
        record: Record to revoke
        state: Current portfolio state

    Returns:
        RevokeCheck
    """
    names = state.martingale_category_names()
    martingale = is_martingale_transaction(record, names)
    related = [
        t
        for t in filter_side(state.transactions, names, martingale)
        if t.symbol == record.symbol and t.category_name == record.category_name
    ]
    if related:
        latest = max(related, key=lambda t: t.date)
        if latest.id != record.id and record.date < latest.date:
            return RevokeCheck(
                allowed=False,
                reason=(
                    f"A newer {latest.type.value} of {record.symbol} in "
                    f"'{record.category_name}' ({latest.date:%Y-%m-%d %H:%M}) "
                    f"must be revoked first"
                ),
            )

    if record.type != TransactionType.BUY or record.lot_id is None:
        return RevokeCheck(allowed=True)

    category_exists, asset = _find_asset(state.collection(martingale), record)
    if not category_exists:
        return RevokeCheck(allowed=True)
    if asset is None:
        return RevokeCheck(allowed=False, reason=f"{record.symbol} has been sold")

    lot = next((lt for lt in asset.lots if lt.id == record.lot_id), None)
    if lot is None:
        return RevokeCheck(allowed=False, reason="The lot of this purchase has been sold")
    if lot.shares != record.shares:
        return RevokeCheck(
            allowed=False,
            reason=(
                f"The lot of this purchase is partly sold "
                f"({lot.shares} of {record.shares} left)"
            ),
        )
    return RevokeCheck(allowed=True)


def revert_buy(assets: list[Asset], record: TransactionRecord) -> list[Asset]:
    """Remove the lot a BUY created and shrink (or drop) the asset."""
    for index, asset in enumerate(assets):
        if asset.symbol == record.symbol:
            break
    else:
        logger.warning(
            f"Revoking BUY {record.id}: {record.symbol} no longer held in "
            f"'{record.category_name}', deleting the record only"
        )
        return list(assets)

    lots, removed = remove_lot(asset.lots, record.lot_id)
    if removed is None or (record.lot_id is not None and removed.id != record.lot_id):
        logger.warning(
            f"Revoking BUY {record.id}: lot {record.lot_id} not found, "
            f"removed most recent lot {removed.id if removed else None} instead"
        )

    if removed is None:
        remaining = asset.shares - record.shares
        if remaining <= 0:
            return assets[:index] + assets[index + 1 :]
        return assets[:index] + [replace(asset, shares=remaining)] + assets[index + 1 :]

    if not lots:
        return assets[:index] + assets[index + 1 :]
    return assets[:index] + [with_lots(asset, lots)] + assets[index + 1 :]


def revert_sell(assets: list[Asset], record: TransactionRecord) -> list[Asset]:
    """Restore the shares a SELL consumed as one lot at their original cost."""
    original_cost = record.original_cost_twd
    if original_cost is None:
        # Legacy record without consumed cost: fall back to the sale value
        original_cost = record.shares * record.price * record.exchange_rate

    rate = record.exchange_rate if record.exchange_rate > 0 else Decimal("1")
    restored_cost_per_share = original_cost / record.shares / rate
    lot = Lot(
        id=str(uuid.uuid4()),
        date=record.date,
        shares=record.shares,
        cost_per_share=restored_cost_per_share,
        exchange_rate=rate,
    )

    for index, asset in enumerate(assets):
        if asset.symbol == record.symbol:
            restored = with_lots(
                asset, insert_lot(asset.lots, lot), shares=asset.shares + record.shares
            )
            return assets[:index] + [restored] + assets[index + 1 :]

    recreated = Asset(
        id=record.asset_id or str(uuid.uuid4()),
        symbol=record.symbol,
        name=record.name,
        shares=record.shares,
        avg_cost=restored_cost_per_share,
        current_price=record.price,
        lots=[lot],
    )
    return [*assets, recreated]


def _revert_in_categories(
    categories: list[Category], record: TransactionRecord
) -> tuple[list[Category], bool]:
    touched = False
    result = []
    for category in categories:
        if category.name != record.category_name:
            result.append(category)
            continue

        touched = True
        if record.type == TransactionType.BUY:
            assets = revert_buy(category.assets, record)
        elif record.type == TransactionType.SELL:
            assets = revert_sell(category.assets, record)
        elif record.type == TransactionType.DIVIDEND:
            assets = category.assets
        else:
            raise TypeError(f"Unsupported transaction type: {record.type!r}")
        result.append(replace(category, assets=assets))
    return result, touched


def revoke_transaction(state: PortfolioState, transaction_id: str) -> PortfolioState:
    """
    Revoke one ledger record and restore the positions it changed.

    Args:
        state: Current portfolio state (not modified)
        transaction_id: Record to revoke

    Returns:
        New state without the record

    Raises:
        TransactionNotFoundError: Unknown transaction id
        OrderingViolationError: A newer record of the same position exists, or
            the lot a BUY created is no longer intact
    """
    record = state.find_transaction(transaction_id)
    if record is None:
        raise TransactionNotFoundError(transaction_id)

    check = check_revocable(record, state)
    if not check.allowed:
        raise OrderingViolationError(transaction_id, check.reason)

    martingale = is_martingale_transaction(record, state.martingale_category_names())
    categories, touched = _revert_in_categories(state.collection(martingale), record)
    if not touched:
        logger.warning(
            f"Revoking {record.type.value} {record.id}: category '{record.category_name}' "
            f"not found, deleting the record only"
        )

    transactions = [t for t in state.transactions if t.id != transaction_id]
    logger.info(f"Revoked {record.type.value} {record.symbol} ({record.id})")

    if martingale:
        return replace(state, martingale=categories, transactions=transactions)
    return replace(state, categories=categories, transactions=transactions)
