"""Lot ledger: FIFO purchase-lot bookkeeping for a single asset.

All functions return new lists or assets and leave their inputs untouched,
so a failed order never leaves a half-updated position behind.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from libao.models import Asset, Lot


@dataclass
class LotAllocation:
    """Shares taken from one lot by a sale."""

    lot_id: str
    shares: Decimal
    cost_per_share: Decimal
    exchange_rate: Decimal

    @property
    def cost_twd(self) -> Decimal:
        return self.shares * self.cost_per_share * self.exchange_rate


@dataclass
class FifoResult:
    """Outcome of consuming shares from a lot list.

    Attributes:
        lots: Lots left after the sale (fully consumed lots removed)
        allocations: Per-lot consumption in FIFO order
        unfilled: Shares that could not be covered by any lot
    """

    lots: list[Lot]
    allocations: list[LotAllocation] = field(default_factory=list)
    unfilled: Decimal = Decimal("0")

    @property
    def consumed_shares(self) -> Decimal:
        return sum((a.shares for a in self.allocations), Decimal("0"))

    @property
    def cost_twd(self) -> Decimal:
        """TWD cost basis of everything consumed."""
        return sum((a.cost_twd for a in self.allocations), Decimal("0"))


def sort_lots(lots: list[Lot]) -> list[Lot]:
    """Order lots by acquisition date; lots with equal dates keep insertion order."""
    return sorted(lots, key=lambda lot: lot.date)


def insert_lot(lots: list[Lot], lot: Lot) -> list[Lot]:
    """Merge a lot into the list, keeping acquisition order."""
    return sort_lots([*lots, lot])


def consume_fifo(lots: list[Lot], shares: Decimal) -> FifoResult:
    """Consume ``shares`` from the oldest lots first.

    Whole lots are dropped while they fit in the remaining quantity; the first
    lot larger than what is left is split and consumption stops there.

    Args:
        lots: Asset lots in any order
        shares: Shares to consume

    Returns:
        FifoResult with the surviving lots and per-lot allocations. Shares
        beyond the lots' total end up in ``unfilled``; callers that must not
        oversell check holdings before calling.
    """
    remaining = shares
    kept: list[Lot] = []
    allocations: list[LotAllocation] = []

    for lot in sort_lots(lots):
        if remaining <= 0:
            kept.append(lot)
            continue

        taken = min(lot.shares, remaining)
        allocations.append(
            LotAllocation(
                lot_id=lot.id,
                shares=taken,
                cost_per_share=lot.cost_per_share,
                exchange_rate=lot.exchange_rate,
            )
        )
        remaining -= taken

        if lot.shares > taken:
            kept.append(replace(lot, shares=lot.shares - taken))

    return FifoResult(lots=kept, allocations=allocations, unfilled=max(remaining, Decimal("0")))


def remove_lot(lots: list[Lot], lot_id: Optional[str]) -> tuple[list[Lot], Optional[Lot]]:
    """Remove the lot with ``lot_id``; fall back to the most recently dated lot.

    The fallback covers ledger entries written before BUY records carried a
    lot id.

    Returns:
        (remaining lots, removed lot or None when the list is empty)
    """
    if not lots:
        return [], None

    if lot_id is not None:
        for index, lot in enumerate(lots):
            if lot.id == lot_id:
                return lots[:index] + lots[index + 1 :], lot

    ordered = sort_lots(lots)
    latest = ordered[-1]
    return [lot for lot in lots if lot is not latest], latest


def total_shares(lots: list[Lot]) -> Decimal:
    return sum((lot.shares for lot in lots), Decimal("0"))


def average_cost(lots: list[Lot], shares: Decimal, fallback: Decimal = Decimal("0")) -> Decimal:
    """Cost-weighted average price over lots, in trade currency."""
    if shares <= 0 or not lots:
        return fallback
    weighted = sum((lot.shares * lot.cost_per_share for lot in lots), Decimal("0"))
    return weighted / shares


def with_lots(asset: Asset, lots: list[Lot], shares: Optional[Decimal] = None) -> Asset:
    """Return a copy of ``asset`` holding ``lots``, with shares and average cost recomputed.

    Args:
        asset: Asset to update
        lots: New lot list
        shares: Explicit share total; defaults to the sum of the lots
    """
    if shares is None:
        shares = total_shares(lots)
    return replace(
        asset,
        lots=sort_lots(lots),
        shares=shares,
        avg_cost=average_cost(lots, shares, fallback=asset.avg_cost),
    )
