"""Ledger replay (repair): rebuild category positions from the transaction log.

Positions are a pure function of the ledger. Replay empties every category
of one side and re-applies its BUY and SELL records in chronological order,
so running it twice gives the same result as running it once.
"""

import logging
from dataclasses import dataclass, field, replace

from libao.models import Category, PortfolioState, TransactionRecord, TransactionType
from libao.services.trade_executor import apply_buy, apply_sell
from libao.services.transaction_classifier import filter_side

logger = logging.getLogger(__name__)


@dataclass
class ReplayReport:
    """Summary of a replay run.

    Attributes:
        replayed: BUY/SELL records applied
        skipped: Records naming a category that no longer exists
        oversold: Ids of SELL records larger than the replayed holding
    """

    replayed: int = 0
    skipped: int = 0
    oversold: list[str] = field(default_factory=list)


def chronological(transactions: list[TransactionRecord]) -> list[TransactionRecord]:
    """Oldest first. The ledger is stored newest first, so equal timestamps
    keep the order in which they were executed."""
    return sorted(reversed(transactions), key=lambda t: t.date)


def replay_ledger(
    categories: list[Category], transactions: list[TransactionRecord]
) -> tuple[list[Category], ReplayReport]:
    """
    Rebuild the assets of ``categories`` from ``transactions``.

    DIVIDEND records carry no position and are ignored. Rebuilt assets keep
    the last known market price of the asset they replace.

    Args:
        categories: Categories to rebuild (not modified)
        transactions: Ledger records of the same side, in any order

    Returns:
        (rebuilt categories, ReplayReport)
    """
    known_prices = {
        (category.name, asset.symbol): asset.current_price
        for category in categories
        for asset in category.assets
    }
    rebuilt = [replace(category, assets=[]) for category in categories]
    index_by_name: dict[str, int] = {}
    for index, category in enumerate(rebuilt):
        index_by_name.setdefault(category.name, index)

    report = ReplayReport()

    for record in chronological(transactions):
        if record.type not in (TransactionType.BUY, TransactionType.SELL):
            continue

        index = index_by_name.get(record.category_name)
        if index is None:
            report.skipped += 1
            continue

        category = rebuilt[index]
        if record.type == TransactionType.BUY:
            assets, _ = apply_buy(
                category.assets,
                symbol=record.symbol,
                name=record.name,
                shares=record.shares,
                price=record.price,
                exchange_rate=record.exchange_rate,
                date=record.date,
                lot_id=record.lot_id or record.id,
                asset_id=record.asset_id or record.id,
            )
        else:
            outcome = apply_sell(category.assets, record.symbol, record.shares, strict=False)
            assets = outcome.assets
            if outcome.fifo.unfilled > 0:
                report.oversold.append(record.id)
                logger.warning(
                    f"Replay: SELL {record.id} of {record.shares} {record.symbol} in "
                    f"'{record.category_name}' exceeds holdings by {outcome.fifo.unfilled}"
                )

        rebuilt[index] = replace(category, assets=assets)
        report.replayed += 1

    for index, category in enumerate(rebuilt):
        rebuilt[index] = replace(
            category,
            assets=[
                replace(
                    asset,
                    current_price=known_prices.get(
                        (category.name, asset.symbol), asset.current_price
                    ),
                )
                for asset in category.assets
            ],
        )

    return rebuilt, report


def repair_portfolio(
    state: PortfolioState, martingale: bool = False
) -> tuple[PortfolioState, ReplayReport]:
    """
    Rebuild one side of the portfolio from its ledger records.

    Args:
        state: Current portfolio state (not modified)
        martingale: Repair the martingale categories instead of personal ones

    Returns:
        (new state, ReplayReport)
    """
    side_records = filter_side(
        state.transactions, state.martingale_category_names(), martingale
    )
    categories, report = replay_ledger(state.collection(martingale), side_records)

    logger.info(
        f"Repaired {'martingale' if martingale else 'personal'} portfolio: "
        f"{report.replayed} replayed, {report.skipped} skipped, "
        f"{len(report.oversold)} oversold"
    )

    if martingale:
        return replace(state, martingale=categories), report
    return replace(state, categories=categories), report

