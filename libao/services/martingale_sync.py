"""Martingale portfolio sharing between the admin and members."""

import logging
from dataclasses import replace

from libao.models import Category, PortfolioState, TransactionRecord
from libao.services.transaction_classifier import filter_side

logger = logging.getLogger(__name__)


def newest_first(records: list[TransactionRecord]) -> list[TransactionRecord]:
    return sorted(records, key=lambda r: r.date, reverse=True)


def public_martingale_payload(
    state: PortfolioState,
) -> tuple[list[Category], list[TransactionRecord]]:
    """
    Extract what the admin publishes: martingale categories and their records.

    Published records always carry an explicit martingale flag, so members
    never need the legacy classification rule for them.
    """
    records = filter_side(state.transactions, state.martingale_category_names(), True)
    return list(state.martingale), [replace(r, is_martingale=True) for r in records]


def merge_public_martingale(
    state: PortfolioState,
    categories: list[Category],
    transactions: list[TransactionRecord],
) -> PortfolioState:
    """
    Replace the local martingale side with the published one.

    Personal records are kept as they are; every published record is stamped
    as martingale.
    """
    personal = filter_side(state.transactions, state.martingale_category_names(), False)
    shared = [replace(r, is_martingale=True) for r in transactions]
    logger.info(
        f"Merged public martingale portfolio: {len(categories)} categories, "
        f"{len(shared)} records"
    )
    return replace(
        state,
        martingale=list(categories),
        transactions=newest_first(personal + shared),
    )


def clear_martingale(state: PortfolioState) -> PortfolioState:
    """Drop the martingale side entirely (role no longer allowed to see it)."""
    personal = filter_side(state.transactions, state.martingale_category_names(), False)
    return replace(state, martingale=[], transactions=personal)


def reset_martingale(state: PortfolioState) -> tuple[PortfolioState, int]:
    """
    Empty the martingale positions and drop its records, keeping its categories.

    Returns:
        (new state, number of records removed)
    """
    personal = filter_side(state.transactions, state.martingale_category_names(), False)
    removed = len(state.transactions) - len(personal)
    martingale = [replace(category, assets=[]) for category in state.martingale]
    logger.info(f"Reset martingale portfolio: removed {removed} records")
    return replace(state, martingale=martingale, transactions=personal), removed
