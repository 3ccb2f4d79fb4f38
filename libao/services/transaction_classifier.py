"""Decide which side (personal or martingale) a ledger record belongs to."""

import logging
from dataclasses import replace
from typing import Iterable

from libao.models import TransactionRecord, TransactionType

logger = logging.getLogger(__name__)


def is_martingale_transaction(
    record: TransactionRecord, martingale_category_names: Iterable[str]
) -> bool:
    """
    Classify a record as martingale or personal.

    Records written by current versions carry an explicit flag, which always
    wins. Legacy records without a flag are martingale when their category
    name belongs to the martingale set and they carry no positive
    portfolio ratio (martingale orders were written with a zero ratio).

    Args:
        record: Ledger record
        martingale_category_names: Names of the martingale categories

    Returns:
        True for martingale records
    """
    if record.is_martingale is not None:
        return record.is_martingale

    if record.category_name not in set(martingale_category_names):
        return False

    return not record.portfolio_ratio > 0


def filter_side(
    records: Iterable[TransactionRecord],
    martingale_category_names: Iterable[str],
    martingale: bool,
) -> list[TransactionRecord]:
    """Keep only the records classified on the requested side."""
    names = set(martingale_category_names)
    return [r for r in records if is_martingale_transaction(r, names) == martingale]


def migrate_legacy_dividends(
    records: list[TransactionRecord], martingale_category_names: Iterable[str]
) -> tuple[list[TransactionRecord], int]:
    """
    Stamp unflagged DIVIDEND records of martingale categories with an explicit flag.

    Dividends were confirmed without a side flag before the martingale
    portfolio had its own dividend scan; this pins them to the martingale
    side once so later reads no longer rely on the legacy rule.

    Returns:
        (records, number of records migrated)
    """
    names = set(martingale_category_names)
    migrated = 0
    result = []
    for record in records:
        if (
            record.type == TransactionType.DIVIDEND
            and record.is_martingale is None
            and record.category_name in names
        ):
            result.append(replace(record, is_martingale=True))
            migrated += 1
        else:
            result.append(record)

    if migrated:
        logger.info(f"Migrated {migrated} legacy dividend records to the martingale side")
    return result, migrated
