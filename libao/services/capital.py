"""Capital ledger: deposits and withdrawals that set the investable total."""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from libao.lib.errors import NotFoundError, ValidationError
from libao.lib.validators import to_decimal
from libao.models import CapitalLogEntry, CapitalLogType

logger = logging.getLogger(__name__)


def total_capital(logs: list[CapitalLogEntry]) -> Decimal:
    """Signed sum of the capital ledger."""
    return sum((log.signed_amount for log in logs), Decimal("0"))


def add_capital_log(
    logs: list[CapitalLogEntry],
    log_type: CapitalLogType,
    amount: Decimal,
    note: str = "",
    date: Optional[datetime] = None,
) -> list[CapitalLogEntry]:
    """
    Append a deposit or withdrawal.

    Args:
        logs: Current capital ledger (not modified)
        log_type: DEPOSIT or WITHDRAW
        amount: Positive TWD amount
        note: Free-form note
        date: Entry time, defaults to now

    Returns:
        New ledger, newest entry first

    Raises:
        ValidationError: Amount not positive
    """
    value = to_decimal(amount, "amount")
    if value <= 0:
        raise ValidationError(f"Capital amount must be positive, got {amount}")

    entry = CapitalLogEntry(
        id=str(uuid.uuid4()),
        date=date or datetime.now(timezone.utc),
        type=log_type,
        amount=value,
        note=note.strip(),
    )
    logger.info(f"Capital {log_type.value} {value}")
    return [entry, *logs]


def delete_capital_log(logs: list[CapitalLogEntry], log_id: str) -> list[CapitalLogEntry]:
    """
    Remove one capital entry.

    Raises:
        NotFoundError: Unknown entry id
    """
    remaining = [log for log in logs if log.id != log_id]
    if len(remaining) == len(logs):
        raise NotFoundError(f"Capital log not found: {log_id}")
    return remaining
