"""
Persistence of portfolio documents.

A portfolio is always written as one complete document, never field by
field. The shared martingale portfolio is a separate keyed document that
only admins may publish.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional, Union

import pydantic
from sqlalchemy.exc import SQLAlchemyError

from libao.lib.config import PUBLIC_MARTINGALE_KEY
from libao.lib.db import db_session
from libao.lib.document_models import (
    public_martingale_from_document,
    public_martingale_to_document,
    state_from_document,
    state_to_document,
)
from libao.lib.errors import DataError, StorageError
from libao.models import (
    Category,
    PortfolioSnapshot,
    PortfolioState,
    PublicPortfolio,
    TransactionRecord,
    UserRole,
)
from libao.services.access import require_martingale_edit
from libao.services.martingale_sync import public_martingale_payload

logger = logging.getLogger(__name__)


def _parse(raw: str, what: str) -> dict:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DataError(f"Stored {what} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DataError(f"Stored {what} is not a JSON object")
    return data


class SnapshotStore:
    """Reads and writes portfolio documents through SQLAlchemy sessions."""

    def save(self, user_id: str, state: PortfolioState) -> None:
        """
        Write the full portfolio document of a user.

        Raises:
            StorageError: If the database write fails
        """
        document = json.dumps(state_to_document(state), ensure_ascii=False)
        try:
            with db_session() as session:
                row = session.get(PortfolioSnapshot, user_id)
                if row is None:
                    row = PortfolioSnapshot(user_id=user_id, document=document)
                    session.add(row)
                row.document = document
                row.last_modified = state.last_modified
        except SQLAlchemyError as e:
            logger.error(f"Failed to save portfolio for {user_id}: {e}")
            raise StorageError(f"Failed to save portfolio: {e}") from e

        logger.debug(f"Saved portfolio for {user_id} ({len(document)} bytes)")

    def load(self, user_id: str) -> Optional[PortfolioState]:
        """
        Read a user's portfolio.

        Returns:
            PortfolioState, or None if the user has no saved portfolio

        Raises:
            StorageError: If the database read fails
            DataError: If the stored document is corrupt
        """
        try:
            with db_session() as session:
                row = session.get(PortfolioSnapshot, user_id)
                raw = row.document if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load portfolio: {e}") from e

        if raw is None:
            return None

        try:
            return state_from_document(_parse(raw, "portfolio"))
        except pydantic.ValidationError as e:
            raise DataError(f"Stored portfolio is malformed: {e}") from e

    def reset(self, user_id: str) -> bool:
        """
        Delete a user's portfolio.

        Returns:
            True if a portfolio was deleted
        """
        try:
            with db_session() as session:
                row = session.get(PortfolioSnapshot, user_id)
                if row is None:
                    return False
                session.delete(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to reset portfolio: {e}") from e

        logger.info(f"Deleted portfolio for {user_id}")
        return True

    def publish_martingale(
        self, state: PortfolioState, role: Union[UserRole, str, None], user_id: str
    ) -> int:
        """
        Publish the martingale side of ``state`` for every member to pull.

        Returns:
            Number of published transaction records

        Raises:
            AccessDeniedError: If the role is not admin
        """
        require_martingale_edit(role, "publish the martingale portfolio")
        categories, transactions = public_martingale_payload(state)
        document = json.dumps(
            public_martingale_to_document(categories, transactions), ensure_ascii=False
        )

        try:
            with db_session() as session:
                row = session.get(PublicPortfolio, PUBLIC_MARTINGALE_KEY)
                if row is None:
                    row = PublicPortfolio(
                        key=PUBLIC_MARTINGALE_KEY, document=document, published_by=user_id
                    )
                    session.add(row)
                row.document = document
                row.published_by = user_id
                row.last_updated = datetime.now(timezone.utc)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to publish martingale portfolio: {e}") from e

        logger.info(
            f"Published martingale portfolio: {len(categories)} categories, "
            f"{len(transactions)} records"
        )
        return len(transactions)

    def load_public_martingale(
        self,
    ) -> Optional[tuple[list[Category], list[TransactionRecord]]]:
        """
        Read the published martingale portfolio.

        Returns:
            (categories, transactions), or None if nothing was published
        """
        try:
            with db_session() as session:
                row = session.get(PublicPortfolio, PUBLIC_MARTINGALE_KEY)
                raw = row.document if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load martingale portfolio: {e}") from e

        if raw is None:
            return None

        try:
            return public_martingale_from_document(_parse(raw, "martingale portfolio"))
        except pydantic.ValidationError as e:
            raise DataError(f"Published martingale portfolio is malformed: {e}") from e
