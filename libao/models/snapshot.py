"""
Persistence models for portfolio documents.

Each user's portfolio is stored as one JSON document and always written in
full. The shared martingale portfolio lives in its own keyed document.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from libao.lib.db import Base


class PortfolioSnapshot(Base):  # type: ignore[misc,valid-type]
    """
    A user's complete portfolio document.

    Attributes:
        user_id: Owner identifier
        document: JSON document (totalCapital, settings, categories, ...)
        last_modified: Epoch milliseconds stamped by the last state transition
        updated_at: When the row was last written
    """

    __tablename__ = "portfolio_snapshots"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    document: Mapped[str] = mapped_column(Text, nullable=False)
    last_modified: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<PortfolioSnapshot(user_id='{self.user_id}', last_modified={self.last_modified})>"


class PublicPortfolio(Base):  # type: ignore[misc,valid-type]
    """
    A shared document readable by every member, written by admins.

    Attributes:
        key: Document key ("martingale")
        document: JSON document (categories, transactions)
        published_by: User id of the publishing admin
        last_updated: When the document was last published
    """

    __tablename__ = "public_portfolios"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    document: Mapped[str] = mapped_column(Text, nullable=False)
    published_by: Mapped[str] = mapped_column(String(128), nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<PublicPortfolio(key='{self.key}', published_by='{self.published_by}')>"
