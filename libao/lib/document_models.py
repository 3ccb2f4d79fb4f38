"""Pydantic models for the persisted portfolio document.

The document keeps the camelCase keys written by earlier versions of the
application, so every field carries an alias. Numbers are validated into
Decimal and written back as JSON numbers.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    PlainSerializer,
    field_validator,
)

from libao.lib.errors import InvalidDateError
from libao.lib.validators import format_timestamp, parse_timestamp
from libao.models import (
    AppSettings,
    Asset,
    CapitalLogEntry,
    CapitalLogType,
    Category,
    Lot,
    Market,
    PortfolioState,
    TransactionRecord,
    TransactionType,
    UsBroker,
)

logger = logging.getLogger(__name__)


def _coerce_timestamp(value: Any) -> datetime:
    try:
        return parse_timestamp(value)
    except InvalidDateError as e:
        raise ValueError(e.message) from None


JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Timestamp = Annotated[
    datetime,
    BeforeValidator(_coerce_timestamp),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]

DOCUMENT_CONFIG = {"populate_by_name": True, "extra": "ignore"}


class LotDocument(BaseModel):
    """Purchase lot as stored in the document."""

    id: str
    date: Timestamp
    shares: JsonDecimal
    cost_per_share: JsonDecimal = Field(alias="costPerShare")
    exchange_rate: JsonDecimal = Field(Decimal("1"), alias="exchangeRate")

    model_config = DOCUMENT_CONFIG

    @field_validator("shares")
    @classmethod
    def validate_shares_positive(cls, v: Decimal) -> Decimal:
        """Retained lots always hold shares."""
        if v <= 0:
            raise ValueError(f"Lot shares must be positive, got {v}")
        return v


class AssetDocument(BaseModel):
    """Asset as stored in the document. Older documents may lack lots."""

    id: str
    symbol: str
    name: str = ""
    shares: JsonDecimal
    avg_cost: JsonDecimal = Field(Decimal("0"), alias="avgCost")
    current_price: JsonDecimal = Field(Decimal("0"), alias="currentPrice")
    lots: list[LotDocument] = Field(default_factory=list)
    note: Optional[str] = None

    model_config = DOCUMENT_CONFIG


class CategoryDocument(BaseModel):
    """Category as stored in the document."""

    id: str
    name: str
    market: Market
    allocation_percent: JsonDecimal = Field(Decimal("0"), alias="allocationPercent")
    assets: list[AssetDocument] = Field(default_factory=list)

    model_config = DOCUMENT_CONFIG


class TransactionDocument(BaseModel):
    """Ledger entry as stored in the document."""

    id: str
    date: Timestamp
    asset_id: str = Field("", alias="assetId")
    lot_id: Optional[str] = Field(None, alias="lotId")
    symbol: str
    name: str = ""
    type: TransactionType
    shares: JsonDecimal
    price: JsonDecimal
    exchange_rate: JsonDecimal = Field(Decimal("1"), alias="exchangeRate")
    amount: JsonDecimal = Decimal("0")
    fee: JsonDecimal = Decimal("0")
    tax: JsonDecimal = Decimal("0")
    category_name: str = Field("", alias="categoryName")
    realized_pnl: Optional[JsonDecimal] = Field(None, alias="realizedPnL")
    portfolio_ratio: Optional[JsonDecimal] = Field(None, alias="portfolioRatio")
    is_martingale: Optional[bool] = Field(None, alias="isMartingale")
    original_cost_twd: Optional[JsonDecimal] = Field(None, alias="originalCostTWD")

    model_config = DOCUMENT_CONFIG


class CapitalLogDocument(BaseModel):
    """Capital ledger entry as stored in the document."""

    id: str
    date: Timestamp
    type: CapitalLogType
    amount: JsonDecimal
    note: str = ""

    model_config = DOCUMENT_CONFIG

    @field_validator("amount")
    @classmethod
    def validate_amount_non_negative(cls, v: Decimal) -> Decimal:
        """Direction is carried by type, so amounts are never negative."""
        if v < 0:
            raise ValueError(f"Capital amount must be non-negative, got {v}")
        return v


class SettingsDocument(BaseModel):
    """User settings as stored in the document."""

    us_exchange_rate: JsonDecimal = Field(AppSettings().us_exchange_rate, alias="usExchangeRate")
    enable_fees: bool = Field(True, alias="enableFees")
    us_broker: UsBroker = Field(UsBroker.FIRSTRADE, alias="usBroker")
    tw_fee_discount: Optional[JsonDecimal] = Field(None, alias="twFeeDiscount")
    enable_system_notifications: bool = Field(False, alias="enableSystemNotifications")

    model_config = DOCUMENT_CONFIG


class PortfolioDocument(BaseModel):
    """Complete per-user portfolio document."""

    total_capital: JsonDecimal = Field(Decimal("0"), alias="totalCapital")
    settings: SettingsDocument = Field(default_factory=SettingsDocument)
    categories: list[CategoryDocument] = Field(default_factory=list)
    transactions: list[TransactionDocument] = Field(default_factory=list)
    capital_logs: list[CapitalLogDocument] = Field(default_factory=list, alias="capitalLogs")
    martingale: list[CategoryDocument] = Field(default_factory=list)
    last_modified: int = Field(0, alias="lastModified")

    model_config = DOCUMENT_CONFIG


class PublicMartingaleDocument(BaseModel):
    """Shared martingale document published by an admin."""

    categories: list[CategoryDocument] = Field(default_factory=list)
    transactions: list[TransactionDocument] = Field(default_factory=list)

    model_config = DOCUMENT_CONFIG


# Document -> domain


def _lot_from_document(doc: LotDocument) -> Lot:
    return Lot(
        id=doc.id,
        date=doc.date,
        shares=doc.shares,
        cost_per_share=doc.cost_per_share,
        exchange_rate=doc.exchange_rate,
    )


def _category_from_document(doc: CategoryDocument) -> Category:
    return Category(
        id=doc.id,
        name=doc.name,
        market=doc.market,
        allocation_percent=doc.allocation_percent,
        assets=[
            Asset(
                id=asset.id,
                symbol=asset.symbol,
                name=asset.name,
                shares=asset.shares,
                avg_cost=asset.avg_cost,
                current_price=asset.current_price,
                lots=[_lot_from_document(lot) for lot in asset.lots],
                note=asset.note,
            )
            for asset in doc.assets
        ],
    )


def _transaction_from_document(doc: TransactionDocument) -> TransactionRecord:
    return TransactionRecord(
        id=doc.id,
        date=doc.date,
        asset_id=doc.asset_id,
        lot_id=doc.lot_id,
        symbol=doc.symbol,
        name=doc.name,
        type=doc.type,
        shares=doc.shares,
        price=doc.price,
        exchange_rate=doc.exchange_rate,
        amount=doc.amount,
        fee=doc.fee,
        tax=doc.tax,
        category_name=doc.category_name,
        realized_pnl=doc.realized_pnl if doc.realized_pnl is not None else Decimal("0"),
        portfolio_ratio=doc.portfolio_ratio if doc.portfolio_ratio is not None else Decimal("0"),
        is_martingale=doc.is_martingale,
        original_cost_twd=doc.original_cost_twd,
    )


def state_from_document(data: dict[str, Any]) -> PortfolioState:
    """
    Validate a raw document and convert it to a PortfolioState.

    Documents written before the capital ledger existed carry only a stored
    totalCapital; that amount is carried over as one synthetic DEPOSIT.

    Args:
        data: Parsed JSON document

    Returns:
        PortfolioState

    Raises:
        pydantic.ValidationError: If the document is malformed
    """
    doc = PortfolioDocument.model_validate(data)

    capital_logs = [
        CapitalLogEntry(id=log.id, date=log.date, type=log.type, amount=log.amount, note=log.note)
        for log in doc.capital_logs
    ]
    if not capital_logs and doc.total_capital != 0:
        logger.warning(
            f"Document has totalCapital {doc.total_capital} without capital logs; "
            f"adding an opening entry"
        )
        capital_logs.append(
            CapitalLogEntry(
                id=str(uuid.uuid4()),
                date=parse_timestamp(datetime.now()),
                type=(
                    CapitalLogType.DEPOSIT if doc.total_capital > 0 else CapitalLogType.WITHDRAW
                ),
                amount=abs(doc.total_capital),
                note="Opening balance",
            )
        )

    settings = AppSettings(
        us_exchange_rate=doc.settings.us_exchange_rate,
        enable_fees=doc.settings.enable_fees,
        us_broker=doc.settings.us_broker,
        tw_fee_discount=doc.settings.tw_fee_discount,
        enable_system_notifications=doc.settings.enable_system_notifications,
    )

    return PortfolioState(
        total_capital=sum((log.signed_amount for log in capital_logs), Decimal("0")),
        settings=settings,
        categories=[_category_from_document(c) for c in doc.categories],
        transactions=[_transaction_from_document(t) for t in doc.transactions],
        capital_logs=capital_logs,
        martingale=[_category_from_document(c) for c in doc.martingale],
        last_modified=doc.last_modified,
    )


def public_martingale_from_document(
    data: dict[str, Any],
) -> tuple[list[Category], list[TransactionRecord]]:
    """Validate and convert the shared martingale document."""
    doc = PublicMartingaleDocument.model_validate(data)
    return (
        [_category_from_document(c) for c in doc.categories],
        [_transaction_from_document(t) for t in doc.transactions],
    )


# Domain -> document


def _category_to_document(category: Category) -> CategoryDocument:
    return CategoryDocument(
        id=category.id,
        name=category.name,
        market=category.market,
        allocation_percent=category.allocation_percent,
        assets=[
            AssetDocument(
                id=asset.id,
                symbol=asset.symbol,
                name=asset.name,
                shares=asset.shares,
                avg_cost=asset.avg_cost,
                current_price=asset.current_price,
                lots=[
                    LotDocument(
                        id=lot.id,
                        date=lot.date,
                        shares=lot.shares,
                        cost_per_share=lot.cost_per_share,
                        exchange_rate=lot.exchange_rate,
                    )
                    for lot in asset.lots
                ],
                note=asset.note,
            )
            for asset in category.assets
        ],
    )


def _transaction_to_document(record: TransactionRecord) -> TransactionDocument:
    return TransactionDocument(
        id=record.id,
        date=record.date,
        asset_id=record.asset_id,
        lot_id=record.lot_id,
        symbol=record.symbol,
        name=record.name,
        type=record.type,
        shares=record.shares,
        price=record.price,
        exchange_rate=record.exchange_rate,
        amount=record.amount,
        fee=record.fee,
        tax=record.tax,
        category_name=record.category_name,
        realized_pnl=record.realized_pnl,
        portfolio_ratio=record.portfolio_ratio,
        is_martingale=record.is_martingale,
        original_cost_twd=record.original_cost_twd,
    )


def state_to_document(state: PortfolioState) -> dict[str, Any]:
    """
    Convert a PortfolioState to a JSON-ready document.

    Absent optional fields (legacy isMartingale, lotId, originalCostTWD) are
    omitted rather than written as null.
    """
    settings = state.settings
    doc = PortfolioDocument(
        total_capital=state.total_capital,
        settings=SettingsDocument(
            us_exchange_rate=settings.us_exchange_rate,
            enable_fees=settings.enable_fees,
            us_broker=settings.us_broker,
            tw_fee_discount=settings.tw_fee_discount,
            enable_system_notifications=settings.enable_system_notifications,
        ),
        categories=[_category_to_document(c) for c in state.categories],
        transactions=[_transaction_to_document(t) for t in state.transactions],
        capital_logs=[
            CapitalLogDocument(
                id=log.id, date=log.date, type=log.type, amount=log.amount, note=log.note
            )
            for log in state.capital_logs
        ],
        martingale=[_category_to_document(c) for c in state.martingale],
        last_modified=state.last_modified,
    )
    return doc.model_dump(by_alias=True, mode="json", exclude_none=True)


def public_martingale_to_document(
    categories: list[Category], transactions: list[TransactionRecord]
) -> dict[str, Any]:
    """Build the shared martingale document."""
    doc = PublicMartingaleDocument(
        categories=[_category_to_document(c) for c in categories],
        transactions=[_transaction_to_document(t) for t in transactions],
    )
    return doc.model_dump(by_alias=True, mode="json", exclude_none=True)
