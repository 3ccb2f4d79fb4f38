"""
Domain and persistence models for libao.

Domain types are plain dataclasses holding Decimal quantities; the
persistence models inherit from the Base declarative class in libao.lib.db.
"""

from libao.models.asset import Asset, Lot
from libao.models.capital import CapitalLogEntry, CapitalLogType
from libao.models.category import Category, Market
from libao.models.orders import OrderAction, TradeOrder
from libao.models.portfolio import PortfolioState, new_portfolio_state, now_millis
from libao.models.roles import ROLE_TIERS, AccessTier, UserRole
from libao.models.settings import AppSettings, UsBroker
from libao.models.snapshot import PortfolioSnapshot, PublicPortfolio
from libao.models.transaction import TransactionRecord, TransactionType

__all__ = [
    # Portfolio domain
    "PortfolioState",
    "Category",
    "Asset",
    "Lot",
    "TransactionRecord",
    "CapitalLogEntry",
    "AppSettings",
    "TradeOrder",
    # Persistence
    "PortfolioSnapshot",
    "PublicPortfolio",
    # Enums
    "Market",
    "TransactionType",
    "CapitalLogType",
    "OrderAction",
    "UsBroker",
    "UserRole",
    "AccessTier",
    # Helpers
    "ROLE_TIERS",
    "new_portfolio_state",
    "now_millis",
]
