"""Valuation and aggregation: derive every displayed figure from canonical state.

Nothing here mutates the portfolio or is persisted; the view is rebuilt on
every read.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Union

from libao.lib.market_hours import local_month
from libao.models import (
    AppSettings,
    Asset,
    Category,
    Market,
    PortfolioState,
    TransactionRecord,
    UserRole,
)
from libao.services.access import can_view_martingale
from libao.services.industry import get_industry
from libao.services.trade_executor import ratio_percent
from libao.services.transaction_classifier import filter_side

ZERO = Decimal("0")


@dataclass
class CalculatedAsset:
    """An asset with its derived figures (TWD unless noted)."""

    asset: Asset
    industry: str
    cost_basis: Decimal
    market_value: Decimal
    unrealized_pnl: Decimal
    return_rate: Decimal
    portfolio_ratio: Decimal
    realized_pnl: Decimal


@dataclass
class CalculatedCategory:
    """A category with its derived figures (TWD)."""

    category: Category
    projected_investment: Decimal
    invested_amount: Decimal
    remaining_cash: Decimal
    investment_ratio: Decimal
    market_value: Decimal
    unrealized_pnl: Decimal
    realized_pnl: Decimal
    assets: list[CalculatedAsset] = field(default_factory=list)


@dataclass
class MonthlyPnL:
    """Realized P&L of one calendar month (key ``YYYY-MM``)."""

    month: str
    value: Decimal


@dataclass
class IndustrySlice:
    """Market value held in one industry."""

    name: str
    value: Decimal
    percent: Decimal


@dataclass
class PortfolioTotals:
    """Portfolio-level totals.

    Attributes:
        total_capital: Capital from the capital ledger
        total_invested: Sum of category cost bases
        total_market_value: Sum of category market values
        total_unrealized_pnl: Market value minus cost basis
        total_realized_pnl: Sum of category realized P&L
        net_worth: Capital plus unrealized and realized P&L
        invested_ratio: Invested as a percent of capital
        unrealized_ratio: Unrealized P&L as a percent of capital
    """

    total_capital: Decimal
    total_invested: Decimal
    total_market_value: Decimal
    total_unrealized_pnl: Decimal
    total_realized_pnl: Decimal
    net_worth: Decimal
    invested_ratio: Decimal
    unrealized_ratio: Decimal


@dataclass
class SideView:
    """Derived view of one side (personal or martingale)."""

    categories: list[CalculatedCategory]
    totals: PortfolioTotals
    monthly_pnl: list[MonthlyPnL]
    industries: list[IndustrySlice]


@dataclass
class PortfolioView:
    """Everything the host displays. ``martingale`` is None when the role may not see it."""

    personal: SideView
    martingale: Optional[SideView] = None


def market_rate(market: Market, settings: AppSettings) -> Decimal:
    """TWD per unit of the market's currency used for valuation."""
    return settings.us_exchange_rate if market == Market.US else Decimal("1")


def sum_realized(records: list[TransactionRecord]) -> Decimal:
    return sum((r.realized_pnl for r in records if r.is_realizing), ZERO)


def value_category(
    category: Category,
    total_capital: Decimal,
    settings: AppSettings,
    side_records: list[TransactionRecord],
) -> CalculatedCategory:
    """
    Derive the figures of one category.

    Args:
        category: Category to value
        total_capital: Portfolio capital
        settings: Settings (US exchange rate)
        side_records: Ledger records already filtered to the category's side

    Returns:
        CalculatedCategory
    """
    projected = category.projected_investment(total_capital)
    rate = market_rate(category.market, settings)
    own_records = [r for r in side_records if r.category_name == category.name]

    assets = []
    for asset in category.assets:
        cost_basis = asset.shares * asset.avg_cost * rate
        market_value = asset.shares * asset.current_price * rate
        unrealized = market_value - cost_basis
        assets.append(
            CalculatedAsset(
                asset=asset,
                industry=get_industry(asset.symbol, category.market),
                cost_basis=cost_basis,
                market_value=market_value,
                unrealized_pnl=unrealized,
                return_rate=ratio_percent(unrealized, cost_basis),
                portfolio_ratio=ratio_percent(cost_basis, projected),
                realized_pnl=sum_realized([r for r in own_records if r.symbol == asset.symbol]),
            )
        )

    invested = sum((a.cost_basis for a in assets), ZERO)
    market_value_total = sum((a.market_value for a in assets), ZERO)
    return CalculatedCategory(
        category=category,
        projected_investment=projected,
        invested_amount=invested,
        remaining_cash=projected - invested,
        investment_ratio=ratio_percent(invested, projected),
        market_value=market_value_total,
        unrealized_pnl=market_value_total - invested,
        realized_pnl=sum_realized(own_records),
        assets=assets,
    )


def monthly_realized_pnl(records: list[TransactionRecord]) -> list[MonthlyPnL]:
    """Bucket realized P&L by Taipei calendar month (``YYYY-MM``), oldest month first."""
    buckets: dict[str, Decimal] = {}
    for record in records:
        if not record.is_realizing or record.realized_pnl == 0:
            continue
        key = local_month(record.date)
        buckets[key] = buckets.get(key, ZERO) + record.realized_pnl
    return [MonthlyPnL(month=month, value=buckets[month]) for month in sorted(buckets)]


def industry_breakdown(categories: list[CalculatedCategory]) -> list[IndustrySlice]:
    """Group market value by industry, largest first."""
    values: dict[str, Decimal] = {}
    for category in categories:
        for asset in category.assets:
            values[asset.industry] = values.get(asset.industry, ZERO) + asset.market_value

    total = sum(values.values(), ZERO)
    slices = [
        IndustrySlice(name=name, value=value, percent=ratio_percent(value, total))
        for name, value in values.items()
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def portfolio_totals(
    categories: list[CalculatedCategory], total_capital: Decimal
) -> PortfolioTotals:
    invested = sum((c.invested_amount for c in categories), ZERO)
    market_value = sum((c.market_value for c in categories), ZERO)
    realized = sum((c.realized_pnl for c in categories), ZERO)
    unrealized = market_value - invested
    return PortfolioTotals(
        total_capital=total_capital,
        total_invested=invested,
        total_market_value=market_value,
        total_unrealized_pnl=unrealized,
        total_realized_pnl=realized,
        net_worth=total_capital + unrealized + realized,
        invested_ratio=ratio_percent(invested, total_capital),
        unrealized_ratio=ratio_percent(unrealized, total_capital),
    )


def value_side(state: PortfolioState, martingale: bool) -> SideView:
    """Derive the view of one side of the portfolio."""
    side_records = filter_side(
        state.transactions, state.martingale_category_names(), martingale
    )
    categories = [
        value_category(category, state.total_capital, state.settings, side_records)
        for category in state.collection(martingale)
    ]
    return SideView(
        categories=categories,
        totals=portfolio_totals(categories, state.total_capital),
        monthly_pnl=monthly_realized_pnl(side_records),
        industries=industry_breakdown(categories),
    )


def build_portfolio_view(
    state: PortfolioState, role: Union[UserRole, str, None] = None
) -> PortfolioView:
    """
    Derive the complete view model.

    Args:
        state: Canonical portfolio state
        role: Current user's role; the martingale side is only derived for
            members and above

    Returns:
        PortfolioView
    """
    personal = value_side(state, martingale=False)
    martingale = value_side(state, martingale=True) if can_view_martingale(role) else None
    return PortfolioView(personal=personal, martingale=martingale)
