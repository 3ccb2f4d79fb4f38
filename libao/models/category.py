"""Category (position bucket) model."""

import enum
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal

from libao.models.asset import Asset


class Market(str, enum.Enum):
    """Market a category trades in."""

    TW = "TW"
    US = "US"


@dataclass
class Category:
    """A named sub-portfolio with its own share of total capital.

    Attributes:
        id: Unique identifier
        name: Display name, also the join key used by transactions
        market: TW or US
        allocation_percent: Share of total capital assigned to this bucket
        assets: Held assets
    """

    id: str
    name: str
    market: Market
    allocation_percent: Decimal
    assets: list[Asset] = field(default_factory=list)

    def projected_investment(self, total_capital: Decimal) -> Decimal:
        """Capital earmarked for this category, floored to whole TWD."""
        if total_capital <= 0:
            return Decimal("0")
        projected = total_capital * self.allocation_percent / Decimal(100)
        return projected.to_integral_value(rounding=ROUND_FLOOR)
