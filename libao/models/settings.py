"""User settings model."""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from libao.lib.config import DEFAULT_TW_FEE_DISCOUNT, DEFAULT_US_EXCHANGE_RATE


class UsBroker(str, enum.Enum):
    """Broker used for US trades."""

    FIRSTRADE = "Firstrade"
    IBKR = "IBKR"
    SUB_BROKERAGE = "Sub-brokerage"


@dataclass
class AppSettings:
    """Per-user settings.

    Attributes:
        us_exchange_rate: TWD per USD used to value US positions
        enable_fees: Whether order entry estimates fees and taxes
        us_broker: Broker used for US trades
        tw_fee_discount: Commission discount in tenths (6 = 60% of list)
        enable_system_notifications: Whether the host shows notifications
    """

    us_exchange_rate: Decimal = DEFAULT_US_EXCHANGE_RATE
    enable_fees: bool = True
    us_broker: UsBroker = UsBroker.FIRSTRADE
    tw_fee_discount: Optional[Decimal] = DEFAULT_TW_FEE_DISCOUNT
    enable_system_notifications: bool = False
