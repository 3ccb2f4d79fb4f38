"""Local calendar helpers for the Taiwan market.

Timestamps are stored in UTC; anything grouped by calendar day or month is
bucketed on Taipei local time, where the trades actually happen.
"""

from datetime import date, datetime

import pytz

MARKET_TIMEZONE = pytz.timezone("Asia/Taipei")


def to_local(moment: datetime) -> datetime:
    """Convert a timestamp to Taipei time; naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=pytz.UTC)
    return moment.astimezone(MARKET_TIMEZONE)


def local_date(moment: datetime) -> date:
    return to_local(moment).date()


def local_month(moment: datetime) -> str:
    """``YYYY-MM`` of the timestamp in Taipei time."""
    return to_local(moment).strftime("%Y-%m")
