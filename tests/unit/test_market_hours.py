"""Unit tests for Taipei calendar helpers."""

from datetime import datetime, timezone

import pytest

from libao.lib.market_hours import local_date, local_month, to_local


@pytest.mark.unit
class TestLocalCalendar:
    def test_utc_evening_is_next_taipei_day(self):
        moment = datetime(2024, 3, 13, 16, 30, tzinfo=timezone.utc)

        assert local_date(moment).isoformat() == "2024-03-14"

    def test_utc_morning_keeps_the_day(self):
        moment = datetime(2024, 3, 13, 1, 30, tzinfo=timezone.utc)

        assert local_date(moment).isoformat() == "2024-03-13"

    def test_month_rolls_over(self):
        moment = datetime(2023, 12, 31, 20, 0, tzinfo=timezone.utc)

        assert local_month(moment) == "2024-01"

    def test_naive_timestamp_taken_as_utc(self):
        local = to_local(datetime(2024, 1, 1, 0, 0))

        assert local.hour == 8
        assert local.utcoffset().total_seconds() == 8 * 3600
