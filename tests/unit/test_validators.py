"""Unit tests for input validators."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from libao.lib.errors import (
    InvalidDateError,
    InvalidPriceError,
    InvalidQuantityError,
    ValidationError,
)
from libao.lib.validators import (
    format_timestamp,
    parse_timestamp,
    sanitize_string,
    to_decimal,
    validate_percentage,
    validate_price,
    validate_shares,
    validate_symbol,
)


@pytest.mark.unit
class TestToDecimal:
    """Test suite for to_decimal."""

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_string_trimmed(self):
        assert to_decimal(" 12.5 ") == Decimal("12.5")

    def test_rejects_text(self):
        with pytest.raises(ValidationError, match="must be numeric"):
            to_decimal("abc", "price")

    def test_rejects_bool(self):
        with pytest.raises(ValidationError):
            to_decimal(True)

    def test_rejects_nan(self):
        with pytest.raises(ValidationError, match="finite"):
            to_decimal("NaN")


@pytest.mark.unit
class TestValidateSymbol:
    """Test suite for validate_symbol."""

    def test_us_uppercased(self):
        assert validate_symbol(" aapl ", "US") == "AAPL"
        assert validate_symbol("brk.b", "US") == "BRK.B"

    def test_tw_codes(self):
        assert validate_symbol("2330", "TW") == "2330"
        assert validate_symbol("00878", "TW") == "00878"
        assert validate_symbol("00632r", "TW") == "00632R"

    def test_tw_rejects_letters(self):
        with pytest.raises(ValidationError, match="Invalid TW symbol"):
            validate_symbol("AAPL", "TW")

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="required"):
            validate_symbol("  ", "US")


@pytest.mark.unit
class TestNumbers:
    """Test suite for shares, price and percentage validation."""

    def test_shares_positive(self):
        assert validate_shares("1000") == Decimal("1000")

    @pytest.mark.parametrize("value", [0, "-5", "x"])
    def test_shares_invalid(self, value):
        with pytest.raises(InvalidQuantityError):
            validate_shares(value)

    def test_price_invalid(self):
        with pytest.raises(InvalidPriceError):
            validate_price("0")

    def test_percentage_bounds(self):
        assert validate_percentage("25") == Decimal("25")
        with pytest.raises(ValidationError):
            validate_percentage("101")
        with pytest.raises(ValidationError):
            validate_percentage("-1")


@pytest.mark.unit
class TestTimestamps:
    """Test suite for timestamp parsing and formatting."""

    def test_zulu_string(self):
        parsed = parse_timestamp("2024-01-10T09:30:00.000Z")

        assert parsed == datetime(2024, 1, 10, 9, 30, tzinfo=timezone.utc)

    def test_date_only(self):
        assert parse_timestamp("2024-01-10") == datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert parse_timestamp(date(2024, 1, 10)) == datetime(2024, 1, 10, tzinfo=timezone.utc)

    def test_invalid(self):
        with pytest.raises(InvalidDateError):
            parse_timestamp("10/01/2024")

    def test_format_milliseconds(self):
        value = datetime(2024, 1, 10, 9, 30, 5, 123456, tzinfo=timezone.utc)

        assert format_timestamp(value) == "2024-01-10T09:30:05.123Z"


@pytest.mark.unit
class TestSanitizeString:
    def test_trims(self):
        assert sanitize_string("  G倉  ") == "G倉"

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            sanitize_string("   ")

    def test_too_long(self):
        with pytest.raises(ValidationError, match="maximum length"):
            sanitize_string("x" * 11, max_length=10)
