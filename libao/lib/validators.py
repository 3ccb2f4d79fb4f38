"""
Input validation utilities.

Provides validation functions for user inputs including stock symbols,
share quantities, prices, exchange rates, percentages and timestamps.
"""

import re
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from libao.lib.errors import (
    InvalidDateError,
    InvalidPriceError,
    InvalidQuantityError,
    ValidationError,
)

Numeric = Union[Decimal, int, float, str]

TW_SYMBOL_PATTERN = r"^[0-9]{4,6}[A-Z]?$"
US_SYMBOL_PATTERN = r"^[A-Z]{1,10}([.\-][A-Z]{1,3})?$"


def to_decimal(value: Numeric, field: str = "value") -> Decimal:
    """
    Convert a user-supplied number to Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal('0.1') rather than its
    binary expansion.

    Args:
        value: Number or numeric string
        field: Field name used in the error message

    Returns:
        Finite Decimal value

    Raises:
        ValidationError: If the value is not a finite number

    Examples:
        >>> to_decimal("12.5")
        Decimal('12.5')
        >>> to_decimal(0.1)
        Decimal('0.1')
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be numeric, got {value!r}")

    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be numeric, got {value!r}") from None

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number, got {value!r}")

    return result


def validate_symbol(symbol: str, market: str) -> str:
    """
    Validate and normalize a stock symbol for its market.

    Taiwan symbols are 4-6 digit codes with an optional letter suffix
    (2330, 00878, 00632R). US symbols are 1-10 letters with an optional
    share-class suffix (AAPL, BRK.B).

    Args:
        symbol: Stock symbol
        market: "TW" or "US"

    Returns:
        Normalized symbol (uppercase, trimmed)

    Raises:
        ValidationError: If symbol is empty or malformed

    Examples:
        >>> validate_symbol(" aapl ", "US")
        'AAPL'
        >>> validate_symbol("2330", "TW")
        '2330'
    """
    symbol = (symbol or "").upper().strip()
    if not symbol:
        raise ValidationError("Symbol is required")

    pattern = TW_SYMBOL_PATTERN if market == "TW" else US_SYMBOL_PATTERN
    if not re.match(pattern, symbol):
        raise ValidationError(f"Invalid {market} symbol format: {symbol}")

    return symbol


def validate_shares(shares: Numeric) -> Decimal:
    """
    Validate share quantity is a positive number.

    Raises:
        InvalidQuantityError: If shares is not numeric or not positive

    Examples:
        >>> validate_shares("1000")
        Decimal('1000')
        >>> validate_shares(0)
        Traceback (most recent call last):
        ...
        libao.lib.errors.InvalidQuantityError: Invalid shares: 0 (must be positive)
    """
    try:
        quantity = to_decimal(shares, "shares")
    except ValidationError:
        raise InvalidQuantityError(shares, "must be numeric") from None

    if quantity <= 0:
        raise InvalidQuantityError(shares, "must be positive")

    return quantity


def validate_price(price: Numeric) -> Decimal:
    """
    Validate price per share is a positive number.

    Raises:
        InvalidPriceError: If price is not numeric or not positive
    """
    try:
        value = to_decimal(price, "price")
    except ValidationError:
        raise InvalidPriceError(price, "must be numeric") from None

    if value <= 0:
        raise InvalidPriceError(price, "must be positive")

    return value


def validate_exchange_rate(rate: Numeric) -> Decimal:
    """Validate an exchange rate (TWD per unit of the trade currency)."""
    value = to_decimal(rate, "exchange rate")
    if value <= 0:
        raise ValidationError(f"Exchange rate {rate} must be positive")
    return value


def validate_non_negative(value: Numeric, field: str) -> Decimal:
    """Validate fee, tax or amount values, which may be zero but not negative."""
    result = to_decimal(value, field)
    if result < 0:
        raise ValidationError(f"{field} cannot be negative, got {value}")
    return result


def validate_percentage(
    percentage: Numeric, min_value: Decimal = Decimal("0"), max_value: Decimal = Decimal("100")
) -> Decimal:
    """
    Validate percentage is within range.

    Args:
        percentage: Percentage to validate
        min_value: Minimum allowed value (default: 0%)
        max_value: Maximum allowed value (default: 100%)

    Returns:
        Validated percentage

    Raises:
        ValidationError: If percentage is out of range
    """
    value = to_decimal(percentage, "percentage")
    if value < min_value or value > max_value:
        raise ValidationError(f"Percentage must be between {min_value} and {max_value}")

    return value


def parse_timestamp(value: Union[date, datetime, str, None]) -> datetime:
    """
    Parse a transaction timestamp into a timezone-aware UTC datetime.

    Accepts ISO-8601 strings (with or without a trailing ``Z``), plain
    ``YYYY-MM-DD`` dates (midnight UTC) and date/datetime objects. Naive
    datetimes are taken as UTC.

    Raises:
        InvalidDateError: If the value cannot be parsed

    Examples:
        >>> parse_timestamp("2024-01-10")
        datetime.datetime(2024, 1, 10, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if value is None:
        raise InvalidDateError("None")

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidDateError(value) from None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way the persisted document stores it (ISO, millisecond, Z)."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def sanitize_string(
    text: str, max_length: int = 200, allowed_pattern: Optional[str] = None
) -> str:
    """
    Sanitize user input string.

    Args:
        text: String to sanitize
        max_length: Maximum allowed length
        allowed_pattern: Optional regex pattern for allowed characters

    Returns:
        Sanitized string (trimmed, length-limited)

    Raises:
        ValidationError: If string is empty, too long or contains disallowed characters
    """
    text = (text or "").strip()

    if not text:
        raise ValidationError("Input cannot be empty")

    if len(text) > max_length:
        raise ValidationError(f"Input exceeds maximum length of {max_length} characters")

    if allowed_pattern and not re.match(allowed_pattern, text):
        raise ValidationError("Input contains disallowed characters")

    return text
