"""Custom exception classes for libao."""

from decimal import Decimal


class LibaoError(Exception):
    """Base exception for all libao errors."""

    def __init__(self, message: str):
        """Initialize with error message."""
        self.message = message
        super().__init__(message)


class DataError(LibaoError):
    """Data validation or processing errors."""

    pass


class ValidationError(DataError):
    """Input validation errors."""

    pass


class InvalidDateError(ValidationError):
    """Invalid date format or value."""

    def __init__(self, date_str: str, expected_format: str = "YYYY-MM-DD"):
        """
        Initialize with date details.

        Args:
            date_str: The invalid date string
            expected_format: Expected date format
        """
        message = f"Invalid date: '{date_str}'. Expected format: {expected_format}"
        super().__init__(message)


class InvalidPriceError(ValidationError):
    """Invalid price value."""

    def __init__(self, price: object, reason: str = ""):
        """
        Initialize with price details.

        Args:
            price: The invalid price
            reason: Reason why price is invalid
        """
        message = f"Invalid price: {price}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidQuantityError(ValidationError):
    """Invalid share quantity."""

    def __init__(self, quantity: object, reason: str = ""):
        """
        Initialize with quantity details.

        Args:
            quantity: The invalid quantity
            reason: Reason why quantity is invalid
        """
        message = f"Invalid shares: {quantity}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InsufficientSharesError(ValidationError):
    """Attempt to sell more shares than held in a category."""

    def __init__(self, symbol: str, available: Decimal, requested: Decimal):
        """
        Initialize with quantity details.

        Args:
            symbol: Stock symbol
            available: Shares currently held
            requested: Shares requested to sell
        """
        self.symbol = symbol
        self.available = available
        self.requested = requested
        message = f"Cannot sell {requested} shares of {symbol}. Only {available} shares held."
        super().__init__(message)


class OrderingViolationError(LibaoError):
    """A transaction cannot be revoked: a newer one exists for the position or its lot changed."""

    def __init__(self, transaction_id: str, reason: str):
        """
        Initialize with the rejected transaction.

        Args:
            transaction_id: Transaction that was asked to be revoked
            reason: Human-readable reason shown to the user
        """
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(f"Cannot revoke transaction {transaction_id}: {reason}")


class NotFoundError(LibaoError):
    """A referenced record does not exist."""

    pass


class TransactionNotFoundError(NotFoundError):
    """Transaction not found in the ledger."""

    def __init__(self, transaction_id: str):
        """Initialize with transaction ID."""
        super().__init__(f"Transaction not found: {transaction_id}")


class CategoryNotFoundError(NotFoundError):
    """Category not found in the portfolio."""

    def __init__(self, category: str):
        """Initialize with the category id or name that was looked up."""
        super().__init__(
            f"Category not found: {category}. List categories with: libao category list"
        )


class AccessDeniedError(LibaoError):
    """The current role may not access the martingale portfolio."""

    def __init__(self, role: str, action: str):
        """
        Initialize with role details.

        Args:
            role: Role value of the current user
            action: Description of the denied action
        """
        message = f"Role '{role}' is not allowed to {action}"
        super().__init__(message)


class StorageError(LibaoError):
    """Database operation errors."""

    pass


class ConfigurationError(LibaoError):
    """Configuration errors."""

    pass


# Error message helpers


def format_error_message(error: Exception) -> str:
    """
    Format exception into user-friendly error message.

    Args:
        error: The exception to format

    Returns:
        Formatted error message
    """
    if isinstance(error, LibaoError):
        return error.message

    error_type = type(error).__name__
    return f"{error_type}: {str(error)}"


def get_error_color(error: Exception) -> str:
    """
    Get Rich color for error type.

    Args:
        error: The exception

    Returns:
        Rich color name
    """
    if isinstance(error, OrderingViolationError):
        return "yellow"
    elif isinstance(error, (ValidationError, DataError)):
        return "red"
    elif isinstance(error, AccessDeniedError):
        return "orange"
    elif isinstance(error, ConfigurationError):
        return "orange"
    elif isinstance(error, StorageError):
        return "magenta"
    else:
        return "red"
