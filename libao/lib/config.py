"""Application configuration constants."""

import os
from decimal import Decimal
from pathlib import Path

# Storage locations (override with environment variables)
APP_DIR = Path.home() / ".libao"
DEFAULT_DB_PATH = APP_DIR / "data.db"
DEFAULT_CACHE_DIR = APP_DIR / "cache"
DB_PATH_ENV = "LIBAO_DB_PATH"
CACHE_DIR_ENV = "LIBAO_CACHE_DIR"
USER_ENV = "LIBAO_USER"
ROLE_ENV = "LIBAO_ROLE"
DEFAULT_USER_ID = "local"

# Portfolio defaults
INITIAL_CAPITAL = Decimal("1000000")  # TWD
DEFAULT_US_EXCHANGE_RATE = Decimal("30")  # TWD per USD
DEFAULT_TW_FEE_DISCOUNT = Decimal("6")  # 6 = 60% of the list commission

# Taiwan brokerage charges
TW_FEE_RATE = Decimal("0.001425")
TW_MIN_FEE = Decimal("20")
TW_SELL_TAX_RATE = Decimal("0.003")

# Dividend withholding by market
US_DIVIDEND_TAX_RATE = Decimal("0.3")
TW_DIVIDEND_TAX_RATE = Decimal("0")

# Market data
PRICE_CACHE_TTL_SECONDS = 60
PRICE_FILE_CACHE_TTL_MINUTES = 15
FETCH_TIMEOUT_SECONDS = 4.0
USD_TWD_SYMBOL = "TWD=X"

# Public martingale document key
PUBLIC_MARTINGALE_KEY = "martingale"

# Personal buckets created for a new portfolio: (id, name, market, allocation percent)
DEFAULT_CATEGORIES = [
    ("tw-red", "紅標 (頭等艙)", "TW", Decimal("20")),
    ("tw-g", "G倉 (長線)", "TW", Decimal("25")),
    ("tw-f", "F倉", "TW", Decimal("15")),
    ("us-d", "D倉 (長線)", "US", Decimal("25")),
    ("us-e", "E倉", "US", Decimal("15")),
]

DEFAULT_MARTINGALE_CATEGORIES = [
    ("martingale-tw", "馬丁策略 (Martingale)", "TW", Decimal("100")),
]


def get_db_path() -> Path:
    """Database file path, honoring LIBAO_DB_PATH."""
    env_path = os.environ.get(DB_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_DB_PATH


def get_cache_dir() -> Path:
    """Price cache directory, honoring LIBAO_CACHE_DIR."""
    env_dir = os.environ.get(CACHE_DIR_ENV)
    return Path(env_dir) if env_dir else DEFAULT_CACHE_DIR
