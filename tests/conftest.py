"""Pytest configuration and fixtures for all tests."""

import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from libao.lib.db import init_db, reset_db, reset_engine
from libao.models import (
    AppSettings,
    Category,
    Market,
    PortfolioState,
    new_portfolio_state,
)
from libao.services.price_service import PriceService


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Initialize test database before any tests run.

    Creates a temporary database for testing that is automatically cleaned up.
    Uses session scope so database is created once per test session.
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp:
        test_db_path = Path(tmp.name)

    # Set environment variables BEFORE initializing
    os.environ["LIBAO_DB_PATH"] = str(test_db_path)
    os.environ["LIBAO_CACHE_DIR"] = tempfile.mkdtemp(prefix="libao-cache-")
    os.environ["LOG_FILE"] = ""

    init_db(test_db_path)

    yield test_db_path

    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture(autouse=True)
def reset_database_between_tests(setup_test_database):
    """Reset database state between each test.

    This ensures test isolation by clearing all data between tests
    while keeping the schema intact.
    """
    reset_engine()
    reset_db(setup_test_database)
    PriceService._price_cache.clear()

    yield


@pytest.fixture
def tw_category():
    """Empty Taiwan category with 50% allocation."""
    return Category(
        id="tw-core", name="TW Core", market=Market.TW, allocation_percent=Decimal("50")
    )


@pytest.fixture
def us_category():
    """Empty US category with 25% allocation."""
    return Category(
        id="us-core", name="US Core", market=Market.US, allocation_percent=Decimal("25")
    )


@pytest.fixture
def empty_state(tw_category, us_category):
    """Portfolio with 1,000,000 TWD capital and two empty personal categories."""
    state = new_portfolio_state(Decimal("1000000"))
    state.categories = [tw_category, us_category]
    return state


@pytest.fixture
def fresh_state() -> PortfolioState:
    """Brand-new portfolio with the default categories."""
    return new_portfolio_state()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings()
