"""Unit tests for SnapshotStore persistence."""

from dataclasses import replace
from decimal import Decimal

import pytest

from libao.lib.db import db_session
from libao.lib.errors import AccessDeniedError, DataError
from libao.models import OrderAction, PortfolioSnapshot, UserRole
from libao.services.snapshot_store import SnapshotStore
from libao.services.trade_executor import execute_order
from tests.helpers import make_order


@pytest.fixture
def store():
    return SnapshotStore()


def _write_raw(user_id, document):
    with db_session() as session:
        session.add(PortfolioSnapshot(user_id=user_id, document=document))


@pytest.mark.unit
class TestSaveLoad:
    """Test suite for saving and loading portfolios."""

    def test_missing_user_returns_none(self, store):
        assert store.load("nobody") is None

    def test_save_then_load(self, store, empty_state):
        store.save("alice", empty_state)

        loaded = store.load("alice")

        assert loaded.total_capital == Decimal("1000000")
        assert [c.id for c in loaded.categories] == ["tw-core", "us-core"]
        assert loaded.last_modified == empty_state.last_modified

    def test_save_overwrites(self, store, empty_state, fresh_state):
        store.save("alice", empty_state)
        store.save("alice", fresh_state)

        assert len(store.load("alice").categories) == len(fresh_state.categories)

    def test_users_are_separate(self, store, empty_state, fresh_state):
        store.save("alice", empty_state)
        store.save("bob", fresh_state)

        assert store.load("alice").categories[0].id == "tw-core"
        assert store.load("bob").categories[0].id == "tw-red"

    def test_corrupt_json(self, store):
        _write_raw("alice", "{not json")

        with pytest.raises(DataError, match="not valid JSON"):
            store.load("alice")

    def test_non_object_document(self, store):
        _write_raw("alice", "[1, 2]")

        with pytest.raises(DataError, match="not a JSON object"):
            store.load("alice")

    def test_malformed_document(self, store):
        _write_raw("alice", '{"categories": [{"id": "x"}]}')

        with pytest.raises(DataError, match="malformed"):
            store.load("alice")

    def test_reset(self, store, empty_state):
        store.save("alice", empty_state)

        assert store.reset("alice") is True
        assert store.reset("alice") is False
        assert store.load("alice") is None


@pytest.mark.unit
class TestPublicMartingale:
    """Test suite for the shared martingale document."""

    def _admin_state(self, fresh_state):
        order = make_order("2330", OrderAction.BUY, "500", "1000", "2024-01-10T01:30:00")
        category = fresh_state.martingale[0]
        result = execute_order(category, order, fresh_state.total_capital, martingale=True)
        fresh_state.martingale = [replace(category, assets=result.assets)]
        fresh_state.transactions = [result.transaction]
        return fresh_state

    def test_nothing_published(self, store):
        assert store.load_public_martingale() is None

    def test_publish_requires_admin(self, store, fresh_state):
        with pytest.raises(AccessDeniedError):
            store.publish_martingale(fresh_state, UserRole.VIP, "vip-user")

    def test_publish_and_load(self, store, fresh_state):
        state = self._admin_state(fresh_state)

        count = store.publish_martingale(state, UserRole.ADMIN, "admin")
        categories, transactions = store.load_public_martingale()

        assert count == 1
        assert categories[0].assets[0].symbol == "2330"
        assert transactions[0].is_martingale is True
