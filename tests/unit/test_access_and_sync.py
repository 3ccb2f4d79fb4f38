"""Unit tests for role checks and martingale sharing."""

from dataclasses import replace
from decimal import Decimal

import pytest

from libao.lib.errors import AccessDeniedError, ValidationError
from libao.models import OrderAction, UserRole
from libao.services.access import (
    can_edit_martingale,
    can_view_martingale,
    parse_role,
    require_martingale_edit,
    require_martingale_view,
)
from libao.services.martingale_sync import (
    clear_martingale,
    merge_public_martingale,
    public_martingale_payload,
    reset_martingale,
)
from libao.services.portfolio_service import ExecuteOrder, apply_mutation
from tests.helpers import make_order


@pytest.mark.unit
class TestRoles:
    """Test suite for role parsing and tiers."""

    @pytest.mark.parametrize(
        "role,view,edit",
        [
            ("viewer", False, False),
            ("member", True, False),
            ("vip", True, False),
            ("admin", True, True),
            (None, False, False),
        ],
    )
    def test_tiers(self, role, view, edit):
        assert can_view_martingale(role) is view
        assert can_edit_martingale(role) is edit

    def test_parse_normalizes(self):
        assert parse_role(" Admin ") == UserRole.ADMIN
        assert parse_role("") == UserRole.VIEWER

    def test_unknown_role(self):
        with pytest.raises(ValidationError, match="Unknown role"):
            parse_role("owner")

    def test_require_helpers(self):
        require_martingale_view(UserRole.MEMBER, "view")
        require_martingale_edit(UserRole.ADMIN, "edit")

        with pytest.raises(AccessDeniedError):
            require_martingale_view(UserRole.VIEWER, "view")
        with pytest.raises(AccessDeniedError):
            require_martingale_edit(UserRole.VIP, "edit")


@pytest.fixture
def mixed_state(empty_state):
    """One personal BUY and one martingale BUY."""
    personal = make_order("2330", OrderAction.BUY, "500", "100", "2024-01-10")
    shared = make_order("2317", OrderAction.BUY, "100", "1000", "2024-01-11")
    state = apply_mutation(empty_state, ExecuteOrder("tw-core", personal))
    return apply_mutation(state, ExecuteOrder("martingale-tw", shared, True), UserRole.ADMIN)


@pytest.mark.unit
class TestMartingaleSync:
    """Test suite for publishing and pulling the martingale side."""

    def test_payload_contains_only_martingale(self, mixed_state):
        categories, records = public_martingale_payload(mixed_state)

        assert [c.id for c in categories] == ["martingale-tw"]
        assert [r.symbol for r in records] == ["2317"]

    def test_payload_stamps_legacy_records(self, mixed_state):
        legacy = [replace(r, is_martingale=None) for r in mixed_state.transactions]
        state = replace(mixed_state, transactions=legacy)

        _, records = public_martingale_payload(state)

        assert [r.is_martingale for r in records] == [True]

    def test_merge_replaces_martingale_side(self, mixed_state, empty_state):
        categories, records = public_martingale_payload(mixed_state)
        personal = make_order("0050", OrderAction.BUY, "150", "10", "2024-02-01")
        member = apply_mutation(empty_state, ExecuteOrder("tw-core", personal))

        merged = merge_public_martingale(member, categories, records)

        assert [r.symbol for r in merged.transactions] == ["0050", "2317"]
        assert merged.martingale[0].assets[0].shares == Decimal("1000")

    def test_merge_drops_stale_martingale_records(self, mixed_state):
        merged = merge_public_martingale(mixed_state, mixed_state.martingale, [])

        assert [r.symbol for r in merged.transactions] == ["2330"]

    def test_clear(self, mixed_state):
        cleared = clear_martingale(mixed_state)

        assert cleared.martingale == []
        assert [r.symbol for r in cleared.transactions] == ["2330"]

    def test_reset_keeps_categories(self, mixed_state):
        state, removed = reset_martingale(mixed_state)

        assert removed == 1
        assert [c.id for c in state.martingale] == ["martingale-tw"]
        assert state.martingale[0].assets == []
        assert [r.symbol for r in state.transactions] == ["2330"]
