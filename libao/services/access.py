"""Role-based access to the martingale portfolio.

Roles only gate the martingale collection; personal categories are always
fully accessible to their owner.
"""

from typing import Union

from libao.lib.errors import AccessDeniedError, ValidationError
from libao.models import ROLE_TIERS, AccessTier, UserRole


def parse_role(role: Union[UserRole, str, None]) -> UserRole:
    """Normalize a role value; missing roles are treated as viewer."""
    if isinstance(role, UserRole):
        return role
    if not role:
        return UserRole.VIEWER
    try:
        return UserRole(role.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown role '{role}'. Valid roles: {', '.join(r.value for r in UserRole)}"
        ) from None


def get_tier(role: Union[UserRole, str, None]) -> AccessTier:
    return ROLE_TIERS[parse_role(role)]


def can_view_martingale(role: Union[UserRole, str, None]) -> bool:
    """Members and above see the martingale portfolio."""
    return get_tier(role) >= AccessTier.STANDARD


def can_edit_martingale(role: Union[UserRole, str, None]) -> bool:
    """Only admins trade, revoke or publish in the martingale portfolio."""
    return get_tier(role) >= AccessTier.ADMIN


def require_martingale_edit(role: Union[UserRole, str, None], action: str) -> None:
    """
    Raise unless the role may modify the martingale portfolio.

    Raises:
        AccessDeniedError: For any role below admin
    """
    if not can_edit_martingale(role):
        raise AccessDeniedError(parse_role(role).value, action)


def require_martingale_view(role: Union[UserRole, str, None], action: str) -> None:
    """
    Raise unless the role may read the martingale portfolio.

    Raises:
        AccessDeniedError: For viewers
    """
    if not can_view_martingale(role):
        raise AccessDeniedError(parse_role(role).value, action)
