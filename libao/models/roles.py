"""User roles and the access tiers they map to."""

import enum


class UserRole(str, enum.Enum):
    """Role value received from the identity provider."""

    VIEWER = "viewer"
    MEMBER = "member"
    VIP = "vip"
    ADMIN = "admin"


class AccessTier(enum.IntEnum):
    """Ordered access tiers; higher tiers include lower ones."""

    GUEST = 0
    STANDARD = 1
    FIRST_CLASS = 2
    ADMIN = 3


ROLE_TIERS = {
    UserRole.VIEWER: AccessTier.GUEST,
    UserRole.MEMBER: AccessTier.STANDARD,
    UserRole.VIP: AccessTier.FIRST_CLASS,
    UserRole.ADMIN: AccessTier.ADMIN,
}
