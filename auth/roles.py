"""
auth/roles.py -- Role hierarchy policy.

Roles form a strict linear order: SuperAdmin > Admin > User. The order lives
in one table (the RoleName enum values) and every hierarchy decision compares
ordinals, never strings. Adding a role means adding one enum member with its
ordinal and label.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from enum import IntEnum


class RoleName(IntEnum):
    """Closed set of roles. The value is the hierarchy ordinal."""

    USER = 1
    ADMIN = 2
    SUPER_ADMIN = 3

    @property
    def label(self) -> str:
        """Name as stored in the roles table and carried in token claims."""
        return _LABELS[self]

    @classmethod
    def parse(cls, name: str | None) -> RoleName | None:
        """Map a stored role name to the enum. Unknown names return None."""
        if name is None:
            return None
        return _BY_LABEL.get(name)


_LABELS = {
    RoleName.USER: "User",
    RoleName.ADMIN: "Admin",
    RoleName.SUPER_ADMIN: "SuperAdmin",
}
_BY_LABEL = {label: role for role, label in _LABELS.items()}

# Seed rows for the roles table, in hierarchy order.
ROLE_DESCRIPTIONS = {
    RoleName.USER: "Regular user",
    RoleName.ADMIN: "Administrator",
    RoleName.SUPER_ADMIN: "Super administrator",
}


def can_delete(actor: RoleName | None, target: RoleName | None) -> bool:
    """Return True if an actor with role `actor` may delete an account with role `target`.

    SuperAdmin may delete anyone, other SuperAdmins included. Admin may delete
    accounts strictly below Admin. Every other actor is denied, and so is any
    decision involving an unknown role (except a SuperAdmin actor).
    """
    if actor is RoleName.SUPER_ADMIN:
        return True
    if actor is RoleName.ADMIN:
        return target is not None and target < RoleName.ADMIN
    return False
