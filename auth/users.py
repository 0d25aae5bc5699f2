"""
auth/users.py -- Privileged account management and role lookups.

UserService is the authorization gate for mutations on OTHER users' accounts.
It never trusts a role supplied alongside the target: the target is re-read
from the store at decision time so a stale token or request body cannot be
used to delete an account that has since been promoted.

The actor's role is taken from the caller (normally the verified access-token
claims via auth/dependencies.py).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.errors import ForbiddenError, NotFoundError
from auth.models import Role, User
from auth.ports import RoleStorePort, UserStorePort
from auth.roles import RoleName, can_delete

logger = logging.getLogger("contactuser.auth")


class UserService:
    """Role-gated operations on user accounts."""

    def __init__(self, *, users: UserStorePort, roles: RoleStorePort) -> None:
        self._users = users
        self._roles = roles

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found.")
        return user

    def delete_user(self, target_id: int, actor_role: str) -> None:
        """Delete `target_id` if `actor_role` outranks the target's current role.

        Raises NotFoundError if the target does not exist and ForbiddenError if
        the hierarchy denies the action. A denied call performs no mutation.
        """
        target = self.get_user(target_id)
        actor = RoleName.parse(actor_role)
        target_role = RoleName.parse(target.role_name)

        if not can_delete(actor, target_role):
            logger.warning(
                "Denied delete of user %d (role=%s) by role=%s",
                target_id,
                target.role_name,
                actor_role,
            )
            if actor is RoleName.ADMIN:
                raise ForbiddenError("Admin can not delete Admin or SuperAdmin")
            raise ForbiddenError("Actor role cannot delete target role.")

        if not self._users.delete_user(target_id):
            # Deleted concurrently between the read and the delete.
            raise NotFoundError(f"User {target_id} not found.")
        logger.info("User %d deleted by role=%s", target_id, actor_role)

    def update_user_role(self, user_id: int, role_name: str) -> None:
        """Assign the role called `role_name` to the user.

        Raises NotFoundError for an unknown role or user.
        """
        role_id = self._roles.get_role_id(role_name)
        if not self._users.update_role(user_id, role_id):
            raise NotFoundError(f"User {user_id} not found.")
        logger.info("User %d role changed to %s", user_id, role_name)


class RoleService:
    """Read-only access to the role reference data."""

    def __init__(self, *, roles: RoleStorePort) -> None:
        self._roles = roles

    def list_roles(self) -> list[Role]:
        return self._roles.list_roles()

    def get_role_id(self, name: str) -> int:
        return self._roles.get_role_id(name)

    def list_users_by_role(self, name: str) -> list[User]:
        return self._roles.list_users_by_role(name)
