"""
auth/ports.py -- Contracts the auth core consumes.

The services depend on these Protocols, not on auth/store.py, so any
persistence that satisfies them can be plugged in (tests use the SQLAlchemy
stores on in-memory SQLite, or MagicMock where a call must be proven absent).

Store implementations raise NotFoundError where the contract says so. Anything
else they raise (connection loss, timeouts) is passed through by the core
untouched.
"""

from __future__ import annotations

from typing import Protocol

from auth.models import RefreshToken, Role, SignUpData, User, Violation


class UserStorePort(Protocol):
    def create_user(self, user: User) -> int: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_username(self, username: str) -> User | None: ...
    def update_role(self, user_id: int, role_id: int) -> bool: ...
    def delete_user(self, user_id: int) -> bool: ...
    def username_exists(self, username: str) -> bool: ...
    def email_exists(self, email: str) -> bool: ...
    def phone_exists(self, phone_number: str) -> bool: ...


class RoleStorePort(Protocol):
    def get_role_id(self, name: str) -> int:
        """Raises NotFoundError if no role has this name."""
        ...

    def list_roles(self) -> list[Role]: ...

    def list_users_by_role(self, name: str) -> list[User]:
        """Raises NotFoundError if no role has this name."""
        ...


class RefreshTokenStorePort(Protocol):
    def add(self, row: RefreshToken) -> int: ...
    def find_by_token_and_user(self, token: str, user_id: int) -> RefreshToken | None: ...

    def delete_by_token(self, token: str) -> None:
        """Raises NotFoundError if the token is not stored."""
        ...

    def revoke(self, token: str) -> bool: ...


class SignUpValidatorPort(Protocol):
    def validate(self, data: SignUpData) -> list[Violation]: ...
