"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores map rows to these
classes; services do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Role:
    """Static reference data. Seeded by the store; never created at runtime."""

    name: str  # "User", "Admin", "SuperAdmin"
    id: int | None = None
    description: str = ""


@dataclass
class User:
    """An account that can log in.

    password_hash and password_salt are both persisted: the salt is the bcrypt
    salt the hash was derived with, kept alongside so verification can
    recompute the hash without parsing it.

    role_name is denormalised from the roles table on read. It is informational
    only -- authorization decisions re-read it from the store at decision time.
    """

    username: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    password_hash: str
    password_salt: str
    role_id: int
    id: int | None = None
    role_name: str = ""
    created_at: str | None = None


@dataclass
class RefreshToken:
    """A stored refresh token row.

    Usable only while now < expires_at, revoked is False, and the token is
    presented together with the user_id it was issued to.
    """

    token: str
    user_id: int
    expires_at: datetime  # timezone-aware UTC
    revoked: bool = False
    id: int | None = None
    created_at: str | None = None


@dataclass
class SessionTokens:
    """Credential pair returned by login and refresh. Never persisted."""

    access_token: str
    refresh_token: str
    expires_in: int  # hours until the access token expires
    token_type: str = "Bearer"


@dataclass
class TokenClaims:
    """Identity claims recovered from a signed access token."""

    user_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass
class SignUpData:
    """Raw sign-up payload as received from the caller."""

    first_name: str
    last_name: str
    username: str
    email: str
    phone_number: str
    password: str


@dataclass
class Violation:
    """One failed validation rule."""

    field: str
    message: str
