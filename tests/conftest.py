"""
tests/conftest.py -- Shared test fixtures for the ContactUser auth core.

This module provides:
  - settings: Settings with a fixed 40-char secret and the cheapest bcrypt cost
  - clock: a controllable UTC clock shared by TokenService and AuthService
  - engine / user_store / role_store / refresh_store: an isolated in-memory
    SQLite database per test, with the roles seeded by init_engine()
  - auth_service / user_service / role_service: services wired to the stores
  - make_signup / create_user: payload and account builders
  - count_refresh_rows: raw row count in refresh_tokens for a user id

Design: plain sqlite:///:memory: is enough here because every store call runs
on the test's own thread (SQLAlchemy keeps one connection per thread for
in-memory SQLite).

The DEBUG env var must be set before any core import so a stray get_settings()
call auto-generates SECRET_KEY instead of raising ValueError.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone

# CRITICAL: Set DEBUG before any auth/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from sqlalchemy import text
from sqlalchemy.engine import Engine

from auth.models import SignUpData, User
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import RefreshTokenStore, RoleStore, UserStore, init_engine
from auth.tokens import TokenService
from auth.users import RoleService, UserService
from auth.validators import SignUpValidator
from core.config import Settings

TEST_SECRET = "test-secret-key-for-contactuser-0123456789"


class FakeClock:
    """Callable clock returning a settable aware UTC datetime."""

    def __init__(self) -> None:
        self.now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Configuration and primitives
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, secret_key=TEST_SECRET, bcrypt_rounds=4, debug=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """Session-scoped: building the hasher computes the timing-dummy hash once."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service(settings: Settings, clock: FakeClock) -> TokenService:
    return TokenService(settings, clock=clock)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    eng = init_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine: Engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def role_store(engine: Engine) -> RoleStore:
    return RoleStore(engine)


@pytest.fixture
def refresh_store(engine: Engine) -> RefreshTokenStore:
    return RefreshTokenStore(engine)


@pytest.fixture
def count_refresh_rows(engine: Engine) -> Callable[[int], int]:
    """Return a counter of refresh-token rows (live, expired or revoked) for a user id."""

    def _count(user_id: int) -> int:
        with engine.connect() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM refresh_tokens WHERE user_id = :user_id"), {"user_id": user_id}
            ).scalar_one()

    return _count


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_service(
    user_store: UserStore,
    role_store: RoleStore,
    refresh_store: RefreshTokenStore,
    hasher: PasswordHasher,
    token_service: TokenService,
    settings: Settings,
    clock: FakeClock,
) -> AuthService:
    return AuthService(
        users=user_store,
        roles=role_store,
        refresh_tokens=refresh_store,
        validator=SignUpValidator(),
        hasher=hasher,
        tokens=token_service,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def user_service(user_store: UserStore, role_store: RoleStore) -> UserService:
    return UserService(users=user_store, roles=role_store)


@pytest.fixture
def role_service(role_store: RoleStore) -> RoleService:
    return RoleService(roles=role_store)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_signup() -> Callable[..., SignUpData]:
    """Return a builder for a valid SignUpData; keyword overrides replace fields."""

    def _make(**overrides) -> SignUpData:
        fields = {
            "first_name": "Ali",
            "last_name": "Valiyev",
            "username": "aliv",
            "email": "ali@mail.com",
            "phone_number": "998901112233",
            "password": "secret",
        }
        fields.update(overrides)
        return SignUpData(**fields)

    return _make


@pytest.fixture
def create_user(user_store: UserStore, role_store: RoleStore, hasher: PasswordHasher) -> Callable[..., int]:
    """Return a builder that inserts a user with the given role and returns its id.

    Unique fields are derived from the username so several users can coexist.
    """
    counter = {"n": 0}

    def _create(username: str, role: str = "User", password: str = "password") -> int:
        counter["n"] += 1
        pw_hash, salt = hasher.hash(password)
        return user_store.create_user(
            User(
                username=username,
                first_name=username.title(),
                last_name="Test",
                email=f"{username}@mail.com",
                phone_number=f"99890{counter['n']:07d}",
                password_hash=pw_hash,
                password_salt=salt,
                role_id=role_store.get_role_id(role),
            )
        )

    return _create
