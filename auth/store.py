"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore, RoleStore and RefreshTokenStore are the repositories; the
_row_to_* functions are the mappers. Service code never touches SQL directly.
All three repositories share one Engine created by init_engine(), which also
applies the schema and seeds the role reference data.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Refresh tokens are stored verbatim and looked up together with the owning
  user id, so a token is never usable for a different account.

Timestamps are stored as ISO 8601 text (UTC) and mapped back to aware
datetimes where the domain model needs them.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictError, NotFoundError
from auth.models import RefreshToken, Role, User
from auth.roles import ROLE_DESCRIPTIONS

logger = logging.getLogger("contactuser.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_roles = Table(
    "roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("description", String(250), nullable=False, server_default=""),
)

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False, server_default=""),
    Column("email", String(100), nullable=False, unique=True),
    Column("phone_number", String(20), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("password_salt", Text, nullable=False),
    # Note: no FK constraint -- roles are seeded reference data and are never deleted.
    Column("role_id", Integer, nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("token", String(128), nullable=False, unique=True),
    # Rows outlive a deleted user (orphaned); refresh re-loads the user and fails with NotFoundError.
    Column("user_id", Integer, nullable=False, index=True),
    Column("expires_at", String(32), nullable=False),
    Column("revoked", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

# Every user read joins the role name so callers never need a second lookup.
_user_select = select(_users, _roles.c.name.label("role_name")).select_from(
    _users.outerjoin(_roles, _users.c.role_id == _roles.c.id)
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block on writes."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def init_engine(db_url: str) -> Engine:
    """Create the engine, apply the schema and seed the roles table.

    Safe to call on every startup: create_all and the role seeding are both
    idempotent.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    _metadata.create_all(engine)
    _seed_roles(engine)
    return engine


def _seed_roles(engine: Engine) -> None:
    with engine.connect() as conn:
        existing = {row.name for row in conn.execute(select(_roles.c.name))}
        missing = [role for role in ROLE_DESCRIPTIONS if role.label not in existing]
        for role in missing:
            conn.execute(_roles.insert().values(name=role.label, description=ROLE_DESCRIPTIONS[role]))
        conn.commit()
    if missing:
        logger.info("Seeded roles: %s", ", ".join(r.label for r in missing))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _is_unique_violation(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed", PostgreSQL: "duplicate key", MySQL: "Duplicate entry"
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        engine = init_engine("sqlite:///contactuser_auth.db")
        users = UserStore(engine)
        user = users.get_by_username("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        A UNIQUE violation (username, email or phone number registered by a
        concurrent request) is reported as ConflictError. Other integrity
        failures, such as a NULL in a required column, propagate unchanged.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        email=user.email,
                        phone_number=user.phone_number,
                        password_hash=user.password_hash,
                        password_salt=user.password_salt,
                        role_id=user.role_id,
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                return result.inserted_primary_key[0]
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise
            raise ConflictError("Username, email or phone number is already registered.") from exc

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_user_select.where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_user_select.where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_role(self, user_id: int, role_id: int) -> bool:
        """Point the user at a different role. Returns False if user_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(role_id=role_id))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Authorization is the caller's job (see auth/users.UserService).
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def username_exists(self, username: str) -> bool:
        return self._exists(_users.c.username == username)

    def email_exists(self, email: str) -> bool:
        return self._exists(_users.c.email == email)

    def phone_exists(self, phone_number: str) -> bool:
        return self._exists(_users.c.phone_number == phone_number)

    def _exists(self, condition) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_users.c.id).where(condition).limit(1)).fetchone()
        return row is not None

    def close(self) -> None:
        self.engine.dispose()


class RoleStore:
    """Read-only repository for the seeded roles."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get_role_id(self, name: str) -> int:
        """Return the id of the role called `name`. Raises NotFoundError if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(select(_roles.c.id).where(_roles.c.name == name)).fetchone()
        if row is None:
            raise NotFoundError(f"Role '{name}' not found.")
        return row.id

    def list_roles(self) -> list[Role]:
        """Return every role ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_roles.select().order_by(_roles.c.id)).fetchall()
        return [Role(id=r.id, name=r.name, description=r.description) for r in rows]

    def list_users_by_role(self, name: str) -> list[User]:
        """Return the users holding role `name`, ordered by username."""
        role_id = self.get_role_id(name)
        with self.engine.connect() as conn:
            rows = conn.execute(_user_select.where(_users.c.role_id == role_id).order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]


class RefreshTokenStore:
    """Repository for refresh-token rows."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def add(self, row: RefreshToken) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.insert().values(
                    token=row.token,
                    user_id=row.user_id,
                    expires_at=_to_iso(row.expires_at),
                    revoked=1 if row.revoked else 0,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def find_by_token_and_user(self, token: str, user_id: int) -> RefreshToken | None:
        """Return the row only if `token` was issued to `user_id`.

        Expiry and revocation are NOT filtered here; the caller checks them
        against its own clock so the rule lives in one place.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _refresh_tokens.select().where(
                    (_refresh_tokens.c.token == token) & (_refresh_tokens.c.user_id == user_id)
                )
            ).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def delete_by_token(self, token: str) -> None:
        """Delete the row holding `token`. Raises NotFoundError if there is none."""
        with self.engine.connect() as conn:
            result = conn.execute(_refresh_tokens.delete().where(_refresh_tokens.c.token == token))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError("Refresh token not found.")

    def revoke(self, token: str) -> bool:
        """Mark the row revoked. Returns False if the token is not stored."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update().where(_refresh_tokens.c.token == token).values(revoked=1)
            )
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        phone_number=row.phone_number,
        password_hash=row.password_hash,
        password_salt=row.password_salt,
        role_id=row.role_id,
        role_name=row.role_name or "",
        created_at=row.created_at,
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        id=row.id,
        token=row.token,
        user_id=row.user_id,
        expires_at=datetime.fromisoformat(row.expires_at),
        revoked=bool(row.revoked),
        created_at=row.created_at,
    )
