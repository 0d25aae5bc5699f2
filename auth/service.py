"""
auth/service.py -- Sign-up, login, refresh and logout.

AuthService is stateless between calls. The only session state is the set of
refresh-token rows held by the refresh-token store; access tokens are
self-contained signed JWTs.

Security design decisions:
  [C1] Login never reveals whether a username exists. Both the "unknown user"
       and the "wrong password" branches raise the error built by
       _bad_credentials(), and the unknown-user branch still runs a dummy
       bcrypt verification so both cost the same.

  Refresh failures are uniform too: a malformed access token, a refresh token
  that is unknown, belongs to another user, is expired or is revoked all raise
  the error built by _bad_refresh().

  Refresh rotation: a successful refresh issues a new pair and stores the new
  refresh token. The presented refresh token stays usable unless
  Settings.revoke_on_rotate is enabled. With it off, a stolen refresh token
  can be replayed until it expires.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from auth.errors import ConflictError, InvalidTokenError, NotFoundError, UnauthorizedError, ValidationError
from auth.models import RefreshToken, SessionTokens, SignUpData, User
from auth.passwords import PasswordHasher
from auth.ports import RefreshTokenStorePort, RoleStorePort, SignUpValidatorPort, UserStorePort
from auth.tokens import TokenService
from core.config import Settings

logger = logging.getLogger("contactuser.auth")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _bad_credentials() -> UnauthorizedError:
    return UnauthorizedError("Invalid username or password.")


def _bad_refresh() -> UnauthorizedError:
    return UnauthorizedError("Invalid or expired refresh token.")


class AuthService:
    """Orchestrates the session lifecycle over the user and refresh-token stores."""

    def __init__(
        self,
        *,
        users: UserStorePort,
        roles: RoleStorePort,
        refresh_tokens: RefreshTokenStorePort,
        validator: SignUpValidatorPort,
        hasher: PasswordHasher,
        tokens: TokenService,
        settings: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._roles = roles
        self._refresh_tokens = refresh_tokens
        self._validator = validator
        self._hasher = hasher
        self._tokens = tokens
        self._settings = settings
        self._clock = clock

    # ------------------------------------------------------------------
    # Sign-up
    # ------------------------------------------------------------------

    def sign_up(self, data: SignUpData) -> int:
        """Register a new account with the default role and return its id.

        Validation runs before any store call; every violated rule is reported
        in one ValidationError.
        """
        violations = self._validator.validate(data)
        if violations:
            raise ValidationError(violations)

        taken = []
        if self._users.username_exists(data.username):
            taken.append("username")
        if self._users.email_exists(data.email):
            taken.append("email")
        if self._users.phone_exists(data.phone_number):
            taken.append("phone number")
        if taken:
            raise ConflictError(f"Already registered: {', '.join(taken)}.")

        role_id = self._roles.get_role_id(self._settings.default_role)
        password_hash, salt = self._hasher.hash(data.password)
        user_id = self._users.create_user(
            User(
                username=data.username,
                first_name=data.first_name,
                last_name=data.last_name or "",
                email=data.email,
                phone_number=data.phone_number,
                password_hash=password_hash,
                password_salt=salt,
                role_id=role_id,
            )
        )
        logger.info("User %d signed up (role=%s)", user_id, self._settings.default_role)
        return user_id

    # ------------------------------------------------------------------
    # Login / refresh / logout
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> SessionTokens:
        """Verify credentials and open a new session."""
        user = self._users.get_by_username(username)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt [C1]
            self._hasher.dummy_verify(password)
            logger.warning("Failed login attempt")
            raise _bad_credentials()
        if not self._hasher.verify(password, user.password_hash, user.password_salt):
            logger.warning("Failed login attempt")
            raise _bad_credentials()

        tokens = self._issue_session(user)
        logger.info("User %d logged in", user.id)
        return tokens

    def refresh(self, access_token: str, refresh_token: str) -> SessionTokens:
        """Exchange a (possibly expired) access token plus a refresh token for a new pair."""
        try:
            claims = self._tokens.recover_claims_from_expired_token(access_token)
        except InvalidTokenError as exc:
            raise _bad_refresh() from exc

        row = self._refresh_tokens.find_by_token_and_user(refresh_token, claims.user_id)
        if row is None or row.revoked or self._clock() >= row.expires_at:
            logger.warning("Rejected refresh for user %d", claims.user_id)
            raise _bad_refresh()

        user = self._require_user(claims.user_id)
        tokens = self._issue_session(user)
        if self._settings.revoke_on_rotate:
            self._refresh_tokens.revoke(refresh_token)
        logger.info("User %d refreshed session", user.id)
        return tokens

    def logout(self, refresh_token: str) -> None:
        """Delete the refresh-token row. Raises NotFoundError if it does not exist."""
        self._refresh_tokens.delete_by_token(refresh_token)
        logger.info("Refresh token removed on logout")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found.")
        return user

    def _issue_session(self, user: User) -> SessionTokens:
        access_token = self._tokens.generate_access_token(user)
        refresh_token = self._tokens.generate_refresh_token()
        self._refresh_tokens.add(
            RefreshToken(
                token=refresh_token,
                user_id=user.id,
                expires_at=self._clock() + timedelta(days=self._settings.refresh_token_expire_days),
                revoked=False,
            )
        )
        return SessionTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="Bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=self._settings.access_token_expire_hours,
        )
