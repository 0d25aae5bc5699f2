"""
auth/tokens.py -- Signed access tokens and opaque refresh tokens.

Security design decisions:
  Access tokens: python-jose with HS256. Tokens are signed with
       Settings.secret_key and carry user_id, username, role, issue time,
       expiry, issuer, audience and a random jti. The jti makes two tokens
       issued for the same user in the same second differ.

  Refresh tokens: secrets.token_urlsafe(64) -- 512 bits of entropy, no
       embedded claims. They are bearer-only and meaningful solely through the
       refresh-token store lookup.

  Expired-token recovery: recover_claims_from_expired_token() is the ONLY
       path that accepts an expired access token. It still verifies the
       signature, algorithm, issuer and audience. The refresh flow needs it to
       learn which user is asking.

  Expiry: jose decodes with verify_exp off. verify_access_token() compares
       exp with the injected clock, so issuance and expiry use one time source.

  The secret is injected through Settings at construction, never read from a
  module-level global, so tests can run with their own key.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from auth.errors import InvalidTokenError
from auth.models import TokenClaims, User
from core.config import Settings

logger = logging.getLogger("contactuser.auth")

_ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and decode session tokens.

    Usage:
        tokens = TokenService(settings)
        access = tokens.generate_access_token(user)
        claims = tokens.verify_access_token(access)
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = _utcnow) -> None:
        if not settings.secret_key:
            raise ValueError("TokenService requires a non-empty secret key")
        self._secret = settings.secret_key
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._lifetime = timedelta(hours=settings.access_token_expire_hours)
        self._clock = clock

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def generate_access_token(self, user: User) -> str:
        """Encode a signed JWT with the user's identity and role claims."""
        if user.id is None:
            raise ValueError("cannot issue an access token for an unsaved user")
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "user_id": user.id,
            "username": user.username,
            "role": user.role_name,
            "iat": now,
            "exp": now + self._lifetime,
            "iss": self._issuer,
            "aud": self._audience,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def generate_refresh_token(self) -> str:
        """Return an unguessable opaque refresh token."""
        return secrets.token_urlsafe(64)

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def verify_access_token(self, token: str) -> TokenClaims:
        """Decode a live access token. Expired tokens raise InvalidTokenError.

        Expiry is judged against the service clock, the same one that stamped
        iat and exp at issuance.
        """
        claims = self._decode(token)
        if self._clock() >= claims.expires_at:
            raise InvalidTokenError("Invalid token.")
        return claims

    def recover_claims_from_expired_token(self, token: str) -> TokenClaims:
        """Decode an access token while tolerating expiry.

        Signature, algorithm, issuer and audience are still enforced.
        """
        return self._decode(token)

    def _decode(self, token: str) -> TokenClaims:
        if not token:
            raise InvalidTokenError("Invalid token.")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                # jose forces verify_exp back on when require_exp is set, so exp
                # presence and expiry are checked here instead.
                options={
                    "verify_exp": False,
                    "require_iat": True,
                    "require_iss": True,
                    "require_aud": True,
                },
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise InvalidTokenError("Invalid token.") from exc
        return _payload_to_claims(payload)


def _payload_to_claims(payload: dict[str, Any]) -> TokenClaims:
    user_id = payload.get("user_id")
    username = payload.get("username")
    role = payload.get("role")
    iat = payload.get("iat")
    exp = payload.get("exp")
    # bool is an int subclass; a token claiming user_id=true is malformed
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidTokenError("Invalid token.")
    if not isinstance(username, str) or not isinstance(role, str):
        raise InvalidTokenError("Invalid token.")
    for stamp in (iat, exp):
        if not isinstance(stamp, (int, float)) or isinstance(stamp, bool):
            raise InvalidTokenError("Invalid token.")
    return TokenClaims(
        user_id=user_id,
        username=username,
        role=role,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )
