"""
core/config.py -- Runtime settings for the ContactUser auth core.

Every environment read goes through Settings. Services take a Settings
instance in their constructor; entry points that have no caller to hand one
in use get_settings(), which builds it once and caches it.

Settings is a pydantic-settings model: each field is filled from the
environment variable of the same name in upper case (jwt_issuer ->
JWT_ISSUER) or from a local .env file, with pydantic coercing the types.

Secret handling:
  [M6] A SECRET_KEY under 32 characters is refused. Every access token is an
       HMAC over this key.

  [M7] With DEBUG off, SECRET_KEY must be supplied. With DEBUG on, a random
       key is generated and tokens stop validating after a restart.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("contactuser.config")


class Settings(BaseSettings):
    """Auth-core configuration. Every field has a usable default except SECRET_KEY."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" means unset; validate_secret_key replaces or rejects it.
    secret_key: str = ""
    database_url: str = "sqlite:///contactuser_auth.db"

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    jwt_issuer: str = "contactuser"
    jwt_audience: str = "contactuser-clients"
    access_token_expire_hours: int = 24
    refresh_token_expire_days: int = 7
    # Off: a refresh token stays usable after it has been rotated.
    revoke_on_rotate: bool = False

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    default_role: str = "User"
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("access_token_expire_hours")
    @classmethod
    def validate_access_token_expire_hours(cls, v: int) -> int:
        if v < 1 or v > 168:
            raise ValueError("ACCESS_TOKEN_EXPIRE_HOURS must be between 1 and 168 (1 hour to 7 days)")
        return v

    @field_validator("refresh_token_expire_days")
    @classmethod
    def validate_refresh_token_expire_days(cls, v: int) -> int:
        if v < 1 or v > 365:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 365")
        return v

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        # bcrypt itself rejects cost factors outside 4..31
        if v < 4 or v > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @field_validator("default_role", "jwt_issuer", "jwt_audience")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be set and non-empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Fill in or reject SECRET_KEY [M6] [M7]."""
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("SECRET_KEY not set; generated a temporary key. Issued tokens die with this process.")
            else:
                raise ValueError(
                    "SECRET_KEY is required when DEBUG is off. "
                    "Set it in the environment or .env, or set DEBUG=true for local development."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Build Settings from the environment once and return the cached instance.

    Tests that change environment variables call get_settings.cache_clear().
    """
    return Settings()
