"""
API response models for callers that expose the auth core over HTTP.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. The factory methods map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import SessionTokens, Violation


class ViolationDetail(BaseModel):
    """One failed validation rule."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str

    @classmethod
    def from_violation(cls, violation: Violation) -> "ViolationDetail":
        return cls(field=violation.field, message=violation.message)


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    violations: Optional[list[ViolationDetail]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class TokenResponse(BaseModel):
    """Credential pair returned after login or refresh."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int

    @classmethod
    def from_session(cls, tokens: SessionTokens) -> "TokenResponse":
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
        )
