"""
auth/errors.py -- Typed failures raised by the authentication core.

Every failure the core reports to its caller is one of these classes. They are
terminal for the request: none of them is retried. Store-layer errors (lost DB
connection, timeouts) are NOT wrapped here -- they propagate unmodified so the
caller can tell infrastructure trouble apart from business outcomes.

Each class carries a stable `code` string. api/errors.py maps the classes to
HTTP status codes; the core never imports anything HTTP-related.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from auth.models import Violation


class AuthError(Exception):
    """Base class for every business failure in the auth core."""

    code = "auth_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    """Input failed one or more declared rules.

    `violations` holds every failed rule, not just the first one, so the
    caller can report them together.
    """

    code = "validation_failed"

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(v.message for v in self.violations) or "Validation failed.")


class ConflictError(AuthError):
    """A uniqueness rule was violated (username, email or phone number)."""

    code = "conflict"


class UnauthorizedError(AuthError):
    """Bad credentials or an unusable token.

    Deliberately coarse: callers must not be able to tell "unknown user" from
    "wrong password", or "expired" from "revoked" refresh tokens.
    """

    code = "unauthorized"


class InvalidTokenError(UnauthorizedError):
    """A signed token failed signature, issuer, audience or structure checks."""

    code = "invalid_token"


class ForbiddenError(AuthError):
    """The actor is authenticated but its role does not allow the action."""

    code = "forbidden"


class NotFoundError(AuthError):
    """A role, user or refresh-token row that the operation requires is missing."""

    code = "not_found"
