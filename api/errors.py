"""
api/errors.py -- Translate auth-core failures into HTTP responses.

install_error_handlers(app) registers one exception handler per AuthError
subclass. All handlers return the same ErrorResponse envelope so API clients
can parse errors uniformly:

    {"error": {"code": "...", "message": "...", "violations": [...]}}

Only AuthError subclasses are translated. Store-layer failures (lost DB
connection, timeouts) are not AuthErrors and reach the application's own
500 handling unchanged.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, ViolationDetail
from auth.errors import (
    AuthError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger("contactuser.api")

# Most specific first: InvalidTokenError is an UnauthorizedError and shares its status.
_STATUS_BY_ERROR: list[tuple[type[AuthError], int]] = [
    (ValidationError, 422),
    (ConflictError, 409),
    (UnauthorizedError, 401),
    (ForbiddenError, 403),
    (NotFoundError, 404),
]


def status_for(exc: AuthError) -> int:
    """Return the HTTP status code for an auth-core failure."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def error_response(exc: AuthError) -> JSONResponse:
    """Render an AuthError as a JSON error envelope."""
    violations = None
    if isinstance(exc, ValidationError):
        violations = [ViolationDetail.from_violation(v) for v in exc.violations]
    status_code = status_for(exc)
    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=exc.code, message=exc.message, violations=violations)
        ).model_dump(exclude_none=True),
    )
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def _auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    logger.info("%s %s -> %s (%s)", request.method, request.url.path, status_for(exc), exc.code)
    return error_response(exc)


def install_error_handlers(app: FastAPI) -> None:
    """Register the AuthError -> HTTP translation on `app`.

    Starlette resolves handlers by walking the exception's MRO, so one
    registration for the base class covers every subclass.
    """
    app.add_exception_handler(AuthError, _auth_error_handler)
