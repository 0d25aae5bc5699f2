"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with an `Authorization: Bearer <access token>` header.
The token is verified by the TokenService found on app.state.token_service,
which the hosting application sets at startup.

try_get_token_claims() is the soft variant (returns None on failure).
get_token_claims() wraps it and raises HTTP 401 if unauthenticated.
require_roles() wraps get_token_claims() and raises HTTP 403 if the caller's
role is not in the allowed set.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Request/HTTPException)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.errors import InvalidTokenError
from auth.models import TokenClaims
from auth.roles import RoleName
from auth.tokens import TokenService


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_token_claims(request: Request) -> TokenClaims | None:
    """Return the verified claims of the request's bearer token, or None.

    Never raises -- callers that need a hard 401 should use get_token_claims().
    Expired tokens are rejected here; only AuthService.refresh accepts them.
    """
    token = _bearer_token(request)
    if token is None:
        return None
    token_service: TokenService = request.app.state.token_service
    try:
        return token_service.verify_access_token(token)
    except InvalidTokenError:
        return None


def get_token_claims(request: Request) -> TokenClaims:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: TokenClaims = Depends(get_token_claims)): ...
    """
    claims = try_get_token_claims(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def require_roles(*allowed: RoleName) -> Callable[[Request], TokenClaims]:
    """Build a dependency that admits only callers holding one of `allowed`.

    Use as a FastAPI dependency:
        @router.delete("/users/{user_id}")
        async def route(claims: TokenClaims = Depends(require_roles(RoleName.ADMIN, RoleName.SUPER_ADMIN))): ...
    """
    allowed_set = frozenset(allowed)

    def _dep(request: Request) -> TokenClaims:
        claims = get_token_claims(request)
        if RoleName.parse(claims.role) not in allowed_set:
            raise HTTPException(
                status_code=403,
                detail={"code": "forbidden", "message": "Insufficient role."},
            )
        return claims

    return _dep
