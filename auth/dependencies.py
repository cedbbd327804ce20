"""
auth/dependencies.py -- FastAPI Depends() helpers for the authorization guard.

The session token is read from the "access_token" cookie set at login. API
clients that cannot hold cookies may send the same JWT as
"Authorization: Bearer <token>"; the cookie wins when both are present.

authenticate_token() is the framework-free gate: it either returns the
verified TokenClaim or raises Unauthenticated. get_current_identity() wraps it
for FastAPI and attaches the user id to request.state. Neither touches a
store -- the guard is a pure function of the token and the clock.

Missing and invalid tokens are separate causes with separate messages; both
map to 401 "unauthorized". Invalid and expired are deliberately merged.

Layer rule: may import from fastapi (for Request) because this module is part
of the FastAPI dependency injection system. No imports from api/ or storage/.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import Request

from auth.models import TokenClaim
from auth.tokens import AUTH_COOKIE, decode_access_token
from core.errors import Unauthenticated

MISSING_TOKEN_MESSAGE = "No session token provided."
INVALID_TOKEN_MESSAGE = "Session token is invalid or expired."


def authenticate_token(token: str | None, now: datetime | None = None) -> TokenClaim:
    """Verify token and return its claim. Raises Unauthenticated on any failure."""
    if not token:
        raise Unauthenticated(MISSING_TOKEN_MESSAGE)
    claim = decode_access_token(token, now=now)
    if claim is None:
        raise Unauthenticated(INVALID_TOKEN_MESSAGE)
    return claim


def _token_from_request(request: Request) -> str | None:
    token: str | None = request.cookies.get(AUTH_COOKIE)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
    return token


def get_current_identity(request: Request) -> TokenClaim:
    """Require a valid session. Raises Unauthenticated (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/files")
        def route(identity: TokenClaim = Depends(get_current_identity)): ...
    """
    claim = authenticate_token(_token_from_request(request))
    request.state.user_id = claim.user_id
    return claim
