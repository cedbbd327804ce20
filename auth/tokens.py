"""
auth/tokens.py -- Session token issuance, verification, and cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub / user_id, iat and exp. decode_access_token() returns None on any
       failure -- the authorization guard turns that into a 401.

  Expiry: checked here rather than by python-jose so the boundary is exact
       and testable: a token is rejected at now >= exp, i.e. exactly
       TOKEN_EXPIRE_SECONDS after issuance. `now` is injectable for tests.

  Revocation: none. Logout deletes the cookie on the client, but a copied
       token stays valid until it expires. A server-side denylist would be
       needed to change that.

  SECRET_KEY: sourced from core.config.get_settings(), which refuses to start
       without one outside DEBUG mode.

Layer rule: no imports from api/ or storage/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from jose import JWTError, jwt

from auth.models import TokenClaim
from core.config import get_settings

logger = logging.getLogger("filevault.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

AUTH_COOKIE = "access_token"

# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: int, now: datetime | None = None, expire_seconds: int = 0) -> str:
    """Encode a signed JWT asserting user_id.

    Args:
        user_id:        Numeric user ID stored in the DB.
        now:            Issuance time. Defaults to the current UTC time.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds (24 hours).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued = now or _utcnow()
    iat = int(issued.timestamp())
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "iat": iat,
        "exp": iat + duration,
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str, now: datetime | None = None) -> TokenClaim | None:
    """Verify a JWT and return its claim, or None on any failure.

    Failure covers a bad signature, a malformed token, missing claims, and
    expiry (now >= exp).
    """
    try:
        payload = jwt.decode(
            token,
            _settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        logger.info("Rejected session token: %s", exc)
        return None

    user_id = payload.get("user_id")
    iat = payload.get("iat")
    exp = payload.get("exp")
    if not isinstance(user_id, int) or not isinstance(iat, int) or not isinstance(exp, int):
        logger.info("Rejected session token: missing or malformed claims")
        return None

    current = now or _utcnow()
    if current.timestamp() >= exp:
        return None

    return TokenClaim(
        user_id=user_id,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POST.
    secure: on in production unless SECURE_COOKIES=false.
    max_age: matches the JWT expiry so both expire together.
    """
    response.set_cookie(
        AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=_settings.token_expire_seconds,
    )


def clear_auth_cookie(response) -> None:
    """Delete the session cookie. Does not invalidate the token itself."""
    response.delete_cookie(
        AUTH_COOKIE,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
    )