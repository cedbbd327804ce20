"""
api/routes/v1/auth.py -- Account and session REST endpoints.

Routes:
  POST /api/v1/signup   -- create an account; 201 / 409 / 400
  POST /api/v1/login    -- password login; sets the session cookie
  POST /api/v1/logout   -- clears the session cookie; 200
  GET  /api/v1/me       -- current account (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login failures share one message whether the email is unknown or the
  password is wrong.
  Cache-Control: no-store on login responses.

The handlers are plain `def`, so FastAPI runs them on its thread pool and
bcrypt never blocks the event loop.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, MessageResponse, SignupRequest, UserResponse
from auth.dependencies import get_current_identity
from auth.models import TokenClaim, User
from auth.passwords import authenticate_user, hash_password
from auth.store import UserStore
from auth.tokens import clear_auth_cookie, create_access_token, set_auth_cookie
from core.errors import Unauthenticated

logger = logging.getLogger("filevault.api")

# Auth policy:
# - POST /api/v1/signup:  public
# - POST /api/v1/login:   public
# - POST /api/v1/logout:  public -- clearing a cookie needs no prior auth
# - GET  /api/v1/me:      requires auth (get_current_identity)
router = APIRouter()

BAD_CREDENTIALS_MESSAGE = "Invalid email or password."


@router.post("/signup", response_model=UserResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> UserResponse:
    """Register a new account.

    Duplicate emails are rejected by the store's UNIQUE constraint, which
    surfaces as Conflict (409). The password is hashed before it reaches the
    store and is never logged.
    """
    user_store: UserStore = request.app.state.user_store
    password_hash, salt = hash_password(body.password)
    user = user_store.create_user(
        User(username=body.username, email=body.email, password_hash=password_hash, salt=salt)
    )
    logger.info("Created user %d", user.id)
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt")
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": BAD_CREDENTIALS_MESSAGE}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = create_access_token(user.id)
    resp = JSONResponse(status_code=200, content=UserResponse.from_user(user).model_dump())
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    logger.info("User %d logged in", user.id)
    return resp


@router.post("/logout", response_model=MessageResponse)
def logout() -> JSONResponse:
    """Clear the session cookie.

    The token itself is not revoked; a copy of it stays valid until expiry.
    """
    resp = JSONResponse(content=MessageResponse(message="Logged out successfully.").model_dump())
    clear_auth_cookie(resp)
    return resp


@router.get("/me", response_model=UserResponse)
def me(request: Request, identity: TokenClaim = Depends(get_current_identity)) -> UserResponse:
    """Return the account behind the current session."""
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(identity.user_id)
    if user is None:
        raise Unauthenticated()
    return UserResponse.from_user(user)
