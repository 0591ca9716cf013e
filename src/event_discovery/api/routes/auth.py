"""Authentication routes.

Handles signup, login, logout and the session check used by the frontend.

## Endpoints

1. GET /api/check-auth - Current identity, or 401
2. POST /api/signup - Create an account and log in
3. POST /api/login - Check credentials and start a session
4. POST /api/logout - Destroy the session

## Session Management

Sessions live on the server. The browser holds an HTTP-only cookie with a
signed token carrying the opaque session id.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from event_discovery.auth.dependencies import get_current_session, get_session_id
from event_discovery.auth.passwords import hash_password, needs_rehash, verify_password
from event_discovery.auth.session import (
    SessionData,
    SessionStore,
    clear_session_cookie,
    get_session_store,
    set_session_cookie,
)
from event_discovery.config import get_settings
from event_discovery.database.connection import get_db_session
from event_discovery.database.models import User
from event_discovery.database.repository import (
    create_user,
    get_user_by_username,
    record_login,
)
from event_discovery.errors import AuthFailure

logger = logging.getLogger(__name__)

router = APIRouter()

# One message for unknown user and wrong password
INVALID_CREDENTIALS = "Invalid username or password"

# Verified against when the username is unknown, so both failures cost the same
_DUMMY_HASH = hash_password("not-a-real-password")


class CredentialsRequest(BaseModel):
    """Login and signup request body."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)
    remember_me: bool = Field(default=False, alias="rememberMe")


class UserResponse(BaseModel):
    """User information returned after login or signup."""

    userId: str
    username: str
    role: str
    permission: int


class AuthResponse(BaseModel):
    success: bool = True
    message: str | None = None
    user: UserResponse


class IdentityResponse(BaseModel):
    """Identity held by the current session."""

    userId: str
    username: str
    role: str


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        userId=user.id,
        username=user.username,
        role=user.role,
        permission=user.permission,
    )


def _start_session(
    response: Response,
    store: SessionStore,
    user: User,
    remember_me: bool,
    previous_session_id: str | None,
) -> SessionData:
    """Replace any existing session with a fresh one for `user`."""
    settings = get_settings()

    if previous_session_id:
        store.destroy(previous_session_id)

    idle_timeout = None
    if remember_me:
        idle_timeout = timedelta(seconds=settings.remember_me_max_age_seconds)

    session = store.create(
        user_id=user.id,
        username=user.username,
        role=user.role,
        idle_timeout=idle_timeout,
    )
    set_session_cookie(response, session)
    return session


@router.get("/check-auth", response_model=IdentityResponse)
async def check_auth(
    session: SessionData = Depends(get_current_session),
) -> IdentityResponse:
    """Return the identity of the current session, or 401."""
    return IdentityResponse(**session.to_identity())


@router.post(
    "/signup",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def signup(
    body: CredentialsRequest,
    response: Response,
    previous_session_id: str | None = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Create an account and log the new user in."""
    if await get_user_by_username(db, body.username) is not None:
        logger.warning(f"Signup for existing username {body.username!r}")
        raise AuthFailure("Username already exists", status_code=status.HTTP_400_BAD_REQUEST)

    user = await create_user(db, body.username, hash_password(body.password))
    _start_session(response, store, user, body.remember_me, previous_session_id)

    logger.info(f"User {user.username} signed up")

    return AuthResponse(
        message="User created successfully",
        user=_user_response(user),
    )


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
async def login(
    body: CredentialsRequest,
    response: Response,
    previous_session_id: str | None = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """Check credentials and start a session.

    Failures never create or extend a session.
    """
    user = await get_user_by_username(db, body.username)

    if user is None:
        verify_password(body.password, _DUMMY_HASH)
        logger.warning(f"Login failed for {body.username!r}")
        raise AuthFailure(INVALID_CREDENTIALS)

    if not verify_password(body.password, user.password_hash):
        logger.warning(f"Login failed for {body.username!r}")
        raise AuthFailure(INVALID_CREDENTIALS)

    if needs_rehash(user.password_hash):
        # Stored with older hashing parameters; upgrade while the password is at hand
        user.password_hash = hash_password(body.password)
        logger.info(f"Rehashed password for {user.username}")

    await record_login(db, user)
    _start_session(response, store, user, body.remember_me, previous_session_id)

    logger.info(f"User {user.username} logged in")

    return AuthResponse(user=_user_response(user))


@router.post("/logout")
async def logout(
    response: Response,
    session_id: str | None = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """Log out the current user.

    Destroys the server-side session and clears the cookie.
    """
    if session_id:
        session = store.get(session_id, touch=False)
        store.destroy(session_id)
        if session:
            active = session.last_seen - session.created_at
            logger.info(
                f"User {session.username} logged out after "
                f"{active.total_seconds():.0f}s of activity"
            )

    clear_session_cookie(response)

    return {"success": True, "message": "Logged out"}
