"""
Authentication API Routes for the wishlist service.

Handles:
- User registration with an invite code (Sign Up)
- Login, which issues a session cookie
- Current user retrieval
- Logout
"""

import asyncio
from datetime import timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from loguru import logger

from wishlist.api.dependencies import (
    Settings,
    get_current_user_id,
    get_session_store,
    get_app_settings,
    get_user_agent,
    get_user_directory,
)
from wishlist.api.schemas import (
    ErrorResponse,
    LoginRequest,
    PublicUserResponse,
    SignupRequest,
    StatusResponse,
)
from wishlist.exceptions import BadRequestError, UnauthorizedError
from wishlist.security import (
    SESSION_COOKIE_NAME,
    burn_password_check,
    decode_token,
    encode_token,
    verify_password,
)
from wishlist.storage import IssuedSession, PublicUser, SessionStore, UserDirectory

router = APIRouter(tags=["auth"])

INVALID_CREDENTIALS = "invalid username or password"


def set_session_cookie(response: Response, issued: IssuedSession) -> None:
    """Attach the session token to the response."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=encode_token(issued.token),
        expires=issued.expiry_time.replace(tzinfo=timezone.utc),
        path="/",
        secure=True,
        httponly=True,
        samesite="strict",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        secure=True,
        httponly=True,
        samesite="strict",
    )


# --- Endpoints ---

@router.post(
    "/signup",
    response_model=PublicUserResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid input or invite code"}},
)
async def signup(
    body: SignupRequest,
    response: Response,
    users: UserDirectory = Depends(get_user_directory),
    sessions: SessionStore = Depends(get_session_store),
    user_agent: Optional[str] = Depends(get_user_agent),
    settings: Settings = Depends(get_app_settings),
):
    """Register a new user by consuming an invite code, then log them in."""
    code = decode_token(body.invite_code)
    if code is None:
        raise BadRequestError("invalid invite code")

    user = await users.register(
        first_name=body.first,
        last_name=body.last,
        email=body.email,
        password=body.password,
        invite_code=code,
    )

    issued = await sessions.create(user.id, user_agent, ttl=settings.session_ttl)
    set_session_cookie(response, issued)

    return PublicUser.from_model(user).to_dict()


@router.post(
    "/session",
    response_model=PublicUserResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
)
async def login(
    body: LoginRequest,
    response: Response,
    users: UserDirectory = Depends(get_user_directory),
    sessions: SessionStore = Depends(get_session_store),
    user_agent: Optional[str] = Depends(get_user_agent),
    settings: Settings = Depends(get_app_settings),
):
    """
    Log in with email and password.

    Unknown email and wrong password produce the same response.
    """
    user = await users.get_by_email(body.email)

    if user is None:
        await asyncio.to_thread(burn_password_check, body.password)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not await asyncio.to_thread(verify_password, body.password, user.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    issued = await sessions.create(user.id, user_agent, ttl=settings.session_ttl)
    set_session_cookie(response, issued)

    return PublicUser.from_model(user).to_dict()


@router.get("/session", response_model=PublicUserResponse)
async def read_session(
    user_id: int = Depends(get_current_user_id),
    users: UserDirectory = Depends(get_user_directory),
):
    """Identity of the logged in user."""
    user = await users.get(user_id)
    if user is None:
        raise UnauthorizedError("invalid or expired session")
    return PublicUser.from_model(user).to_dict()


@router.delete("/session", response_model=StatusResponse)
async def logout(
    request: Request,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
):
    """Best-effort logout. Always succeeds."""
    token = decode_token(request.cookies.get(SESSION_COOKIE_NAME))
    if token is not None:
        removed = await sessions.delete(token)
        logger.info(f"Logout removed {removed} session(s)")

    clear_session_cookie(response)
    return {"status": "logged out"}
