"""
Mock authentication endpoints for API v1.

Login and registration never check credentials against a user
database; they derive a user from the submitted e‑mail and open a
session.  Logging out closes the session so its token stops working.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from eventease_api.app.api.deps import get_user_service, to_http_exception
from eventease_api.app.core.errors import AuthenticationError
from eventease_api.app.core.security import get_current_token, get_current_user
from eventease_api.app.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserRead
from eventease_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, users: UserService = Depends(get_user_service)) -> TokenResponse:
    """Log in and receive a bearer token.

    The role is derived from the address: ``admin`` if it contains
    "admin", ``staff`` if it contains "staff", otherwise
    ``event_owner``.
    """
    try:
        user, token = await users.login(body.email, body.password)
    except AuthenticationError as e:
        raise to_http_exception(e) from e
    return TokenResponse(access_token=token, user=user)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, users: UserService = Depends(get_user_service)) -> TokenResponse:
    """Register as an event owner and receive a bearer token."""
    try:
        user, token = await users.register(body.email, body.password, body.name)
    except AuthenticationError as e:
        raise to_http_exception(e) from e
    return TokenResponse(access_token=token, user=user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_current_token),
    users: UserService = Depends(get_user_service),
) -> Response:
    """End the current session."""
    if not await users.logout(token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session has ended")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserRead)
async def me(current_user: UserRead = Depends(get_current_user)) -> UserRead:
    return current_user
