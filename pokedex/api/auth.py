"""
Authentication endpoints.

Login issues a bearer token for the configured account; logout revokes it.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, ConfigDict, Field

from pokedex.api.deps import extract_bearer_token, get_session_store
from pokedex.models.failure import (
    AuthError,
    ErrorResponse,
    FailureKind,
    ValidationError,
)
from pokedex.services.sessions import SessionStore

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Login credentials. Both fields are required; blank counts as missing."""

    username: str | None = Field(default=None, examples=["admin"])
    password: str | None = Field(default=None, examples=["admin"])


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str
    expires_at: int = Field(
        ...,
        alias="expiresAt",
        description="Absolute expiry as epoch milliseconds",
    )
    message: str = "Login successful"


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logout successful"


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def login(
    body: LoginRequest,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> LoginResponse:
    """Exchange username/password for a session token."""
    if not body.username or not body.password:
        raise ValidationError(
            "Username and password are required", kind=FailureKind.MISSING_REQUIRED
        )

    result = store.authenticate(body.username, body.password)
    if not result.success or result.token is None or result.expires_at is None:
        raise AuthError(result.error or "Invalid username or password")

    return LoginResponse(
        token=result.token,
        expires_at=int(result.expires_at.timestamp() * 1000),
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    store: Annotated[SessionStore, Depends(get_session_store)],
    authorization: Annotated[str | None, Header()] = None,
) -> LogoutResponse:
    """
    Revoke the caller's token.

    Always succeeds, with or without a (valid) token.
    """
    token = extract_bearer_token(authorization)
    if token is not None:
        store.invalidate(token)
    return LogoutResponse()
