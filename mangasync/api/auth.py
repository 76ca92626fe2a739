"""Authentication API endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from mangasync.api.deps import get_session, get_settings, require_user
from mangasync.config import Settings
from mangasync.models.user import User
from mangasync.schemas.auth import AuthRequest, AuthResponse, UserResponse
from mangasync.services.auth_service import (
    AuthenticationError,
    create_access_token,
    get_or_create_user,
)

router = APIRouter(tags=["auth"])


@router.post("/auth", response_model=AuthResponse)
async def authenticate(
    body: AuthRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthResponse:
    """Log in with email and password; unknown emails register when allowed."""
    try:
        user = await get_or_create_user(
            session,
            str(body.email),
            body.password,
            allow_registration=settings.allow_registration,
        )
    except AuthenticationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AuthResponse(token=create_access_token(user.id, settings))


@router.get("/me", response_model=UserResponse)
async def me(user: Annotated[User, Depends(require_user)]) -> UserResponse:
    """Get current user info."""
    return UserResponse(id=user.id, email=user.email, nickname=user.nickname)
