"""Favourites sync endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from mangasync.api.deps import get_session, require_user
from mangasync.models.user import User
from mangasync.schemas.collection import FavouritesPackage
from mangasync.services.collection_service import get_favourites_snapshot
from mangasync.services.sync_service import sync_favourites

router = APIRouter(prefix="/resource/favourites", tags=["sync"])


@router.get("", response_model=FavouritesPackage)
async def get_favourites_endpoint(
    user: Annotated[User, Depends(require_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> FavouritesPackage:
    """Return the stored favourites snapshot."""
    return await get_favourites_snapshot(session, user.id)


@router.post(
    "",
    response_model=FavouritesPackage,
    responses={status.HTTP_204_NO_CONTENT: {"description": "Nothing changed"}},
)
async def post_favourites_endpoint(
    body: FavouritesPackage,
    user: Annotated[User, Depends(require_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> FavouritesPackage | Response:
    """Merge a favourites snapshot; 204 when the stored state already matched."""
    result = await sync_favourites(session, user.id, body)
    if not result.changed:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return result.snapshot
