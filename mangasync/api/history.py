"""Reading history sync endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from mangasync.api.deps import get_session, require_user
from mangasync.models.user import User
from mangasync.schemas.collection import HistoryPackage
from mangasync.services.collection_service import get_history_snapshot
from mangasync.services.sync_service import sync_history

router = APIRouter(prefix="/resource/history", tags=["sync"])


@router.get("", response_model=HistoryPackage)
async def get_history_endpoint(
    user: Annotated[User, Depends(require_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HistoryPackage:
    """Return the stored history snapshot."""
    return await get_history_snapshot(session, user.id)


@router.post(
    "",
    response_model=HistoryPackage,
    responses={status.HTTP_204_NO_CONTENT: {"description": "Nothing changed"}},
)
async def post_history_endpoint(
    body: HistoryPackage,
    user: Annotated[User, Depends(require_user)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HistoryPackage | Response:
    """Merge a history snapshot; 204 when the stored state already matched."""
    result = await sync_history(session, user.id, body)
    if not result.changed:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return result.snapshot
