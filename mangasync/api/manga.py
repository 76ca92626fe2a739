"""Catalog browsing endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mangasync.api.deps import get_session
from mangasync.schemas.catalog import MangaSchema
from mangasync.services.catalog_service import get_manga, get_manga_page

router = APIRouter(prefix="/manga", tags=["manga"])


@router.get("", response_model=list[MangaSchema])
async def list_manga(
    session: Annotated[AsyncSession, Depends(get_session)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0, description="Page index")] = 0,
) -> list[MangaSchema]:
    """Browse the catalog ordered by manga id."""
    return await get_manga_page(session, limit=limit, page=offset)


@router.get("/{manga_id}", response_model=MangaSchema)
async def get_manga_endpoint(
    manga_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MangaSchema:
    """Get a single manga with its tags."""
    manga = await get_manga(session, manga_id)
    if manga is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Manga not found")
    return manga
