"""Collection store: per-user categories, favourites and history.

Rows missing from a client snapshot are never deleted here. Deletion travels
as a tombstone (``deleted_at != 0``) that is stored and returned like any
other row.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from mangasync.models.catalog import Manga
from mangasync.models.collection import Category, Favourite, History
from mangasync.models.user import User
from mangasync.schemas.collection import (
    CategorySchema,
    FavouriteSchema,
    FavouritesPackage,
    HistoryPackage,
    HistorySchema,
)
from mangasync.services.batch_service import distinct_in_key_order, upsert_in_batches
from mangasync.services.catalog_service import load_tags, manga_to_schema
from mangasync.services.datetime_service import now_timestamp

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

COLLECTION_BATCH_SIZE = 200
# Hard cap on categories returned per user; not a pagination cursor.
MAX_CATEGORIES = 10

_CATEGORY_UPDATE_COLUMNS = (
    "created_at",
    "sort_key",
    "title",
    "order",
    "track",
    "show_in_lib",
    "deleted_at",
)
_FAVOURITE_UPDATE_COLUMNS = ("sort_key", "created_at", "deleted_at")
_HISTORY_UPDATE_COLUMNS = (
    "created_at",
    "updated_at",
    "chapter_id",
    "page",
    "scroll",
    "percent",
    "chapters",
    "deleted_at",
)


class SyncKind(enum.Enum):
    """Collection whose cursor is being read or advanced."""

    FAVOURITES = "favourites_sync_timestamp"
    HISTORY = "history_sync_timestamp"


def _effective_cursor(stored: int | None) -> int:
    """A missing or zero cursor means "never synced": report the server time."""
    if not stored:
        return now_timestamp()
    return stored


async def _read_cursor(session: AsyncSession, user_id: int, kind: SyncKind) -> int:
    column = getattr(User, kind.value)
    result = await session.execute(select(column).where(User.id == user_id))
    return _effective_cursor(result.scalar_one_or_none())


async def advance_sync_timestamp(
    session: AsyncSession, user_id: int, kind: SyncKind, timestamp: int
) -> None:
    """Move the user's cursor for ``kind`` to ``timestamp``. Does not commit."""
    await session.execute(update(User).where(User.id == user_id).values({kind.value: timestamp}))


# ── Favourites ───────────────────────────────────────


async def get_categories(session: AsyncSession, user_id: int) -> list[CategorySchema]:
    """Read at most ``MAX_CATEGORIES`` categories, ordered by sort key."""
    stmt = (
        select(Category)
        .where(Category.user_id == user_id)
        .order_by(Category.sort_key, Category.id)
        .limit(MAX_CATEGORIES)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return [
        CategorySchema(
            category_id=category.id,
            created_at=category.created_at,
            sort_key=category.sort_key,
            track=1 if category.track else 0,
            title=category.title,
            order=category.order,
            deleted_at=category.deleted_at,
            show_in_lib=1 if category.show_in_lib else 0,
        )
        for category in result.scalars().all()
    ]


async def get_favourites(session: AsyncSession, user_id: int) -> list[FavouriteSchema]:
    """Read all favourites of a user, tombstones included, with manga and tags."""
    stmt = (
        select(Favourite, Manga)
        .join(Manga, Manga.id == Favourite.manga_id)
        .where(Favourite.user_id == user_id)
        .order_by(Favourite.category_id, Favourite.manga_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    rows = result.all()
    if not rows:
        return []

    tags = await load_tags(
        session, select(Favourite.manga_id).where(Favourite.user_id == user_id)
    )
    return [
        FavouriteSchema(
            manga_id=favourite.manga_id,
            manga=manga_to_schema(manga, tags.get(manga.id, [])),
            category_id=favourite.category_id,
            sort_key=favourite.sort_key,
            created_at=favourite.created_at,
            deleted_at=favourite.deleted_at,
        )
        for favourite, manga in rows
    ]


async def get_favourites_snapshot(session: AsyncSession, user_id: int) -> FavouritesPackage:
    """Read the authoritative favourites snapshot.

    A user without categories gets an empty snapshot stamped with the current
    server time, whatever their cursor says.
    """
    categories = await get_categories(session, user_id)
    if not categories:
        return FavouritesPackage(
            favourite_categories=[], favourites=[], timestamp=now_timestamp()
        )

    favourites = await get_favourites(session, user_id)
    timestamp = await _read_cursor(session, user_id, SyncKind.FAVOURITES)
    return FavouritesPackage(
        favourite_categories=categories, favourites=favourites, timestamp=timestamp
    )


async def upsert_categories(
    session: AsyncSession, user_id: int, categories: Iterable[CategorySchema]
) -> int:
    """Insert or overwrite the user's categories by (id, user_id)."""
    rows: list[dict[str, Any]] = [
        {
            "id": category.category_id,
            "user_id": user_id,
            "created_at": category.created_at,
            "sort_key": category.sort_key,
            "title": category.title,
            "order": category.order,
            "track": category.track != 0,
            "show_in_lib": category.show_in_lib != 0,
            "deleted_at": category.deleted_at,
        }
        for category in categories
    ]
    return await upsert_in_batches(
        session,
        Category.__table__,
        distinct_in_key_order(rows, lambda row: row["id"]),
        conflict_columns=("id", "user_id"),
        update_columns=_CATEGORY_UPDATE_COLUMNS,
        batch_size=COLLECTION_BATCH_SIZE,
        operation="upsert categories",
    )


async def upsert_favourites(
    session: AsyncSession, user_id: int, favourites: Iterable[FavouriteSchema]
) -> int:
    """Insert or overwrite the user's favourites by (manga_id, category_id, user_id)."""
    rows: list[dict[str, Any]] = [
        {
            "manga_id": favourite.manga_id,
            "category_id": favourite.category_id,
            "user_id": user_id,
            "sort_key": favourite.sort_key,
            "created_at": favourite.created_at,
            "deleted_at": favourite.deleted_at,
        }
        for favourite in favourites
    ]
    return await upsert_in_batches(
        session,
        Favourite.__table__,
        distinct_in_key_order(rows, lambda row: (row["manga_id"], row["category_id"])),
        conflict_columns=("manga_id", "category_id", "user_id"),
        update_columns=_FAVOURITE_UPDATE_COLUMNS,
        batch_size=COLLECTION_BATCH_SIZE,
        operation="upsert favourites",
    )


# ── History ──────────────────────────────────────────


async def get_history(session: AsyncSession, user_id: int) -> list[HistorySchema]:
    """Read all history rows of a user, tombstones included, with manga and tags."""
    stmt = (
        select(History, Manga)
        .join(Manga, Manga.id == History.manga_id)
        .where(History.user_id == user_id)
        .order_by(History.manga_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    rows = result.all()
    if not rows:
        return []

    tags = await load_tags(session, select(History.manga_id).where(History.user_id == user_id))
    return [
        HistorySchema(
            manga_id=entry.manga_id,
            manga=manga_to_schema(manga, tags.get(manga.id, [])),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
            chapter_id=entry.chapter_id,
            page=entry.page,
            scroll=entry.scroll,
            percent=entry.percent,
            chapters=entry.chapters,
            deleted_at=entry.deleted_at,
        )
        for entry, manga in rows
    ]


async def get_history_snapshot(session: AsyncSession, user_id: int) -> HistoryPackage:
    """Read the authoritative history snapshot.

    With no history rows the snapshot is empty and stamped with server time.
    """
    history = await get_history(session, user_id)
    if not history:
        return HistoryPackage(history=[], timestamp=now_timestamp())

    timestamp = await _read_cursor(session, user_id, SyncKind.HISTORY)
    return HistoryPackage(history=history, timestamp=timestamp)


async def upsert_history(
    session: AsyncSession, user_id: int, history: Iterable[HistorySchema]
) -> int:
    """Insert or overwrite the user's history rows by (manga_id, user_id)."""
    rows: list[dict[str, Any]] = [
        {
            "manga_id": entry.manga_id,
            "user_id": user_id,
            "created_at": entry.created_at,
            "updated_at": entry.updated_at,
            "chapter_id": entry.chapter_id,
            "page": entry.page,
            "scroll": entry.scroll,
            "percent": entry.percent,
            "chapters": entry.chapters,
            "deleted_at": entry.deleted_at,
        }
        for entry in history
    ]
    return await upsert_in_batches(
        session,
        History.__table__,
        distinct_in_key_order(rows, lambda row: row["manga_id"]),
        conflict_columns=("manga_id", "user_id"),
        update_columns=_HISTORY_UPDATE_COLUMNS,
        batch_size=COLLECTION_BATCH_SIZE,
        operation="upsert history",
    )
