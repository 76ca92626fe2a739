"""Catalog store: shared manga/tag rows and the manga-tag association."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from mangasync.models.catalog import Manga, MangaTag, Tag
from mangasync.schemas.catalog import MangaSchema, TagSchema
from mangasync.services.batch_service import distinct_in_key_order, upsert_in_batches
from mangasync.services.normalization import ADULT_CONTENT_RATING, manga_row, tag_row

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

MANGA_BATCH_SIZE = 100
TAG_BATCH_SIZE = 300
MANGA_TAG_BATCH_SIZE = 300

_MANGA_UPDATE_COLUMNS = (
    "title",
    "alt_title",
    "url",
    "public_url",
    "rating",
    "is_nsfw",
    "cover_url",
    "large_cover_url",
    "state",
    "author",
    "source",
)
_TAG_UPDATE_COLUMNS = ("title", "key", "source")


async def upsert_tags(session: AsyncSession, tags: Iterable[TagSchema]) -> int:
    """Insert or fully overwrite tags by id."""
    rows = distinct_in_key_order((tag_row(tag) for tag in tags), lambda row: row["id"])
    return await upsert_in_batches(
        session,
        Tag.__table__,
        rows,
        conflict_columns=("id",),
        update_columns=_TAG_UPDATE_COLUMNS,
        batch_size=TAG_BATCH_SIZE,
        operation="upsert tags",
    )


async def upsert_manga(session: AsyncSession, manga: Iterable[MangaSchema]) -> int:
    """Insert or fully overwrite manga by id, after truncation and nsfw derivation."""
    rows = distinct_in_key_order((manga_row(item) for item in manga), lambda row: row["id"])
    return await upsert_in_batches(
        session,
        Manga.__table__,
        rows,
        conflict_columns=("id",),
        update_columns=_MANGA_UPDATE_COLUMNS,
        batch_size=MANGA_BATCH_SIZE,
        operation="upsert manga",
    )


async def link_manga_tags(session: AsyncSession, links: Iterable[tuple[int, int]]) -> int:
    """Insert (manga_id, tag_id) links that do not exist yet."""
    rows = [
        {"manga_id": manga_id, "tag_id": tag_id}
        for manga_id, tag_id in distinct_in_key_order(links, lambda link: link)
    ]
    return await upsert_in_batches(
        session,
        MangaTag.__table__,
        rows,
        conflict_columns=("manga_id", "tag_id"),
        update_columns=(),
        batch_size=MANGA_TAG_BATCH_SIZE,
        operation="link manga tags",
    )


async def load_tags(
    session: AsyncSession,
    manga_ids: Collection[int] | Select[Any],
) -> dict[int, list[TagSchema]]:
    """Map manga id to its tags (ordered by tag id).

    ``manga_ids`` may be a concrete collection or a select of ids, which keeps
    large collections out of the statement's parameter list.
    """
    stmt = (
        select(MangaTag.manga_id, Tag)
        .join(Tag, Tag.id == MangaTag.tag_id)
        .where(MangaTag.manga_id.in_(manga_ids))
        .order_by(MangaTag.manga_id, Tag.id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    tags: dict[int, list[TagSchema]] = {}
    for manga_id, tag in result.all():
        tags.setdefault(manga_id, []).append(
            TagSchema(tag_id=tag.id, title=tag.title, key=tag.key, source=tag.source)
        )
    return tags


def manga_to_schema(manga: Manga, tags: list[TagSchema]) -> MangaSchema:
    """Convert a stored manga to its wire form."""
    return MangaSchema(
        manga_id=manga.id,
        title=manga.title,
        alt_title=manga.alt_title,
        url=manga.url,
        public_url=manga.public_url,
        rating=manga.rating,
        nsfw=1 if manga.is_nsfw else 0,
        content_rating=ADULT_CONTENT_RATING if manga.is_nsfw else None,
        cover_url=manga.cover_url,
        large_cover_url=manga.large_cover_url,
        state=manga.state,
        author=manga.author,
        source=manga.source,
        tags=tags,
    )


async def get_manga_page(session: AsyncSession, limit: int, page: int) -> list[MangaSchema]:
    """Browse the catalog by id. ``page`` is a page index, not a row offset."""
    stmt = (
        select(Manga)
        .order_by(Manga.id)
        .limit(limit)
        .offset(page * limit)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    manga = result.scalars().all()
    if not manga:
        return []

    tags = await load_tags(session, [item.id for item in manga])
    return [manga_to_schema(item, tags.get(item.id, [])) for item in manga]


async def get_manga(session: AsyncSession, manga_id: int) -> MangaSchema | None:
    """Get one manga with its tags, or None."""
    manga = await session.get(Manga, manga_id, populate_existing=True)
    if manga is None:
        return None
    tags = await load_tags(session, [manga_id])
    return manga_to_schema(manga, tags.get(manga_id, []))
