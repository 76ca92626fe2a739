"""Sync reconciler: merge a client snapshot into the store and report the result.

One call runs: extract catalog entities → write tags, manga, links →
write collection rows → commit → re-read the authoritative snapshot →
advance the cursor → compare with the submission.

Any write or commit failure rolls the whole transaction back, so a client
never observes a partially applied snapshot. Retrying is the client's call:
resubmitting is idempotent because every write is an upsert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from mangasync.exceptions import SnapshotReadError, StoreWriteError, UserNotFoundError
from mangasync.models.user import User
from mangasync.schemas.collection import (
    FavouriteSchema,
    FavouritesPackage,
    HistoryPackage,
    HistorySchema,
)
from mangasync.services.batch_service import distinct_by_key
from mangasync.services.catalog_service import link_manga_tags, upsert_manga, upsert_tags
from mangasync.services.collection_service import (
    SyncKind,
    advance_sync_timestamp,
    get_favourites_snapshot,
    get_history_snapshot,
    upsert_categories,
    upsert_favourites,
    upsert_history,
)
from mangasync.services.normalization import normalize_manga

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from mangasync.schemas.catalog import MangaSchema, TagSchema

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


@dataclass(frozen=True)
class CatalogEntities:
    """Distinct catalog rows referenced by one snapshot."""

    manga: list[MangaSchema]
    tags: list[TagSchema]
    links: list[tuple[int, int]]


@dataclass(frozen=True)
class SyncResult(Generic[P]):
    """Merged snapshot and whether it differs from what the client sent."""

    snapshot: P
    changed: bool


def extract_catalog_entities(rows: Iterable[FavouriteSchema | HistorySchema]) -> CatalogEntities:
    """Reduce collection rows to the distinct manga, tags and links they reference.

    Manga are keyed by id and the last occurrence wins; tags and links are
    taken from the surviving manga only, again last occurrence per tag id.
    """
    manga = distinct_by_key((row.manga for row in rows), lambda item: item.manga_id)
    tags = distinct_by_key((tag for item in manga for tag in item.tags), lambda tag: tag.tag_id)
    links = distinct_by_key(
        ((item.manga_id, tag.tag_id) for item in manga for tag in item.tags),
        lambda link: link,
    )
    return CatalogEntities(manga=manga, tags=tags, links=links)


def canonical_favourites(package: FavouritesPackage) -> FavouritesPackage:
    """The submitted favourites as the store would report them back.

    Catalog normalization is applied and flags are coerced to 0/1; list order
    is left untouched.
    """
    return FavouritesPackage(
        favourite_categories=[
            category.model_copy(
                update={
                    "track": 1 if category.track else 0,
                    "show_in_lib": 1 if category.show_in_lib else 0,
                }
            )
            for category in package.favourite_categories
        ],
        favourites=[
            favourite.model_copy(update={"manga": normalize_manga(favourite.manga)})
            for favourite in package.favourites
        ],
        timestamp=package.timestamp,
    )


def canonical_history(package: HistoryPackage) -> HistoryPackage:
    """The submitted history as the store would report it back."""
    return HistoryPackage(
        history=[
            entry.model_copy(update={"manga": normalize_manga(entry.manga)})
            for entry in package.history
        ],
        timestamp=package.timestamp,
    )


def snapshots_equal(merged: BaseModel, submitted: BaseModel) -> bool:
    """Full structural equality: every field, lists compared in order."""
    if type(merged) is not type(submitted):
        return False
    return merged.model_dump() == submitted.model_dump()


async def _require_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def _write_catalog(session: AsyncSession, entities: CatalogEntities) -> None:
    # Tags and manga must exist before the links and collection rows that reference them.
    await upsert_tags(session, entities.tags)
    await upsert_manga(session, entities.manga)
    await link_manga_tags(session, entities.links)


async def _commit_writes(
    session: AsyncSession,
    collection: str,
    writes: Callable[[], Awaitable[None]],
) -> None:
    """Run ``writes`` and commit, rolling everything back on any failure."""
    try:
        await writes()
    except StoreWriteError as exc:
        await session.rollback()
        logger.error("Sync of %s aborted: %s", collection, exc)
        raise

    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Sync of %s aborted: commit failed: %s", collection, exc)
        raise StoreWriteError("commit", collection) from exc


async def _advance_cursor(
    session: AsyncSession, user_id: int, kind: SyncKind, timestamp: int
) -> None:
    try:
        await advance_sync_timestamp(session, user_id, kind, timestamp)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise StoreWriteError("advance sync timestamp", User.__tablename__) from exc


async def sync_favourites(
    session: AsyncSession, user_id: int, package: FavouritesPackage
) -> SyncResult[FavouritesPackage]:
    """Reconcile a favourites snapshot for ``user_id``.

    The favourites cursor becomes the client's submitted timestamp.
    """
    await _require_user(session, user_id)
    entities = extract_catalog_entities(package.favourites)

    async def writes() -> None:
        await _write_catalog(session, entities)
        await upsert_categories(session, user_id, package.favourite_categories)
        await upsert_favourites(session, user_id, package.favourites)

    await _commit_writes(session, "favourites", writes)

    try:
        merged = await get_favourites_snapshot(session, user_id)
    except SQLAlchemyError as exc:
        logger.critical("Favourites of user %d committed but unreadable: %s", user_id, exc)
        raise SnapshotReadError(f"Failed to re-read favourites of user {user_id}") from exc

    await _advance_cursor(session, user_id, SyncKind.FAVOURITES, package.timestamp)

    changed = not snapshots_equal(merged, canonical_favourites(package))
    logger.info(
        "Synced favourites for user %d: %d categories, %d favourites, %d manga, changed=%s",
        user_id,
        len(package.favourite_categories),
        len(package.favourites),
        len(entities.manga),
        changed,
    )
    return SyncResult(snapshot=merged, changed=changed)


async def sync_history(
    session: AsyncSession, user_id: int, package: HistoryPackage
) -> SyncResult[HistoryPackage]:
    """Reconcile a history snapshot for ``user_id``.

    The history cursor becomes the client's submitted timestamp, as for favourites.
    """
    await _require_user(session, user_id)
    entities = extract_catalog_entities(package.history)

    async def writes() -> None:
        await _write_catalog(session, entities)
        await upsert_history(session, user_id, package.history)

    await _commit_writes(session, "history", writes)

    try:
        merged = await get_history_snapshot(session, user_id)
    except SQLAlchemyError as exc:
        logger.critical("History of user %d committed but unreadable: %s", user_id, exc)
        raise SnapshotReadError(f"Failed to re-read history of user {user_id}") from exc

    await _advance_cursor(session, user_id, SyncKind.HISTORY, package.timestamp)

    changed = not snapshots_equal(merged, canonical_history(package))
    logger.info(
        "Synced history for user %d: %d entries, %d manga, changed=%s",
        user_id,
        len(package.history),
        len(entities.manga),
        changed,
    )
    return SyncResult(snapshot=merged, changed=changed)
