"""Catalog normalization applied right before every catalog write.

Fixed-width columns are protected by silent, lossy truncation (by character,
not byte). The adult-content flag is derived once here so every write path
agrees on it.
"""

from __future__ import annotations

from typing import Any

from mangasync.models.catalog import (
    MANGA_AUTHOR_WIDTH,
    MANGA_STATE_WIDTH,
    MANGA_TITLE_WIDTH,
    SOURCE_WIDTH,
    TAG_KEY_WIDTH,
    TAG_TITLE_WIDTH,
    URL_WIDTH,
)
from mangasync.schemas.catalog import MangaSchema, TagSchema

ADULT_CONTENT_RATING = "ADULT"

MANGA_FIELD_WIDTHS: dict[str, int] = {
    "title": MANGA_TITLE_WIDTH,
    "alt_title": MANGA_TITLE_WIDTH,
    "url": URL_WIDTH,
    "public_url": URL_WIDTH,
    "cover_url": URL_WIDTH,
    "large_cover_url": URL_WIDTH,
    "state": MANGA_STATE_WIDTH,
    "author": MANGA_AUTHOR_WIDTH,
    "source": SOURCE_WIDTH,
}

TAG_FIELD_WIDTHS: dict[str, int] = {
    "title": TAG_TITLE_WIDTH,
    "key": TAG_KEY_WIDTH,
    "source": SOURCE_WIDTH,
}


def truncate(value: str | None, width: int) -> str | None:
    """Cut a string to at most ``width`` characters. ``None`` passes through."""
    if value is None:
        return None
    return value[:width]


def derive_nsfw(nsfw: int | None, content_rating: str | None) -> bool:
    """Resolve the stored adult flag.

    A positive numeric marker wins. Anything else (absent, zero, negative)
    falls through to the text rating, compared case-insensitively to "adult".
    """
    if nsfw is not None and nsfw > 0:
        return True
    if content_rating is None:
        return False
    return content_rating.lower() == "adult"


def manga_row(manga: MangaSchema) -> dict[str, Any]:
    """Build the ``manga`` table row for a client manga."""
    row: dict[str, Any] = {
        "id": manga.manga_id,
        "rating": manga.rating,
        "is_nsfw": derive_nsfw(manga.nsfw, manga.content_rating),
    }
    for field, width in MANGA_FIELD_WIDTHS.items():
        row[field] = truncate(getattr(manga, field), width)
    return row


def tag_row(tag: TagSchema) -> dict[str, Any]:
    """Build the ``tag`` table row for a client tag."""
    row: dict[str, Any] = {"id": tag.tag_id}
    for field, width in TAG_FIELD_WIDTHS.items():
        row[field] = truncate(getattr(tag, field), width)
    return row


def normalize_tag(tag: TagSchema) -> TagSchema:
    """Return the tag as the store will hold it."""
    row = tag_row(tag)
    return TagSchema(tag_id=row["id"], title=row["title"], key=row["key"], source=row["source"])


def normalize_manga(manga: MangaSchema) -> MangaSchema:
    """Return the manga as the store will report it back.

    Tags are deduplicated by id (last occurrence wins) and ordered by id,
    matching the read path.
    """
    row = manga_row(manga)
    tags = {tag.tag_id: normalize_tag(tag) for tag in manga.tags}
    return MangaSchema(
        manga_id=row["id"],
        title=row["title"],
        alt_title=row["alt_title"],
        url=row["url"],
        public_url=row["public_url"],
        rating=row["rating"],
        nsfw=1 if row["is_nsfw"] else 0,
        content_rating=ADULT_CONTENT_RATING if row["is_nsfw"] else None,
        cover_url=row["cover_url"],
        large_cover_url=row["large_cover_url"],
        state=row["state"],
        author=row["author"],
        source=row["source"],
        tags=[tags[tag_id] for tag_id in sorted(tags)],
    )
