"""Shared catalog models: manga, tags and their association."""

from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from mangasync.models.base import Base

# Column widths in characters. Writes are truncated to these before they reach the store.
MANGA_TITLE_WIDTH = 84
URL_WIDTH = 255
MANGA_STATE_WIDTH = 24
MANGA_AUTHOR_WIDTH = 120
SOURCE_WIDTH = 32
TAG_TITLE_WIDTH = 64
TAG_KEY_WIDTH = 120


class Manga(Base):
    """Catalog entry, shared by every user that references it."""

    __tablename__ = "manga"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(MANGA_TITLE_WIDTH), nullable=False)
    alt_title: Mapped[str | None] = mapped_column(String(MANGA_TITLE_WIDTH), nullable=True)
    url: Mapped[str] = mapped_column(String(URL_WIDTH), nullable=False)
    public_url: Mapped[str] = mapped_column(String(URL_WIDTH), nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_nsfw: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cover_url: Mapped[str] = mapped_column(String(URL_WIDTH), nullable=False)
    large_cover_url: Mapped[str | None] = mapped_column(String(URL_WIDTH), nullable=True)
    state: Mapped[str | None] = mapped_column(String(MANGA_STATE_WIDTH), nullable=True)
    author: Mapped[str | None] = mapped_column(String(MANGA_AUTHOR_WIDTH), nullable=True)
    source: Mapped[str] = mapped_column(String(SOURCE_WIDTH), nullable=False)


class Tag(Base):
    """Source-specific genre/tag, shared across manga and users."""

    __tablename__ = "tag"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(TAG_TITLE_WIDTH), nullable=False)
    key: Mapped[str] = mapped_column(String(TAG_KEY_WIDTH), nullable=False)
    source: Mapped[str] = mapped_column(String(SOURCE_WIDTH), nullable=False)


class MangaTag(Base):
    """Association between manga and tags. Inserted if absent, never updated."""

    __tablename__ = "manga_tag"

    manga_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("manga.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    )
