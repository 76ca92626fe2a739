"""Catalog schemas shared by the browse and sync endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TagSchema(BaseModel):
    """Tag as exchanged with clients."""

    tag_id: int
    title: str
    key: str
    source: str


class MangaSchema(BaseModel):
    """Manga as exchanged with clients.

    Clients may mark adult content either with a numeric ``nsfw`` marker or a
    textual ``content_rating``. The server stores a single flag and reports it
    back as ``nsfw`` 1/0 with ``content_rating`` "ADULT"/null.
    """

    manga_id: int
    title: str
    alt_title: str | None = None
    url: str
    public_url: str
    rating: float = 0.0
    nsfw: int | None = None
    content_rating: str | None = None
    cover_url: str
    large_cover_url: str | None = None
    state: str | None = None
    author: str | None = None
    source: str
    tags: list[TagSchema] = Field(default_factory=list)
