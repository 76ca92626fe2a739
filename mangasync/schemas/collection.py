"""Favourites and history snapshot schemas."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from mangasync.schemas.catalog import MangaSchema


class CategorySchema(BaseModel):
    """Favourites category."""

    category_id: int
    created_at: int
    sort_key: int
    track: int = 0
    title: str
    order: str
    deleted_at: int = 0
    show_in_lib: int = 1

    @field_validator("track", "show_in_lib", mode="before")
    @classmethod
    def flags_as_ints(cls, v: Any) -> Any:
        """Accept JSON booleans for the 0/1 flags."""
        _ = cls
        if isinstance(v, bool):
            return int(v)
        return v


class FavouriteSchema(BaseModel):
    """A manga placed in a category."""

    manga_id: int
    manga: MangaSchema
    category_id: int
    sort_key: int = 0
    created_at: int
    deleted_at: int = 0


class FavouritesPackage(BaseModel):
    """Full favourites snapshot: categories, favourites and the sync cursor."""

    model_config = ConfigDict(populate_by_name=True)

    favourite_categories: list[CategorySchema] = Field(
        default_factory=list,
        validation_alias=AliasChoices("favourite_categories", "categories"),
    )
    favourites: list[FavouriteSchema] = Field(default_factory=list)
    timestamp: int


class HistorySchema(BaseModel):
    """Reading progress for one manga."""

    manga_id: int
    manga: MangaSchema
    created_at: int
    updated_at: int
    chapter_id: int
    page: int = 0
    scroll: float = 0.0
    percent: float = 0.0
    chapters: int = 0
    deleted_at: int = 0


class HistoryPackage(BaseModel):
    """Full history snapshot with its sync cursor."""

    history: list[HistorySchema] = Field(default_factory=list)
    timestamp: int
