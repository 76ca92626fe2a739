"""SQLAlchemy ORM models for MangaSync."""

from mangasync.models.base import Base
from mangasync.models.catalog import Manga, MangaTag, Tag
from mangasync.models.collection import Category, Favourite, History
from mangasync.models.user import User

__all__ = [
    "Base",
    "Category",
    "Favourite",
    "History",
    "Manga",
    "MangaTag",
    "Tag",
    "User",
]
