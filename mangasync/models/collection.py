"""Per-user collection models: categories, favourites and reading history."""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from mangasync.models.base import Base


class Category(Base):
    """Favourites category owned by one user."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sort_key: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[str] = mapped_column(Text, nullable=False)
    track: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_in_lib: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    deleted_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class Favourite(Base):
    """A manga placed in one of the user's categories."""

    __tablename__ = "favourite"

    manga_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("manga.id", ondelete="CASCADE"), primary_key=True
    )
    category_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    sort_key: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    deleted_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        ForeignKeyConstraint(
            ["category_id", "user_id"],
            ["category.id", "category.user_id"],
            ondelete="CASCADE",
        ),
    )


class History(Base):
    """Reading progress of one user on one manga."""

    __tablename__ = "history"

    manga_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("manga.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    chapter_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    page: Mapped[int] = mapped_column(Integer, nullable=False)
    scroll: Mapped[float] = mapped_column(Float, nullable=False)
    percent: Mapped[float] = mapped_column(Float, nullable=False)
    chapters: Mapped[int] = mapped_column(Integer, nullable=False)
    deleted_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
