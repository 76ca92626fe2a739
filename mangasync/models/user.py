"""User model."""

from __future__ import annotations

from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mangasync.models.base import Base


class User(Base):
    """Application user with one sync cursor per collection."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    nickname: Mapped[str | None] = mapped_column(String, nullable=True)
    favourites_sync_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    history_sync_timestamp: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
