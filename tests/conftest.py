"""Shared test fixtures for MangaSync."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mangasync.config import Settings
from mangasync.database import create_engine
from mangasync.main import create_app
from mangasync.models import Base
from mangasync.models.user import User
from mangasync.services.auth_service import hash_password

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_SECRET_KEY = "test-secret-key-with-at-least-32-characters"
DEFAULT_PASSWORD = "correcthorse"


@asynccontextmanager
async def create_test_client(settings: Settings) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client with a fully initialized app.

    Manually performs the work of the application lifespan (engine, schema)
    because ASGITransport does not trigger it.
    """
    app = create_app(settings)
    settings.validate_runtime_security()

    engine, session_factory = create_engine(settings)
    app.state.engine = engine
    app.state.session_factory = session_factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    await engine.dispose()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with a temporary database."""
    db_path = tmp_path / "test.db"
    return Settings(
        secret_key=TEST_SECRET_KEY,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{db_path}",
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine with the schema in place."""
    engine, _ = create_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(
    db_engine: AsyncEngine,
) -> AsyncGenerator[AsyncSession]:
    """Create a test database session."""
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(test_settings: Settings) -> AsyncGenerator[AsyncClient]:
    async with create_test_client(test_settings) as ac:
        yield ac


async def create_user(
    session: AsyncSession,
    email: str = "reader@mangasync.io",
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(email=email, password_hash=hash_password(password))
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def login(client: AsyncClient, email: str = "reader@mangasync.io") -> dict[str, str]:
    """Authenticate (registering on first use) and return bearer headers."""
    resp = await client.post("/auth", json={"email": email, "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


# ── Wire payload builders ────────────────────────────


def make_tag(tag_id: int = 7, **overrides: Any) -> dict[str, Any]:
    tag: dict[str, Any] = {
        "tag_id": tag_id,
        "title": "Action",
        "key": "action",
        "source": "MANGADEX",
    }
    tag.update(overrides)
    return tag


def make_manga(
    manga_id: int = 42,
    tags: list[dict[str, Any]] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    manga: dict[str, Any] = {
        "manga_id": manga_id,
        "title": "T",
        "alt_title": None,
        "url": f"/title/{manga_id}",
        "public_url": f"https://mangadex.org/title/{manga_id}",
        "rating": 0.5,
        "cover_url": f"https://mangadex.org/covers/{manga_id}.jpg",
        "large_cover_url": None,
        "state": "ONGOING",
        "author": "Someone",
        "source": "MANGADEX",
        "tags": [make_tag()] if tags is None else tags,
    }
    manga.update(overrides)
    return manga


def make_category(category_id: int = 1, **overrides: Any) -> dict[str, Any]:
    category: dict[str, Any] = {
        "category_id": category_id,
        "created_at": 900,
        "sort_key": category_id,
        "track": 1,
        "title": f"Category {category_id}",
        "order": "NAME",
        "deleted_at": 0,
        "show_in_lib": 1,
    }
    category.update(overrides)
    return category


def make_favourite(
    manga: dict[str, Any],
    category_id: int = 1,
    **overrides: Any,
) -> dict[str, Any]:
    favourite: dict[str, Any] = {
        "manga_id": manga["manga_id"],
        "manga": manga,
        "category_id": category_id,
        "sort_key": 0,
        "created_at": 950,
        "deleted_at": 0,
    }
    favourite.update(overrides)
    return favourite


def make_history(manga: dict[str, Any], **overrides: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "manga_id": manga["manga_id"],
        "manga": manga,
        "created_at": 900,
        "updated_at": 990,
        "chapter_id": 5001,
        "page": 3,
        "scroll": 0.0,
        "percent": 0.25,
        "chapters": 12,
        "deleted_at": 0,
    }
    entry.update(overrides)
    return entry
