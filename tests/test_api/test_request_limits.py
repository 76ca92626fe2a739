"""Tests for the request body size cap."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from mangasync.config import Settings
from tests.conftest import TEST_SECRET_KEY, create_test_client, login

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator
    from pathlib import Path

    from httpx import AsyncClient


@pytest.fixture
async def small_client(tmp_path: Path) -> AsyncGenerator[AsyncClient]:
    settings = Settings(
        secret_key=TEST_SECRET_KEY,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'small.db'}",
        max_request_body_bytes=200,
    )
    async with create_test_client(settings) as ac:
        yield ac


class TestBodySizeLimit:
    async def test_oversized_body_rejected(self, small_client: AsyncClient) -> None:
        headers = await login(small_client)
        resp = await small_client.post(
            "/resource/history",
            content=b"x" * 201,
            headers={**headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 413

    async def test_small_body_passes(self, small_client: AsyncClient) -> None:
        headers = await login(small_client)
        resp = await small_client.post(
            "/resource/history", json={"history": [], "timestamp": 1}, headers=headers
        )
        assert resp.status_code == 200

    async def test_streamed_oversized_body_rejected(self, small_client: AsyncClient) -> None:
        headers = await login(small_client)

        async def chunks() -> AsyncIterator[bytes]:
            for _ in range(15):
                yield b" " * 100

        resp = await small_client.post(
            "/resource/history",
            content=chunks(),
            headers={**headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 413
        assert resp.json() == {"detail": "Request body too large"}

    async def test_streamed_small_body_passes(self, small_client: AsyncClient) -> None:
        headers = await login(small_client)
        body = json.dumps({"history": [], "timestamp": 1}).encode()

        async def chunks() -> AsyncIterator[bytes]:
            yield body[:10]
            yield body[10:]

        resp = await small_client.post(
            "/resource/history",
            content=chunks(),
            headers={**headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 200
        assert resp.json()["history"] == []

    async def test_invalid_content_length(self, small_client: AsyncClient) -> None:
        resp = await small_client.post(
            "/resource/history",
            content=b"{}",
            headers={"Content-Type": "application/json", "Content-Length": "lots"},
        )
        assert resp.status_code == 400
