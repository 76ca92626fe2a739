"""Integration tests for /auth and /me."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mangasync.config import Settings
from mangasync.services.auth_service import create_access_token
from tests.conftest import DEFAULT_PASSWORD, TEST_SECRET_KEY, create_test_client, login

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from httpx import AsyncClient


@pytest.fixture
async def closed_client(tmp_path: Path) -> AsyncGenerator[AsyncClient]:
    settings = Settings(
        secret_key=TEST_SECRET_KEY,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'closed.db'}",
        allow_registration=False,
    )
    async with create_test_client(settings) as ac:
        yield ac


class TestAuth:
    async def test_first_login_registers(self, client: AsyncClient) -> None:
        headers = await login(client, "new@mangasync.io")
        resp = await client.get("/me", headers=headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["email"] == "new@mangasync.io"
        assert body["nickname"] is None

    async def test_second_login_reuses_account(self, client: AsyncClient) -> None:
        first = await login(client)
        second = await login(client)
        me_first = (await client.get("/me", headers=first)).json()
        me_second = (await client.get("/me", headers=second)).json()
        assert me_first["id"] == me_second["id"]

    async def test_wrong_password(self, client: AsyncClient) -> None:
        await login(client)
        resp = await client.post(
            "/auth", json={"email": "reader@mangasync.io", "password": "wrong"}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid credential"

    async def test_registration_closed(self, closed_client: AsyncClient) -> None:
        resp = await closed_client.post(
            "/auth", json={"email": "nobody@mangasync.io", "password": DEFAULT_PASSWORD}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "User is missing"

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "not-an-email", "password": "pw"},
            {"email": "a" * 95 + "@x.com", "password": "pw"},
            {"email": "reader@mangasync.io", "password": ""},
            {"email": "reader@mangasync.io", "password": "p" * 33},
            {"email": "reader@mangasync.io"},
        ],
    )
    async def test_invalid_request(self, client: AsyncClient, body: dict[str, str]) -> None:
        resp = await client.post("/auth", json=body)
        assert resp.status_code == 422


class TestMe:
    async def test_requires_token(self, client: AsyncClient) -> None:
        resp = await client.get("/me")
        assert resp.status_code == 401

    async def test_token_for_deleted_user(
        self, client: AsyncClient, test_settings: Settings
    ) -> None:
        token = create_access_token(4242, test_settings)
        resp = await client.get("/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"
