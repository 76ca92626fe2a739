"""Integration tests for catalog browsing and the health endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mangasync.api import health
from tests.conftest import login, make_category, make_favourite, make_manga

if TYPE_CHECKING:
    from httpx import AsyncClient


async def _seed(client: AsyncClient, count: int) -> None:
    headers = await login(client)
    payload = {
        "favourite_categories": [make_category(1)],
        "favourites": [
            make_favourite(make_manga(i), category_id=1) for i in range(1, count + 1)
        ],
        "timestamp": 1000,
    }
    resp = await client.post("/resource/favourites", json=payload, headers=headers)
    assert resp.status_code == 200, resp.text


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["dialect"] == "sqlite"
        assert body["sync"] == "ok"
        assert body["version"]

    async def test_degraded_without_upsert_support(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(health, "supports_upsert", lambda dialect: False)

        body = (await client.get("/")).json()

        assert body["status"] == "degraded"
        assert body["database"] == "ok"
        assert body["sync"] == "unsupported"

    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        resp = await client.get("/", headers={"X-Request-ID": "abc123"})
        assert resp.headers["x-request-id"] == "abc123"

    async def test_request_id_generated(self, client: AsyncClient) -> None:
        resp = await client.get("/")
        assert resp.headers["x-request-id"]


class TestMangaBrowse:
    async def test_pages(self, client: AsyncClient) -> None:
        await _seed(client, 5)

        first = await client.get("/manga", params={"limit": 2, "offset": 0})
        second = await client.get("/manga", params={"limit": 2, "offset": 1})

        assert [m["manga_id"] for m in first.json()] == [1, 2]
        assert [m["manga_id"] for m in second.json()] == [3, 4]

    async def test_default_limit(self, client: AsyncClient) -> None:
        await _seed(client, 25)
        resp = await client.get("/manga")
        assert len(resp.json()) == 20

    async def test_limit_bounds(self, client: AsyncClient) -> None:
        assert (await client.get("/manga", params={"limit": 0})).status_code == 422
        assert (await client.get("/manga", params={"limit": 101})).status_code == 422
        assert (await client.get("/manga", params={"offset": -1})).status_code == 422

    async def test_get_one(self, client: AsyncClient) -> None:
        await _seed(client, 1)
        resp = await client.get("/manga/1")
        assert resp.status_code == 200
        assert [tag["tag_id"] for tag in resp.json()["tags"]] == [7]

    async def test_missing(self, client: AsyncClient) -> None:
        resp = await client.get("/manga/999")
        assert resp.status_code == 404
