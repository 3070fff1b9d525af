"""Rock endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

ROCKS = "/api/v1/rocks"


async def post_rock(client: AsyncClient, headers: dict[str, str], **overrides) -> dict:
    body = {"title": "Granite boulder", "latitude": 51.5007, "longitude": -0.1246, "rock_type": "igneous"}
    body.update(overrides)
    response = await client.post(ROCKS, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateRock:
    @pytest.mark.asyncio
    async def test_create_returns_rock_and_awards(self, client, auth_headers):
        data = await post_rock(client, auth_headers("alice"), rock_type="fossil", tags=["Beach", "beach", " shell "])

        assert data["rock"]["username"] == "alice"
        assert data["rock"]["rock_type"] == "fossil"
        assert data["rock"]["tags"] == ["beach", "shell"]
        assert data["rock"]["like_count"] == 0
        names = {a["name"] for a in data["new_awards"]}
        assert names == {"First Rock", "Fossil Finder"}

    @pytest.mark.asyncio
    async def test_second_rock_no_repeat_awards(self, client, auth_headers):
        headers = auth_headers("alice")
        await post_rock(client, headers)
        second = await post_rock(client, headers)
        assert second["new_awards"] == []

        me = await client.get("/api/v1/users/me", headers=headers)
        assert me.json()["rock_count"] == 2

    @pytest.mark.asyncio
    async def test_requires_auth(self, client):
        response = await client.post(ROCKS, json={"title": "x", "latitude": 0, "longitude": 0})
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_invalid_rock_type(self, client, auth_headers):
        response = await client.post(
            ROCKS,
            json={"title": "x", "latitude": 0, "longitude": 0, "rock_type": "plastic"},
            headers=auth_headers("alice"),
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_latitude_out_of_range(self, client, auth_headers):
        response = await client.post(
            ROCKS, json={"title": "x", "latitude": 91, "longitude": 0}, headers=auth_headers("alice")
        )
        assert response.status_code == 422


class TestReadRocks:
    @pytest.mark.asyncio
    async def test_get_public_rock_anonymously(self, client, auth_headers):
        rock = (await post_rock(client, auth_headers("alice")))["rock"]
        response = await client.get(f"{ROCKS}/{rock['id']}")
        assert response.status_code == 200
        assert response.json()["title"] == "Granite boulder"

    @pytest.mark.asyncio
    async def test_missing_rock(self, client):
        response = await client.get(f"{ROCKS}/9999")
        assert response.status_code == 404
        assert response.json() == {"detail": "Rock 9999 not found"}

    @pytest.mark.asyncio
    async def test_private_rock_hidden_from_others(self, client, auth_headers):
        owner = auth_headers("alice")
        rock = (await post_rock(client, owner, is_public=False))["rock"]

        assert (await client.get(f"{ROCKS}/{rock['id']}")).status_code == 404
        assert (await client.get(f"{ROCKS}/{rock['id']}", headers=auth_headers("bob"))).status_code == 404
        assert (await client.get(f"{ROCKS}/{rock['id']}", headers=owner)).status_code == 200

        listing = await client.get(ROCKS)
        assert listing.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_list_filters(self, client, auth_headers):
        headers = auth_headers("alice")
        await post_rock(client, headers, title="A", rock_type="igneous", tags=["river"])
        await post_rock(client, headers, title="B", rock_type="mineral", tags=["cave"])
        await post_rock(client, headers, title="C", rock_type="mineral", tags=["river"])

        by_type = (await client.get(ROCKS, params={"rock_type": "mineral"})).json()
        assert {r["title"] for r in by_type["rocks"]} == {"B", "C"}

        by_tag = (await client.get(ROCKS, params={"tag": "River"})).json()
        assert by_tag["total"] == 2
        assert {r["title"] for r in by_tag["rocks"]} == {"A", "C"}

        paged = (await client.get(ROCKS, params={"per_page": 2, "page": 2})).json()
        assert paged["total"] == 3
        assert len(paged["rocks"]) == 1

    @pytest.mark.asyncio
    async def test_nearby(self, client, auth_headers):
        headers = auth_headers("alice")
        await post_rock(client, headers, title="Westminster", latitude=51.5007, longitude=-0.1246)
        await post_rock(client, headers, title="Tower", latitude=51.5081, longitude=-0.0759)
        await post_rock(client, headers, title="Eiffel", latitude=48.8584, longitude=2.2945)

        response = await client.get(f"{ROCKS}/nearby", params={"lat": 51.5007, "lng": -0.1246, "radius_km": 10})
        assert response.status_code == 200
        rocks = response.json()["rocks"]
        assert [r["title"] for r in rocks] == ["Westminster", "Tower"]
        assert rocks[0]["distance_km"] == 0
        assert 3 < rocks[1]["distance_km"] < 4


class TestModifyRocks:
    @pytest.mark.asyncio
    async def test_owner_updates(self, client, auth_headers):
        headers = auth_headers("alice")
        rock = (await post_rock(client, headers))["rock"]
        response = await client.put(f"{ROCKS}/{rock['id']}", json={"title": "Renamed"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"
        assert response.json()["rock_type"] == "igneous"

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, client, auth_headers):
        rock = (await post_rock(client, auth_headers("alice")))["rock"]
        bob = auth_headers("bob")

        assert (await client.put(f"{ROCKS}/{rock['id']}", json={"title": "Mine"}, headers=bob)).status_code == 403
        assert (await client.delete(f"{ROCKS}/{rock['id']}", headers=bob)).status_code == 403

    @pytest.mark.asyncio
    async def test_moderator_may_edit(self, client, auth_headers):
        rock = (await post_rock(client, auth_headers("alice")))["rock"]
        response = await client.put(
            f"{ROCKS}/{rock['id']}", json={"title": "Moderated"}, headers=auth_headers("mod", role="moderator")
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_owner_deletes(self, client, auth_headers):
        headers = auth_headers("alice")
        rock = (await post_rock(client, headers))["rock"]
        await client.post(f"{ROCKS}/{rock['id']}/comments", json={"text": "first"}, headers=auth_headers("bob"))

        assert (await client.delete(f"{ROCKS}/{rock['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"{ROCKS}/{rock['id']}")).status_code == 404


class TestLikesAndComments:
    @pytest.mark.asyncio
    async def test_duplicate_like_keeps_count(self, client, auth_headers):
        rock = (await post_rock(client, auth_headers("alice")))["rock"]
        bob = auth_headers("bob")

        first = await client.post(f"{ROCKS}/{rock['id']}/like", headers=bob)
        second = await client.post(f"{ROCKS}/{rock['id']}/like", headers=bob)
        assert first.json() == {"rock_id": rock["id"], "liked": True, "like_count": 1}
        assert second.json()["like_count"] == 1

        unliked = await client.delete(f"{ROCKS}/{rock['id']}/like", headers=bob)
        assert unliked.json() == {"rock_id": rock["id"], "liked": False, "like_count": 0}

    @pytest.mark.asyncio
    async def test_like_missing_rock(self, client, auth_headers):
        response = await client.post(f"{ROCKS}/424242/like", headers=auth_headers("bob"))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_comment(self, client, auth_headers):
        rock = (await post_rock(client, auth_headers("alice")))["rock"]
        response = await client.post(
            f"{ROCKS}/{rock['id']}/comments", json={"text": "  Lovely banding  "}, headers=auth_headers("bob")
        )
        assert response.status_code == 201
        data = response.json()
        assert data["comment"]["text"] == "Lovely banding"
        assert data["comment"]["username"] == "bob"
        assert [a["name"] for a in data["new_awards"]] == ["Community Member"]

        detail = (await client.get(f"{ROCKS}/{rock['id']}")).json()
        assert [c["text"] for c in detail["comments"]] == ["Lovely banding"]

    @pytest.mark.asyncio
    async def test_blank_comment(self, client, auth_headers):
        rock = (await post_rock(client, auth_headers("alice")))["rock"]
        response = await client.post(
            f"{ROCKS}/{rock['id']}/comments", json={"text": "   "}, headers=auth_headers("bob")
        )
        assert response.status_code == 400
