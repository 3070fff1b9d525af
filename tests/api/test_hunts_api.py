"""Hunt endpoint tests: management, joining and finding rocks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient

HUNTS = "/api/v1/hunts"


def window(start_days: float = -1, end_days: float = 1) -> dict[str, str]:
    now = datetime.now(timezone.utc)
    return {
        "start_date": (now + timedelta(days=start_days)).isoformat(),
        "end_date": (now + timedelta(days=end_days)).isoformat(),
    }


async def make_rocks(client: AsyncClient, headers: dict[str, str], count: int) -> list[int]:
    ids = []
    for i in range(count):
        response = await client.post(
            "/api/v1/rocks",
            json={"title": f"Stop {i}", "latitude": 40.0 + i / 100, "longitude": -3.7},
            headers=headers,
        )
        ids.append(response.json()["rock"]["id"])
    return ids


@pytest_asyncio.fixture
async def hunt(client: AsyncClient, auth_headers) -> dict:
    """An active three-rock hunt created by alice."""
    headers = auth_headers("alice")
    rock_ids = await make_rocks(client, headers, 3)
    response = await client.post(
        HUNTS,
        json={
            "title": "Old town",
            "difficulty": "easy",
            "rocks": [{"rock_id": r, "hint": f"near {i}"} for i, r in enumerate(rock_ids)],
            **window(),
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateHunt:
    @pytest.mark.asyncio
    async def test_created_with_ordered_rocks(self, hunt):
        assert hunt["status"] == "active"
        assert hunt["participant_count"] == 0
        assert [r["order"] for r in hunt["rocks"]] == [1, 2, 3]
        assert hunt["rocks"][0]["hint"] == "near 0"

    @pytest.mark.asyncio
    async def test_explicit_orders(self, client, auth_headers):
        headers = auth_headers("alice")
        a, b = await make_rocks(client, headers, 2)
        response = await client.post(
            HUNTS,
            json={"title": "Reverse", "rocks": [{"rock_id": a, "order": 20}, {"rock_id": b, "order": 10}], **window()},
            headers=headers,
        )
        assert response.status_code == 201
        assert [r["rock_id"] for r in response.json()["rocks"]] == [b, a]

    @pytest.mark.asyncio
    async def test_end_before_start(self, client, auth_headers):
        response = await client.post(
            HUNTS, json={"title": "Backwards", "rocks": [], **window(2, 1)}, headers=auth_headers("alice")
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_rock(self, client, auth_headers):
        headers = auth_headers("alice")
        (rock_id,) = await make_rocks(client, headers, 1)
        response = await client.post(
            HUNTS,
            json={"title": "Twice", "rocks": [{"rock_id": rock_id}, {"rock_id": rock_id}], **window()},
            headers=headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_rock(self, client, auth_headers):
        response = await client.post(
            HUNTS, json={"title": "Ghost", "rocks": [{"rock_id": 999}], **window()}, headers=auth_headers("alice")
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upcoming_status(self, client, auth_headers):
        response = await client.post(
            HUNTS, json={"title": "Soon", "rocks": [], **window(1, 3)}, headers=auth_headers("alice")
        )
        assert response.json()["status"] == "upcoming"


class TestJoinAndFind:
    @pytest.mark.asyncio
    async def test_full_hunt_flow(self, client, auth_headers, hunt):
        bob = auth_headers("bob")
        hunt_id = hunt["id"]
        rock_ids = [r["rock_id"] for r in hunt["rocks"]]

        joined = await client.post(f"{HUNTS}/{hunt_id}/join", headers=bob)
        assert joined.status_code == 200
        assert joined.json()["joined"] is True
        assert [a["name"] for a in joined.json()["new_awards"]] == ["Hunter"]

        rejoined = await client.post(f"{HUNTS}/{hunt_id}/join", headers=bob)
        assert rejoined.json() == {"hunt_id": hunt_id, "joined": True, "new_awards": []}

        for rock_id in rock_ids[:2]:
            found = await client.post(f"{HUNTS}/{hunt_id}/rocks/{rock_id}/found", headers=bob)
            assert found.status_code == 200
            assert found.json()["hunt_completed"] is False

        last = (await client.post(f"{HUNTS}/{hunt_id}/rocks/{rock_ids[2]}/found", headers=bob)).json()
        assert last["hunt_completed"] is True
        assert last["participant"]["found_count"] == 3
        assert "Trailblazer" in {a["name"] for a in last["new_awards"]}

        repeat = (await client.post(f"{HUNTS}/{hunt_id}/rocks/{rock_ids[2]}/found", headers=bob)).json()
        assert repeat["new_awards"] == []
        assert repeat["participant"]["found_rock_ids"] == sorted(rock_ids)

        me = (await client.get("/api/v1/users/me", headers=bob)).json()
        assert me["hunt_count"] == 1

        detail = (await client.get(f"{HUNTS}/{hunt_id}")).json()
        assert detail["participant_count"] == 1

    @pytest.mark.asyncio
    async def test_strict_repeat_conflicts(self, client, auth_headers, hunt):
        bob = auth_headers("bob")
        rock_id = hunt["rocks"][0]["rock_id"]
        await client.post(f"{HUNTS}/{hunt['id']}/join", headers=bob)
        await client.post(f"{HUNTS}/{hunt['id']}/rocks/{rock_id}/found", headers=bob)

        response = await client.post(
            f"{HUNTS}/{hunt['id']}/rocks/{rock_id}/found", params={"strict": "true"}, headers=bob
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_find_without_joining(self, client, auth_headers, hunt):
        rock_id = hunt["rocks"][0]["rock_id"]
        response = await client.post(f"{HUNTS}/{hunt['id']}/rocks/{rock_id}/found", headers=auth_headers("bob"))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_rock_outside_hunt(self, client, auth_headers, hunt):
        bob = auth_headers("bob")
        (stray,) = await make_rocks(client, auth_headers("carol"), 1)
        await client.post(f"{HUNTS}/{hunt['id']}/join", headers=bob)

        response = await client.post(f"{HUNTS}/{hunt['id']}/rocks/{stray}/found", headers=bob)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_hunt(self, client, auth_headers):
        assert (await client.post(f"{HUNTS}/555/join", headers=auth_headers("bob"))).status_code == 404
        assert (await client.get(f"{HUNTS}/555")).status_code == 404

    @pytest.mark.asyncio
    async def test_my_progress(self, client, auth_headers, hunt):
        bob = auth_headers("bob")
        rock_id = hunt["rocks"][1]["rock_id"]
        await client.post(f"{HUNTS}/{hunt['id']}/join", headers=bob)
        await client.post(f"{HUNTS}/{hunt['id']}/rocks/{rock_id}/found", headers=bob)

        progress = (await client.get(f"{HUNTS}/me/progress", headers=bob)).json()["hunts"]
        assert len(progress) == 1
        assert progress[0]["hunt"]["id"] == hunt["id"]
        assert progress[0]["found_rock_ids"] == [rock_id]
        assert progress[0]["total_rocks"] == 3
        assert progress[0]["completed"] is False


class TestManageHunts:
    @pytest.mark.asyncio
    async def test_list(self, client, auth_headers, hunt):
        await client.post(
            HUNTS, json={"title": "Paused", "rocks": [], "is_active": False, **window()}, headers=auth_headers("alice")
        )
        everything = (await client.get(HUNTS)).json()
        active = (await client.get(HUNTS, params={"active_only": "true"})).json()
        assert everything["total"] == 2
        assert [h["title"] for h in active["hunts"]] == ["Old town"]

    @pytest.mark.asyncio
    async def test_creator_updates(self, client, auth_headers, hunt):
        response = await client.put(
            f"{HUNTS}/{hunt['id']}", json={"title": "New town", "is_active": False}, headers=auth_headers("alice")
        )
        assert response.status_code == 200
        assert response.json()["title"] == "New town"
        assert response.json()["status"] == "inactive"
        assert len(response.json()["rocks"]) == 3

    @pytest.mark.asyncio
    async def test_update_bad_dates(self, client, auth_headers, hunt):
        far_past = (datetime.now(timezone.utc) - timedelta(days=30)).isoformat()
        response = await client.put(f"{HUNTS}/{hunt['id']}", json={"end_date": far_past}, headers=auth_headers("alice"))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_others_forbidden(self, client, auth_headers, hunt):
        bob = auth_headers("bob")
        assert (await client.put(f"{HUNTS}/{hunt['id']}", json={"title": "x"}, headers=bob)).status_code == 403
        assert (await client.delete(f"{HUNTS}/{hunt['id']}", headers=bob)).status_code == 403

    @pytest.mark.asyncio
    async def test_admin_deletes(self, client, auth_headers, hunt):
        response = await client.delete(f"{HUNTS}/{hunt['id']}", headers=auth_headers("root", role="admin"))
        assert response.status_code == 204
        assert (await client.get(f"{HUNTS}/{hunt['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_join_inactive(self, client, auth_headers, hunt):
        await client.put(f"{HUNTS}/{hunt['id']}", json={"is_active": False}, headers=auth_headers("alice"))
        response = await client.post(f"{HUNTS}/{hunt['id']}/join", headers=auth_headers("bob"))
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_hunt_rock_kept_until_hunt_deleted(self, client, auth_headers, hunt):
        alice = auth_headers("alice")
        rock_id = hunt["rocks"][0]["rock_id"]

        response = await client.delete(f"/api/v1/rocks/{rock_id}", headers=alice)
        assert response.status_code == 409
        assert [r["rock_id"] for r in (await client.get(f"{HUNTS}/{hunt['id']}")).json()["rocks"]] == [
            r["rock_id"] for r in hunt["rocks"]
        ]

        assert (await client.delete(f"{HUNTS}/{hunt['id']}", headers=alice)).status_code == 204
        assert (await client.delete(f"/api/v1/rocks/{rock_id}", headers=alice)).status_code == 204
