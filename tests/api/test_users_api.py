"""Profile and authentication tests."""

from __future__ import annotations

from datetime import timedelta

import pytest

ME = "/api/v1/users/me"


class TestProfile:
    @pytest.mark.asyncio
    async def test_profile_created_on_first_request(self, client, auth_headers):
        response = await client.get(ME, headers=auth_headers("alice"))
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["email"] == "alice@example.com"
        assert data["role"] == "user"
        assert data["rock_count"] == 0
        assert data["current_streak"] == 0

    @pytest.mark.asyncio
    async def test_update_profile(self, client, auth_headers):
        headers = auth_headers("alice")
        response = await client.put(ME, json={"bio": "Amateur geologist", "phone_number": "+44 20 7946 0000"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["bio"] == "Amateur geologist"
        assert (await client.get(ME, headers=headers)).json()["phone_number"] == "+44 20 7946 0000"

    @pytest.mark.asyncio
    async def test_phone_number_taken(self, client, auth_headers):
        await client.put(ME, json={"phone_number": "+44 20 7946 0000"}, headers=auth_headers("alice"))
        response = await client.put(ME, json={"phone_number": "+44 20 7946 0000"}, headers=auth_headers("bob"))
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_invalid_phone_number(self, client, auth_headers):
        response = await client.put(ME, json={"phone_number": "call me"}, headers=auth_headers("alice"))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_public_profile_hides_contact_details(self, client, auth_headers):
        alice_id = (await client.get(ME, headers=auth_headers("alice"))).json()["id"]
        data = (await client.get(f"/api/v1/users/{alice_id}")).json()
        assert data["username"] == "alice"
        assert "email" not in data
        assert "phone_number" not in data

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        assert (await client.get("/api/v1/users/31337")).status_code == 404


class TestTokens:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        assert (await client.get(ME)).status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(ME, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client, make_token):
        token = make_token("alice", expires_in=timedelta(minutes=-1))
        response = await client.get(ME, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_wrong_issuer(self, client, make_token):
        token = make_token("alice", issuer="someone-else")
        assert (await client.get(ME, headers={"Authorization": f"Bearer {token}"})).status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_rejected(self, client, make_token):
        token = make_token("alice", token_type="refresh")
        assert (await client.get(ME, headers={"Authorization": f"Bearer {token}"})).status_code == 401

    @pytest.mark.asyncio
    async def test_email_owned_by_other_username(self, client, make_token, auth_headers):
        await client.get(ME, headers=auth_headers("alice"))
        token = make_token("mallory", email="alice@example.com")
        assert (await client.get(ME, headers={"Authorization": f"Bearer {token}"})).status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_role_ignored(self, client, make_token):
        token = make_token("eve", role="superuser")
        data = (await client.get(ME, headers={"Authorization": f"Bearer {token}"})).json()
        assert data["role"] == "user"
