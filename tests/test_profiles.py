from httpx import AsyncClient


async def test_get_and_update_my_profile(client: AsyncClient, parent_headers) -> None:
    me = await client.get("/api/v1/profiles/me", headers=parent_headers)
    assert me.status_code == 200
    assert me.json()["email"] == "parent@example.com"
    assert me.json()["role"] == "parent"

    updated = await client.patch(
        "/api/v1/profiles/me",
        json={"full_name": "Priya Sharma", "phone": "+919811111111"},
        headers=parent_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["full_name"] == "Priya Sharma"
    assert updated.json()["phone"] == "+919811111111"
    assert updated.json()["role"] == "parent"

    blank = await client.patch("/api/v1/profiles/me", json={"full_name": "   "}, headers=parent_headers)
    assert blank.status_code == 422

    cleared = await client.patch("/api/v1/profiles/me", json={"phone": "  "}, headers=parent_headers)
    assert cleared.status_code == 200
    assert cleared.json()["full_name"] == "Priya Sharma"
    assert cleared.json()["phone"] is None


async def test_role_change_takes_effect_immediately(
    client: AsyncClient, parent_headers, admin_headers
) -> None:
    assert (await client.get("/api/v1/profiles", headers=parent_headers)).status_code == 403

    profiles = (await client.get("/api/v1/profiles", headers=admin_headers)).json()
    parent = next(p for p in profiles if p["email"] == "parent@example.com")

    response = await client.patch(
        f"/api/v1/profiles/{parent['id']}/role", json={"role": "admin"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    # Same access token, new role
    assert (await client.get("/api/v1/profiles", headers=parent_headers)).status_code == 200


async def test_admin_cannot_demote_or_delete_self(client: AsyncClient, admin_headers) -> None:
    me = (await client.get("/api/v1/profiles/me", headers=admin_headers)).json()
    demote = await client.patch(
        f"/api/v1/profiles/{me['id']}/role", json={"role": "parent"}, headers=admin_headers
    )
    assert demote.status_code == 400
    assert (await client.delete(f"/api/v1/profiles/{me['id']}", headers=admin_headers)).status_code == 400


async def test_admin_deletes_profile(client: AsyncClient, parent_headers, admin_headers) -> None:
    profiles = (await client.get("/api/v1/profiles", headers=admin_headers)).json()
    parent = next(p for p in profiles if p["email"] == "parent@example.com")

    response = await client.delete(f"/api/v1/profiles/{parent['id']}", headers=admin_headers)
    assert response.status_code == 204

    remaining = (await client.get("/api/v1/profiles", headers=admin_headers)).json()
    assert "parent@example.com" not in [p["email"] for p in remaining]
    # The deleted parent's token no longer resolves to a caller
    assert (await client.get("/api/v1/profiles/me", headers=parent_headers)).status_code == 401
