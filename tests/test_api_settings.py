AUTH = {"Authorization": "Bearer test-service-key"}


async def test_public_settings_default_to_open(client):
    resp = await client.get("/api/settings/public")
    assert resp.status_code == 200
    assert resp.json() == {"maintenance_mode": False, "maintenance_message": "Wir sind bald wieder da!"}


async def test_maintenance_mode_round(client):
    resp = await client.put(
        "/api/settings",
        json={"maintenance_mode": True, "maintenance_message": "  Betriebsurlaub bis Montag "},
        headers=AUTH,
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["settings"]["maintenance_message"] == "Betriebsurlaub bis Montag"

    resp = await client.get("/api/settings/public")
    assert resp.json() == {"maintenance_mode": True, "maintenance_message": "Betriebsurlaub bis Montag"}

    await client.put(
        "/api/settings",
        json={"maintenance_mode": False, "maintenance_message": "Wir sind bald wieder da!"},
        headers=AUTH,
    )
    resp = await client.get("/api/settings", headers=AUTH)
    assert resp.json()["settings"]["maintenance_mode"] is False
    assert resp.json()["settings"]["id"] is not None


async def test_settings_update_is_validated(client):
    resp = await client.put(
        "/api/settings", json={"maintenance_mode": "yes", "maintenance_message": "x"}, headers=AUTH
    )
    assert resp.status_code == 422
    resp = await client.put(
        "/api/settings", json={"maintenance_mode": True, "maintenance_message": "   "}, headers=AUTH
    )
    assert resp.status_code == 422


async def test_settings_admin_routes_require_service_key(client):
    assert (await client.get("/api/settings")).status_code == 401
    resp = await client.put("/api/settings", json={"maintenance_mode": True, "maintenance_message": "x"})
    assert resp.status_code == 401
