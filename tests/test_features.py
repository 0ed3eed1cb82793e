from portal.features import DEFAULT_FLAGS, seed_feature_flags


def _enabled(client, headers=None):
    return {f["name"]: f["enabled"] for f in client.get("/api/features", headers=headers).json()}


def test_defaults_are_seeded_once(db):
    assert seed_feature_flags(db) == 0


def test_guest_flags(client):
    flags = _enabled(client)
    assert len(flags) == len(DEFAULT_FLAGS)
    assert flags["calendar"] is True
    assert flags["messages"] is False
    assert flags["launch_screen"] is False
    assert flags["admin_access"] is False


def test_member_and_admin_flags(client, resident, admin, headers_for):
    assert _enabled(client, headers_for(resident))["messages"] is True
    assert _enabled(client, headers_for(resident))["admin_access"] is False
    assert _enabled(client, headers_for(admin))["admin_access"] is True


def test_admin_updates_flag(client, admin, resident, headers_for):
    r = client.patch("/api/features/forum", json={"is_active": False}, headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json()["enabled"] is False
    assert _enabled(client)["forum"] is False

    r = client.patch(
        "/api/features/launch_screen", json={"enabled_for_roles": ["guest", "registered"]}, headers=headers_for(admin)
    )
    assert r.json()["enabled_for_roles"] == ["guest", "registered"]
    assert _enabled(client)["launch_screen"] is True
    assert _enabled(client, headers_for(resident))["launch_screen"] is True


def test_admin_access_cannot_be_switched_off_for_admins(client, admin, headers_for):
    client.patch("/api/features/admin_access", json={"is_active": False, "enabled_for_roles": []}, headers=headers_for(admin))
    assert _enabled(client, headers_for(admin))["admin_access"] is True


def test_flag_updates_need_admin(client, moderator, admin, headers_for):
    assert client.patch("/api/features/forum", json={"is_active": False}, headers=headers_for(moderator)).status_code == 403
    assert client.patch("/api/features/nope", json={"is_active": False}, headers=headers_for(admin)).status_code == 404
    assert client.patch("/api/features/forum", json={"enabled_for_roles": ["owner"]}, headers=headers_for(admin)).status_code == 422


def test_flag_update_rejects_null_for_required_fields(client, admin, headers_for):
    for body in ({"is_active": None}, {"enabled_for_roles": None}, {"display_name": None}):
        assert client.patch("/api/features/calendar", json=body, headers=headers_for(admin)).status_code == 422
    assert _enabled(client)["calendar"] is True
