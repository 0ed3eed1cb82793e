from portal.models import User
from portal.schemas import UserRole

NEW_USER = {
    "username": "sandy",
    "password": "palmtrees1",
    "email": "sandy@example.com",
    "full_name": "Sandy Shores",
    "owns_home_in_bb": True,
}


def test_register_and_fetch_profile(client):
    r = client.post("/api/register", json=NEW_USER)
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["role"] == "registered"
    assert body["user"]["is_resident"] is True
    assert "password" not in body["user"]

    r = client.get("/api/user", headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 200
    assert r.json()["username"] == "sandy"


def test_register_rejects_duplicate_username(client):
    assert client.post("/api/register", json=NEW_USER).status_code == 201
    r = client.post("/api/register", json={**NEW_USER, "username": "SANDY", "email": "other@example.com"})
    assert r.status_code == 409


def test_register_validation(client):
    assert client.post("/api/register", json={**NEW_USER, "password": "short"}).status_code == 422
    assert client.post("/api/register", json={**NEW_USER, "email": "not-an-email"}).status_code == 422


def test_login(client, make_user):
    make_user("pelican", password="correct-horse")

    r = client.post("/api/login", json={"username": "Pelican", "password": "correct-horse"})
    assert r.status_code == 200
    assert r.json()["user"]["username"] == "pelican"

    assert client.post("/api/login", json={"username": "pelican", "password": "wrong"}).status_code == 401
    assert client.post("/api/login", json={"username": "nobody", "password": "x"}).status_code == 401


def test_anonymous_profile_is_unauthorized(client):
    assert client.get("/api/user").status_code == 401
    assert client.get("/api/user", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_blocked_user_cannot_log_in_or_use_token(client, make_user, headers_for):
    user = make_user("troll", is_blocked=True, block_reason="Spamming the forum")

    r = client.post("/api/login", json={"username": "troll", "password": "password123"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Spamming the forum"

    assert client.get("/api/user", headers=headers_for(user)).status_code == 403


def test_badge_declaration_upgrades_role(client, resident, headers_for):
    r = client.patch("/api/user", json={"has_membership_badge": True}, headers=headers_for(resident))
    assert r.json()["role"] == "registered"

    r = client.patch(
        "/api/user",
        json={"membership_badge_number": "BB-1042", "rents_home_in_bb": True},
        headers=headers_for(resident),
    )
    assert r.status_code == 200
    assert r.json()["role"] == "badge_holder"
    assert r.json()["is_resident"] is True


def test_badge_declaration_keeps_higher_roles(client, moderator, headers_for):
    r = client.patch(
        "/api/user",
        json={"has_membership_badge": True, "membership_badge_number": "BB-7"},
        headers=headers_for(moderator),
    )
    assert r.json()["role"] == "moderator"


def test_profile_update_rejects_null_for_required_fields(client, resident, headers_for):
    for body in ({"full_name": None}, {"email": None}, {"is_snowbird": None}):
        assert client.patch("/api/user", json=body, headers=headers_for(resident)).status_code == 422

    r = client.patch("/api/user", json={"avatar_url": None}, headers=headers_for(resident))
    assert r.status_code == 200
    assert r.json()["full_name"] == "Resident"


def test_password_reset_flow(client, make_user, monkeypatch):
    monkeypatch.setenv("EXPOSE_RESET_TOKENS", "1")
    make_user("heron", password="old-password")

    r = client.post("/api/forgot-password", json={"email": "heron@example.com"})
    assert r.status_code == 200
    token = r.json()["reset_token"]

    r = client.post("/api/reset-password", json={"token": token, "password": "new-password"})
    assert r.status_code == 200

    # Tokens are single use
    assert client.post("/api/reset-password", json={"token": token, "password": "again-again"}).status_code == 400

    assert client.post("/api/login", json={"username": "heron", "password": "new-password"}).status_code == 200
    assert client.post("/api/login", json={"username": "heron", "password": "old-password"}).status_code == 401


def test_forgot_password_does_not_leak_accounts(client, monkeypatch):
    monkeypatch.delenv("EXPOSE_RESET_TOKENS", raising=False)
    r = client.post("/api/forgot-password", json={"email": "ghost@example.com"})
    assert r.status_code == 200
    assert "reset_token" not in r.json()


def test_admin_manages_users(client, admin, resident, headers_for, db):
    resident_id = resident.id
    r = client.get("/api/users", params={"role": "registered"}, headers=headers_for(admin))
    assert [u["username"] for u in r.json()] == ["resident"]

    assert client.get("/api/users", headers=headers_for(resident)).status_code == 403

    r = client.patch(f"/api/users/{resident_id}/role", json={"role": "moderator"}, headers=headers_for(admin))
    assert r.json()["role"] == "moderator"
    r = client.patch(f"/api/users/{resident_id}/role", json={"role": "guest"}, headers=headers_for(admin))
    assert r.status_code == 422

    r = client.post(f"/api/users/{resident_id}/block", json={"reason": "Rude"}, headers=headers_for(admin))
    assert r.json()["is_blocked"] is True
    blocked = client.get("/api/users", params={"blocked": True}, headers=headers_for(admin)).json()
    assert [u["id"] for u in blocked] == [resident_id]

    r = client.post(f"/api/users/{resident_id}/unblock", headers=headers_for(admin))
    assert r.json()["is_blocked"] is False
    assert r.json()["block_reason"] is None

    assert client.delete(f"/api/users/{resident_id}", headers=headers_for(admin)).status_code == 204
    db.expire_all()
    assert db.get(User, resident_id) is None


def test_admin_cannot_lock_themselves_out(client, admin, headers_for):
    r = client.patch(f"/api/users/{admin.id}/role", json={"role": "moderator"}, headers=headers_for(admin))
    assert r.status_code == 400
    assert client.post(f"/api/users/{admin.id}/block", json={}, headers=headers_for(admin)).status_code == 400
    assert client.delete(f"/api/users/{admin.id}", headers=headers_for(admin)).status_code == 400
    assert admin.role == UserRole.ADMIN.value
