from datetime import timedelta

from portal.models import AnalyticsSession, Event, utcnow


def test_pageviews_share_a_session(client, resident, admin, headers_for, db):
    r = client.post("/api/analytics/track/pageview", json={"path": "/calendar", "device_type": "mobile"})
    session_id = r.json()["session_id"]
    assert session_id

    headers = {**headers_for(resident), "X-Analytics-Session": session_id}
    client.post("/api/analytics/track/pageview", json={"path": "/forum"}, headers=headers)
    client.post("/api/analytics/track/pageview", json={"path": "/forum"}, headers=headers)
    client.post("/api/analytics/track/event", json={"event_type": "click", "element": "#rsvp"}, headers=headers)

    session = db.query(AnalyticsSession).filter(AnalyticsSession.session_id == session_id).one()
    assert session.page_view_count == 3
    assert session.entry_page == "/calendar"
    assert session.current_path == "/forum"
    assert session.user_id == resident.id

    r = client.get("/api/analytics/dashboard", headers=headers_for(admin))
    dashboard = r.json()
    assert dashboard["total_sessions"] == 1
    assert dashboard["total_page_views"] == 3
    assert dashboard["unique_users"] == 1
    assert dashboard["top_pages"][0] == {"path": "/forum", "views": 2}
    assert dashboard["devices"] == {"mobile": 1}
    assert sum(d["page_views"] for d in dashboard["daily"]) == 3


def test_active_users_and_end_session(client, resident, admin, headers_for):
    session_id = client.post(
        "/api/analytics/track/pageview", json={"path": "/store"}, headers=headers_for(resident)
    ).json()["session_id"]

    active = client.get("/api/analytics/activeusers", headers=headers_for(admin)).json()
    assert [(a["session_id"], a["username"], a["current_path"]) for a in active] == [
        (session_id, "resident", "/store")
    ]

    r = client.post("/api/analytics/track/endsession", json={}, headers={"X-Analytics-Session": session_id})
    assert r.status_code == 200
    assert client.get("/api/analytics/activeusers", headers=headers_for(admin)).json() == []


def test_end_session_errors(client):
    assert client.post("/api/analytics/track/endsession", json={}).status_code == 400
    assert client.post("/api/analytics/track/endsession", json={"session_id": "missing"}).status_code == 404


def test_dashboards_are_admin_only(client, moderator, headers_for):
    assert client.get("/api/analytics/dashboard").status_code == 401
    assert client.get("/api/analytics/activeusers", headers=headers_for(moderator)).status_code == 403


def test_portal_stats(client, admin, resident, make_user, headers_for, db):
    make_user("banned", is_blocked=True)
    now = utcnow()
    db.add(Event(title="Bingo", start_date=now + timedelta(days=1), end_date=now + timedelta(days=1, hours=2),
                 category="social"))
    db.add(Event(title="Past", start_date=now - timedelta(days=3), end_date=now - timedelta(days=3, hours=-1),
                 category="social"))
    db.commit()

    assert client.get("/api/stats", headers=headers_for(resident)).status_code == 403
    stats = client.get("/api/stats", headers=headers_for(admin)).json()
    assert stats["users_by_role"] == {"admin": 1, "registered": 2}
    assert stats["blocked_users"] == 1
    assert stats["upcoming_events"] == 1
    assert stats["active_listings_by_type"] == {}
    assert stats["vendor_pages"] == 0


def test_health_check(client):
    assert client.get("/").json()["status"] == "ok"


def test_long_session_ids_are_truncated_consistently(client):
    long_id = "s" * 100
    r = client.post("/api/analytics/track/pageview", json={"path": "/calendar", "session_id": long_id})
    assert r.json()["session_id"] == long_id[:64]

    r = client.post("/api/analytics/track/endsession", json={"session_id": long_id})
    assert r.status_code == 200
    assert r.json()["session_id"] == long_id[:64]
