import pytest

from portal.models import PageContent, VendorComment

ROOFER = {"title": "ABC Roofing", "category": "Home Services", "content": "<p>Licensed and insured</p>"}


@pytest.fixture
def roofer(client, admin, headers_for):
    r = client.post("/api/vendors", json=ROOFER, headers=headers_for(admin))
    assert r.status_code == 201
    return r.json()


def test_create_vendor_derives_slug(roofer):
    assert roofer["slug"] == "vendors-home-services-abc-roofing"
    assert roofer["category"] == "home-services"
    assert roofer["public_url"] == "/vendors/home-services/abc-roofing"


def test_duplicate_vendor_conflicts(client, admin, headers_for, roofer):
    r = client.post("/api/vendors", json={**ROOFER, "title": "abc roofing!"}, headers=headers_for(admin))
    assert r.status_code == 409


def test_lookup_by_public_url(client, roofer):
    r = client.get("/api/vendors/Home-Services/abc-roofing")
    assert r.status_code == 200
    assert r.json()["id"] == roofer["id"]
    assert client.get("/api/vendors/home-services/xyz-roofing").status_code == 404


def test_list_by_category_keeps_compound_categories_apart(client, admin, headers_for, roofer):
    client.post("/api/vendors", json={"title": "Depot", "category": "home"}, headers=headers_for(admin))

    assert [v["title"] for v in client.get("/api/vendors", params={"category": "home"}).json()] == ["Depot"]
    r = client.get("/api/vendors", params={"category": "home-services"})
    assert [v["title"] for v in r.json()] == ["ABC Roofing"]
    assert len(client.get("/api/vendors").json()) == 2


def test_hidden_category_is_not_listed(client, admin, headers_for, roofer):
    client.post(
        "/api/vendor-categories",
        json={"slug": "home-services", "name": "Home Services", "is_hidden": True},
        headers=headers_for(admin),
    )
    assert client.get("/api/vendors").json() == []
    assert client.get("/api/vendors/home-services/abc-roofing").status_code == 404
    assert len(client.get("/api/vendors", headers=headers_for(admin)).json()) == 1
    assert client.get("/api/vendor-categories").json() == []
    r = client.get("/api/vendor-categories", params={"include_hidden": True}, headers=headers_for(admin))
    assert [c["slug"] for c in r.json()] == ["home-services"]


def test_rename_carries_comments_and_interactions(client, admin, resident, headers_for, roofer, db):
    old_slug = roofer["slug"]
    client.post(f"/api/vendors/by-slug/{old_slug}/comments", json={"content": "Great job on our roof"}, headers=headers_for(resident))
    client.post(f"/api/vendors/by-slug/{old_slug}/interactions", json={"interaction_type": "recommend"}, headers=headers_for(resident))

    r = client.patch(f"/api/vendors/{old_slug}", json={"title": "ABC Roofing & Gutters"}, headers=headers_for(admin))
    assert r.status_code == 200
    new_slug = r.json()["slug"]
    assert new_slug == "vendors-home-services-abc-roofing-and-gutters"

    comments = client.get(f"/api/vendors/by-slug/{new_slug}/comments").json()
    assert [c["content"] for c in comments] == ["Great job on our roof"]
    assert client.get(f"/api/vendors/by-slug/{new_slug}/interactions").json() == {"like": 0, "recommend": 1}
    assert client.get(f"/api/vendors/by-slug/{old_slug}/comments").status_code == 404

    # The edit was snapshotted
    versions = client.get(f"/api/pages/{roofer['id']}/versions", headers=headers_for(admin)).json()
    assert versions[0]["slug"] == old_slug


def test_change_category(client, admin, headers_for, roofer):
    r = client.patch(f"/api/vendors/{roofer['slug']}", json={"category": "Roofing"}, headers=headers_for(admin))
    assert r.json()["slug"] == "vendors-roofing-abc-roofing"
    assert r.json()["public_url"] == "/vendors/roofing/abc-roofing"


def test_interaction_toggle(client, resident, headers_for, roofer):
    url = f"/api/vendors/by-slug/{roofer['slug']}/interactions"
    r = client.post(url, json={"interaction_type": "like"}, headers=headers_for(resident))
    assert r.json() == {"active": True, "counts": {"like": 1, "recommend": 0}}
    r = client.post(url, json={"interaction_type": "like"}, headers=headers_for(resident))
    assert r.json()["active"] is False
    assert client.post(url, json={"interaction_type": "going"}, headers=headers_for(resident)).status_code == 422


def test_delete_vendor_removes_comments(client, admin, resident, headers_for, roofer, db):
    client.post(f"/api/vendors/by-slug/{roofer['slug']}/comments", json={"content": "Prompt"}, headers=headers_for(resident))
    assert client.delete(f"/api/vendors/{roofer['slug']}", headers=headers_for(admin)).status_code == 204
    assert db.query(VendorComment).count() == 0


def test_comment_deletion_rights(client, resident, make_user, moderator, headers_for, roofer):
    r = client.post(f"/api/vendors/by-slug/{roofer['slug']}/comments", json={"content": "Prompt"}, headers=headers_for(resident))
    comment_id = r.json()["id"]
    other = make_user("other")
    assert client.delete(f"/api/vendors/comments/{comment_id}", headers=headers_for(other)).status_code == 403
    assert client.delete(f"/api/vendors/comments/{comment_id}", headers=headers_for(moderator)).status_code == 204


def _page(db, slug, title):
    page = PageContent(slug=slug, title=title, content="")
    db.add(page)
    db.commit()
    return page


def test_repair_slugs(client, admin, headers_for, db):
    _page(db, "vendors-landscaping-green-thumb", "Green Thumb")
    broken = _page(db, "vendors-home-services--abc-roofing", "ABC Roofing")
    colliding = _page(db, "vendors-home-services-home-services-sun-pools", "Sun Pools")
    _page(db, "vendors-home-services-sun-pools", "Sun Pools")

    r = client.post("/api/vendors/repair-slugs", headers=headers_for(admin))
    report = r.json()
    assert report["dry_run"] is True
    assert report["checked"] == 4
    assert [(x["page_id"], x["new_slug"], x["applied"], x["reason"]) for x in report["repairs"]] == [
        (broken.id, "vendors-home-services-abc-roofing", False, None),
        (colliding.id, "vendors-home-services-sun-pools", False, "slug already in use"),
    ]
    db.expire_all()
    assert broken.slug == "vendors-home-services--abc-roofing"

    r = client.post("/api/vendors/repair-slugs", params={"dry_run": False}, headers=headers_for(admin))
    assert [x["applied"] for x in r.json()["repairs"]] == [True, False]
    db.expire_all()
    assert broken.slug == "vendors-home-services-abc-roofing"
    assert colliding.slug == "vendors-home-services-home-services-sun-pools"


def test_category_rename_moves_vendors(client, admin, headers_for, roofer):
    r = client.post(
        "/api/vendor-categories", json={"slug": "Home Services", "name": "Home Services"}, headers=headers_for(admin)
    )
    assert r.json()["slug"] == "home-services"
    category_id = r.json()["id"]

    r = client.patch(f"/api/vendor-categories/{category_id}", json={"slug": "home-repair"}, headers=headers_for(admin))
    assert r.status_code == 200
    assert client.get("/api/vendors/home-repair/abc-roofing").status_code == 200

    assert client.delete(f"/api/vendor-categories/{category_id}", headers=headers_for(admin)).status_code == 409


def test_category_uniqueness(client, admin, headers_for):
    body = {"slug": "pools", "name": "Pools"}
    assert client.post("/api/vendor-categories", json=body, headers=headers_for(admin)).status_code == 201
    assert client.post("/api/vendor-categories", json={**body, "slug": "pool"}, headers=headers_for(admin)).status_code == 409
    assert client.post("/api/community-categories", json=body, headers=headers_for(admin)).status_code == 201
    assert [c["slug"] for c in client.get("/api/community-categories").json()] == ["pools"]


@pytest.mark.parametrize("field", ["title", "category", "content", "is_hidden"])
def test_update_rejects_null_for_required_fields(client, admin, headers_for, roofer, field):
    r = client.patch(f"/api/vendors/{roofer['slug']}", json={field: None}, headers=headers_for(admin))
    assert r.status_code == 422
    assert client.get("/api/vendors/home-services/abc-roofing").json()["title"] == "ABC Roofing"


def test_category_update_rejects_null_for_required_fields(client, admin, headers_for):
    category_id = client.post(
        "/api/vendor-categories", json={"slug": "pools", "name": "Pools"}, headers=headers_for(admin)
    ).json()["id"]
    for body in ({"name": None}, {"slug": None}, {"is_hidden": None}):
        r = client.patch(f"/api/vendor-categories/{category_id}", json=body, headers=headers_for(admin))
        assert r.status_code == 422


@pytest.mark.parametrize("title", ["Comments", "Interactions"])
def test_lookup_vendor_named_like_a_sub_resource(client, admin, headers_for, title):
    r = client.post("/api/vendors", json={**ROOFER, "title": title}, headers=headers_for(admin))
    assert r.status_code == 201

    r = client.get(f"/api/vendors/home-services/{title.lower()}")
    assert r.status_code == 200
    assert r.json()["title"] == title
    assert client.get(f"/api/vendors/by-slug/{r.json()['slug']}/comments").json() == []
