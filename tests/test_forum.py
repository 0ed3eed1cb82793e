import pytest

from portal.models import ForumComment, ForumPost

POST = {"title": "Best golf cart mechanic?", "content": "Mine is making a grinding noise again."}


@pytest.fixture
def category(client, admin, headers_for):
    r = client.post(
        "/api/forum/categories",
        json={"name": "General", "slug": "general", "description": "Anything goes"},
        headers=headers_for(admin),
    )
    assert r.status_code == 201
    return r.json()


@pytest.fixture
def post(client, category, resident, headers_for):
    r = client.post(f"/api/forum/categories/{category['id']}/posts", json=POST, headers=headers_for(resident))
    assert r.status_code == 201
    return r.json()


def test_categories(client, admin, moderator, headers_for, category, post):
    assert client.post(
        "/api/forum/categories", json={"name": "Other", "slug": "general"}, headers=headers_for(admin)
    ).status_code == 409
    assert client.post(
        "/api/forum/categories", json={"name": "Other", "slug": "other"}, headers=headers_for(moderator)
    ).status_code == 403

    r = client.get("/api/forum/categories")
    assert [(c["slug"], c["post_count"]) for c in r.json()] == [("general", 1)]

    r = client.patch(f"/api/forum/categories/{category['id']}", json={"name": "General Chat"}, headers=headers_for(admin))
    assert r.json()["name"] == "General Chat"
    assert r.json()["post_count"] == 1


def test_post_validation(client, category, resident, headers_for):
    url = f"/api/forum/categories/{category['id']}/posts"
    assert client.post(url, json={**POST, "title": "Hi"}, headers=headers_for(resident)).status_code == 422
    assert client.post(url, json={**POST, "content": "Too short"}, headers=headers_for(resident)).status_code == 422
    assert client.post(url, json=POST).status_code == 401
    assert client.post("/api/forum/categories/999/posts", json=POST, headers=headers_for(resident)).status_code == 404


def test_only_moderators_pin_and_lock(client, category, resident, moderator, headers_for, post):
    url = f"/api/forum/categories/{category['id']}/posts"
    assert client.post(url, json={**POST, "is_pinned": True}, headers=headers_for(resident)).status_code == 403

    r = client.patch(f"/api/forum/posts/{post['id']}", json={"is_locked": True}, headers=headers_for(resident))
    assert r.status_code == 403
    r = client.patch(f"/api/forum/posts/{post['id']}", json={"is_pinned": True}, headers=headers_for(moderator))
    assert r.json()["is_pinned"] is True


def test_pinned_posts_come_first(client, category, resident, moderator, headers_for, post):
    url = f"/api/forum/categories/{category['id']}/posts"
    client.post(url, json={**POST, "title": "Newer question"}, headers=headers_for(resident))
    client.post(url, json={**POST, "title": "House rules", "is_pinned": True}, headers=headers_for(moderator))
    client.post(url, json={**POST, "title": "Newest question"}, headers=headers_for(resident))

    titles = [p["title"] for p in client.get(url).json()]
    assert titles == ["House rules", "Newest question", "Newer question", POST["title"]]


def test_viewing_counts(client, post):
    client.get(f"/api/forum/posts/{post['id']}")
    r = client.get(f"/api/forum/posts/{post['id']}")
    assert r.json()["views"] == 2


def test_author_edits_own_post(client, make_user, resident, moderator, headers_for, post):
    other = make_user("other")
    body = {"content": "Turned out to be the brake pads."}
    assert client.patch(f"/api/forum/posts/{post['id']}", json=body, headers=headers_for(other)).status_code == 403
    r = client.patch(f"/api/forum/posts/{post['id']}", json=body, headers=headers_for(resident))
    assert r.json()["content"] == body["content"]
    assert client.delete(f"/api/forum/posts/{post['id']}", headers=headers_for(moderator)).status_code == 204


def test_threaded_comments(client, resident, make_user, headers_for, post, category, db):
    url = f"/api/forum/posts/{post['id']}/comments"
    r = client.post(url, json={"content": "Try Gary on Pine St"}, headers=headers_for(resident))
    parent_id = r.json()["id"]
    r = client.post(url, json={"content": "+1 for Gary", "parent_comment_id": parent_id}, headers=headers_for(resident))
    assert r.json()["parent_comment_id"] == parent_id

    other_post = client.post(
        f"/api/forum/categories/{category['id']}/posts", json={**POST, "title": "Another thread"}, headers=headers_for(resident)
    ).json()
    r = client.post(
        f"/api/forum/posts/{other_post['id']}/comments",
        json={"content": "Wrong thread", "parent_comment_id": parent_id},
        headers=headers_for(resident),
    )
    assert r.status_code == 400

    assert client.get(f"/api/forum/posts/{post['id']}").json()["comment_count"] == 2

    # Deleting a comment removes its replies
    assert client.delete(f"/api/forum/comments/{parent_id}", headers=headers_for(resident)).status_code == 204
    db.expire_all()
    assert db.query(ForumComment).count() == 0


def test_locked_post_rejects_comments(client, resident, moderator, headers_for, post):
    client.patch(f"/api/forum/posts/{post['id']}", json={"is_locked": True}, headers=headers_for(moderator))
    url = f"/api/forum/posts/{post['id']}/comments"
    assert client.post(url, json={"content": "Hello?"}, headers=headers_for(resident)).status_code == 403
    assert client.post(url, json={"content": "Closing this thread"}, headers=headers_for(moderator)).status_code == 201


def test_comment_edit(client, resident, make_user, headers_for, post):
    comment_id = client.post(
        f"/api/forum/posts/{post['id']}/comments", json={"content": "typo"}, headers=headers_for(resident)
    ).json()["id"]
    other = make_user("other")
    assert client.patch(f"/api/forum/comments/{comment_id}", json={"content": "x"}, headers=headers_for(other)).status_code == 403
    r = client.patch(f"/api/forum/comments/{comment_id}", json={"content": "fixed"}, headers=headers_for(resident))
    assert r.json()["content"] == "fixed"


def test_reactions(client, resident, moderator, headers_for, post):
    body = {"post_id": post["id"], "reaction_type": "thumbs_up"}
    r = client.post("/api/forum/reactions", json=body, headers=headers_for(resident))
    assert r.json() == {"active": True, "counts": {"thumbs_up": 1}}
    client.post("/api/forum/reactions", json=body, headers=headers_for(moderator))
    assert client.get(f"/api/forum/posts/{post['id']}").json()["reactions"] == {"thumbs_up": 2}

    r = client.post("/api/forum/reactions", json=body, headers=headers_for(resident))
    assert r.json() == {"active": False, "counts": {"thumbs_up": 1}}

    both = {"post_id": post["id"], "comment_id": 1, "reaction_type": "heart"}
    assert client.post("/api/forum/reactions", json=both, headers=headers_for(resident)).status_code == 422


def test_comment_reactions(client, resident, headers_for, post):
    comment_id = client.post(
        f"/api/forum/posts/{post['id']}/comments", json={"content": "Agreed"}, headers=headers_for(resident)
    ).json()["id"]
    body = {"comment_id": comment_id, "reaction_type": "heart"}
    r = client.post("/api/forum/reactions", json=body, headers=headers_for(resident))
    assert r.json()["counts"] == {"heart": 1}
    # Comment reactions do not count towards the post
    assert client.get(f"/api/forum/posts/{post['id']}").json()["reactions"] == {}


def test_deleting_category_removes_posts(client, admin, headers_for, category, post, db):
    assert client.delete(f"/api/forum/categories/{category['id']}", headers=headers_for(admin)).status_code == 204
    db.expire_all()
    assert db.query(ForumPost).count() == 0


def test_forum_description(client, admin, resident, headers_for):
    assert client.get("/api/forum/description").json()["content"] == ""
    assert client.post("/api/forum/description", json={"content": "Be kind"}, headers=headers_for(resident)).status_code == 403
    client.post("/api/forum/description", json={"content": "Be kind"}, headers=headers_for(admin))
    client.post("/api/forum/description", json={"content": "Be kind, stay on topic"}, headers=headers_for(admin))
    assert client.get("/api/forum/description").json()["content"] == "Be kind, stay on topic"


@pytest.mark.parametrize("field", ["title", "content", "category_id", "is_pinned"])
def test_post_update_rejects_null_for_required_fields(client, moderator, headers_for, post, field):
    r = client.patch(f"/api/forum/posts/{post['id']}", json={field: None}, headers=headers_for(moderator))
    assert r.status_code == 422
    assert client.get(f"/api/forum/posts/{post['id']}").json()["title"] == POST["title"]


def test_category_update_rejects_null_name(client, admin, headers_for, category):
    r = client.patch(f"/api/forum/categories/{category['id']}", json={"name": None}, headers=headers_for(admin))
    assert r.status_code == 422
