"""Integration tests for /api/learning-resources/* and the ownership dependency.

Covers:
- Public list and detail; detail counts a view
- Create requires authentication and records createdBy
- Owner-or-admin PUT/DELETE: 403 for a different non-admin, 404 for a
  missing id, updatedBy stamped with the editor
- Soft delete hides the resource from list and detail
- Likes are counted per request
- Filters, search and validation
"""

RESOURCE = {
    "title": "FastAPI in Depth",
    "description": "Building APIs with FastAPI",
    "category": "Tutorial",
    "url": "https://example.com/fastapi",
    "tags": ["python", "api"],
    "difficulty": "Intermediate",
}


def _create(client, principal, **overrides):
    r = client.post("/api/learning-resources", headers=principal.headers, json={**RESOURCE, **overrides})
    assert r.status_code == 201, r.text
    return r.json()["data"]


class TestCreate:
    def test_create_records_owner(self, client, user):
        r = client.post("/api/learning-resources", headers=user.headers, json=RESOURCE)
        assert r.status_code == 201
        body = r.json()
        assert body["message"] == "Resource created"
        data = body["data"]
        assert data["createdBy"] == {"userId": user.id, "userName": "alice", "email": "alice@x.com"}
        assert data["updatedBy"] is None
        assert (data["views"], data["likes"]) == (0, 0)
        assert data["isActive"] is True

    def test_requires_auth(self, client):
        assert client.post("/api/learning-resources", json=RESOURCE).status_code == 401

    def test_validation(self, client, user):
        r = client.post(
            "/api/learning-resources",
            headers=user.headers,
            json={**RESOURCE, "category": "Podcast", "url": "ftp://nope"},
        )
        assert r.status_code == 400
        assert {e["field"] for e in r.json()["errors"]} == {"category", "url"}


class TestOwnership:
    def test_admin_created_resource(self, client, admin, user):
        resource = _create(client, admin)

        r = client.put(f"/api/learning-resources/{resource['id']}", headers=user.headers, json={"title": "Mine now"})
        assert r.status_code == 403
        assert r.json()["success"] is False

        r = client.put(f"/api/learning-resources/{resource['id']}", headers=admin.headers, json={"title": "Updated"})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["title"] == "Updated"
        assert data["updatedBy"]["userId"] == admin.id
        assert data["createdBy"]["userId"] == admin.id

    def test_owner_updates_own_resource(self, client, user, other_user):
        resource = _create(client, user)
        r = client.put(f"/api/learning-resources/{resource['id']}", headers=other_user.headers, json={"title": "X"})
        assert r.status_code == 403

        r = client.put(
            f"/api/learning-resources/{resource['id']}",
            headers=user.headers,
            json={"difficulty": "Advanced", "tags": ["fastapi"]},
        )
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["difficulty"] == "Advanced"
        assert data["tags"] == ["fastapi"]
        assert data["title"] == RESOURCE["title"]
        assert data["updatedBy"] == {"userId": user.id, "userName": "alice", "email": "alice@x.com"}

    def test_admin_edits_any_resource(self, client, admin, user):
        resource = _create(client, user)
        r = client.put(f"/api/learning-resources/{resource['id']}", headers=admin.headers, json={"title": "Fixed"})
        assert r.status_code == 200
        assert r.json()["data"]["updatedBy"]["userId"] == admin.id

    def test_missing_resource(self, client, user):
        r = client.put("/api/learning-resources/9999", headers=user.headers, json={"title": "X"})
        assert r.status_code == 404
        assert r.json()["message"] == "Resource not found"

    def test_non_owner_cannot_delete(self, client, user, other_user):
        resource = _create(client, user)
        r = client.delete(f"/api/learning-resources/{resource['id']}", headers=other_user.headers)
        assert r.status_code == 403


class TestReadAndDelete:
    def test_detail_is_public_and_counts_views(self, client, user):
        resource = _create(client, user)
        client.get(f"/api/learning-resources/{resource['id']}")
        r = client.get(f"/api/learning-resources/{resource['id']}")
        assert r.status_code == 200
        assert r.json()["data"]["views"] == 2

    def test_soft_delete(self, client, user):
        resource = _create(client, user)
        r = client.delete(f"/api/learning-resources/{resource['id']}", headers=user.headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Resource deleted"
        assert client.get(f"/api/learning-resources/{resource['id']}").status_code == 404
        assert client.get("/api/learning-resources").json()["data"] == []

    def test_list_filters_and_search(self, client, user):
        _create(client, user)
        _create(client, user, title="Docker Basics", category="Video", tags=["containers"], difficulty="Beginner")

        r = client.get("/api/learning-resources")
        assert r.status_code == 200
        assert r.json()["pagination"]["totalItems"] == 2
        # newest first
        assert [d["title"] for d in r.json()["data"]] == ["Docker Basics", "FastAPI in Depth"]

        r = client.get("/api/learning-resources?category=Video")
        assert [d["title"] for d in r.json()["data"]] == ["Docker Basics"]
        r = client.get("/api/learning-resources?difficulty=Intermediate")
        assert [d["title"] for d in r.json()["data"]] == ["FastAPI in Depth"]
        r = client.get("/api/learning-resources?search=CONTAINERS")
        assert [d["title"] for d in r.json()["data"]] == ["Docker Basics"]

    def test_unknown_category_filter_rejected(self, client):
        assert client.get("/api/learning-resources?category=Podcast").status_code == 400


class TestLike:
    def test_like_counts(self, client, user, other_user):
        resource = _create(client, user)
        client.post(f"/api/learning-resources/{resource['id']}/like", headers=user.headers)
        r = client.post(f"/api/learning-resources/{resource['id']}/like", headers=other_user.headers)
        assert r.status_code == 200
        assert r.json() == {"success": True, "message": "Resource liked", "likes": 2}

    def test_like_requires_auth(self, client, user):
        resource = _create(client, user)
        assert client.post(f"/api/learning-resources/{resource['id']}/like").status_code == 401

    def test_like_missing(self, client, user):
        assert client.post("/api/learning-resources/9999/like", headers=user.headers).status_code == 404
