"""Integration tests for /api/tools/*.

Covers:
- Public list (category / pricing / search) and detail
- Authenticated create with defaults (pricing Free)
- Owner-or-admin update and soft delete
- Rating bounds
"""

TOOL = {
    "toolName": "Docker",
    "description": "Container runtime",
    "category": "DevOps",
    "officialUrl": "https://www.docker.com",
    "documentationUrl": "https://docs.docker.com",
    "techStack": ["linux", "go"],
    "features": ["images", "compose"],
    "rating": 5,
}


def _create(client, principal, **overrides):
    r = client.post("/api/tools", headers=principal.headers, json={**TOOL, **overrides})
    assert r.status_code == 201, r.text
    return r.json()["data"]


class TestTools:
    def test_create(self, client, user):
        data = _create(client, user)
        assert data["toolName"] == "Docker"
        assert data["pricing"] == "Free"
        assert data["techStack"] == ["linux", "go"]
        assert data["useCases"] == []
        assert data["createdBy"]["userId"] == user.id

    def test_create_requires_auth(self, client):
        assert client.post("/api/tools", json=TOOL).status_code == 401

    def test_rating_out_of_range(self, client, user):
        r = client.post("/api/tools", headers=user.headers, json={**TOOL, "rating": 6})
        assert r.status_code == 400
        assert r.json()["errors"][0]["field"] == "rating"

    def test_detail_is_public(self, client, user):
        tool = _create(client, user)
        r = client.get(f"/api/tools/{tool['id']}")
        assert r.status_code == 200
        assert r.json()["data"]["id"] == tool["id"]

    def test_detail_missing(self, client):
        r = client.get("/api/tools/9999")
        assert r.status_code == 404
        assert r.json()["message"] == "Tool not found"

    def test_list_filters(self, client, user):
        _create(client, user)
        _create(client, user, toolName="Figma", category="Design", pricing="Freemium", officialUrl="https://figma.com")
        assert client.get("/api/tools").json()["pagination"]["totalItems"] == 2
        r = client.get("/api/tools?pricing=Freemium")
        assert [t["toolName"] for t in r.json()["data"]] == ["Figma"]
        r = client.get("/api/tools?category=DevOps&search=dock")
        assert [t["toolName"] for t in r.json()["data"]] == ["Docker"]

    def test_owner_update(self, client, user, other_user):
        tool = _create(client, user)
        r = client.put(f"/api/tools/{tool['id']}", headers=other_user.headers, json={"rating": 1})
        assert r.status_code == 403

        r = client.put(f"/api/tools/{tool['id']}", headers=user.headers, json={"pricing": "Open Source", "rating": 4})
        assert r.status_code == 200
        assert r.json()["message"] == "Tool updated"
        data = r.json()["data"]
        assert (data["pricing"], data["rating"]) == ("Open Source", 4)
        assert data["updatedBy"]["userId"] == user.id

    def test_admin_delete(self, client, admin, user):
        tool = _create(client, user)
        r = client.delete(f"/api/tools/{tool['id']}", headers=admin.headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Tool deleted"
        assert client.get(f"/api/tools/{tool['id']}").status_code == 404
        assert client.get("/api/tools").json()["data"] == []
