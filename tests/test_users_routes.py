"""Integration tests for /api/users/*.

Covers:
- Admin-only list with search / role / isActive filters and pagination
- Admin create with and without a password (generatedPassword returned once)
- Self-or-admin read; non-admin update silently drops role/isActive
- Admin self-protection: no self-deactivate, no self-delete
- DELETE deactivates (login then refused) and reset-password
- Settings are strictly self-service, even for admins
"""

from tests.conftest import USER_PASSWORD


class TestListUsers:
    def test_admin_only(self, client, user):
        r = client.get("/api/users", headers=user.headers)
        assert r.status_code == 403
        assert r.json()["success"] is False

    def test_list_and_pagination(self, client, admin, user, other_user):
        r = client.get("/api/users?limit=2", headers=admin.headers)
        assert r.status_code == 200
        body = r.json()
        assert body["pagination"] == {"currentPage": 1, "totalPages": 2, "totalItems": 3, "itemsPerPage": 2}
        assert len(body["data"]) == 2
        assert all("password" not in u for u in body["data"])

    def test_filters(self, client, admin, user, other_user):
        r = client.get("/api/users?role=admin", headers=admin.headers)
        assert [u["username"] for u in r.json()["data"]] == ["admin"]
        r = client.get("/api/users?search=bo", headers=admin.headers)
        assert [u["username"] for u in r.json()["data"]] == ["bob"]

    def test_is_active_filter(self, client, admin, user):
        client.delete(f"/api/users/{user.id}", headers=admin.headers)
        r = client.get("/api/users?isActive=false", headers=admin.headers)
        assert [u["username"] for u in r.json()["data"]] == ["alice"]

    def test_limit_is_clamped(self, client, admin):
        r = client.get("/api/users?limit=100000", headers=admin.headers)
        assert r.json()["pagination"]["itemsPerPage"] == 100

    def test_bad_page(self, client, admin):
        r = client.get("/api/users?page=0", headers=admin.headers)
        assert r.status_code == 400
        assert r.json()["errors"][0]["field"] == "page"


class TestCreateUser:
    def test_create_with_generated_password(self, client, admin):
        r = client.post(
            "/api/users",
            headers=admin.headers,
            json={"username": "carol", "email": "carol@x.com", "role": "admin"},
        )
        assert r.status_code == 201
        body = r.json()
        assert body["message"] == "User created successfully"
        assert body["data"]["role"] == "admin"
        generated = body["generatedPassword"]
        login = client.post("/api/auth/login", json={"email": "carol@x.com", "password": generated})
        assert login.status_code == 200

    def test_create_with_explicit_password(self, client, admin):
        r = client.post(
            "/api/users",
            headers=admin.headers,
            json={"username": "carol", "email": "carol@x.com", "password": "Chosen123"},
        )
        assert r.status_code == 201
        assert "generatedPassword" not in r.json()
        assert r.json()["data"]["role"] == "user"

    def test_duplicate(self, client, admin, user):
        r = client.post("/api/users", headers=admin.headers, json={"username": "alice", "email": "new@x.com"})
        assert r.status_code == 409

    def test_non_admin_forbidden(self, client, user):
        r = client.post("/api/users", headers=user.headers, json={"username": "carol", "email": "carol@x.com"})
        assert r.status_code == 403


class TestGetUser:
    def test_self(self, client, user):
        r = client.get(f"/api/users/{user.id}", headers=user.headers)
        assert r.status_code == 200
        assert r.json()["data"]["username"] == "alice"

    def test_other_forbidden(self, client, user, other_user):
        r = client.get(f"/api/users/{other_user.id}", headers=user.headers)
        assert r.status_code == 403
        assert r.json()["message"] == "Access denied"

    def test_admin_reads_anyone(self, client, admin, user):
        assert client.get(f"/api/users/{user.id}", headers=admin.headers).status_code == 200

    def test_not_found(self, client, admin):
        r = client.get("/api/users/9999", headers=admin.headers)
        assert r.status_code == 404
        assert r.json()["message"] == "User not found"


class TestUpdateUser:
    def test_non_admin_cannot_escalate(self, client, user):
        r = client.put(
            f"/api/users/{user.id}",
            headers=user.headers,
            json={"role": "admin", "isActive": False, "profile": {"firstName": "Alice"}},
        )
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["role"] == "user"
        assert data["isActive"] is True
        assert data["profile"]["firstName"] == "Alice"

    def test_non_admin_cannot_edit_others(self, client, user, other_user):
        r = client.put(f"/api/users/{other_user.id}", headers=user.headers, json={"username": "hacked"})
        assert r.status_code == 403

    def test_admin_changes_role(self, client, admin, user):
        r = client.put(f"/api/users/{user.id}", headers=admin.headers, json={"role": "admin"})
        assert r.status_code == 200
        assert r.json()["message"] == "User updated"
        assert r.json()["data"]["role"] == "admin"

    def test_admin_cannot_deactivate_self(self, client, admin):
        r = client.put(f"/api/users/{admin.id}", headers=admin.headers, json={"isActive": False})
        assert r.status_code == 400
        assert r.json()["message"] == "Cannot deactivate your own account"

    def test_username_clash(self, client, user, other_user):
        r = client.put(f"/api/users/{user.id}", headers=user.headers, json={"username": "bob"})
        assert r.status_code == 409

    def test_keeping_own_username_is_not_a_clash(self, client, user):
        r = client.put(f"/api/users/{user.id}", headers=user.headers, json={"username": "alice"})
        assert r.status_code == 200


class TestDeleteUser:
    def test_deactivates(self, client, admin, user):
        r = client.delete(f"/api/users/{user.id}", headers=admin.headers)
        assert r.status_code == 200
        assert r.json()["message"] == "User deactivated"
        login = client.post("/api/auth/login", json={"email": user.email, "password": USER_PASSWORD})
        assert login.status_code == 403
        # existing token stops working at once
        assert client.get("/api/auth/profile", headers=user.headers).status_code == 401

    def test_cannot_delete_self(self, client, admin):
        r = client.delete(f"/api/users/{admin.id}", headers=admin.headers)
        assert r.status_code == 400
        assert r.json()["message"] == "Cannot delete your own account"

    def test_not_found(self, client, admin):
        assert client.delete("/api/users/9999", headers=admin.headers).status_code == 404


class TestResetPassword:
    def test_generated(self, client, admin, user):
        r = client.post(f"/api/users/{user.id}/reset-password", headers=admin.headers)
        assert r.status_code == 200
        new_password = r.json()["newPassword"]
        assert client.post("/api/auth/login", json={"email": user.email, "password": new_password}).status_code == 200

    def test_explicit(self, client, admin, user):
        r = client.post(f"/api/users/{user.id}/reset-password", headers=admin.headers, json={"password": "Reset1234"})
        assert r.status_code == 200
        assert "newPassword" not in r.json()
        assert client.post("/api/auth/login", json={"email": user.email, "password": "Reset1234"}).status_code == 200

    def test_non_admin_forbidden(self, client, user, other_user):
        r = client.post(f"/api/users/{other_user.id}/reset-password", headers=user.headers)
        assert r.status_code == 403


class TestSettings:
    def test_merge_own_settings(self, client, user):
        client.put(f"/api/users/{user.id}/settings", headers=user.headers, json={"theme": "dark"})
        r = client.put(f"/api/users/{user.id}/settings", headers=user.headers, json={"notifications": False})
        assert r.status_code == 200
        assert r.json()["message"] == "Settings updated"
        assert r.json()["data"] == {"theme": "dark", "notifications": False}

    def test_admin_cannot_edit_others_settings(self, client, admin, user):
        r = client.put(f"/api/users/{user.id}/settings", headers=admin.headers, json={"theme": "dark"})
        assert r.status_code == 403
