"""API tests for authentication, the admin guard and the health endpoints."""
import pytest


@pytest.mark.api
class TestHealth:
    """Public probes"""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert "timestamp" in body

    def test_health_detailed(self, test_client):
        response = test_client.get("/health/detailed")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["components"]["database"]["status"] == "ok"

    def test_api_banner(self, test_client):
        response = test_client.get("/api")
        assert response.json() == {
            "message": "Welcome to Portfolio API",
            "version": "1.0.0",
        }

    def test_security_headers_applied(self, test_client):
        response = test_client.get("/api")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Correlation-ID" in response.headers

    def test_unknown_route(self, test_client):
        response = test_client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.api
class TestAuthSync:
    """Token resolution through the HTTP layer"""

    def test_missing_token(self, test_client):
        response = test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "MISSING_TOKEN"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, test_client):
        response = test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer forged"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_sync_creates_user(self, test_client, reader_headers):
        response = test_client.post("/api/auth/sync", headers=reader_headers)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "reader@example.com"
        assert user["name"] == "Reader"
        assert user["photoUrl"] == "https://img.example.com/reader.png"
        assert user["role"] == "USER"
        assert "createdAt" in user

    def test_sync_is_idempotent(self, test_client, reader_headers):
        first = test_client.post("/api/auth/sync", headers=reader_headers).json()
        second = test_client.post("/api/auth/sync", headers=reader_headers).json()
        me = test_client.get("/api/auth/me", headers=reader_headers).json()

        assert first["user"]["id"] == second["user"]["id"] == me["user"]["id"]

    def test_admin_linked_by_email(self, test_client, admin_headers):
        """The seeded owner account is linked, not duplicated"""
        user = test_client.post("/api/auth/sync", headers=admin_headers).json()["user"]

        assert user["email"] == "owner@example.com"
        assert user["role"] == "ADMIN"
        # Empty fields on the seeded account are backfilled from the token
        assert user["name"] == "Site Owner"
        assert user["photoUrl"] == "https://img.example.com/owner.png"

    def test_update_own_profile(self, test_client, reader_headers):
        response = test_client.put(
            "/api/auth/profile",
            headers=reader_headers,
            json={"name": "Renamed Reader"},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Renamed Reader"
        assert user["photoUrl"] == "https://img.example.com/reader.png"

    def test_update_own_profile_rejects_bad_url(self, test_client, reader_headers):
        response = test_client.put(
            "/api/auth/profile",
            headers=reader_headers,
            json={"photoUrl": "not a url"},
        )

        assert response.status_code == 400
        violations = response.json()["error"]["details"]["violations"]
        assert violations[0]["field"] == "photoUrl"


@pytest.mark.api
class TestAdminGuard:
    """Admin-only routes"""

    def test_stats_requires_token(self, test_client):
        assert test_client.get("/api/stats").status_code == 401

    def test_stats_forbidden_for_user(self, test_client, reader_headers):
        response = test_client.get("/api/stats", headers=reader_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_stats_for_admin(self, test_client, admin_headers):
        response = test_client.get("/api/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "stats": {
                "projects": 0,
                "skills": 0,
                "blogs": 0,
                "messages": 0,
                "totalMessages": 0,
            }
        }
