"""Tests for the diagnostics API endpoints."""

import pytest

from insura_ops.api.dependencies import get_backend_clients
from insura_ops.main import app

from conftest import make_access_token

PREFIX = "/api/v1/diagnostics"


@pytest.fixture
def wired_backend(backend_clients):
    """Serve the diagnostics routes from the fake backend."""
    app.state.backend_clients = backend_clients
    app.dependency_overrides[get_backend_clients] = lambda: backend_clients
    yield backend_clients
    app.state.backend_clients = None


def _bearer(fake_backend, email, role=None):
    user = fake_backend.add_user(email, "secret123")
    if role:
        fake_backend.seed("user_profiles", user_id=user["id"], role=role)
    return user, {"Authorization": f"Bearer {make_access_token(user['id'], email)}"}


class TestAccessControl:
    def test_missing_token(self, test_client, wired_backend):
        response = test_client.get(f"{PREFIX}/tables")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header missing"

    def test_invalid_token(self, test_client, wired_backend):
        response = test_client.get(f"{PREFIX}/tables", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_non_admin_is_forbidden(self, test_client, fake_backend, wired_backend):
        _, headers = _bearer(fake_backend, "client@example.com", role="client")

        response = test_client.get(f"{PREFIX}/tables", headers=headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    def test_user_without_profile_is_forbidden(self, test_client, fake_backend, wired_backend):
        _, headers = _bearer(fake_backend, "nobody@example.com")

        assert test_client.get(f"{PREFIX}/connection", headers=headers).status_code == 403

    def test_backend_not_configured(self, test_client):
        response = test_client.get(f"{PREFIX}/tables", headers={"Authorization": "Bearer token"})

        assert response.status_code == 503


class TestAdminRoutes:
    @pytest.fixture
    def admin_headers(self, fake_backend, wired_backend):
        _, headers = _bearer(fake_backend, "admin@example.com", role="admin")
        return headers

    def test_tables(self, test_client, fake_backend, admin_headers):
        del fake_backend.tables["renewals"]

        response = test_client.get(f"{PREFIX}/tables", headers=admin_headers)

        body = response.json()
        assert response.status_code == 200
        assert body["missing"] == ["renewals"]
        assert body["all_present"] is False
        renewals = next(t for t in body["tables"] if t["name"] == "renewals")
        assert renewals["status"] == "missing"
        assert renewals["error"]["title"] == "Table Not Found"

    def test_sql_for_requested_tables(self, test_client, admin_headers):
        response = test_client.get(
            f"{PREFIX}/sql", params=[("tables", "claims"), ("tables", "companies")], headers=admin_headers
        )

        body = response.json()
        assert response.status_code == 200
        assert body["tables"] == ["companies", "claims"]
        assert "CREATE TABLE IF NOT EXISTS claims" in body["sql"]

    def test_sql_unknown_table(self, test_client, admin_headers):
        response = test_client.get(f"{PREFIX}/sql", params={"tables": "spaceships"}, headers=admin_headers)

        assert response.status_code == 400
        assert "spaceships" in response.json()["detail"]

    def test_connection(self, test_client, admin_headers):
        response = test_client.get(f"{PREFIX}/connection", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["rest_reachable"] is True
        assert response.json()["auth_healthy"] is True

    def test_role_report(self, test_client, fake_backend, admin_headers):
        fake_backend.seed("user_profiles", user_id="agent-1", role="agent")

        response = test_client.get(f"{PREFIX}/roles/agent-1", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "agent"
        assert response.json()["expected_route"] == "/dashboard"

    def test_promote(self, test_client, fake_backend, admin_headers):
        fake_backend.seed("user_profiles", user_id="u9", role="client")

        response = test_client.post(f"{PREFIX}/roles/u9/promote", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    def test_promote_missing_profile(self, test_client, admin_headers):
        response = test_client.post(f"{PREFIX}/roles/ghost/promote", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"]


class TestWhoAmI:
    def test_client_caller(self, test_client, fake_backend, wired_backend):
        user, headers = _bearer(fake_backend, "client@example.com", role="client")

        response = test_client.get(f"{PREFIX}/whoami", headers=headers)

        body = response.json()
        assert response.status_code == 200
        assert body["user"]["id"] == user["id"]
        assert body["profile"]["role"] == "client"
        assert body["expected_route"] == "/client/dashboard"

    def test_caller_without_profile(self, test_client, fake_backend, wired_backend):
        _, headers = _bearer(fake_backend, "nobody@example.com")

        response = test_client.get(f"{PREFIX}/whoami", headers=headers)

        assert response.json()["profile"] is None
        assert response.json()["expected_route"] == "/account/profile-missing"


class TestServiceEndpoints:
    def test_health_degraded_without_backend(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["backend_configured"] is False

    def test_health_with_backend(self, test_client, wired_backend):
        body = test_client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["privileged_access"] is True

    def test_root(self, test_client):
        body = test_client.get("/").json()

        assert body["message"] == "Server is running"
        assert body["docs"] == "/docs"
