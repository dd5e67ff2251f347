# tests/test_access_and_health.py
"""
Tests for authentication, role permissions and the health endpoints.
"""

import pytest

from django.test import Client
from rest_framework.test import APIClient

from accounts.authz import actor_for_user
from accounts.permission_defaults import permissions_for_user
from accounting.models import Account


# =============================================================================
# Roles
# =============================================================================

@pytest.mark.django_db
class TestRolePermissions:

    def test_admin_is_allowed_everything(self, admin_actor):
        assert admin_actor.has("journal.approve")
        assert admin_actor.has("audit.view")

    def test_viewer_is_read_only(self, viewer_actor):
        assert viewer_actor.has("reports.view")
        assert not viewer_actor.has("journal.create")
        assert not viewer_actor.has("invoices.manage")

    def test_project_manager(self, pm_actor):
        assert pm_actor.has("projects.manage")
        assert not pm_actor.has("payments.manage")

    def test_inactive_user_has_nothing(self, finance_user):
        finance_user.is_active = False

        assert not actor_for_user(finance_user).has("accounts.view")

    def test_superuser_gets_every_code(self, viewer_user):
        viewer_user.is_superuser = True

        assert "audit.view" in permissions_for_user(viewer_user)


# =============================================================================
# Authentication API
# =============================================================================

@pytest.mark.django_db
class TestAuthAPI:

    def test_token_login_and_profile(self, finance_user):
        client = APIClient()

        r = client.post("/api/auth/token/", {"email": "finance@test.com", "password": "testpass123"}, format="json")
        assert r.status_code == 200, r.data
        assert "access" in r.data and "refresh" in r.data

        client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['access']}")
        me = client.get("/api/auth/me/")
        assert me.status_code == 200
        assert me.data["user"]["role"] == "FINANCE_MANAGER"
        assert "payments.manage" in me.data["permissions"]

    def test_bad_password(self, finance_user):
        r = APIClient().post("/api/auth/token/", {"email": "finance@test.com", "password": "nope"}, format="json")

        assert r.status_code == 401

    def test_logout_blacklists_refresh(self, finance_user):
        client = APIClient()
        tokens = client.post(
            "/api/auth/token/", {"email": "finance@test.com", "password": "testpass123"}, format="json",
        ).data

        assert client.post("/api/auth/logout/", {"refresh": tokens["refresh"]}, format="json").status_code == 204
        r = client.post("/api/auth/token/refresh/", {"refresh": tokens["refresh"]}, format="json")
        assert r.status_code == 401


# =============================================================================
# Chart of accounts API
# =============================================================================

@pytest.mark.django_db
class TestAccountAPI:

    def test_list_filters_by_type(self, api_client, chart):
        r = api_client.get("/api/accounting/accounts/", {"type": "LIABILITY"})

        assert r.status_code == 200
        assert [row["code"] for row in r.data] == ["2000", "2100", "2500"]

    def test_duplicate_code_is_bad_request(self, api_client, chart):
        r = api_client.post("/api/accounting/accounts/", {
            "code": "1000", "name": "Cash again", "account_type": "ASSET",
        }, format="json")

        assert r.status_code == 400
        assert r.data["code"] == "duplicate_code"

    def test_viewer_cannot_create_accounts(self, viewer_client):
        r = viewer_client.post("/api/accounting/accounts/", {
            "code": "1010", "name": "Petty Cash", "account_type": "ASSET",
        }, format="json")

        assert r.status_code == 403
        assert not Account.objects.filter(code="1010").exists()


# =============================================================================
# Health
# =============================================================================

@pytest.mark.django_db
class TestHealth:

    def test_liveness(self):
        r = Client().get("/_health/live")

        assert r.status_code == 200
        assert r.json() == {"status": "alive"}

    def test_readiness(self):
        r = Client().get("/_health/ready")

        assert r.status_code == 200
        assert r.json()["status"] == "ready"

    def test_full_health_with_chart(self, chart):
        r = Client().get("/_health/full")

        body = r.json()
        assert r.status_code == 200, body
        assert body["checks"]["posting_accounts"]["missing_roles"] == []
        assert body["checks"]["ledger_integrity"]["status"] == "healthy"

    def test_full_health_without_chart(self):
        r = Client().get("/_health/full")

        body = r.json()
        assert r.status_code == 503
        assert body["status"] == "unhealthy"
        assert "CASH" in body["checks"]["posting_accounts"]["missing_roles"]
