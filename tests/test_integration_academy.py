"""Integration tests: an academy's life through the discovered app."""

from __future__ import annotations

from typing import Any

import pytest

PAYLOAD: dict[str, Any] = {
    "academy_name": "Test Academy",
    "academy_subdomain": "test-academy",
    "admin_full_name": "Dana Director",
    "admin_email": "director@example.com",
    "admin_password": "correct-horse",
    "modules_config": {"students": True, "finance": False},
}


def _provision(client, payload: dict[str, Any] | None = None) -> dict[str, Any]:  # noqa: ANN001
    resp = client.post("/provisioning/academies", json=payload or PAYLOAD)
    assert resp.status_code == 200
    return resp.json()["data"]


@pytest.mark.integration
class TestAcademyLifecycle:
    def test_subdomain_available_before_provisioning(self, client) -> None:
        body = client.get("/subdomains/test-academy/availability").json()
        assert body["available"] is True

    def test_provisioned_academy_is_taken(self, client) -> None:
        _provision(client)
        body = client.get("/subdomains/test-academy/availability").json()
        assert body["available"] is False
        assert body["reason"] == "taken"

    def test_second_claim_is_rejected(self, client, identity_provider) -> None:
        _provision(client)
        resp = client.post(
            "/provisioning/academies",
            json={**PAYLOAD, "admin_email": "other@example.com"},
        )
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        # The identity created for the losing request was compensated.
        assert [u.email for u in identity_provider.users.values()] == ["director@example.com"]

    def test_public_site_resolves_unconfigured(self, client) -> None:
        data = _provision(client)
        body = client.get("/site/test-academy").json()
        assert body["academy"]["id"] == data["tenantId"]
        assert body["configured"] is False
        assert body["team"] == []

    def test_director_sees_enabled_modules(self, client, bearer) -> None:
        data = _provision(client)
        headers = {**bearer(data["adminId"]), "X-Tenant-ID": data["tenantId"]}
        body = client.get("/admin/modules", headers=headers).json()
        assert body["role"] == "director"
        assert body["modules"] == ["dashboard", "settings", "students"]

    def test_disabled_module_is_gated(self, client, bearer) -> None:
        data = _provision(client)
        headers = {**bearer(data["adminId"]), "X-Tenant-ID": data["tenantId"]}
        resp = client.get("/admin/website-settings", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "MODULE_DISABLED"

    def test_foreign_academy_is_forbidden(self, client, bearer) -> None:
        data = _provision(client)
        headers = {
            **bearer(data["adminId"]),
            "X-Tenant-ID": "00000000-0000-0000-0000-000000000099",
        }
        resp = client.get("/admin/modules", headers=headers)
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "AUTHORIZATION_ERROR"

    def test_forged_user_header_is_rejected(self, client) -> None:
        data = _provision(client)
        headers = {"X-User-ID": data["adminId"], "X-Tenant-ID": data["tenantId"]}
        resp = client.get("/admin/modules", headers=headers)
        assert resp.status_code == 401

    def test_director_publishes_site(self, client, bearer) -> None:
        payload = {
            **PAYLOAD,
            "academy_subdomain": "web-academy",
            "modules_config": {"website": True},
        }
        data = _provision(client, payload)
        headers = {**bearer(data["adminId"]), "X-Tenant-ID": data["tenantId"]}

        saved = client.put("/admin/website-settings", json={"template": "modern"}, headers=headers)
        page = client.put("/admin/pages/homepage", json={"title": "Welcome"}, headers=headers)

        assert saved.status_code == 200
        assert page.status_code == 200
        body = client.get("/site/web-academy").json()
        assert body["configured"] is True
        assert body["settings"]["template"] == "modern"
        assert body["homepage"]["title"] == "Welcome"
