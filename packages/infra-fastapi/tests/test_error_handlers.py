"""Unit tests for scholaris.infra.fastapi.error_handlers."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scholaris.foundation.domain import (
    AuthenticationError,
    AuthorizationError,
    AvailabilityError,
    ConflictError,
    DomainError,
    ModuleDisabledError,
    NotFoundError,
    TenantNotFoundError,
    ValidationError,
)
from scholaris.foundation.domain.ports.identity_provider import IdentityProviderError
from scholaris.foundation.domain.ports.tenant_store import TenantStoreError
from scholaris.infra.fastapi.error_handlers import (
    PROBLEM_MEDIA_TYPE,
    _redact,
    _sanitize_context,
    register_exception_handlers,
    unhandled_exception_handler,
)


def _client_raising(exc: Exception, *, debug: bool = False) -> TestClient:
    app = FastAPI(debug=debug)
    register_exception_handlers(app)

    @app.get("/boom")
    def boom() -> None:
        raise exc

    @app.get("/typed/{count}")
    def typed(count: int) -> dict[str, int]:
        return {"count": count}

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
class TestDomainMappings:
    @pytest.mark.parametrize(
        ("exc", "status", "error_code"),
        [
            (NotFoundError("Academy", "abc"), 404, "RESOURCE_NOT_FOUND"),
            (TenantNotFoundError("ghost-academy"), 404, "TENANT_NOT_FOUND"),
            (ValidationError("subdomain", "too short"), 422, "VALIDATION_ERROR"),
            (ConflictError("subdomain taken"), 409, "CONFLICT"),
            (AuthorizationError("nope"), 403, "AUTHORIZATION_ERROR"),
            (ModuleDisabledError("finance", "a-1"), 403, "MODULE_DISABLED"),
            (DomainError("generic"), 400, "DOMAIN_ERROR"),
        ],
    )
    def test_status_and_code(self, exc: DomainError, status: int, error_code: str) -> None:
        resp = _client_raising(exc).get("/boom")
        assert resp.status_code == status
        assert resp.headers["content-type"] == PROBLEM_MEDIA_TYPE
        body = resp.json()
        assert body["status"] == status
        assert body["error_code"] == error_code
        assert body["instance"] == "/boom"
        assert body["detail"] == exc.message

    def test_module_disabled_context(self) -> None:
        body = _client_raising(ModuleDisabledError("finance", "a-1")).get("/boom").json()
        assert body["type"] == "/errors/module-disabled"
        assert body["context"] == {"module": "finance", "academy_id": "a-1"}

    def test_authentication_challenge(self) -> None:
        resp = _client_raising(
            AuthenticationError("Authentication required", auth_error="missing_token")
        ).get("/boom")
        assert resp.status_code == 401
        assert 'error="missing_token"' in resp.headers["WWW-Authenticate"]
        assert resp.json()["type"] == "/errors/authentication-required"


@pytest.mark.unit
class TestServiceUnavailable:
    def test_availability_error(self) -> None:
        resp = _client_raising(AvailabilityError("my-academy", "timeout")).get("/boom")
        assert resp.status_code == 503
        assert resp.headers["Retry-After"] == "1"
        body = resp.json()
        assert body["detail"] == "Error checking availability. Please try again."
        assert body["context"] == {"subdomain": "my-academy", "reason": "timeout"}

    def test_store_error_hides_driver_text(self) -> None:
        resp = _client_raising(
            TenantStoreError("could not connect to postgresql://app:pw@db:5432")
        ).get("/boom")
        assert resp.status_code == 503
        body = resp.json()
        assert body["error_code"] == "STORE_UNAVAILABLE"
        assert "postgresql" not in body["detail"]
        assert "correlation_id" in body

    def test_identity_provider_error_hides_provider_text(self) -> None:
        resp = _client_raising(
            IdentityProviderError("request_failed", "connect to 10.0.0.5 refused")
        ).get("/boom")
        assert resp.status_code == 503
        body = resp.json()
        assert body["error_code"] == "IDENTITY_UNAVAILABLE"
        assert "10.0.0.5" not in body["detail"]


@pytest.mark.unit
class TestFallbacks:
    def test_request_validation(self) -> None:
        resp = _client_raising(RuntimeError()).get("/typed/abc")
        assert resp.status_code == 422
        body = resp.json()
        assert body["error_code"] == "REQUEST_VALIDATION_ERROR"
        assert body["context"]["errors"][0]["loc"] == ["path", "count"]

    def test_unhandled_is_sanitized(self) -> None:
        resp = _client_raising(RuntimeError("password=hunter2")).get("/boom")
        assert resp.status_code == 500
        body = resp.json()
        assert "hunter2" not in body["detail"]
        assert "context" not in body
        assert body["correlation_id"] == "unknown"

    async def test_unhandled_in_debug_includes_type_but_redacts(self) -> None:
        request = MagicMock()
        request.app.debug = True
        request.url.path = "/boom"
        request.method = "GET"
        resp = await unhandled_exception_handler(request, RuntimeError("password=hunter2"))
        body = json.loads(resp.body)
        assert body["detail"].startswith("RuntimeError:")
        assert "hunter2" not in body["detail"]
        assert body["context"] == {"exception_type": "RuntimeError"}


@pytest.mark.unit
class TestSanitization:
    def test_drops_secret_keys_and_converts_types(self) -> None:
        academy_id = UUID("5f0c6d7e-0000-4000-8000-000000000001")
        created = datetime(2026, 1, 2, tzinfo=UTC)
        result = _sanitize_context(
            {
                "admin_password": "s3cret",
                "academy_id": academy_id,
                "created_at": created,
                "tags": ("a", 1),
                "obj": object,
            }
        )
        assert result is not None
        assert "admin_password" not in result
        assert result["academy_id"] == str(academy_id)
        assert result["created_at"] == created.isoformat()
        assert result["tags"] == ["a", 1]
        assert isinstance(result["obj"], str)

    def test_empty_context(self) -> None:
        assert _sanitize_context(None) is None
        assert _sanitize_context({"password": "x"}) is None

    def test_redacts_connection_strings(self) -> None:
        assert "pw" not in _redact("postgresql+psycopg://app:pw@db:5432/scholaris")
