"""Unit tests for scholaris.infra.fastapi.dependencies.entitlements."""

from __future__ import annotations

import time
from typing import Annotated, Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from scholaris.foundation.domain.ports.tenant_store import AcademyRecord, ProfileRecord
from scholaris.infra.auth.middleware.jwt_auth import JWTAuthMiddleware
from scholaris.infra.auth.verifier import AccessTokenVerifier
from scholaris.infra.fastapi.dependencies.entitlements import Caller, get_caller, require_module
from scholaris.infra.fastapi.error_handlers import register_exception_handlers
from scholaris.infra.fastapi.middleware.request_context import RequestContextMiddleware

ACADEMY_ID = UUID("7d2c1f7a-3b0e-4c55-9a51-0c9a4b3e2f10")
JWT_SECRET = "entitlements-test-secret-0123456789abcdef"


def _bearer(sub: str = "idp-1", **claims: Any) -> dict[str, str]:
    payload = {"sub": sub, "aud": "authenticated", "exp": int(time.time()) + 600, **claims}
    return {"Authorization": f"Bearer {jwt.encode(payload, JWT_SECRET, algorithm='HS256')}"}


def _academy(**overrides: Any) -> AcademyRecord:
    fields: dict[str, Any] = {
        "id": ACADEMY_ID,
        "name": "Test Academy",
        "subdomain": "test-academy",
        "modules": {"students": True, "finance": False},
    }
    fields.update(overrides)
    return AcademyRecord(**fields)


def _profile(role: str = "director", **overrides: Any) -> ProfileRecord:
    fields: dict[str, Any] = {
        "id": uuid4(),
        "user_id": "idp-1",
        "academy_id": ACADEMY_ID,
        "email": "director@example.com",
        "full_name": "Dana Director",
        "role": role,
    }
    fields.update(overrides)
    return ProfileRecord(**fields)


def _client(
    profile: ProfileRecord | None,
    academy: AcademyRecord | None = None,
) -> TestClient:
    store = MagicMock()
    store.get_profile = AsyncMock(return_value=profile)
    store.get_academy = AsyncMock(return_value=academy if academy is not None else _academy())

    app = FastAPI()
    app.state.tenant_store = store
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        JWTAuthMiddleware,
        verifier=AccessTokenVerifier(audience="authenticated", secret=JWT_SECRET),
    )
    register_exception_handlers(app)

    @app.get("/me")
    async def me(caller: Annotated[Caller, Depends(get_caller)]) -> dict[str, Any]:
        return {"role": caller.role, "modules": caller.visible_modules()}

    @app.get("/students")
    async def students(
        caller: Annotated[Caller, Depends(require_module("students"))],
    ) -> dict[str, str]:
        return {"ok": caller.role}

    @app.get("/finance")
    async def finance(
        caller: Annotated[Caller, Depends(require_module("finance"))],
    ) -> dict[str, str]:
        return {"ok": caller.role}

    @app.get("/dashboard")
    async def dashboard(
        caller: Annotated[Caller, Depends(require_module("dashboard"))],
    ) -> dict[str, str]:
        return {"ok": caller.role}

    return TestClient(app)


_AUTH = _bearer()


@pytest.mark.unit
class TestGetCaller:
    def test_missing_user_is_401(self) -> None:
        resp = _client(_profile()).get("/me")
        assert resp.status_code == 401
        assert resp.json()["error_code"] == "AUTHENTICATION_REQUIRED"

    def test_user_id_header_alone_is_401(self) -> None:
        resp = _client(_profile()).get("/me", headers={"X-User-ID": "idp-1"})
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"].startswith('Bearer realm="scholaris"')

    def test_user_id_header_cannot_reach_gated_module(self) -> None:
        headers = {"X-User-ID": "idp-1", "X-Tenant-ID": str(ACADEMY_ID)}
        assert _client(_profile("coach")).get("/students", headers=headers).status_code == 401

    def test_token_signed_with_other_secret_is_401(self) -> None:
        payload = {"sub": "idp-1", "aud": "authenticated", "exp": int(time.time()) + 600}
        forged = jwt.encode(payload, "some-other-secret-0123456789abcdef", algorithm="HS256")
        resp = _client(_profile()).get("/me", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401
        assert resp.json()["error_code"] == "INVALID_SIGNATURE"

    def test_profile_looked_up_by_token_subject(self) -> None:
        client = _client(_profile(user_id="idp-7"))
        resp = client.get("/me", headers={**_bearer("idp-7"), "X-User-ID": "idp-1"})
        assert resp.status_code == 200
        store = client.app.state.tenant_store  # type: ignore[attr-defined]
        store.get_profile.assert_awaited_once_with("idp-7")

    def test_unknown_profile_is_403(self) -> None:
        assert _client(None).get("/me", headers=_AUTH).status_code == 403

    def test_inactive_profile_is_403(self) -> None:
        assert _client(_profile(is_active=False)).get("/me", headers=_AUTH).status_code == 403

    def test_inactive_academy_is_403(self) -> None:
        client = _client(_profile(), _academy(is_active=False))
        assert client.get("/me", headers=_AUTH).status_code == 403

    def test_foreign_academy_header_is_403(self) -> None:
        resp = _client(_profile()).get("/me", headers={**_AUTH, "X-Tenant-ID": str(uuid4())})
        assert resp.status_code == 403

    def test_visible_modules_for_director(self) -> None:
        resp = _client(_profile()).get("/me", headers={**_AUTH, "X-Tenant-ID": str(ACADEMY_ID)})
        assert resp.status_code == 200
        assert resp.json() == {"role": "director", "modules": ["dashboard", "settings", "students"]}


@pytest.mark.unit
class TestRequireModule:
    def test_enabled_and_entitled(self) -> None:
        resp = _client(_profile("coach")).get("/students", headers=_AUTH)
        assert resp.status_code == 200
        assert resp.json() == {"ok": "coach"}

    def test_disabled_module(self) -> None:
        resp = _client(_profile("director")).get("/finance", headers=_AUTH)
        assert resp.status_code == 403
        body = resp.json()
        assert body["error_code"] == "MODULE_DISABLED"
        assert body["context"]["module"] == "finance"

    def test_role_not_entitled(self) -> None:
        client = _client(_profile("coach"), _academy(modules={"finance": True}))
        resp = client.get("/finance", headers=_AUTH)
        assert resp.status_code == 403
        assert resp.json()["error_code"] == "AUTHORIZATION_ERROR"

    def test_always_visible_module(self) -> None:
        client = _client(_profile("parent"), _academy(modules={}))
        assert client.get("/dashboard", headers=_AUTH).status_code == 200
