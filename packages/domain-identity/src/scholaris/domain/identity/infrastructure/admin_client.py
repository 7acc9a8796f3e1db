"""Async HTTP client for the identity provider's auth API.

Implements :class:`IdentityProviderPort` against a GoTrue-compatible admin
API (``/admin/users``) authenticated with the service-role key, plus the
password and refresh-token grants and logout used by staff sessions.

Every failure is raised as :class:`IdentityProviderError`: HTTP errors carry
the provider's status code and message, transport errors carry
``status_code=None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry.trace import SpanKind

from scholaris.foundation.domain.ports.identity_provider import (
    IdentityProviderError,
    IdentityRecord,
)
from scholaris.infra.observability import traced_operation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from scholaris.domain.identity.settings import IdentitySettings

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True, slots=True)
class Session:
    """Tokens issued by the password or refresh-token grant.

    Attributes:
        access_token: JWT access token.
        refresh_token: Refresh token (rotated on each use).
        expires_in: Access token TTL in seconds.
        token_type: Always "bearer" for this provider.
        user_id: Identity id of the signed-in user.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    user_id: str | None


def _error_from_response(response: httpx.Response) -> IdentityProviderError:
    body: dict[str, Any] = {}
    if response.headers.get("content-type", "").startswith("application/json"):
        try:
            body = response.json()
        except ValueError:
            body = {}
    error = str(body.get("error_code") or body.get("code") or body.get("error") or "http_error")
    message = str(
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or response.reason_phrase
    )
    return IdentityProviderError(error, message, status_code=response.status_code)


def _record_from_user(user: Mapping[str, Any]) -> IdentityRecord:
    return IdentityRecord(
        id=str(user["id"]),
        email=str(user.get("email") or ""),
        metadata=dict(user.get("user_metadata") or {}),
    )


class IdentityAdminClient:
    """Identity provider client.

    Supports both shared and owned httpx.AsyncClient modes:
    - If ``client`` is provided, it is reused across calls (caller manages lifecycle).
    - If ``client`` is omitted, an internal client is created lazily on first use.
      Call :meth:`aclose` to release the internal client when done.

    Args:
        base_url: Auth API base URL.
        service_key: Service-role key sent as ``apikey`` and bearer token.
        timeout: HTTP request timeout in seconds.
        page_size: Users per page when scanning for an email.
        client: Optional shared httpx.AsyncClient instance.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = _DEFAULT_TIMEOUT,
        page_size: int = 200,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._timeout = timeout
        self._page_size = page_size
        self._external_client = client is not None
        self._client: httpx.AsyncClient | None = client

    @classmethod
    def from_settings(
        cls,
        settings: IdentitySettings,
        client: httpx.AsyncClient | None = None,
    ) -> IdentityAdminClient:
        return cls(
            settings.base_url,
            settings.service_key,
            timeout=settings.timeout,
            page_size=settings.page_size,
            client=client,
        )

    # -- Admin API (IdentityProviderPort) -------------------------------------

    @traced_operation("identity.create_user", kind=SpanKind.CLIENT)
    async def create_user(
        self,
        email: str,
        password: str,
        *,
        email_confirmed: bool = True,
        metadata: Mapping[str, Any] | None = None,
    ) -> IdentityRecord:
        """Create an account through ``POST /admin/users``."""
        body = await self._request(
            "POST",
            "/admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirmed,
                "user_metadata": dict(metadata or {}),
            },
        )
        user = body.get("user", body)
        if not user.get("id"):
            raise IdentityProviderError(
                "invalid_response",
                "Invalid response from authentication service.",
                status_code=None,
            )
        record = _record_from_user(user)
        logger.info("identity_user_created", extra={"identity_id": record.id})
        return record

    @traced_operation("identity.delete_user", kind=SpanKind.CLIENT)
    async def delete_user(self, user_id: str) -> None:
        """Delete an account through ``DELETE /admin/users/{id}``."""
        await self._request("DELETE", f"/admin/users/{user_id}")
        logger.info("identity_user_deleted", extra={"identity_id": user_id})

    @traced_operation("identity.find_user_by_email", kind=SpanKind.CLIENT)
    async def find_user_by_email(self, email: str) -> IdentityRecord | None:
        """Scan ``GET /admin/users`` page by page for ``email`` (case-insensitive)."""
        wanted = email.strip().lower()
        page = 1
        while True:
            body = await self._request(
                "GET",
                "/admin/users",
                params={"page": page, "per_page": self._page_size},
            )
            users = body.get("users", [])
            for user in users:
                if str(user.get("email") or "").lower() == wanted:
                    return _record_from_user(user)
            if len(users) < self._page_size:
                return None
            page += 1

    # -- Sessions -------------------------------------------------------------

    @traced_operation("identity.sign_in", kind=SpanKind.CLIENT)
    async def sign_in(self, email: str, password: str) -> Session:
        """Password grant through ``POST /token?grant_type=password``."""
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._session_from_body(body)

    @traced_operation("identity.refresh_session", kind=SpanKind.CLIENT)
    async def refresh_session(self, refresh_token: str) -> Session:
        """Refresh-token grant through ``POST /token?grant_type=refresh_token``."""
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._session_from_body(body)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind ``access_token``.

        Best-effort: failures are logged, not raised.
        """
        client = self._get_client()
        try:
            response = await client.post(
                f"{self._base_url}/logout",
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {access_token}",
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "identity_sign_out_failed",
                extra={"status": exc.response.status_code},
            )
        except httpx.TransportError:
            logger.error("identity_sign_out_connection_error")

    # -- Internals ------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        """Return the shared or lazily-created httpx.AsyncClient."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the internal httpx.AsyncClient if we own it.

        No-op if the client was provided externally or not yet created.
        """
        if self._client is not None and not self._external_client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers={
                    "apikey": self._service_key,
                    "Authorization": f"Bearer {self._service_key}",
                },
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "identity_request_transport_error",
                extra={"method": method, "path": path, "error_type": type(exc).__name__},
            )
            raise IdentityProviderError("transport_error", str(exc), status_code=None) from exc

        if response.is_error:
            error = _error_from_response(response)
            logger.warning(
                "identity_request_failed",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "error": error.error,
                },
            )
            raise error

        if not response.content:
            return {}
        payload = response.json()
        return payload if isinstance(payload, dict) else {"users": payload}

    @staticmethod
    def _session_from_body(body: Mapping[str, Any]) -> Session:
        user = body.get("user") or {}
        return Session(
            access_token=str(body["access_token"]),
            refresh_token=str(body.get("refresh_token", "")),
            expires_in=int(body.get("expires_in", 3600)),
            token_type=str(body.get("token_type", "bearer")),
            user_id=str(user["id"]) if user.get("id") else None,
        )
