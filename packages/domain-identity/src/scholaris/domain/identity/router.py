"""Staff session endpoints.

- ``POST /auth/sessions``: sign in with email and password.
- ``POST /auth/sessions/refresh``: exchange a refresh token for new tokens.
- ``DELETE /auth/sessions``: revoke the session of the presented access token.

Credential rejections answer 401. Any other identity provider failure is
left to the 503 problem handler.
"""

# NOTE: No ``from __future__ import annotations``; FastAPI resolves the
# ``Annotated[..., Depends(...)]`` parameters at runtime.

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from scholaris.domain.identity.infrastructure.admin_client import (
    IdentityAdminClient,
    Session,
)
from scholaris.foundation.domain.exceptions import AuthenticationError
from scholaris.foundation.domain.ports.identity_provider import IdentityProviderError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/sessions", tags=["auth"])

_REJECTED_STATUSES = frozenset({400, 401, 403, 422})


class SignInBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = Field(min_length=3)
    password: str = Field(min_length=1, repr=False)


class RefreshBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    refresh_token: str = Field(min_length=1, repr=False)


class SessionOut(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    user_id: str | None = None


def get_session_client(request: Request) -> IdentityAdminClient:
    """Identity client published on ``app.state`` by the identity lifespan."""
    return request.app.state.identity_provider  # type: ignore[no-any-return]


@router.post("")
async def sign_in(
    body: SignInBody,
    client: Annotated[IdentityAdminClient, Depends(get_session_client)],
) -> SessionOut:
    """Password sign-in for staff members."""
    try:
        session = await client.sign_in(body.email.strip(), body.password)
    except IdentityProviderError as exc:
        _raise_if_rejected(exc, "Invalid login credentials")
        raise
    logger.info("staff_signed_in", extra={"identity_id": session.user_id})
    return _session_out(session)


@router.post("/refresh")
async def refresh(
    body: RefreshBody,
    client: Annotated[IdentityAdminClient, Depends(get_session_client)],
) -> SessionOut:
    try:
        session = await client.refresh_session(body.refresh_token)
    except IdentityProviderError as exc:
        _raise_if_rejected(exc, "Refresh token is invalid or expired")
        raise
    return _session_out(session)


@router.delete("", status_code=204)
async def sign_out(
    request: Request,
    client: Annotated[IdentityAdminClient, Depends(get_session_client)],
) -> Response:
    """Revoke the caller's session. Requires a verified access token."""
    claims = getattr(request.state, "jwt_claims", None)
    if not claims:
        raise AuthenticationError("Authentication required", auth_error="missing_token")
    _, _, token = request.headers.get("Authorization", "").partition(" ")
    await client.sign_out(token.strip())
    logger.info("staff_signed_out", extra={"identity_id": claims.get("sub")})
    return Response(status_code=204)


def _raise_if_rejected(exc: IdentityProviderError, message: str) -> None:
    if exc.status_code in _REJECTED_STATUSES:
        logger.info("identity_grant_rejected", extra={"error": exc.error})
        raise AuthenticationError(message, auth_error="invalid_grant") from exc


def _session_out(session: Session) -> SessionOut:
    return SessionOut(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        token_type=session.token_type,
        user_id=session.user_id,
    )
