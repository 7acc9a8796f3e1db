"""Bearer-token authentication middleware.

Verifies the identity provider's access token when the request carries
one and stores the decoded claims in ``request.state.jwt_claims``;
:class:`~scholaris.infra.fastapi.middleware.request_context.RequestContextMiddleware`
takes the caller's user id from the ``sub`` claim. Requests without an
``Authorization`` header continue anonymously; routes that need a caller
reject them with 401 through the ``get_caller`` dependency.

Middleware position in stack (LIFO registration order):
  Request -> RequestId -> TraceContext -> Auth -> RequestContext -> Route

Auth errors are returned as responses rather than raised, because
BaseHTTPMiddleware dispatch cannot propagate exceptions to the app's
exception handlers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import jwt as pyjwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from scholaris.foundation.application.contributions import MiddlewareContribution

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

    from scholaris.infra.auth.verifier import AccessTokenVerifier

logger = logging.getLogger(__name__)

_DEFAULT_EXCLUDED_PREFIXES = ("/healthz", "/docs", "/openapi.json", "/redoc")

_PROBLEM_MEDIA_TYPE = "application/problem+json"

_TITLES = {401: "Unauthorized", 503: "Service Unavailable"}


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Access-token validation middleware.

    Request flow:
    1. Excluded path -> skip
    2. No ``Authorization`` header -> continue anonymously
    3. Non-Bearer or empty token -> 401 (invalid_format)
    4. No verifier configured -> 503 (service_unavailable)
    5. Verify signature and claims -> 401 on failure
    6. Store claims in ``request.state.jwt_claims``

    The verifier is taken from the constructor, or else from
    ``app.state.token_verifier`` published by the auth lifespan hook.
    """

    def __init__(
        self,
        app: Any,
        verifier: AccessTokenVerifier | None = None,
        excluded_prefixes: tuple[str, ...] | None = None,
    ) -> None:
        super().__init__(app)
        self._verifier = verifier
        self._excluded_prefixes = (
            excluded_prefixes if excluded_prefixes is not None else _DEFAULT_EXCLUDED_PREFIXES
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if any(path.startswith(prefix) for prefix in self._excluded_prefixes):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return await call_next(request)

        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer":
            return self._auth_error(
                request, 401, "invalid_format", "Authorization header must use Bearer scheme"
            )
        token = token.strip()
        if not token:
            return self._auth_error(request, 401, "invalid_format", "Bearer token is empty")

        verifier = self._verifier or getattr(request.app.state, "token_verifier", None)
        if verifier is None:
            return self._auth_error(
                request, 503, "service_unavailable", "Authentication service not configured"
            )

        try:
            claims = verifier.verify(token)
        except pyjwt.ExpiredSignatureError:
            return self._auth_error(request, 401, "token_expired", "Token has expired")
        except (pyjwt.InvalidIssuerError, pyjwt.InvalidAudienceError):
            return self._auth_error(request, 401, "invalid_claims", "Invalid issuer or audience")
        except pyjwt.MissingRequiredClaimError as exc:
            return self._auth_error(
                request, 401, "invalid_claims", f"Missing required claim: {exc.claim}"
            )
        except pyjwt.InvalidSignatureError:
            return self._auth_error(
                request, 401, "invalid_signature", "Token signature verification failed"
            )
        except pyjwt.PyJWKClientConnectionError:
            logger.warning("jwks_unreachable", exc_info=True)
            return self._auth_error(
                request, 503, "service_unavailable", "Signing keys are unavailable"
            )
        except pyjwt.PyJWKClientError:
            return self._auth_error(request, 401, "invalid_signature", "Unknown signing key")
        except pyjwt.DecodeError:
            return self._auth_error(request, 401, "invalid_token", "Token is malformed")
        except pyjwt.PyJWTError:
            return self._auth_error(request, 401, "invalid_token", "Token validation failed")

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            return self._auth_error(request, 401, "invalid_claims", "Token subject is empty")

        request.state.jwt_claims = claims
        return await call_next(request)

    def _auth_error(
        self,
        request: Request,
        status_code: int,
        error_code: str,
        message: str,
    ) -> JSONResponse:
        """Build an RFC 7807 response with an RFC 6750 challenge on 401."""
        logger.info(
            "auth_validation_failed",
            extra={"error_code": error_code, "path": request.url.path, "method": request.method},
        )

        headers: dict[str, str] = {}
        if status_code == 401:
            headers["WWW-Authenticate"] = (
                f'Bearer realm="scholaris", error="{error_code}", error_description="{message}"'
            )

        return JSONResponse(
            status_code=status_code,
            content={
                "type": f"/errors/{error_code.replace('_', '-')}",
                "title": _TITLES.get(status_code, "Error"),
                "status": status_code,
                "detail": message,
                "error_code": error_code.upper(),
                "instance": str(request.url.path),
            },
            media_type=_PROBLEM_MEDIA_TYPE,
            headers=headers,
        )


contribution = MiddlewareContribution(
    middleware_class=JWTAuthMiddleware,
    priority=150,  # Security band (100-199)
)
