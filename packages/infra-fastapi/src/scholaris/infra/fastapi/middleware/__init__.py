"""ASGI middleware contributed to the Scholaris app."""

from scholaris.infra.fastapi.middleware.request_context import RequestContextMiddleware
from scholaris.infra.fastapi.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    get_request_id,
    request_id_ctx,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "get_request_id",
    "request_id_ctx",
]
