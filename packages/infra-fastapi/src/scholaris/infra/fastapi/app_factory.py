"""FastAPI application factory with entry-point auto-discovery.

Provides :func:`create_app` which discovers and wires routers, middleware,
error handlers, and lifespan hooks from installed scholaris packages.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from scholaris.foundation.application import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
    discover,
)
from scholaris.foundation.application.discovery import (
    GROUP_ERROR_HANDLERS,
    GROUP_LIFESPAN,
    GROUP_MIDDLEWARE,
    GROUP_ROUTERS,
)
from scholaris.infra.fastapi.lifespan import compose_lifespan
from scholaris.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    extra_routers: list[APIRouter] | None = None,
    extra_middleware: list[MiddlewareContribution] | None = None,
    extra_lifespan_hooks: list[LifespanContribution] | None = None,
    extra_error_handlers: list[ErrorHandlerContribution] | None = None,
    exclude_groups: frozenset[str] | None = None,
    exclude_names: frozenset[str] | None = None,
) -> FastAPI:
    """Create the API application with auto-discovered contributions.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        extra_routers: Routers to include beyond discovered ones.
        extra_middleware: Middleware beyond discovered ones.
        extra_lifespan_hooks: Lifespan hooks beyond discovered ones.
        extra_error_handlers: Error handlers beyond discovered ones.
        exclude_groups: Entry point groups to skip entirely.
        exclude_names: Entry point names to skip across all groups (e.g.
            ``{"persistence", "taskiq"}`` to run without PostgreSQL or Redis).

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or AppSettings()
    _exclude_groups = exclude_groups if exclude_groups is not None else settings.exclude_groups
    _exclude_names = exclude_names if exclude_names is not None else settings.exclude_entry_points

    # --- Lifespan hooks ---
    lifespan_hooks: list[LifespanContribution] = list(extra_lifespan_hooks or [])
    if GROUP_LIFESPAN not in _exclude_groups:
        for contrib in discover(GROUP_LIFESPAN, exclude_names=_exclude_names):
            value = contrib.value
            if isinstance(value, LifespanContribution):
                lifespan_hooks.append(value)
            else:
                lifespan_hooks.append(LifespanContribution(hook=value))

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(lifespan_hooks),
    )

    # --- CORS (always added, configured via settings) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=settings.cors.expose_headers,
    )

    # --- Middleware ---
    middleware_contribs: list[MiddlewareContribution] = list(extra_middleware or [])
    if GROUP_MIDDLEWARE not in _exclude_groups:
        for contrib in discover(GROUP_MIDDLEWARE, exclude_names=_exclude_names):
            if isinstance(contrib.value, MiddlewareContribution):
                middleware_contribs.append(contrib.value)
            else:
                logger.warning(
                    "middleware_entry_point_invalid",
                    extra={"entry_point": contrib.name},
                )

    # Lowest priority must end up outermost; Starlette wraps in LIFO order.
    middleware_contribs.sort(key=lambda m: m.priority)
    for mw in reversed(middleware_contribs):
        app.add_middleware(mw.middleware_class, **mw.kwargs)
        logger.debug(
            "middleware_registered",
            extra={"middleware": mw.middleware_class.__name__, "priority": mw.priority},
        )

    # --- Error handlers ---
    error_handler_contribs: list[ErrorHandlerContribution] = list(extra_error_handlers or [])
    if GROUP_ERROR_HANDLERS not in _exclude_groups:
        for contrib in discover(GROUP_ERROR_HANDLERS, exclude_names=_exclude_names):
            value = contrib.value
            if isinstance(value, ErrorHandlerContribution):
                error_handler_contribs.append(value)
            elif callable(value):
                # register(app) -> None
                value(app)
            else:
                logger.warning(
                    "error_handler_entry_point_invalid",
                    extra={"entry_point": contrib.name},
                )

    for eh in error_handler_contribs:
        app.add_exception_handler(eh.exception_class, eh.handler)

    # --- Routers ---
    routers: list[APIRouter] = list(extra_routers or [])
    if GROUP_ROUTERS not in _exclude_groups:
        routers.extend(
            contrib.value for contrib in discover(GROUP_ROUTERS, exclude_names=_exclude_names)
        )

    for router in routers:
        app.include_router(router)

    logger.info(
        "app_created",
        extra={
            "title": settings.title,
            "routers": len(routers),
            "middleware": len(middleware_contribs),
            "lifespan_hooks": len(lifespan_hooks),
        },
    )
    return app
