"""Lifespan composition for the Scholaris app factory.

Stacks the discovered :class:`~scholaris.foundation.application.LifespanContribution`
hooks into the single context manager FastAPI accepts as ``lifespan``.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    from fastapi import FastAPI

    from scholaris.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def compose_lifespan(
    hooks: list[LifespanContribution],
) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    """Combine lifespan hooks ordered by ascending priority.

    Hooks enter in priority order and exit in reverse, so persistence is
    up before tenancy starts and still up while tenancy shuts down. A hook
    that fails to start unwinds the hooks entered before it.
    """
    ordered = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contrib in ordered:
                hook_name = getattr(contrib.hook, "__qualname__", repr(contrib.hook))
                logger.info(
                    "lifespan_hook_entering",
                    extra={"hook": hook_name, "priority": contrib.priority},
                )
                await stack.enter_async_context(contrib.hook(app))
            yield
        logger.info("lifespan_hooks_exited", extra={"count": len(ordered)})

    return lifespan
