"""Subdomain availability checking.

:class:`SubdomainAvailabilityChecker` serves interactive input: every call
to :meth:`~SubdomainAvailabilityChecker.check` supersedes the previous one,
so only the verdict for the latest input is ever reported. Validation runs
synchronously and never touches the store; a lookup is issued only after
the input has been stable for the debounce period.

:func:`check_subdomain_availability` is the one-shot variant used by the
HTTP endpoint.

The answer is advisory. The unique constraint on ``academies.subdomain``
decides at creation time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from scholaris.foundation.domain.exceptions import AvailabilityError
from scholaris.foundation.domain.tenant_value_objects import (
    SubdomainVerdict,
    validate_subdomain,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from scholaris.foundation.domain.ports.tenant_store import TenantStorePort

logger = logging.getLogger(__name__)

MESSAGE_AVAILABLE = "Subdomain is available!"
MESSAGE_TAKEN = "Subdomain is already taken"
MESSAGE_ERROR = "Error checking availability. Please try again."


class AvailabilityStatus(StrEnum):
    IDLE = "idle"
    INVALID = "invalid"
    CHECKING = "checking"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class AvailabilityResult:
    """A single availability verdict.

    Attributes:
        subdomain: The candidate the verdict is about.
        status: Checker state.
        reason: ``bad-format``/``reserved`` for INVALID, ``taken``/``error``
            for UNAVAILABLE, otherwise None.
        message: Text to show next to the input.
    """

    subdomain: str
    status: AvailabilityStatus
    reason: str | None = None
    message: str = ""

    @property
    def is_available(self) -> bool:
        return self.status is AvailabilityStatus.AVAILABLE


def _pre_lookup_result(candidate: str) -> AvailabilityResult | None:
    """Verdict that needs no store lookup, or None if a lookup is required."""
    verdict = validate_subdomain(candidate)
    if verdict is SubdomainVerdict.VALID:
        return None
    if verdict is SubdomainVerdict.INCOMPLETE:
        return AvailabilityResult(candidate, AvailabilityStatus.IDLE)
    return AvailabilityResult(
        candidate,
        AvailabilityStatus.INVALID,
        reason=verdict.value,
        message=verdict.message,
    )


def _lookup_result(candidate: str, exists: bool) -> AvailabilityResult:
    if exists:
        return AvailabilityResult(
            candidate, AvailabilityStatus.UNAVAILABLE, reason="taken", message=MESSAGE_TAKEN
        )
    return AvailabilityResult(candidate, AvailabilityStatus.AVAILABLE, message=MESSAGE_AVAILABLE)


class SubdomainAvailabilityChecker:
    """Debounced, cancelable availability checker bound to one observer.

    Owns at most one pending lookup task. Each :meth:`check` cancels that
    task and bumps a generation counter; a result is delivered only if its
    generation is still current and the checker is open. Cancelled lookups
    emit nothing.

    Must be used from within a running event loop.

    Example:
        >>> checker = SubdomainAvailabilityChecker(store, on_change=print)
        >>> checker.check("acme")     # emits CHECKING, then later AVAILABLE
        >>> checker.check("acme-2")   # the "acme" lookup is abandoned
        >>> checker.close()
    """

    def __init__(
        self,
        store: TenantStorePort,
        on_change: Callable[[AvailabilityResult], None],
        *,
        debounce_ms: int = 800,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._on_change = on_change
        self._debounce = debounce_ms / 1000
        self._timeout = timeout
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._closed = False
        self._current: AvailabilityResult | None = None

    @property
    def current(self) -> AvailabilityResult | None:
        """Last verdict delivered to the observer."""
        return self._current

    @property
    def closed(self) -> bool:
        return self._closed

    def check(self, candidate: str) -> None:
        """Start checking ``candidate``, superseding any earlier call.

        Raises:
            RuntimeError: If the checker has been closed.
        """
        if self._closed:
            msg = "SubdomainAvailabilityChecker is closed"
            raise RuntimeError(msg)

        self._cancel_pending()
        self._generation += 1
        generation = self._generation

        immediate = _pre_lookup_result(candidate)
        if immediate is not None:
            self._emit(generation, immediate)
            return

        self._emit(generation, AvailabilityResult(candidate, AvailabilityStatus.CHECKING))
        self._task = asyncio.get_running_loop().create_task(
            self._lookup(candidate, generation),
            name=f"subdomain-availability:{candidate}",
        )

    async def wait(self) -> None:
        """Wait for the pending lookup (if any) to finish or be cancelled."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    def close(self) -> None:
        """Cancel pending work and stop delivering results. Idempotent."""
        self._closed = True
        self._cancel_pending()

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _lookup(self, candidate: str, generation: int) -> None:
        await asyncio.sleep(self._debounce)
        try:
            async with asyncio.timeout(self._timeout):
                exists = await self._store.subdomain_exists(candidate)
        except Exception as exc:
            logger.warning(
                "subdomain_availability_check_failed",
                extra={"subdomain": candidate, "error": type(exc).__name__},
            )
            self._emit(
                generation,
                AvailabilityResult(
                    candidate,
                    AvailabilityStatus.UNAVAILABLE,
                    reason="error",
                    message=MESSAGE_ERROR,
                ),
            )
            return
        self._emit(generation, _lookup_result(candidate, exists))

    def _emit(self, generation: int, result: AvailabilityResult) -> None:
        if self._closed or generation != self._generation:
            return
        self._current = result
        self._on_change(result)


async def check_subdomain_availability(
    store: TenantStorePort,
    candidate: str,
    *,
    timeout: float | None = None,
) -> AvailabilityResult:
    """Check a subdomain once, without debounce.

    Args:
        store: Tenant store to query.
        candidate: Raw subdomain input.
        timeout: Seconds allowed for the store lookup.

    Returns:
        IDLE or INVALID without touching the store, otherwise AVAILABLE or
        UNAVAILABLE (reason ``taken``).

    Raises:
        AvailabilityError: If the store lookup fails or times out.
    """
    immediate = _pre_lookup_result(candidate)
    if immediate is not None:
        return immediate
    try:
        async with asyncio.timeout(timeout):
            exists = await store.subdomain_exists(candidate)
    except Exception as exc:
        logger.warning(
            "subdomain_availability_check_failed",
            extra={"subdomain": candidate, "error": type(exc).__name__},
        )
        raise AvailabilityError(candidate, str(exc) or type(exc).__name__) from exc
    return _lookup_result(candidate, exists)
