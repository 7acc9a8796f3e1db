"""Unit tests for scholaris.infra.fastapi.lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from scholaris.foundation.application.contributions import LifespanContribution
from scholaris.infra.fastapi.lifespan import compose_lifespan

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.mark.unit
class TestComposeLifespan:
    async def test_no_hooks(self) -> None:
        async with compose_lifespan([])(MagicMock()):
            pass

    async def test_start_ascending_stop_descending(self) -> None:
        order: list[str] = []

        def make_hook(name: str):  # noqa: ANN202
            @asynccontextmanager
            async def hook(app: object) -> AsyncIterator[None]:
                order.append(f"{name}_start")
                yield
                order.append(f"{name}_stop")

            return hook

        lifespan = compose_lifespan(
            [
                LifespanContribution(hook=make_hook("taskiq"), priority=150),
                LifespanContribution(hook=make_hook("observability"), priority=50),
                LifespanContribution(hook=make_hook("tenancy"), priority=100),
            ]
        )
        async with lifespan(MagicMock()):
            assert order == ["observability_start", "tenancy_start", "taskiq_start"]

        assert order[3:] == ["taskiq_stop", "tenancy_stop", "observability_stop"]

    async def test_failing_hook_unwinds_started_hooks(self) -> None:
        stopped: list[str] = []

        @asynccontextmanager
        async def database(app: object) -> AsyncIterator[None]:
            yield
            stopped.append("database")

        @asynccontextmanager
        async def broken(app: object) -> AsyncIterator[None]:
            raise RuntimeError("schema bootstrap failed")
            yield  # pragma: no cover

        lifespan = compose_lifespan(
            [
                LifespanContribution(hook=database, priority=75),
                LifespanContribution(hook=broken, priority=100),
            ]
        )
        with pytest.raises(RuntimeError, match="schema bootstrap failed"):
            async with lifespan(MagicMock()):
                pass

        assert stopped == ["database"]

    async def test_app_is_passed_to_hooks(self) -> None:
        received: list[object] = []

        @asynccontextmanager
        async def hook(app: object) -> AsyncIterator[None]:
            received.append(app)
            yield

        app = MagicMock()
        async with compose_lifespan([LifespanContribution(hook=hook)])(app):
            assert received == [app]
