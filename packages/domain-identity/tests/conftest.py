"""Shared fixtures for domain-identity tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import httpx
import pytest

from scholaris.domain.identity.settings import get_identity_settings

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_identity_settings.cache_clear()
    yield
    get_identity_settings.cache_clear()


@pytest.fixture()
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture()
def make_http(requests_seen: list[httpx.Request]) -> Callable[[Handler], httpx.AsyncClient]:
    """Build an AsyncClient whose transport records requests and delegates to ``handler``."""

    def factory(handler: Handler) -> httpx.AsyncClient:
        def recording(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(recording))

    return factory
