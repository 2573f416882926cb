"""Shared fakes so tests never touch the network."""

from typing import Dict, List, Optional, Union

import pytest

from offline_bundle.fetcher import ResourceFetcher


class FakeResponse:
    def __init__(
        self,
        content: bytes = b"",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        encoding: Optional[str] = None,
        reason: str = "OK",
    ):
        self.content = content
        self.status_code = status_code
        self.headers = headers or {}
        self.encoding = encoding
        self.reason = reason


class FakeSession:
    """Minimal stand-in for ``requests.Session`` keyed by URL."""

    def __init__(self, routes: Dict[str, Union[FakeResponse, Exception]]):
        self.routes = routes
        self.calls: List[str] = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404, reason="Not Found")
        if isinstance(route, Exception):
            raise route
        return route

    def close(self):
        self.closed = True


@pytest.fixture
def make_fetcher():
    def factory(routes=None):
        session = FakeSession(routes or {})
        return ResourceFetcher(session_factory=lambda: session), session

    return factory
