"""Uniform retrieval of remote and local resources."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, List, Optional

import requests

from .errors import UnreachableResource
from .mime import classify
from .models import FetchedResource, ResolvedLocation

logger = logging.getLogger("offline_bundle")

DEFAULT_TEXT_ENCODING = "utf-8"


def _response_encoding(response: requests.Response) -> str:
    """Use the charset declared by the server, otherwise UTF-8."""
    content_type = response.headers.get("Content-Type", "")
    if "charset=" in content_type.lower() and response.encoding:
        return response.encoding
    return DEFAULT_TEXT_ENCODING


class ResourceFetcher:
    """Fetch resources over HTTP(S) or from the local filesystem.

    Blocking I/O runs in worker threads so callers can await many fetches at
    once while all text manipulation stays on the event loop. Each worker
    thread gets its own session from ``session_factory``.
    """

    def __init__(
        self,
        session_factory: Callable[[], requests.Session] = requests.Session,
        timeout: Optional[float] = None,
    ) -> None:
        self.session_factory = session_factory
        self.timeout = timeout
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._lock = threading.Lock()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session_factory()
            self._local.session = session
            with self._lock:
                self._sessions.append(session)
        return session

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> "ResourceFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get(self, url: str) -> requests.Response:
        try:
            response = self._session().get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise UnreachableResource(url, str(exc)) from exc
        if not 200 <= response.status_code < 300:
            raise UnreachableResource(url, response.reason or "", status=response.status_code)
        return response

    def _download_text(self, url: str) -> str:
        response = self._get(url)
        return response.content.decode(_response_encoding(response), errors="replace")

    def _download_bytes(self, url: str) -> bytes:
        return self._get(url).content

    @staticmethod
    def _read_bytes(location: ResolvedLocation) -> bytes:
        try:
            return location.path.read_bytes()
        except (OSError, ValueError) as exc:
            reason = getattr(exc, "strerror", None) or str(exc)
            raise UnreachableResource(location.target, reason) from exc

    async def fetch_text(self, location: ResolvedLocation) -> str:
        """Return the decoded text of a script or stylesheet."""
        if location.is_remote:
            logger.info("Fetching %s", location)
            return await asyncio.to_thread(self._download_text, location.target)
        logger.info("Reading %s", location)
        data = await asyncio.to_thread(self._read_bytes, location)
        try:
            return data.decode(DEFAULT_TEXT_ENCODING)
        except UnicodeDecodeError as exc:
            raise UnreachableResource(location.target, f"not valid UTF-8: {exc}") from exc

    async def fetch_binary(self, location: ResolvedLocation) -> bytes:
        """Return the raw bytes of an asset."""
        if location.is_remote:
            logger.info("Fetching (binary) %s", location)
            return await asyncio.to_thread(self._download_bytes, location.target)
        logger.info("Reading (binary) %s", location)
        return await asyncio.to_thread(self._read_bytes, location)

    async def fetch_asset(self, location: ResolvedLocation) -> FetchedResource:
        """Fetch an asset and attach the media type for its data URI."""
        content = await self.fetch_binary(location)
        return FetchedResource(location=location, content=content, mime_type=classify(location.target))
