import asyncio
import threading

import pytest
import requests

from conftest import FakeResponse, FakeSession
from offline_bundle.errors import UnreachableResource
from offline_bundle.fetcher import ResourceFetcher
from offline_bundle.models import ResolvedLocation


def remote(url):
    return ResolvedLocation(url, "remote")


def local(path):
    return ResolvedLocation(str(path), "local")


def test_fetch_text_defaults_to_utf8(make_fetcher):
    body = "console.log('héllo');".encode("utf-8")
    fetcher, session = make_fetcher(
        {
            "https://cdn.example.com/app.js": FakeResponse(
                body, headers={"Content-Type": "application/javascript"}, encoding="ISO-8859-1"
            )
        }
    )
    text = asyncio.run(fetcher.fetch_text(remote("https://cdn.example.com/app.js")))
    assert text == "console.log('héllo');"
    assert session.calls == ["https://cdn.example.com/app.js"]


def test_fetch_text_honours_declared_charset(make_fetcher):
    body = "body { content: 'é'; }".encode("latin-1")
    fetcher, _ = make_fetcher(
        {
            "https://cdn.example.com/a.css": FakeResponse(
                body, headers={"Content-Type": "text/css; charset=ISO-8859-1"}, encoding="ISO-8859-1"
            )
        }
    )
    text = asyncio.run(fetcher.fetch_text(remote("https://cdn.example.com/a.css")))
    assert text == "body { content: 'é'; }"


def test_non_2xx_status_is_unreachable(make_fetcher):
    fetcher, _ = make_fetcher()
    with pytest.raises(UnreachableResource) as excinfo:
        asyncio.run(fetcher.fetch_binary(remote("https://cdn.example.com/missing.woff2")))
    assert excinfo.value.status == 404
    assert excinfo.value.location == "https://cdn.example.com/missing.woff2"
    assert "HTTP 404" in str(excinfo.value)


def test_request_exception_is_unreachable(make_fetcher):
    fetcher, _ = make_fetcher(
        {"https://down.example.com/a.js": requests.ConnectionError("connection refused")}
    )
    with pytest.raises(UnreachableResource) as excinfo:
        asyncio.run(fetcher.fetch_text(remote("https://down.example.com/a.js")))
    assert excinfo.value.status is None
    assert "connection refused" in str(excinfo.value)


def test_local_files_are_read(tmp_path):
    (tmp_path / "app.js").write_text("let x = 1;", encoding="utf-8")
    (tmp_path / "font.woff2").write_bytes(b"wOF2\x00\x01")
    fetcher = ResourceFetcher()
    assert asyncio.run(fetcher.fetch_text(local(tmp_path / "app.js"))) == "let x = 1;"
    resource = asyncio.run(fetcher.fetch_asset(local(tmp_path / "font.woff2")))
    assert resource.content == b"wOF2\x00\x01"
    assert resource.mime_type == "font/woff2"


def test_missing_local_file_is_unreachable(tmp_path):
    fetcher = ResourceFetcher()
    with pytest.raises(UnreachableResource) as excinfo:
        asyncio.run(fetcher.fetch_binary(local(tmp_path / "nope.woff")))
    assert excinfo.value.location == str(tmp_path / "nope.woff")


def test_context_manager_closes_session(make_fetcher):
    fetcher, session = make_fetcher({"https://cdn.example.com/a.js": FakeResponse(b"a")})
    with fetcher:
        asyncio.run(fetcher.fetch_text(remote("https://cdn.example.com/a.js")))
    assert session.closed


def test_each_worker_thread_gets_its_own_session():
    created = []

    def factory():
        session = FakeSession({})
        created.append(session)
        return session

    fetcher = ResourceFetcher(session_factory=factory)
    seen = []
    workers = [threading.Thread(target=lambda: seen.append(fetcher._session())) for _ in range(3)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert len(created) == 3
    assert len({id(session) for session in seen}) == 3
    assert fetcher._session() is fetcher._session()
    fetcher.close()
    assert all(session.closed for session in created)


def test_null_byte_in_local_path_is_unreachable(tmp_path):
    fetcher = ResourceFetcher()
    with pytest.raises(UnreachableResource):
        asyncio.run(fetcher.fetch_binary(local(str(tmp_path) + "/bad\x00.woff2")))
