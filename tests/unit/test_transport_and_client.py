# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

import reqwire
from reqwire.config import HttpSettings
from reqwire.http import client as client_module
from reqwire.http.builder import build_request
from reqwire.http.client import ClientProvider, close_default_client, get_default_provider, set_default_provider
from reqwire.http.httpx_client import AsyncResponseStream, AsyncTransport, SyncTransport
from reqwire.http.models import BodyPart, RequestContext
from reqwire.response import read_json, read_json_async, read_text, read_text_async
from reqwire.runtime import HttpSession


def _mock_provider(handler, settings=None):
    transport = httpx.MockTransport(handler)
    return ClientProvider(
        settings or HttpSettings(),
        factory=lambda settings, http2: httpx.Client(transport=transport),
        async_factory=lambda settings, http2: httpx.AsyncClient(transport=transport),
    )


def test_sync_transport_returns_streamed_envelope():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, headers={"Content-Type": "application/json"}, content=b'{"ok": true}')

    provider = _mock_provider(handler, HttpSettings(user_agent="ua-test"))
    request = build_request(RequestContext(location="http://svc/items", method="post", body={"n": 1}, timeout=1500))
    response = SyncTransport(provider).send(request)

    assert response.status_code == 200
    assert response.content_type == "application/json"
    assert hasattr(response.body, "read")
    assert read_json(response).body == {"ok": True}

    sent = seen[0]
    assert sent.method == "POST"
    assert sent.headers["User-Agent"] == "ua-test"
    assert sent.headers["Content-Type"] == "application/json"
    assert json.loads(sent.content) == {"n": 1}
    assert sent.extensions["timeout"]["read"] == 1.5


def test_sync_transport_streams_multipart_upload(tmp_path):
    path = tmp_path / "f.reqwire-unknown"
    path.write_bytes(b"abc" * 1000)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, content=b"stored")

    request = build_request(
        RequestContext(
            location="http://svc/upload",
            method="post",
            content_type="multipart",
            body=[BodyPart(name="f", content=path, file_name="f.bin")],
        )
    )
    response = SyncTransport(_mock_provider(handler)).send(request)

    sent = seen[0]
    assert sent.headers["Content-Type"] == f"multipart/form-data; boundary={request.boundary}"
    assert int(sent.headers["Content-Length"]) == len(sent.content)
    assert "transfer-encoding" not in sent.headers
    assert b"abc" * 1000 in sent.content
    assert response.content_type is None
    assert read_text(response).body == "stored"


def test_user_agent_is_not_overridden_when_caller_sets_one():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    request = build_request(RequestContext(location="http://svc", method="get", headers={"user-agent": "mine"}))
    SyncTransport(_mock_provider(handler)).send(request)
    assert seen[0].headers["User-Agent"] == "mine"


def test_explicit_client_is_used_instead_of_provider():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append("explicit")
        return httpx.Response(200, text="x")

    def factory(settings, http2):  # noqa: ARG001
        raise AssertionError("provider client should not be built")

    provider = ClientProvider(HttpSettings(), factory=factory)
    with httpx.Client(transport=httpx.MockTransport(handler)) as explicit:
        request = build_request(RequestContext(location="http://svc", method="get"))
        response = SyncTransport(provider).send(request, client=explicit)
        assert read_text(response).body == "x"
    assert calls == ["explicit"]


def test_transport_errors_propagate_unwrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    request = build_request(RequestContext(location="http://svc", method="get"))
    with pytest.raises(httpx.ConnectError):
        SyncTransport(_mock_provider(handler)).send(request)


def test_async_transport_round_trip(tmp_path):
    path = tmp_path / "data.reqwire-unknown"
    path.write_bytes(b"payload")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, headers={"content-type": "application/json"}, content=b"[1, 2]")

    async def run():
        provider = _mock_provider(handler)
        request = build_request(RequestContext(location="http://svc/a", method="put", body=path, content_type="text"))
        response = await AsyncTransport(provider).send(request)
        assert isinstance(response.body, AsyncResponseStream)
        decoded = await read_json_async(response)
        await provider.aclose()
        return decoded

    decoded = asyncio.run(run())
    assert decoded.body == [1, 2]
    assert decoded.content_type == "application/json"
    assert seen[0].content == b"payload"
    assert seen[0].headers["Content-Length"] == "7"


def test_async_response_stream_iterates_chunks():
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(200, content=b"chunked-body")

    async def run():
        provider = _mock_provider(handler)
        request = build_request(RequestContext(location="http://svc", method="get"))
        response = await AsyncTransport(provider).send(request)
        chunks = [chunk async for chunk in response.body]
        await provider.aclose()
        return b"".join(chunks)

    assert asyncio.run(run()) == b"chunked-body"


def test_async_text_decoder():
    def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
        return httpx.Response(200, text="héllo")

    async def run():
        provider = _mock_provider(handler)
        response = await AsyncTransport(provider).send(build_request(RequestContext(location="http://svc", method="get")))
        decoded = await read_text_async(response)
        await provider.aclose()
        return decoded.body

    assert asyncio.run(run()) == "héllo"


def test_client_provider_reuses_and_rebuilds_after_close():
    built = []

    def factory(settings, http2):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        built.append((http2, client))
        return client

    provider = ClientProvider(HttpSettings(), factory=factory)
    assert built == []
    first = provider.client()
    assert provider.client() is first
    assert provider.client("1.1") is first
    h2 = provider.client("2.0")
    assert h2 is not first
    assert [flag for flag, _ in built] == [False, True]

    provider.close()
    assert first.is_closed and h2.is_closed
    rebuilt = provider.client()
    assert rebuilt is not first
    assert not rebuilt.is_closed
    provider.close()


def test_client_provider_http2_setting_is_the_default_protocol():
    flags = []

    def factory(settings, http2):
        flags.append(http2)
        return httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    provider = ClientProvider(HttpSettings(http2=True), factory=factory)
    provider.client()
    provider.client("1.1")
    assert flags == [True, False]
    provider.close()


def test_default_provider_can_be_swapped_and_closed(monkeypatch):
    monkeypatch.setattr(client_module, "_default_provider", None)
    closed = []

    class RecordingProvider(ClientProvider):
        def close(self) -> None:
            closed.append(True)
            super().close()

    custom = RecordingProvider(HttpSettings())
    assert set_default_provider(custom) is None
    assert get_default_provider() is custom
    close_default_client()
    assert closed == [True]
    assert set_default_provider(None) is custom
    assert isinstance(get_default_provider(), ClientProvider)


def test_close_default_client_invalidates_async_clients(monkeypatch):
    provider = _mock_provider(lambda request: httpx.Response(200))
    monkeypatch.setattr(client_module, "_default_provider", provider)

    before = provider.async_client()
    close_default_client()
    after = provider.async_client()

    assert after is not before
    assert before.is_closed
    assert not after.is_closed
    provider.close()


def test_close_invalidates_async_clients_of_the_running_loop():
    async def run():
        provider = _mock_provider(lambda request: httpx.Response(200))
        before = provider.async_client()
        assert provider.async_client() is before
        provider.close()
        after = provider.async_client()
        for _ in range(5):
            await asyncio.sleep(0)
        await provider.aclose()
        return before, after

    before, after = asyncio.run(run())
    assert after is not before
    assert before.is_closed
    assert after.is_closed


def test_async_clients_are_built_per_event_loop():
    provider = _mock_provider(lambda request: httpx.Response(200))

    async def current():
        return provider.async_client()

    first = asyncio.run(current())
    second = asyncio.run(current())
    assert first is not second
    provider.close()


def test_close_during_in_flight_async_request_swaps_then_closes():
    async def run():
        gate = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
            await gate.wait()
            return httpx.Response(200, text="late")

        provider = ClientProvider(
            HttpSettings(),
            async_factory=lambda settings, http2: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        session = HttpSession(provider)
        pending = asyncio.ensure_future(session.get_async("http://svc"))
        await asyncio.sleep(0)

        old = provider.async_client()
        provider.close()
        new = provider.async_client()

        gate.set()
        response = await pending
        body = (await read_text_async(response)).body
        for _ in range(5):
            await asyncio.sleep(0)
        await provider.aclose()
        return old, new, body

    old, new, body = asyncio.run(run())
    assert body == "late"
    assert new is not old
    assert old.is_closed


@pytest.fixture
def json_server():
    class Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def do_GET(self) -> None:  # noqa: N802
            payload = b'{"ok": true}'
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format, *args) -> None:  # noqa: A002, ANN001, ANN002
            return None

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}/"
    finally:
        server.shutdown()
        server.server_close()


def test_default_async_client_works_across_consecutive_event_loops(json_server, monkeypatch):
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    provider = ClientProvider(HttpSettings())
    monkeypatch.setattr(client_module, "_default_provider", provider)

    async def once():
        response = await reqwire.get_async(json_server)
        decoded = await read_json_async(response)
        return decoded.body, provider.async_client()

    first_body, first_client = asyncio.run(once())
    second_body, second_client = asyncio.run(once())

    assert first_body == {"ok": True}
    assert second_body == {"ok": True}
    assert second_client is not first_client
    provider.close()
