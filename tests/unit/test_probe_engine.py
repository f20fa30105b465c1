# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import socket
from datetime import timedelta

import httpx
import pytest

from httpmon.errors import RequestBuildError
from httpmon.http.trace import ProbeTrace
from httpmon.models import MonitorConfig, PingStatus
from httpmon.probe import ProbeEngine, build_request, execute_ping, validate_request
from httpmon.probe.engine import _drain

ZERO = timedelta(0)


def mock_factory(handler, clients=None):
    def factory(config, trace):  # noqa: ARG001
        client = httpx.Client(
            transport=httpx.MockTransport(handler),
            follow_redirects=config.max_redirects > 0,
            max_redirects=config.max_redirects,
        )
        if clients is not None:
            clients.append(client)
        return client

    return factory


def make_config(url="http://example.test/", **kwargs) -> MonitorConfig:
    return MonitorConfig(name="agent", url=url, **kwargs)


class ChunkStream(httpx.SyncByteStream):
    def __init__(self, chunks):
        self.chunks = chunks
        self.consumed = 0

    def __iter__(self):
        for chunk in self.chunks:
            self.consumed += 1
            yield chunk


def test_accepted_status_gives_success():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"hello")

    clients = []
    ping = ProbeEngine(mock_factory(handler, clients)).execute(make_config())

    assert ping.status == PingStatus.SUCCESS
    assert ping.status_code == 200
    assert ping.message == "OK"
    assert ping.name == "agent"
    assert ping.url == "http://example.test/"
    assert ping.timestamp.tzinfo is not None
    assert seen[0].method == "GET"
    assert seen[0].headers["User-Agent"] == "HTTP-Monitor-Agent"
    assert "trace" in seen[0].extensions
    assert clients[0].is_closed
    # No network phases happened on the mock transport.
    assert ping.dns_time == ping.connection_time == ping.tls_time == ZERO
    assert ping.cert_remaining_validity == ZERO
    assert ping.ttfb <= ping.total_response_time
    assert ping.download_time <= ping.total_response_time


def test_status_outside_accepted_set_fails_but_keeps_code():
    engine = ProbeEngine(mock_factory(lambda request: httpx.Response(404)))

    failed = engine.execute(make_config())
    accepted = engine.execute(make_config(accepted_status_codes={404}))

    assert failed.status == PingStatus.FAILED
    assert failed.status_code == 404
    assert failed.message == "Not Found"
    assert accepted.status == PingStatus.SUCCESS
    assert accepted.status_code == 404


def test_empty_accepted_set_fails_every_response():
    engine = ProbeEngine(mock_factory(lambda request: httpx.Response(200)))
    ping = engine.execute(make_config(accepted_status_codes=frozenset()))
    assert ping.status == PingStatus.FAILED
    assert ping.status_code == 200


def test_unknown_status_has_empty_message():
    engine = ProbeEngine(mock_factory(lambda request: httpx.Response(599)))
    ping = engine.execute(make_config())
    assert ping.status_code == 599
    assert ping.message == ""


def test_redirects_are_followed_up_to_the_limit():
    def handler(request):
        if request.url.path == "/final":
            return httpx.Response(200)
        return httpx.Response(302, headers={"Location": "/final"})

    engine = ProbeEngine(mock_factory(handler))
    followed = engine.execute(make_config())
    not_followed = engine.execute(make_config(max_redirects=0))

    assert followed.status_code == 200
    assert followed.status == PingStatus.SUCCESS
    assert not_followed.status_code == 302
    assert not_followed.status == PingStatus.FAILED


def test_redirect_loop_is_a_transport_failure():
    engine = ProbeEngine(mock_factory(lambda request: httpx.Response(302, headers={"Location": "/again"})))
    ping = engine.execute(make_config(max_redirects=2))
    assert ping.status == PingStatus.FAILED
    assert ping.status_code == 0
    assert ping.message.startswith("Error executing request: ")


def test_transport_error_gives_zero_timings():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    ping = ProbeEngine(mock_factory(handler)).execute(make_config())

    assert ping.status == PingStatus.FAILED
    assert ping.status_code == 0
    assert ping.message == "Error executing request: connection refused"
    assert ping.total_response_time == ping.ttfb == ping.download_time == ZERO


def test_invalid_method_is_a_construction_failure():
    calls = []

    def factory(config, trace):
        calls.append(config)
        raise AssertionError("client must not be built")

    ping = ProbeEngine(factory).execute(make_config(method="GE T"))

    assert calls == []
    assert ping.status == PingStatus.FAILED
    assert ping.status_code == 0
    assert ping.message.startswith("Error creating request: ")


def test_invalid_url_is_a_construction_failure():
    ping = ProbeEngine(mock_factory(lambda request: httpx.Response(200))).execute(
        make_config(url="http://example.com:notaport/")
    )
    assert ping.status == PingStatus.FAILED
    assert ping.message.startswith("Error creating request: ")


def test_client_factory_error_is_a_construction_failure():
    def factory(config, trace):
        raise ValueError("bad TLS settings")

    ping = ProbeEngine(factory).execute(make_config())
    assert ping.message == "Error creating request: bad TLS settings"


def test_build_and_validate_request():
    trace = ProbeTrace()
    request = build_request(make_config(method="HEAD", headers={"X-Probe": "1"}), trace)
    assert request.method == "HEAD"
    assert request.headers["X-Probe"] == "1"
    assert request.extensions["trace"] == trace.on_event

    with pytest.raises(RequestBuildError):
        validate_request(make_config(method=""))


def test_retries_only_transport_failures():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(204)

    sleeps = []
    engine = ProbeEngine(mock_factory(handler), sleep=sleeps.append)
    ping = engine.execute(make_config(retries=3, retry_interval=0.5, backoff_factor=2.0))

    assert ping.status == PingStatus.SUCCESS
    assert ping.status_code == 204
    assert len(attempts) == 3
    assert sleeps == [0.5, 1.0]


def test_no_retry_without_retries_configured():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("refused", request=request)

    engine = ProbeEngine(mock_factory(handler), sleep=lambda _: pytest.fail("must not sleep"))
    engine.execute(make_config())
    assert len(attempts) == 1


def test_drain_stops_at_body_cap():
    stream = ChunkStream([b"abcd"] * 10)
    response = httpx.Response(200, stream=stream)

    read = _drain(response, 10, ProbeTrace())

    assert read == 10
    assert stream.consumed == 3


def test_drain_reads_short_bodies_fully():
    stream = ChunkStream([b"ab", b"cd"])
    assert _drain(httpx.Response(200, stream=stream), 1024, ProbeTrace()) == 4
    assert _drain(httpx.Response(200, content=b"x" * 50), 10, ProbeTrace()) == 10


def test_drain_enforces_response_budget():
    now = [0.0]
    trace = ProbeTrace(response_timeout=1.0, clock=lambda: now[0])
    trace.begin()

    def slow_chunks():
        yield b"a"
        now[0] = 5.0
        yield b"b"

    class SlowStream(httpx.SyncByteStream):
        def __iter__(self):
            yield from slow_chunks()

    response = httpx.Response(200, stream=SlowStream(), request=httpx.Request("GET", "http://x"))
    with pytest.raises(httpx.ReadTimeout):
        _drain(response, 1024, trace)


def test_connection_refused_against_closed_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    ping = execute_ping(make_config(url=f"http://127.0.0.1:{port}/", connect_timeout=2.0))

    assert ping.status == PingStatus.FAILED
    assert ping.status_code == 0
    assert ping.message.startswith("Error executing request: ")
    assert ping.connection_time == ZERO


def test_construction_errors_are_not_retried():
    calls = []

    def factory(config, trace):
        calls.append(config)
        raise ValueError("bad TLS settings")

    sleeps = []
    ping = ProbeEngine(factory, sleep=sleeps.append).execute(make_config(retries=2, retry_interval=1.0))

    assert len(calls) == 1
    assert sleeps == []
    assert ping.status_code == 0
    assert ping.message == "Error creating request: bad TLS settings"


def test_execute_once_raises_construction_errors():
    def factory(config, trace):
        raise ValueError("bad TLS settings")

    with pytest.raises(RequestBuildError):
        ProbeEngine(factory).execute_once(make_config())
