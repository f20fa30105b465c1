# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe engine: one timed HTTP exchange against one target."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime, timedelta

import httpx

from ..errors import RequestBuildError, describe_exception
from ..http.retry import RetryConfig, probe_with_retries
from ..http.trace import ProbeTrace
from ..http.transport import build_client
from ..models import MonitorConfig, Ping, PingStatus
from ..models.ping import utcnow

logger = logging.getLogger(__name__)

ClientFactory = Callable[[MonitorConfig, ProbeTrace], httpx.Client]

# RFC 9110 token characters.
_METHOD_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def build_request(config: MonitorConfig, trace: ProbeTrace | None = None) -> httpx.Request:
    """Build the probe request, raising RequestBuildError for a malformed method, URL or headers."""
    if not _METHOD_RE.match(config.method or ""):
        raise RequestBuildError(f"invalid method {config.method!r}")
    extensions = {"trace": trace.on_event} if trace is not None else None
    try:
        return httpx.Request(config.method, config.url, headers=config.headers, extensions=extensions)
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        raise RequestBuildError(describe_exception(exc)) from exc


def validate_request(config: MonitorConfig) -> None:
    """Check that a request can be constructed for `config` without touching the network."""
    build_request(config)


class ProbeEngine:
    """
    Executes probes and turns every outcome into a Ping.

    `execute` never raises for request-construction, transport or protocol problems;
    they all come back as Failed pings with a message.
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        *,
        sleep: Callable[[float], None] | None = None,
    ):
        self._client_factory = client_factory or build_client
        self._sleep = sleep

    def execute(self, config: MonitorConfig) -> Ping:
        timestamp = utcnow()
        try:
            validate_request(config)
            return probe_with_retries(
                lambda: self.execute_once(config),
                RetryConfig.from_monitor(config),
                sleep=self._sleep,
            )
        except RequestBuildError as exc:
            # Construction failures are final.
            logger.debug("Cannot build request for %s: %s", config.url, exc)
            return Ping.failed(config.name, config.url, f"Error creating request: {exc}", timestamp=timestamp)

    def execute_once(self, config: MonitorConfig) -> Ping:
        """
        A single attempt: exactly one network round-trip (plus redirects).

        Raises RequestBuildError when the client or request cannot be constructed;
        every other failure comes back as a Failed ping.
        """
        trace = ProbeTrace(connect_timeout=config.connect_timeout, response_timeout=config.response_timeout)
        timestamp = utcnow()

        try:
            client = self._client_factory(config, trace)
        except Exception as exc:  # noqa: BLE001
            raise RequestBuildError(describe_exception(exc)) from exc

        with client:
            request = build_request(config, trace)
            try:
                return self._exchange(client, request, config, trace, timestamp)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Probe of %s failed: %r", config.url, exc)
                return Ping.failed(
                    config.name,
                    config.url,
                    f"Error executing request: {describe_exception(exc)}",
                    timestamp=timestamp,
                )

    def _exchange(
        self,
        client: httpx.Client,
        request: httpx.Request,
        config: MonitorConfig,
        trace: ProbeTrace,
        timestamp: datetime,
    ) -> Ping:
        trace.begin()
        response = client.send(request, stream=True)
        try:
            trace.ensure_first_byte()
            if trace.response_budget_exceeded():
                raise httpx.ReadTimeout(f"response timeout of {config.response_timeout}s exceeded", request=request)
            download_start = trace.clock()
            _drain(response, config.max_body_bytes, trace)
            finished = trace.clock()
        finally:
            response.close()

        status = PingStatus.SUCCESS if config.accepts(response.status_code) else PingStatus.FAILED
        return Ping(
            name=config.name,
            url=config.url,
            status=status,
            timestamp=timestamp,
            status_code=response.status_code,
            message=httpx.codes.get_reason_phrase(response.status_code),
            dns_time=trace.dns_time,
            connection_time=trace.connection_time,
            tls_time=trace.tls_time,
            ttfb=trace.ttfb,
            download_time=timedelta(seconds=max(0.0, finished - download_start)),
            total_response_time=trace.elapsed_since_start(finished),
            cert_remaining_validity=trace.cert_remaining_validity,
        )


def _drain(response: httpx.Response, limit: int, trace: ProbeTrace) -> int:
    """Read and discard at most `limit` body bytes; the rest is left unread."""
    if response.is_stream_consumed:
        # Body was buffered before it reached us (in-memory and mock transports).
        return min(len(response.content), limit)
    read = 0
    for chunk in response.iter_raw():
        read += len(chunk)
        if trace.response_budget_exceeded():
            raise httpx.ReadTimeout(
                f"response timeout of {trace.response_timeout}s exceeded while reading body",
                request=response.request,
            )
        if read >= limit:
            break
    return min(read, limit)


def execute_ping(config: MonitorConfig, engine: ProbeEngine | None = None) -> Ping:
    """Convenience wrapper around ProbeEngine.execute."""
    return (engine or ProbeEngine()).execute(config)


__all__ = ["ClientFactory", "ProbeEngine", "build_request", "execute_ping", "validate_request"]
