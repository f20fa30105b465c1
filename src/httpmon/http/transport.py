# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx transport that reports connection timings into a ProbeTrace and enforces its budgets."""

from __future__ import annotations

import ipaddress
import socket
import ssl
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any

import httpcore
import httpx

from ..models import MonitorConfig
from .trace import ProbeTrace


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


class TracingStream(httpcore.NetworkStream):
    """
    Network stream bounding every socket operation by the remaining probe budgets.

    httpx timeouts apply per operation. Capping each read and write by what is left of
    the response budget turns that budget into a deadline for the whole exchange.
    """

    def __init__(self, stream: httpcore.NetworkStream, trace: ProbeTrace):
        self._stream = stream
        self._trace = trace

    def read(self, max_bytes: int, timeout: float | None = None) -> bytes:
        data = self._stream.read(max_bytes, timeout=self._trace.remaining_response_budget(timeout))
        if data:
            self._trace.data_received()
        return data

    def write(self, buffer: bytes, timeout: float | None = None) -> None:
        self._stream.write(buffer, timeout=self._trace.remaining_response_budget(timeout, write=True))

    def close(self) -> None:
        self._stream.close()

    def start_tls(
        self,
        ssl_context: ssl.SSLContext,
        server_hostname: str | None = None,
        timeout: float | None = None,
    ) -> httpcore.NetworkStream:
        timeout = self._trace.remaining_connect_budget(self._trace.remaining_response_budget(timeout))
        return TracingStream(self._stream.start_tls(ssl_context, server_hostname, timeout), self._trace)

    def get_extra_info(self, info: str) -> Any:
        return self._stream.get_extra_info(info)


class TracingBackend(httpcore.SyncBackend):
    """
    Synchronous httpcore backend that resolves hosts itself.

    Splitting `getaddrinfo` out of `socket.create_connection` is what makes the DNS phase
    measurable. Literal IP hosts skip resolution, so their DNS time stays zero.
    """

    def __init__(self, trace: ProbeTrace):
        self._trace = trace

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[httpcore.SOCKET_OPTION] | None = None,
    ) -> httpcore.NetworkStream:
        trace = self._trace
        trace.dial_started()
        addresses = self._resolve(host, port, timeout)

        last_exc: Exception | None = None
        for address in addresses:
            remaining = trace.remaining_connect_budget(timeout)
            trace.connect_started()
            try:
                stream = super().connect_tcp(
                    address,
                    port,
                    timeout=remaining,
                    local_address=local_address,
                    socket_options=socket_options,
                )
            except (httpcore.ConnectError, httpcore.ConnectTimeout) as exc:
                last_exc = exc
                continue
            trace.connect_finished()
            return TracingStream(stream, trace)

        if last_exc is not None:
            raise last_exc
        raise httpcore.ConnectError(f"no addresses found for {host}")

    def _resolve(self, host: str, port: int, timeout: float | None) -> list[str]:
        if _is_ip_literal(host):
            return [host.strip("[]")]

        self._trace.dns_started()
        remaining = self._trace.remaining_connect_budget(timeout)
        # getaddrinfo has no timeout of its own; a stuck lookup is abandoned to its thread.
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="httpmon-dns")
        try:
            infos = executor.submit(socket.getaddrinfo, host, port, type=socket.SOCK_STREAM).result(timeout=remaining)
        except FutureTimeout as exc:
            raise httpcore.ConnectTimeout(f"DNS lookup for {host} exceeded the connect timeout") from exc
        except OSError as exc:
            raise httpcore.ConnectError(f"DNS lookup for {host} failed: {exc}") from exc
        finally:
            executor.shutdown(wait=False)
        self._trace.dns_finished()
        return list(dict.fromkeys(str(info[4][0]) for info in infos))


class TracingTransport(httpx.HTTPTransport):
    """HTTPTransport whose connection pool dials through a TracingBackend."""

    def __init__(self, trace: ProbeTrace, *, verify: bool = True, http2: bool = False):
        super().__init__(verify=verify, http2=http2)
        # httpx does not expose the network backend, so the pool is rebuilt around ours.
        self._pool = httpcore.ConnectionPool(
            ssl_context=httpx.create_ssl_context(verify=verify),
            http1=True,
            http2=http2,
            network_backend=TracingBackend(trace),
        )


def build_client(config: MonitorConfig, trace: ProbeTrace) -> httpx.Client:
    """Create the single-use client for one probe; nothing is pooled across probes."""
    return httpx.Client(
        transport=TracingTransport(trace, verify=config.verify_ssl, http2=config.http2),
        timeout=httpx.Timeout(config.response_timeout, connect=config.connect_timeout),
        follow_redirects=config.max_redirects > 0,
        max_redirects=config.max_redirects,
    )


__all__ = ["TracingBackend", "TracingStream", "TracingTransport", "build_client"]
