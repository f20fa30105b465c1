# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-probe timing record.

A ProbeTrace is owned by exactly one probe. The tracing network backend and the httpx
``trace`` request extension write named timestamps into it while the request runs; the
prober reads the phase durations out once the exchange is over.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import httpcore
from cryptography import x509

logger = logging.getLogger(__name__)

ZERO = timedelta(0)


def _span(start: float | None, end: float | None) -> timedelta:
    if start is None or end is None or end < start:
        return ZERO
    return timedelta(seconds=end - start)


def certificate_not_after(der: bytes) -> datetime:
    """Return the expiry of a DER encoded certificate as an aware UTC datetime."""
    certificate = x509.load_der_x509_certificate(der)
    return certificate.not_valid_after_utc


def peer_certificate(stream: Any) -> bytes | None:
    """Return the leaf certificate (DER) of a TLS network stream, if it exposes one."""
    get_extra_info = getattr(stream, "get_extra_info", None)
    if not callable(get_extra_info):
        return None
    ssl_object = get_extra_info("ssl_object")
    if ssl_object is None:
        return None
    # Positional on purpose: ssl.SSLSocket names it binary_form, _ssl._SSLSocket names it der.
    return ssl_object.getpeercert(True) or None


@dataclass
class ProbeTrace:
    """Timestamps (``clock`` seconds) recorded during one HTTP exchange."""

    connect_timeout: float | None = None
    response_timeout: float | None = None
    clock: Callable[[], float] = time.perf_counter

    request_start: float | None = None
    dial_start: float | None = None
    dns_start: float | None = None
    dns_done: float | None = None
    connect_start: float | None = None
    connect_done: float | None = None
    tls_start: float | None = None
    tls_done: float | None = None
    first_byte: float | None = None
    awaiting_response: bool = False
    cert_not_after: datetime | None = None
    cert_remaining_validity: timedelta = field(default=ZERO)

    def begin(self) -> None:
        self.request_start = self.clock()

    # Marks written by the tracing network backend.

    def dial_started(self) -> None:
        self.dial_start = self.clock()

    def dns_started(self) -> None:
        self.dns_start = self.clock()

    def dns_finished(self) -> None:
        self.dns_done = self.clock()

    def connect_started(self) -> None:
        self.connect_start = self.clock()

    def connect_finished(self) -> None:
        self.connect_done = self.clock()

    def data_received(self) -> None:
        """Called by the network stream for every non-empty read."""
        if self.awaiting_response and self.first_byte is None:
            self.first_byte = self.clock()

    # httpx/httpcore ``trace`` extension.

    def on_event(self, name: str, info: dict[str, Any]) -> None:
        if name.endswith(".failed"):
            return
        if name == "connection.start_tls.started":
            self.tls_start = self.clock()
        elif name == "connection.start_tls.complete":
            self.tls_done = self.clock()
            self._record_certificate(info.get("return_value"))
            self.check_connect_budget()
        elif name.endswith(".receive_response_headers.started"):
            # Each redirect hop measures its own first byte.
            self.first_byte = None
            self.awaiting_response = True
        elif name.endswith(".receive_response_headers.complete"):
            self.awaiting_response = False
            if self.first_byte is None:
                self.first_byte = self.clock()
        if self.response_budget_exceeded():
            raise httpcore.ReadTimeout(f"response timeout of {self.response_timeout}s exceeded")

    def ensure_first_byte(self) -> None:
        """Fall back to "headers handed back" when the transport emitted no trace events."""
        if self.first_byte is None:
            self.first_byte = self.clock()

    def _record_certificate(self, stream: Any) -> None:
        try:
            der = peer_certificate(stream)
            if der is None:
                return
            not_after = certificate_not_after(der)
        except ValueError as exc:
            logger.debug("Unable to parse peer certificate: %s", exc)
            return
        self.cert_not_after = not_after
        self.cert_remaining_validity = not_after - datetime.now(timezone.utc)

    # Budgets.

    def remaining_connect_budget(self, timeout: float | None = None) -> float | None:
        """Seconds left of the connect budget, capped by ``timeout``; raises once exhausted."""
        if not self.connect_timeout or self.dial_start is None:
            return timeout
        remaining = self.connect_timeout - (self.clock() - self.dial_start)
        if remaining <= 0:
            raise httpcore.ConnectTimeout(f"connect timeout of {self.connect_timeout}s exceeded")
        return remaining if timeout is None else min(timeout, remaining)

    def check_connect_budget(self) -> None:
        self.remaining_connect_budget()

    def remaining_response_budget(self, timeout: float | None = None, *, write: bool = False) -> float | None:
        """Seconds left of the response budget, capped by ``timeout``; raises once exhausted."""
        if not self.response_timeout or self.request_start is None:
            return timeout
        remaining = self.response_timeout - (self.clock() - self.request_start)
        if remaining <= 0:
            error = httpcore.WriteTimeout if write else httpcore.ReadTimeout
            raise error(f"response timeout of {self.response_timeout}s exceeded")
        return remaining if timeout is None else min(timeout, remaining)

    def response_budget_exceeded(self) -> bool:
        if not self.response_timeout or self.request_start is None:
            return False
        return self.clock() - self.request_start > self.response_timeout

    # Phase durations.

    @property
    def dns_time(self) -> timedelta:
        return _span(self.dns_start, self.dns_done)

    @property
    def connection_time(self) -> timedelta:
        return _span(self.connect_start, self.connect_done)

    @property
    def tls_time(self) -> timedelta:
        return _span(self.tls_start, self.tls_done)

    @property
    def ttfb(self) -> timedelta:
        return _span(self.request_start, self.first_byte)

    def elapsed_since_start(self, end: float) -> timedelta:
        return _span(self.request_start, end)


__all__ = ["ProbeTrace", "certificate_not_after", "peer_certificate"]
