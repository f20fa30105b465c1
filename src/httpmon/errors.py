# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from enum import Enum

import httpx


class HttpmonError(Exception):
    """Base class for errors raised by httpmon."""


class RequestBuildError(HttpmonError):
    """The probe request could not be constructed (method, URL or headers)."""


class RecordError(HttpmonError):
    """A persisted probe record could not be turned back into a Ping."""

    def __init__(self, message: str, *, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"invalid record on line {line}: {message}"
        super().__init__(message)


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DNS_ERROR = "DNS_ERROR"
    REDIRECT_ERROR = "REDIRECT_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


def _exception_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.

    httpx wraps socket and ssl errors, so the whole cause chain is inspected and the
    most specific low-level cause wins over the generic httpx wrapper.
    """
    chain = _exception_chain(exc)

    for item in chain:
        if isinstance(item, (socket.gaierror, socket.herror)):
            return ErrorCategory.DNS_ERROR
        if isinstance(item, (ssl.SSLError, ssl.CertificateError)):
            return ErrorCategory.SSL_ERROR

    if isinstance(exc, httpx.TimeoutException):
        return ErrorCategory.TIMEOUT

    if isinstance(exc, httpx.TooManyRedirects):
        return ErrorCategory.REDIRECT_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.NetworkError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (httpx.ProtocolError, httpx.UnsupportedProtocol, httpx.DecodingError)):
        return ErrorCategory.PROTOCOL_ERROR

    if isinstance(exc, (ConnectionError, TimeoutError)):
        return ErrorCategory.TIMEOUT if isinstance(exc, TimeoutError) else ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout during probe",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.REDIRECT_ERROR: "Too many redirects",
        ErrorCategory.PROTOCOL_ERROR: "HTTP protocol error",
        ErrorCategory.UNKNOWN_ERROR: "Network error during probe",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Probe failed due to network error")


def describe_exception(exc: BaseException) -> str:
    """Return the exception text, falling back to the category reason when it is empty."""
    text = str(exc).strip()
    if text:
        return text
    reason = error_category_to_reason(categorize_exception(exc))
    return f"{reason} ({type(exc).__name__})"


__all__ = [
    "ErrorCategory",
    "HttpmonError",
    "RecordError",
    "RequestBuildError",
    "categorize_exception",
    "describe_exception",
    "error_category_to_reason",
]
