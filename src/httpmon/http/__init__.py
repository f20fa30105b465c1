# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP instrumentation exports."""

from .retry import RetryConfig, probe_with_retries
from .trace import ProbeTrace, certificate_not_after, peer_certificate
from .transport import TracingBackend, TracingStream, TracingTransport, build_client

__all__ = [
    "ProbeTrace",
    "RetryConfig",
    "TracingBackend",
    "TracingStream",
    "TracingTransport",
    "build_client",
    "certificate_not_after",
    "peer_certificate",
    "probe_with_retries",
]
