# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
httpmon package entrypoint.

This package probes HTTP(S) endpoints once, measuring per-phase timings (DNS, TCP
connect, TLS handshake, time to first byte and download) and the remaining validity
of the server certificate, and aggregates collected results into per-endpoint
availability and latency statistics. Probes run over httpx with a tracing network
backend, and results are modeled with frozen dataclasses.
"""

from .config import ProbeSettings, load_probe_settings
from .http import RetryConfig
from .log import setup_logging
from .models import MonitorConfig, Ping, PingStatus, SummaryStats
from .probe import ProbeEngine, ProbeRunner, execute_ping
from .runtime import HttpMon
from .summary import summarize
from .version import __version__

__all__ = [
    "HttpMon",
    "MonitorConfig",
    "Ping",
    "PingStatus",
    "ProbeEngine",
    "ProbeRunner",
    "ProbeSettings",
    "RetryConfig",
    "SummaryStats",
    "execute_ping",
    "load_probe_settings",
    "setup_logging",
    "summarize",
    "__version__",
]
